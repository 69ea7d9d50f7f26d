"""
Token exchange against the identity service.

Exchanges a client secret and authorization code for a bearer token, used
when a manifest is added with the internal c2patool build.
"""

import logging
from typing import Any, Optional

import requests

from .config import SignParams, WorkerConfig
from .errors import ConfigurationError, CredentialRejected, NoResponseError, TokenExchangeError

logger = logging.getLogger(__name__)

REJECTED_SECRET_ERROR = "invalid_client"
REJECTED_SECRET_DESCRIPTION = "invalid client_secret parameter"


def _response_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def exchange_service_token(sign_params: Optional[SignParams], config: WorkerConfig) -> str:
    """
    Exchange a client secret and access code for an access token.

    Args:
        sign_params: Credentials and tier for the exchange
        config: Worker configuration holding the identity endpoints

    Returns:
        The bearer access token

    Raises:
        ConfigurationError: Credentials are incomplete or the tier is unknown
        CredentialRejected: The identity service rejected the client secret
        TokenExchangeError: Any other non-success response
        NoResponseError: The transport produced no response
    """
    if (sign_params is None or not sign_params.client_secret
            or not sign_params.access_code or not sign_params.tier):
        raise ConfigurationError("Incomplete C2PA signing information")

    host = config.auth_endpoint(sign_params.tier)
    if host is None:
        raise ConfigurationError(
            f"Unable to exchange service token: {sign_params.tier} is not a valid tier "
            f"(only stage or prod are supported)"
        )

    form = {
        "grant_type": config.grant_type,
        "client_id": config.client_id,
        "client_secret": sign_params.client_secret,
        "code": sign_params.access_code,
    }

    logger.info(f"Exchanging service token against {sign_params.tier.upper()} identity service")
    try:
        response = requests.post(f"{host}{config.auth_token_path}", data=form,
                                 timeout=config.http_timeout)
    except (requests.ConnectionError, requests.Timeout) as e:
        raise NoResponseError(f"No response from token exchange service: {e}") from e

    if response is None:
        raise NoResponseError("No response from token exchange service")

    body = _response_body(response)
    if response.ok:
        if isinstance(body, dict) and body.get("access_token"):
            return body["access_token"]
        raise TokenExchangeError(
            f"Unable to exchange service token: no access_token in {response.status_code} response",
            status=response.status_code, status_text=response.reason, body=body,
        )

    if (response.status_code == 400 and isinstance(body, dict)
            and body.get("error") == REJECTED_SECRET_ERROR
            and body.get("error_description") == REJECTED_SECRET_DESCRIPTION):
        raise CredentialRejected(
            "Unable to exchange service token, client_secret rejected",
            status=response.status_code, status_text=response.reason, body=body,
        )

    raise TokenExchangeError(
        f"Unable to exchange service token: {response.status_code} {response.reason} {body}",
        status=response.status_code, status_text=response.reason, body=body,
    )
