"""
Worker configuration and per-job instructions.

WorkerConfig holds the fixed endpoints, tool names and signing credentials the
worker needs. It is immutable and passed explicitly into each component so
tests can substitute endpoints. Every field can be overridden from the
environment with a C2PA_WORKER_<FIELD> variable, e.g.:

  C2PA_WORKER_TSA_URL=http://timestamp.example.com
  C2PA_WORKER_SCRATCH_DIR=/var/tmp/c2pa

RenditionInstructions and SignParams are resolved once from the raw
instruction mapping supplied by the host at the start of an invocation.
"""

import os
import tempfile
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError

ENV_PREFIX = "C2PA_WORKER_"

STAGE_TIER = "STAGE"
PROD_TIER = "PROD"


@dataclass(frozen=True)
class WorkerConfig:
    """Fixed settings for one worker process."""

    # Identity service (token exchange)
    auth_stage_endpoint: str = "https://ims-na1-stg1.adobelogin.com"
    auth_prod_endpoint: str = "https://ims-na1.adobelogin.com"
    auth_token_path: str = "/ims/token/v3"
    client_id: str = "asset_compute_cai_integration"
    grant_type: str = "authorization_code"

    # c2patool variants
    public_cli: str = "c2patool"
    internal_cli: str = "adobe_c2patool"
    internal_auth_flag: str = "--adobe-auth"
    cli_timeout: float = 120.0

    # Local signer
    certificate_path: Path = Path("certs/certificate.pem")
    private_key_path: Path = Path("certs/private-key.pem")
    signing_algorithm: str = "ES256"
    tsa_url: str = "http://timestamp.digicert.com"

    # Remote signer
    remote_box_size_url: str = "https://my.signing.service/box-size"
    remote_sign_url: str = "https://my.signing.service/sign"
    http_timeout: float = 60.0

    # Manifest defaults
    claim_generator: str = "htx-cai-asset-compute/1.0.0"
    default_mime_type: str = "image/jpeg"
    default_title: str = "signed-asset"
    default_rendition_name: str = "rendition"

    scratch_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))

    def auth_endpoint(self, tier: str) -> Optional[str]:
        """Return the identity host for a tier, or None for an unknown tier."""
        tier = tier.upper()
        if tier == PROD_TIER:
            return self.auth_prod_endpoint
        if tier == STAGE_TIER:
            return self.auth_stage_endpoint
        return None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WorkerConfig":
        """Build a config from defaults overridden by C2PA_WORKER_* variables."""
        environ = os.environ if environ is None else environ
        config = cls()
        overrides: Dict[str, Any] = {}

        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            current = getattr(config, f.name)
            if isinstance(current, Path):
                overrides[f.name] = Path(raw)
            elif isinstance(current, float):
                try:
                    overrides[f.name] = float(raw)
                except ValueError:
                    raise ConfigurationError(
                        f"{ENV_PREFIX}{f.name.upper()} must be a number, got {raw!r}"
                    ) from None
            else:
                overrides[f.name] = raw

        return replace(config, **overrides)


def _flag(value: Any, default: bool) -> bool:
    # Only a literal boolean flips a default
    if value is True or value is False:
        return value
    return default


@dataclass(frozen=True)
class SignParams:
    """Signing and auth options for the c2patool add-manifest step."""

    client_secret: Optional[str] = None
    access_code: Optional[str] = None
    tier: Optional[str] = None
    use_internal_tooling: bool = False
    clean_up_tmp_files: bool = False

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "SignParams":
        raw = raw or {}
        return cls(
            client_secret=raw.get("clientSecret"),
            access_code=raw.get("accessCode"),
            tier=raw.get("tier"),
            use_internal_tooling=_flag(raw.get("useInternalTooling"), False),
            clean_up_tmp_files=_flag(raw.get("cleanUpTmpFiles"), False),
        )


@dataclass(frozen=True)
class RenditionInstructions:
    """Recognized rendition instructions with their defaults applied."""

    use_local_signer: bool = True
    add_source_manifest: bool = False
    sign_params: SignParams = field(default_factory=SignParams)

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "RenditionInstructions":
        raw = raw or {}
        return cls(
            use_local_signer=_flag(raw.get("useLocalSigner"), True),
            add_source_manifest=_flag(raw.get("addSourceManifest"), False),
            sign_params=SignParams.from_dict(raw.get("c2paSignParams")),
        )
