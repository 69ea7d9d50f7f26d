"""
Sign assets with a C2PA manifest using the c2pa-python library.

Two signing backends are supported, both driven through a c2pa callback
signer:

- Local: ECDSA with a PEM private key and certificate chain read from disk,
  timestamped by a fixed TSA.
- Remote: a signing service that first reserves a signature box size, then
  signs the to-be-signed bytes posted to it:

    GET  <box-size-url>              -> {"boxSize": 20000}
    POST <sign-url>?boxSize=20000    raw bytes in, raw signature bytes out

Manifest embedding and the signature itself are produced by the c2pa library.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import c2pa
import requests
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.backends import default_backend

from .config import WorkerConfig
from .errors import SigningError

logger = logging.getLogger(__name__)

ECDSA_HASHES = {
    "ES256": hashes.SHA256,
    "ES384": hashes.SHA384,
    "ES512": hashes.SHA512,
}


@dataclass(frozen=True)
class Asset:
    """An in-memory asset to sign."""

    buffer: bytes
    mime_type: str


@dataclass(frozen=True)
class SignedAsset:
    """A signed asset and the manifest bytes embedded in it."""

    buffer: bytes
    manifest: bytes


def _signing_alg(name: str):
    try:
        return getattr(c2pa.C2paSigningAlg, name.upper())
    except AttributeError:
        raise SigningError(f"Unsupported signing algorithm: {name}")


class LocalSigner:
    """Sign with a private key and certificate chain loaded from disk."""

    type = "local"

    def __init__(self, certificate: bytes, private_key: bytes, algorithm: str, tsa_url: Optional[str]):
        if algorithm.upper() not in ECDSA_HASHES:
            raise SigningError(f"Local signer supports only {', '.join(ECDSA_HASHES)}, not {algorithm}")

        self.certificate = certificate
        self.algorithm = algorithm.upper()
        self.tsa_url = tsa_url
        self._key = serialization.load_pem_private_key(
            private_key,
            password=None,
            backend=default_backend()
        )

    def sign(self, data: bytes) -> bytes:
        return self._key.sign(data, ec.ECDSA(ECDSA_HASHES[self.algorithm]()))

    def c2pa_signer(self):
        return c2pa.Signer.from_callback(
            callback=self.sign,
            alg=_signing_alg(self.algorithm),
            certs=self.certificate.decode("utf-8"),
            tsa_url=self.tsa_url
        )


class RemoteSigner:
    """Sign through an HTTP signing service."""

    type = "remote"

    def __init__(self, certificate: bytes, config: WorkerConfig):
        self.certificate = certificate
        self.config = config

    def reserve_size(self) -> int:
        """Ask the signing service how many bytes to reserve for the signature."""
        response = requests.get(self.config.remote_box_size_url, timeout=self.config.http_timeout)
        response.raise_for_status()
        return int(response.json()["boxSize"])

    def sign(self, to_be_signed: bytes, reserve_size: int) -> bytes:
        response = requests.post(
            self.config.remote_sign_url,
            params={"boxSize": reserve_size},
            headers={"Content-Type": "application/octet-stream"},
            data=to_be_signed,
            timeout=self.config.http_timeout
        )
        response.raise_for_status()
        return response.content

    def c2pa_signer(self):
        box_size = self.reserve_size()
        logger.info(f"Remote signer reserved box size {box_size}")

        def callback_signer_remote(data: bytes) -> bytes:
            """Callback function that signs data through the signing service."""
            return self.sign(data, box_size)

        return c2pa.Signer.from_callback(
            callback=callback_signer_remote,
            alg=_signing_alg(self.config.signing_algorithm),
            certs=self.certificate.decode("utf-8"),
            tsa_url=None
        )


def create_local_signer(config: WorkerConfig) -> LocalSigner:
    """Load the local certificate and key (read concurrently) into a LocalSigner."""
    with ThreadPoolExecutor(max_workers=2) as pool:
        certificate, private_key = pool.map(
            Path.read_bytes, [Path(config.certificate_path), Path(config.private_key_path)]
        )

    return LocalSigner(certificate, private_key, config.signing_algorithm, config.tsa_url)


def create_remote_signer(config: WorkerConfig) -> RemoteSigner:
    """Create a RemoteSigner; the certificate chain is still read from disk."""
    return RemoteSigner(Path(config.certificate_path).read_bytes(), config)


def sign(asset: Asset, manifest: Dict[str, Any], use_local_signer: bool = False,
         config: Optional[WorkerConfig] = None) -> SignedAsset:
    """
    Sign an in-memory asset with a C2PA manifest.

    Args:
        asset: Asset bytes and MIME type
        manifest: Manifest definition to embed
        use_local_signer: Sign with the local key instead of the remote service
        config: Worker configuration holding credentials and endpoints

    Returns:
        SignedAsset with the signed bytes and the embedded manifest

    Raises:
        SigningError: The signer could not be set up or signing failed
    """
    config = config or WorkerConfig()

    try:
        backend = create_local_signer(config) if use_local_signer else create_remote_signer(config)
        logger.info(f"Signing {asset.mime_type} asset with {backend.type} signer")

        with backend.c2pa_signer() as signer:
            with c2pa.Builder(manifest) as builder:
                source = io.BytesIO(asset.buffer)
                dest = io.BytesIO()
                manifest_bytes = builder.sign(signer, asset.mime_type, source, dest)

    except SigningError:
        raise
    except (c2pa.C2paError, requests.RequestException, OSError, ValueError, KeyError) as e:
        raise SigningError(f"Failed to sign asset: {e}") from e

    return SignedAsset(buffer=dest.getvalue(), manifest=manifest_bytes or b"")
