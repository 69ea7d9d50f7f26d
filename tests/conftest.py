"""Shared fixtures for the rendition worker tests."""

import json

import pytest
import requests

from c2pa_worker.config import WorkerConfig


def make_response(status_code, body=None, reason="", content=None):
    """Build a requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    if content is not None:
        response._content = content
    else:
        response._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return response


@pytest.fixture
def config(tmp_path):
    """Worker config with credentials and scratch space under tmp_path."""
    return WorkerConfig(
        certificate_path=tmp_path / "certs" / "certificate.pem",
        private_key_path=tmp_path / "certs" / "private-key.pem",
        scratch_dir=tmp_path / "scratch",
        auth_stage_endpoint="https://ims.stage.test",
        auth_prod_endpoint="https://ims.prod.test",
        remote_box_size_url="https://signer.test/box-size",
        remote_sign_url="https://signer.test/sign",
    )


@pytest.fixture
def source_file(tmp_path):
    """A 10KB JPEG-like source file."""
    path = tmp_path / "source.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0" + bytes(range(256)) * 40)
    return path


@pytest.fixture
def store():
    """A manifest store as returned by the c2pa reader."""
    return {
        "active_manifest": "urn:uuid:active",
        "manifests": {
            "urn:uuid:active": {
                "claim_generator": "camera/1.0",
                "title": "source.jpg",
                "assertions": [{"label": "c2pa.actions", "data": {"actions": [{"action": "c2pa.created"}]}}],
            },
            "urn:uuid:older": {"claim_generator": "camera/0.9"},
        },
    }
