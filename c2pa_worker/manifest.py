"""
C2PA manifest definitions and manifest store reading.

The reader returns the manifest store as parsed JSON:

  {
    "active_manifest": "urn:uuid:...",
    "manifests": {"urn:uuid:...": {...}},
    "validation_status": [...]
  }
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import c2pa

from .config import WorkerConfig

logger = logging.getLogger(__name__)

CUSTOM_ASSERTION_LABEL = "com.custom.my-assertion"


def create_manifest_definition(title: str, mime_type: str,
                               config: Optional[WorkerConfig] = None) -> Dict[str, Any]:
    """
    Create the manifest definition embedded when a rendition is signed.

    Args:
        title: Title recorded in the claim (usually the source name)
        mime_type: Format of the signed asset
        config: Worker configuration holding the claim generator

    Returns:
        Dictionary manifest definition accepted by c2pa.Builder
    """
    config = config or WorkerConfig()
    name, _, version = config.claim_generator.partition("/")

    return {
        "claim_generator": config.claim_generator,
        "claim_generator_info": [
            {
                "name": name,
                "version": version or "unknown"
            }
        ],
        "vendor": "cai",
        "format": mime_type,
        "title": title,
        "assertions": [
            {
                "label": "c2pa.actions",
                "data": {
                    "actions": [
                        {
                            "action": "c2pa.created"
                        }
                    ]
                }
            },
            {
                "label": CUSTOM_ASSERTION_LABEL,
                "data": {
                    "description": "My custom test assertion",
                    "version": "1.0.0"
                }
            }
        ]
    }


def read_c2pa_metadata(path: Union[str, Path], mime_type: str) -> Optional[Dict[str, Any]]:
    """
    Read the manifest store embedded in an asset.

    Args:
        path: Asset to read
        mime_type: Declared format of the asset

    Returns:
        Parsed manifest store, or None if the reader returned nothing

    Raises:
        c2pa.C2paError: The asset has no manifest store or cannot be parsed
    """
    with open(path, "rb") as stream:
        with c2pa.Reader(mime_type, stream) as reader:
            store_json = reader.json()

    if not store_json:
        return None
    return json.loads(store_json) or None


def extract_active_manifest(c2pa_metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return the active manifest content from a manifest store, if any."""
    if not c2pa_metadata:
        return None

    active = c2pa_metadata.get("active_manifest")
    if isinstance(active, dict):
        return active or None
    if isinstance(active, str):
        manifest = c2pa_metadata.get("manifests", {}).get(active)
        if manifest:
            return manifest
        logger.warning(f"Active manifest '{active}' not found in store")

    return None
