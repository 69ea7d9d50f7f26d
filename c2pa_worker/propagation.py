"""
Copy a source asset's active C2PA manifest onto its rendition.

The active manifest is written to a scratch JSON file and embedded into the
rendition with c2patool. Propagation is best-effort: every failure is logged
and reported as None so the rendition is still delivered.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .c2patool import add_c2pa_manifest
from .config import SignParams, WorkerConfig
from .manifest import extract_active_manifest

logger = logging.getLogger(__name__)


def write_scratch_manifest(manifest: Dict[str, Any], scratch_dir: Path, rendition_name: str) -> Path:
    """
    Write a manifest to <scratch_dir>/<epoch-millis>.<rendition_name>.manifest.json.

    The file is created exclusively; if the name is taken by a concurrent
    invocation the millisecond stamp is advanced until a free name is found.
    """
    scratch_dir.mkdir(parents=True, exist_ok=True)
    stamp = int(time.time() * 1000)

    while True:
        manifest_path = scratch_dir / f"{stamp}.{rendition_name}.manifest.json"
        try:
            with open(manifest_path, "x") as f:
                json.dump(manifest, f)
            return manifest_path
        except FileExistsError:
            stamp += 1


def add_asset_manifest_to_rendition(c2pa_metadata: Optional[Dict[str, Any]],
                                    rendition_path: Union[str, Path],
                                    rendition_name: str,
                                    scratch_dir: Union[str, Path],
                                    sign_params: Optional[SignParams] = None,
                                    config: Optional[WorkerConfig] = None) -> Optional[Dict[str, Any]]:
    """
    Embed the source asset's active manifest into the rendition.

    Args:
        c2pa_metadata: Manifest store read from the source asset
        rendition_path: Rendition file, modified in place
        rendition_name: Rendition name, used in the scratch file name
        scratch_dir: Directory for the temporary manifest file
        sign_params: c2patool variant and auth options
        config: Worker configuration

    Returns:
        c2patool's JSON result, or None if nothing was propagated
    """
    if not c2pa_metadata:
        return None

    config = config or WorkerConfig()
    sign_params = sign_params or SignParams()

    manifest_path = None
    try:
        active_manifest = extract_active_manifest(c2pa_metadata)
        if not active_manifest:
            logger.info("Source has no active manifest to propagate")
            return None

        manifest_path = write_scratch_manifest(active_manifest, Path(scratch_dir), rendition_name)
        logger.info(f"Propagating source manifest to {rendition_name} via {manifest_path.name}")

        added_manifest = add_c2pa_manifest(rendition_path, manifest_path, None, sign_params, config)

    except Exception as e:
        logger.warning(f"⚠️ Failed to propagate source manifest: {e}")
        return None

    finally:
        if manifest_path is not None and sign_params.clean_up_tmp_files:
            try:
                manifest_path.unlink()
            except OSError:
                pass

    if added_manifest:
        logger.info(f"✅ Source manifest propagated to {rendition_name}")
    return added_manifest
