"""
Rendition worker entry point.

For each invocation the host supplies a source asset and a rendition target.
The worker:

1. Rejects an empty source (SourceCorruptError, the only fatal failure).
2. Reads any C2PA manifest store already on the source (best-effort).
3. Signs the source with a fresh manifest and writes it to the rendition,
   falling back to a byte-for-byte copy of the source if signing fails.
4. Optionally embeds the source's active manifest into the rendition.

A rendition file always exists after a non-fatal run.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from . import manifest as manifest_mod
from . import propagation, signing
from .config import RenditionInstructions, WorkerConfig
from .errors import SourceCorruptError

logger = logging.getLogger(__name__)


@dataclass
class Source:
    path: Path
    name: Optional[str] = None
    mime_type: Optional[str] = None


@dataclass
class Rendition:
    path: Path
    name: Optional[str] = None
    instructions: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class WorkerResult:
    """Outcome of one invocation."""

    rendition_path: Path
    signed: bool
    metadata_found: bool
    propagated_manifest: Optional[Dict[str, Any]] = None


def validate_source(source: Source) -> int:
    """Return the source size, raising SourceCorruptError if it is empty."""
    size = Path(source.path).stat().st_size
    if size == 0:
        raise SourceCorruptError("source file is empty", {"path": str(source.path)})
    return size


def read_source_metadata(source: Source, mime_type: str) -> Optional[Dict[str, Any]]:
    """Read the source's manifest store, or None if it has none or cannot be read."""
    try:
        return manifest_mod.read_c2pa_metadata(source.path, mime_type)
    except Exception as e:
        logger.warning(f"⚠️ Error reading C2PA data from {source.name or source.path}: {e}")
        return None


def sign_rendition(source: Source, rendition: Rendition, mime_type: str,
                   instructions: RenditionInstructions, config: WorkerConfig) -> bool:
    """
    Sign the source and write it to the rendition path.

    Returns:
        True if the signed asset was written, False if the source was copied
        unmodified instead
    """
    try:
        asset = signing.Asset(buffer=Path(source.path).read_bytes(), mime_type=mime_type)
        definition = manifest_mod.create_manifest_definition(
            source.name or config.default_title, mime_type, config
        )
        signed_asset = signing.sign(asset, definition, instructions.use_local_signer, config)
        Path(rendition.path).write_bytes(signed_asset.buffer)

        logger.info("✅ Asset signed successfully with C2PA manifest")
        return True

    except Exception as e:
        logger.error(f"Error signing asset: {e}")
        logger.exception("Detailed error:")

    shutil.copyfile(source.path, rendition.path)
    logger.warning("⚠️ Rendition written as an unsigned copy of the source")
    return False


def process(source: Source, rendition: Rendition,
            config: Optional[WorkerConfig] = None) -> WorkerResult:
    """
    Produce a signed rendition for a source asset.

    Args:
        source: Source asset (path, name, declared MIME type)
        rendition: Rendition target (path, name, instructions)
        config: Worker configuration; defaults to WorkerConfig.from_env()

    Returns:
        WorkerResult describing which optional stages succeeded

    Raises:
        SourceCorruptError: The source file is empty
    """
    config = config or WorkerConfig.from_env()
    instructions = RenditionInstructions.from_dict(rendition.instructions)
    mime_type = source.mime_type or config.default_mime_type

    logger.info("Starting worker")
    size = validate_source(source)
    logger.info(f"Processing file: {source.name}")
    logger.info(f"   File size: {size}")
    logger.info(f"   MIME type: {mime_type}")

    metadata = read_source_metadata(source, mime_type)
    signed = sign_rendition(source, rendition, mime_type, instructions, config)

    propagated = None
    if instructions.add_source_manifest and metadata:
        propagated = propagation.add_asset_manifest_to_rendition(
            metadata,
            rendition.path,
            rendition.name or config.default_rendition_name,
            config.scratch_dir,
            instructions.sign_params,
            config
        )

    logger.info("File processed successfully")
    return WorkerResult(
        rendition_path=Path(rendition.path),
        signed=signed,
        metadata_found=metadata is not None,
        propagated_manifest=propagated
    )
