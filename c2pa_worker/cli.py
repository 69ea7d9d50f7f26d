"""
Run the rendition worker over one or more local files.

Each source is signed into <output-dir>/<source name>. Instructions use the
same keys the asset-processing host passes to the worker.

Usage:
  c2pa-worker data/raw_images/*.jpg --output-dir data/renditions/
  c2pa-worker photo.jpg --instructions '{"useLocalSigner": false}'
  c2pa-worker photo.jpg --instructions @instructions.json --scratch-dir /var/tmp/c2pa
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import c2pa
from tqdm import tqdm

from .config import WorkerConfig
from .errors import ConfigurationError, SourceCorruptError
from .worker import Rendition, Source, process

logger = logging.getLogger(__name__)


def load_instructions(value: Optional[str]) -> Dict[str, Any]:
    """Parse --instructions, either inline JSON or @path to a JSON file."""
    if not value:
        return {}
    if value.startswith("@"):
        with open(value[1:], "r") as f:
            return json.load(f)
    return json.loads(value)


def process_sources(sources: List[Path], output_dir: Path, instructions: Dict[str, Any],
                    mime_type: Optional[str], config: WorkerConfig) -> int:
    """
    Process every source into the output directory.

    Returns:
        Number of sources that failed
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    total_signed = 0
    total_copied = 0
    total_propagated = 0
    total_failed = 0

    claimed = {}

    for source_path in tqdm(sources, desc="Processing assets", unit="asset"):
        rendition_path = output_dir / source_path.name

        # Sources are read-only; each rendition name is written once per batch
        if rendition_path.resolve() == source_path.resolve():
            logger.error(f"Skipping {source_path}: rendition would overwrite the source")
            total_failed += 1
            continue
        if rendition_path.name in claimed:
            logger.error(f"Skipping {source_path}: {rendition_path} is already the rendition of "
                         f"{claimed[rendition_path.name]}")
            total_failed += 1
            continue
        claimed[rendition_path.name] = source_path

        source = Source(path=source_path, name=source_path.name, mime_type=mime_type)
        rendition = Rendition(
            path=rendition_path,
            name=source_path.name,
            instructions=instructions
        )

        try:
            result = process(source, rendition, config)
        except SourceCorruptError as e:
            logger.error(f"Skipping {source_path.name}: {e}")
            total_failed += 1
            continue
        except OSError as e:
            logger.error(f"Failed to process {source_path.name}: {e}")
            total_failed += 1
            continue

        if result.signed:
            total_signed += 1
        else:
            total_copied += 1
        if result.propagated_manifest:
            total_propagated += 1

    logger.info("=" * 60)
    logger.info("C2PA Rendition Worker Complete")
    logger.info(f"  Signed: {total_signed}")
    logger.info(f"  Copied unsigned: {total_copied}")
    logger.info(f"  Source manifest propagated: {total_propagated}")
    logger.info(f"  Failed: {total_failed}")
    logger.info(f"  Output directory: {output_dir}")
    logger.info("=" * 60)

    return total_failed


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Sign renditions with C2PA content credentials",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "sources",
        type=Path,
        nargs="+",
        help="Source asset files"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("data/renditions"),
        help="Output directory for renditions"
    )
    parser.add_argument(
        "--mime-type",
        type=str,
        default=None,
        help="Declared MIME type of the sources (defaults to image/jpeg)"
    )
    parser.add_argument(
        "--instructions",
        type=str,
        default=None,
        help="Rendition instructions as JSON, or @path to a JSON file"
    )
    parser.add_argument(
        "--scratch-dir",
        type=Path,
        default=None,
        help="Directory for temporary manifest files"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    logger.info(f"Python version: {sys.version}")
    logger.info(f"c2pa SDK version: {c2pa.sdk_version()}")

    try:
        instructions = load_instructions(args.instructions)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Invalid instructions: {e}")
        return 2

    try:
        config = WorkerConfig.from_env()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2
    if args.scratch_dir is not None:
        config = replace(config, scratch_dir=args.scratch_dir)

    failed = process_sources(args.sources, args.output_dir, instructions, args.mime_type, config)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
