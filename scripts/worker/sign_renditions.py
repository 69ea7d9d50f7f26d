#!/usr/bin/env python3
"""
Sign renditions with C2PA content credentials.

Runs the rendition worker over local files: each source is signed with a fresh
C2PA manifest (local ES256 certificate by default) and written to the output
directory. If signing fails the source is copied unmodified so a rendition
always exists. With "addSourceManifest" the source's active manifest is also
embedded into the rendition via c2patool.

Usage:
  python scripts/worker/sign_renditions.py data/raw_images/*.jpg --output-dir data/renditions/
  python scripts/worker/sign_renditions.py photo.jpg --instructions '{"addSourceManifest": true}'
"""

import sys

from c2pa_worker.cli import main


if __name__ == "__main__":
    sys.exit(main())
