"""Content signatures for media files."""

from __future__ import annotations

import hashlib
from pathlib import Path

SIGNATURE_CHUNK_BYTES = 1024 * 128


def sha256_file(path: Path | str) -> str:
    """Compute SHA-256 hash in deterministic chunked reads."""
    digest = hashlib.sha256()
    with open(path, "rb") as handle:
        while True:
            chunk = handle.read(SIGNATURE_CHUNK_BYTES)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()
