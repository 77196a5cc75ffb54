"""Content hashing for binaries and embedded resources."""

from __future__ import annotations

import hashlib
from pathlib import Path

from asmscan.snapshot.models import format_content_hash

_CHUNK_SIZE = 1024 * 1024


def file_content_hash(path: Path) -> str:
    """Hash a file's raw bytes as ``<size:010x><sha256>``."""
    digest = hashlib.sha256()
    size = 0
    with path.open("rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            digest.update(chunk)
            size += len(chunk)
    return format_content_hash(size, digest.hexdigest())


def resource_digest(data: bytes) -> tuple[int, str]:
    """Return ``(size, sha256 hex)`` for a resource payload.

    For snapshot producers written in Python; ExternalScanner takes resource
    digests from the introspection document as reported.
    """
    return len(data), hashlib.sha256(data).hexdigest()
