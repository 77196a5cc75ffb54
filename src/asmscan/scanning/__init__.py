"""Scanner boundary: content hashing and the external introspection adapter."""

from asmscan.scanning.external import ExternalScanner
from asmscan.scanning.hashing import file_content_hash, resource_digest

__all__ = [
    "ExternalScanner",
    "file_content_hash",
    "resource_digest",
]
