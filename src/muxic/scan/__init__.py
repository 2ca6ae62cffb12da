"""Directory scanning and content signing."""

from .discovery import ScanError, ScanFailure, ScanResult, resolve_signature, scan_tree
from .signer import sha256_file

__all__ = [
    "ScanError",
    "ScanFailure",
    "ScanResult",
    "resolve_signature",
    "scan_tree",
    "sha256_file",
]
