"""Content-based duplicate detection for music libraries."""

__version__ = "1.0.0"
