"""Persistent signature cache."""

from .models import CacheEntry
from .store import CacheLoadError, SignatureStore, path_exists

__all__ = ["CacheEntry", "CacheLoadError", "SignatureStore", "path_exists"]
