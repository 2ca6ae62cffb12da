"""Persistent signature store keyed by absolute file path."""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Callable
from pathlib import Path

from muxic.cache.models import CacheEntry


class CacheLoadError(Exception):
    """Raised when an existing cache file cannot be read or decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class SignatureStore:
    """Maps absolute paths to their last known signature, mtime and size.

    Every read and write goes through one lock, so the store may be shared by
    parallel scan workers. Iteration always happens over a sorted snapshot of
    the keys.
    """

    def __init__(self, entries: dict[str, CacheEntry] | None = None) -> None:
        self._entries: dict[str, CacheEntry] = dict(entries or {})
        self._lock = threading.Lock()

    @classmethod
    def load(cls, path: Path) -> SignatureStore:
        """Load a store from JSON; a missing file yields an empty store."""
        if not path.exists():
            return cls()
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as error:
            raise CacheLoadError(path, f"corrupt cache file ({error.msg})") from error
        except (OSError, UnicodeDecodeError) as error:
            raise CacheLoadError(path, str(error)) from error
        if not isinstance(payload, dict):
            raise CacheLoadError(path, "cache file must contain a JSON object")
        return cls(_entries_from_payload(payload))

    def save(self, path: Path) -> None:
        """Write the store atomically as sorted, indented JSON."""
        payload = self.to_payload()
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, sort_keys=True, indent=2)
            handle.write("\n")
        tmp.replace(path)

    def to_payload(self) -> dict[str, dict[str, object]]:
        """Return the serializable form of every entry."""
        with self._lock:
            items = sorted(self._entries.items())
        return {
            path: {"signature": entry.signature, "mod_time": entry.mod_time, "size": entry.size}
            for path, entry in items
        }

    def get(self, path: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(path)

    def put(self, path: str, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[path] = entry

    def remove(self, path: str) -> CacheEntry | None:
        """Drop one entry, returning it if present."""
        with self._lock:
            return self._entries.pop(path, None)

    def paths(self) -> list[str]:
        """Return a sorted snapshot of tracked paths."""
        with self._lock:
            return sorted(self._entries)

    def prune_missing(self, exists: Callable[[str], bool] | None = None) -> list[str]:
        """Remove entries whose file no longer exists and return their paths."""
        check = exists or path_exists
        removed: list[str] = []
        for path in self.paths():
            if check(path):
                continue
            if self.remove(path) is not None:
                removed.append(path)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries


def _entries_from_payload(payload: dict[str, object]) -> dict[str, CacheEntry]:
    output: dict[str, CacheEntry] = {}
    for path, raw in payload.items():
        if not isinstance(raw, dict):
            continue
        signature = raw.get("signature")
        mod_time = raw.get("mod_time")
        size = raw.get("size")
        if not isinstance(signature, str) or not signature:
            continue
        if not isinstance(mod_time, int) or isinstance(mod_time, bool):
            continue
        if not isinstance(size, int) or isinstance(size, bool):
            continue
        output[path] = CacheEntry(signature=signature, mod_time=mod_time, size=size)
    return output


def path_exists(path: str) -> bool:
    """Return False only when the file is definitely gone.

    Permission and other stat failures count as present so an entry under a
    temporarily unreadable directory survives pruning.
    """
    try:
        os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError:
        return True
    return True
