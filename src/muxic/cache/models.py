"""Typed models for the signature cache."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class CacheEntry:
    """Last observed state of one file."""

    signature: str
    mod_time: int
    size: int

    def matches(self, mod_time: int, size: int) -> bool:
        """Return True when live metadata still equals the recorded values."""
        return self.mod_time == mod_time and self.size == size
