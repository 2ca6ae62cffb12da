"""Duplicate grouping and deterministic survivor ordering.

Paths inside a duplicate set are ordered by a survivor strategy, and the first
path is the one automatic resolution keeps. The default ``shortest_path``
strategy treats shorter paths as more canonical: a copy closer to the library
root is assumed to be the original, and equal lengths fall back to
lexicographic order so the choice never depends on directory-entry order.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

DEFAULT_STRATEGY = "shortest_path"

SortKey = Callable[[str, int], tuple[object, ...]]

_STRATEGY_KEYS: dict[str, SortKey] = {
    "shortest_path": lambda path, mod_time: (len(path), path),
    "longest_path": lambda path, mod_time: (-len(path), path),
    "oldest": lambda path, mod_time: (mod_time, len(path), path),
    "newest": lambda path, mod_time: (-mod_time, len(path), path),
}

SURVIVOR_STRATEGIES = tuple(sorted(_STRATEGY_KEYS))


@dataclass(slots=True, frozen=True)
class DuplicateSet:
    """Paths sharing one signature, survivor candidate first."""

    signature: str
    paths: tuple[str, ...]

    @property
    def short_signature(self) -> str:
        return self.signature[:8]


def order_paths(
    paths: list[str] | tuple[str, ...],
    strategy: str = DEFAULT_STRATEGY,
    mod_times: Mapping[str, int] | None = None,
) -> tuple[str, ...]:
    """Order candidate paths so index 0 is the preferred survivor."""
    key = _STRATEGY_KEYS.get(strategy)
    if key is None:
        raise ValueError(
            f"Unknown survivor strategy '{strategy}'; expected one of {', '.join(SURVIVOR_STRATEGIES)}."
        )
    times = mod_times or {}
    return tuple(sorted(paths, key=lambda path: key(path, times.get(path, 0))))


def group_duplicates(
    files_by_signature: Mapping[str, list[str]],
    strategy: str = DEFAULT_STRATEGY,
    mod_times: Mapping[str, int] | None = None,
) -> list[DuplicateSet]:
    """Return duplicate sets (2+ paths) sorted by signature."""
    output: list[DuplicateSet] = []
    for signature in sorted(files_by_signature):
        paths = files_by_signature[signature]
        unique = set(paths)
        if len(unique) < 2:
            continue
        output.append(
            DuplicateSet(
                signature=signature,
                paths=order_paths(sorted(unique), strategy=strategy, mod_times=mod_times),
            )
        )
    return output
