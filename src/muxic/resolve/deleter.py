"""Removal of non-surviving duplicates."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TextIO

from muxic.cache import SignatureStore
from muxic.display import display_path
from muxic.resolve.grouping import DuplicateSet


@dataclass(slots=True, frozen=True)
class DeletionFailure:
    """A non-survivor that could not be removed."""

    path: str
    error: str


@dataclass(slots=True)
class DeletionReport:
    """Outcome of deleting the non-survivors of one duplicate set."""

    kept: str
    deleted: list[str] = field(default_factory=list)
    failures: list[DeletionFailure] = field(default_factory=list)
    bytes_reclaimed: int = 0
    dry_run: bool = False


def delete_duplicates(
    duplicate_set: DuplicateSet,
    keep_index: int,
    store: SignatureStore,
    out_stream: TextIO | None = None,
    dry_run: bool = False,
    remover: Callable[[str], None] = os.remove,
) -> DeletionReport:
    """Delete every path except keep_index from disk and from the store.

    A failed removal is recorded and the remaining paths are still processed.
    Only successful removals count toward bytes reclaimed.
    """
    if keep_index < 0 or keep_index >= len(duplicate_set.paths):
        raise ValueError(
            f"keep_index {keep_index} out of range for {len(duplicate_set.paths)} paths."
        )
    report = DeletionReport(kept=duplicate_set.paths[keep_index], dry_run=dry_run)
    for index, path in enumerate(duplicate_set.paths):
        if index == keep_index:
            continue
        size = _recorded_size(path, store)
        if dry_run:
            _write(out_stream, f"Would delete {path}\n")
            report.deleted.append(path)
            report.bytes_reclaimed += size
            continue
        _write(out_stream, f"Deleting {path}... ")
        try:
            remover(path)
        except OSError as error:
            _write(out_stream, f"Error: {error}\n")
            report.failures.append(DeletionFailure(path=path, error=str(error)))
            continue
        _write(out_stream, "Done.\n")
        store.remove(path)
        report.deleted.append(path)
        report.bytes_reclaimed += size
    return report


def _recorded_size(path: str, store: SignatureStore) -> int:
    entry = store.get(path)
    if entry is not None:
        return entry.size
    try:
        return os.path.getsize(path)
    except OSError:
        return 0


def _write(out_stream: TextIO | None, text: str) -> None:
    if out_stream is not None:
        out_stream.write(display_path(text))
