"""Media file discovery with cache-aware signature resolution."""

from __future__ import annotations

import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from muxic.cache import CacheEntry, SignatureStore
from muxic.scan import signer as signer_module

Signer = Callable[[str], str]


class ScanError(Exception):
    """Raised when the target tree cannot be enumerated."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"error walking target directory {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(slots=True, frozen=True)
class ScanFailure:
    """One file that could not be signed."""

    path: str
    error: str


@dataclass(slots=True)
class ScanResult:
    """Signature index plus deterministic counters for one scan."""

    files_by_signature: dict[str, list[str]] = field(default_factory=dict)
    scanned: int = 0
    hashed: int = 0
    cache_hits: int = 0
    failures: list[ScanFailure] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class _CandidateFile:
    """Media file found during traversal with its live metadata."""

    path: str
    mod_time: int
    size: int


@dataclass(slots=True, frozen=True)
class _Signed:
    candidate: _CandidateFile
    signature: str | None
    fresh: bool
    error: str | None


def resolve_signature(
    path: str,
    mod_time: int,
    size: int,
    store: SignatureStore,
    signer: Signer | None = None,
) -> tuple[str, bool]:
    """Return (signature, fresh), trusting the store only while mtime and size match."""
    entry = store.get(path)
    if entry is not None and entry.matches(mod_time, size):
        return entry.signature, False
    sign = signer or signer_module.sha256_file
    signature = sign(path)
    store.put(path, CacheEntry(signature=signature, mod_time=mod_time, size=size))
    return signature, True


def scan_tree(
    root: Path | str,
    store: SignatureStore,
    extensions: tuple[str, ...],
    workers: int = 1,
    signer: Signer | None = None,
    on_error: Callable[[ScanFailure], None] | None = None,
) -> ScanResult:
    """Walk root, sign matching media files and index paths by signature."""
    candidates, stat_failures = _discover_candidates(root, {ext.lower() for ext in extensions})
    result = ScanResult(scanned=len(candidates) + len(stat_failures))
    for failure in stat_failures:
        result.failures.append(failure)
        if on_error is not None:
            on_error(failure)

    def sign(candidate: _CandidateFile) -> _Signed:
        try:
            signature, fresh = resolve_signature(
                candidate.path,
                candidate.mod_time,
                candidate.size,
                store,
                signer=signer,
            )
        except OSError as error:
            return _Signed(candidate=candidate, signature=None, fresh=False, error=str(error))
        return _Signed(candidate=candidate, signature=signature, fresh=fresh, error=None)

    if workers > 1 and len(candidates) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            signed = list(executor.map(sign, candidates))
    else:
        signed = [sign(candidate) for candidate in candidates]

    # Folded in walk order so parallel and serial scans produce the same index.
    for item in signed:
        if item.signature is None:
            failure = ScanFailure(path=item.candidate.path, error=item.error or "unknown error")
            result.failures.append(failure)
            if on_error is not None:
                on_error(failure)
            continue
        if item.fresh:
            result.hashed += 1
        else:
            result.cache_hits += 1
        result.files_by_signature.setdefault(item.signature, []).append(item.candidate.path)
    return result


def has_media_extension(path: str, extensions: set[str]) -> bool:
    """Return True when the file suffix is in the lowercase extension set."""
    return os.path.splitext(path)[1].lower() in extensions


def _discover_candidates(
    root: Path | str, extensions: set[str]
) -> tuple[list[_CandidateFile], list[ScanFailure]]:
    """Walk tree depth-first in name order; any listing failure is fatal."""
    top = os.path.abspath(os.fspath(root))
    if not os.path.exists(top):
        raise ScanError(top, "no such directory")
    if not os.path.isdir(top):
        raise ScanError(top, "not a directory")

    candidates: list[_CandidateFile] = []
    failures: list[ScanFailure] = []
    stack: list[str] = [top]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError as error:
            raise ScanError(current, error.strerror or str(error)) from error
        subdirs: list[str] = []
        for entry in ordered_entries:
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(entry.path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if not has_media_extension(entry.name, extensions):
                continue
            try:
                stat = entry.stat(follow_symlinks=False)
            except OSError as error:
                failures.append(ScanFailure(path=entry.path, error=str(error)))
                continue
            candidates.append(
                _CandidateFile(
                    path=entry.path,
                    mod_time=int(stat.st_mtime),
                    size=stat.st_size,
                )
            )
        stack.extend(reversed(subdirs))
    return candidates, failures
