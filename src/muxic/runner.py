"""Dedup run orchestration: load, scan, group, resolve, delete, prune, save."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TextIO

from muxic.cache import CacheLoadError, SignatureStore
from muxic.config import DedupConfig
from muxic.display import display_path
from muxic.logging import JsonlAuditLogger
from muxic.resolve import (
    AutomaticPolicy,
    InteractivePolicy,
    ResolutionPolicy,
    delete_duplicates,
    group_duplicates,
)
from muxic.scan import ScanFailure, scan_tree
from muxic.scan.discovery import Signer

BYTES_PER_MB = 1024 * 1024


@dataclass(slots=True, frozen=True)
class DedupSummary:
    """Totals reported at the end of a run."""

    files_scanned: int
    files_hashed: int
    cache_hits: int
    scan_errors: int
    duplicate_sets: int
    sets_skipped: int
    files_deleted: int
    deletion_failures: int
    bytes_reclaimed: int
    pruned_entries: int
    cache_saved: bool
    cache_save_error: str | None
    dry_run: bool

    @property
    def megabytes_reclaimed(self) -> float:
        return self.bytes_reclaimed / BYTES_PER_MB


def run_dedup(
    config: DedupConfig,
    in_stream: TextIO,
    out_stream: TextIO,
    audit_logger: JsonlAuditLogger | None = None,
    policy: ResolutionPolicy | None = None,
    signer: Signer | None = None,
) -> DedupSummary:
    """Run one dedup pass over config.target_dir.

    Raises ScanError when the target tree cannot be enumerated; in that case
    nothing has been deleted and the cache file is left untouched.
    """
    audit = audit_logger or JsonlAuditLogger(config.audit_log_path)
    resolve_config = config.resolve

    out_stream.write(f"Loading cache from {display_path(str(config.cache_path))}\n")
    store = _load_store(config, out_stream, audit)

    out_stream.write(f"Scanning {display_path(str(config.target_dir))}...\n")

    def report_scan_error(failure: ScanFailure) -> None:
        out_stream.write(display_path(f"Error processing {failure.path}: {failure.error}\n"))
        audit.record("scan_error", ok=False, path=failure.path, error=failure.error)

    scan = scan_tree(
        config.target_dir,
        store,
        extensions=config.scan.extensions,
        workers=config.scan.workers,
        signer=signer,
        on_error=report_scan_error,
    )
    out_stream.write("Scan complete.\n")
    out_stream.write(
        f"Scanned {scan.scanned} file(s): {scan.hashed} hashed, "
        f"{scan.cache_hits} from cache, {len(scan.failures)} error(s).\n"
    )

    mod_times: dict[str, int] = {}
    for paths in scan.files_by_signature.values():
        for path in paths:
            entry = store.get(path)
            if entry is not None:
                mod_times[path] = entry.mod_time
    duplicate_sets = group_duplicates(
        scan.files_by_signature,
        strategy=resolve_config.strategy,
        mod_times=mod_times,
    )

    if policy is None:
        if resolve_config.scorched_earth:
            policy = AutomaticPolicy(out_stream)
        else:
            policy = InteractivePolicy(in_stream, out_stream)

    sets_skipped = 0
    files_deleted = 0
    deletion_failures = 0
    bytes_reclaimed = 0
    for duplicate_set in duplicate_sets:
        out_stream.write(
            f"\nDuplicate set found (Signature: {duplicate_set.short_signature}...):\n"
        )
        outcome = policy.choose(duplicate_set)
        if outcome.keep_index is None:
            sets_skipped += 1
            continue
        report = delete_duplicates(
            duplicate_set,
            outcome.keep_index,
            store,
            out_stream=out_stream,
            dry_run=resolve_config.dry_run,
        )
        files_deleted += len(report.deleted)
        deletion_failures += len(report.failures)
        bytes_reclaimed += report.bytes_reclaimed
        if not report.dry_run:
            for path in report.deleted:
                audit.record("delete", path=path, kept=report.kept)
        for failure in report.failures:
            audit.record("delete_failed", ok=False, path=failure.path, error=failure.error)

    out_stream.write("Pruning cache...\n")
    pruned = store.prune_missing()
    if pruned:
        audit.record("prune", removed=len(pruned))

    cache_save_error: str | None = None
    try:
        store.save(config.cache_path)
    except OSError as error:
        cache_save_error = str(error)
        out_stream.write(display_path(f"Error saving cache: {error}\n"))
        audit.record(
            "cache_save_failed", ok=False, path=str(config.cache_path), error=cache_save_error
        )
    else:
        out_stream.write("Cache saved.\n")

    summary = DedupSummary(
        files_scanned=scan.scanned,
        files_hashed=scan.hashed,
        cache_hits=scan.cache_hits,
        scan_errors=len(scan.failures),
        duplicate_sets=len(duplicate_sets),
        sets_skipped=sets_skipped,
        files_deleted=files_deleted,
        deletion_failures=deletion_failures,
        bytes_reclaimed=bytes_reclaimed,
        pruned_entries=len(pruned),
        cache_saved=cache_save_error is None,
        cache_save_error=cache_save_error,
        dry_run=resolve_config.dry_run,
    )
    out_stream.write(format_summary(summary) + "\n")
    audit.record("run_complete", target=str(config.target_dir), **asdict(summary))
    return summary


def format_summary(summary: DedupSummary) -> str:
    """Render the final report line."""
    if summary.duplicate_sets == 0:
        return "No duplicates found."
    if summary.dry_run:
        return (
            f"Dry run complete. Found {summary.duplicate_sets} duplicate set(s), "
            f"would delete {summary.files_deleted} file(s). "
            f"Would save approx {summary.megabytes_reclaimed:.2f} MB"
        )
    return (
        f"Cleanup complete. Found {summary.duplicate_sets} duplicate set(s), "
        f"deleted {summary.files_deleted} file(s). "
        f"Saved approx {summary.megabytes_reclaimed:.2f} MB"
    )


def _load_store(
    config: DedupConfig, out_stream: TextIO, audit: JsonlAuditLogger
) -> SignatureStore:
    try:
        return SignatureStore.load(config.cache_path)
    except CacheLoadError as error:
        out_stream.write(
            display_path(f"Warning: Could not load cache: {error.reason}. Starting fresh.\n")
        )
        audit.record("cache_load_failed", ok=False, path=str(config.cache_path), error=error.reason)
        return SignatureStore()
