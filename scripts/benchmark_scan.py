#!/usr/bin/env python3
"""Measure cold versus warm-cache scan time on a generated music library."""

from __future__ import annotations

import argparse
import json
import statistics
import sys
import tempfile
import time
from dataclasses import asdict, dataclass
from pathlib import Path

from muxic.cache import SignatureStore
from muxic.config import DEFAULT_MEDIA_EXTENSIONS
from muxic.resolve import group_duplicates
from muxic.scan import scan_tree

PROFILE_NAMES = ("small", "medium", "large")


@dataclass(frozen=True, slots=True)
class FixtureProfile:
    """Size profile for a generated benchmark library."""

    artists: int
    tracks_per_artist: int
    copies_every: int
    track_bytes: int


@dataclass(slots=True)
class ScanTiming:
    """One cold + warm scan pair."""

    run_index: int
    cold_seconds: float
    warm_seconds: float
    hashed_cold: int
    hashed_warm: int
    duplicate_sets: int


FIXTURE_PROFILES: dict[str, FixtureProfile] = {
    "small": FixtureProfile(artists=4, tracks_per_artist=8, copies_every=4, track_bytes=64 * 1024),
    "medium": FixtureProfile(
        artists=16, tracks_per_artist=16, copies_every=5, track_bytes=256 * 1024
    ),
    "large": FixtureProfile(
        artists=32, tracks_per_artist=24, copies_every=6, track_bytes=1024 * 1024
    ),
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--profile", choices=PROFILE_NAMES, default="small")
    parser.add_argument(
        "--runs",
        type=int,
        default=3,
        help="Number of cold/warm pairs to execute. Default: 3.",
    )
    parser.add_argument("--workers", type=int, default=1)
    return parser.parse_args(argv)


def write_fixture_library(root: Path, profile: FixtureProfile) -> int:
    """Write a deterministic library; every Nth track gets a copy elsewhere."""
    copies = 0
    for artist_idx in range(profile.artists):
        album = root / f"Artist {artist_idx:03d}" / "Album"
        album.mkdir(parents=True, exist_ok=True)
        for track_idx in range(profile.tracks_per_artist):
            seed = f"{artist_idx:03d}-{track_idx:03d}".encode("ascii")
            payload = (seed * (profile.track_bytes // len(seed) + 1))[: profile.track_bytes]
            (album / f"{track_idx:02d} Track.mp3").write_bytes(payload)
            if track_idx % profile.copies_every == 0:
                incoming = root / "Incoming" / f"{artist_idx:03d}"
                incoming.mkdir(parents=True, exist_ok=True)
                (incoming / f"{track_idx:02d} Track (copy).mp3").write_bytes(payload)
                copies += 1
    return copies


def time_scan_pair(root: Path, run_index: int, workers: int) -> ScanTiming:
    store = SignatureStore()
    started = time.perf_counter()
    cold = scan_tree(root, store, extensions=DEFAULT_MEDIA_EXTENSIONS, workers=workers)
    cold_seconds = time.perf_counter() - started
    started = time.perf_counter()
    warm = scan_tree(root, store, extensions=DEFAULT_MEDIA_EXTENSIONS, workers=workers)
    warm_seconds = time.perf_counter() - started
    return ScanTiming(
        run_index=run_index,
        cold_seconds=cold_seconds,
        warm_seconds=warm_seconds,
        hashed_cold=cold.hashed,
        hashed_warm=warm.hashed,
        duplicate_sets=len(group_duplicates(warm.files_by_signature)),
    )


def summarize_runs(runs: list[ScanTiming]) -> dict[str, object]:
    cold = [run.cold_seconds for run in runs]
    warm = [run.warm_seconds for run in runs]
    return {
        "runs": [asdict(run) for run in runs],
        "cold_median_seconds": statistics.median(cold) if cold else 0.0,
        "warm_median_seconds": statistics.median(warm) if warm else 0.0,
        "warm_hashed_total": sum(run.hashed_warm for run in runs),
    }


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.runs < 1:
        print("--runs must be >= 1", file=sys.stderr)
        return 2
    profile = FIXTURE_PROFILES[args.profile]
    with tempfile.TemporaryDirectory(prefix="muxic-bench-") as tmp:
        root = Path(tmp)
        copies = write_fixture_library(root, profile)
        runs = [time_scan_pair(root, index, args.workers) for index in range(args.runs)]
    summary = summarize_runs(runs)
    summary["profile"] = args.profile
    summary["expected_duplicate_sets"] = copies
    print(json.dumps(summary, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
