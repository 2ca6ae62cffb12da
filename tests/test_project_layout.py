from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/muxic/cli.py",
        "src/muxic/runner.py",
        "src/muxic/config.py",
        "src/muxic/cache/__init__.py",
        "src/muxic/scan/__init__.py",
        "src/muxic/resolve/__init__.py",
        "src/muxic/logging/__init__.py",
        "scripts/benchmark_scan.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
