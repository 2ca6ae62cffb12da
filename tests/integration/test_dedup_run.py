from __future__ import annotations

import io
import json
import os
from pathlib import Path

import pytest

from muxic.config import DEFAULT_MEDIA_EXTENSIONS, DedupConfig, ResolveConfig, ScanConfig
from muxic.runner import run_dedup
from muxic.scan import ScanError, discovery


def _config(
    tmp_path: Path,
    target: Path,
    scorched_earth: bool = True,
    dry_run: bool = False,
    strategy: str = "shortest_path",
) -> DedupConfig:
    return DedupConfig(
        target_dir=target,
        cache_path=tmp_path / "state" / "dedup_cache.json",
        audit_log_path=tmp_path / "state" / "audit.jsonl",
        scan=ScanConfig(extensions=DEFAULT_MEDIA_EXTENSIONS, workers=1),
        resolve=ResolveConfig(strategy=strategy, scorched_earth=scorched_earth, dry_run=dry_run),
    )


def _library(tmp_path: Path) -> Path:
    music = tmp_path / "music"
    music.mkdir()
    (music / "song1.mp3").write_text("duplicate_content", encoding="utf-8")
    (music / "song1_copy.mp3").write_text("duplicate_content", encoding="utf-8")
    (music / "song2.mp3").write_text("unique_content", encoding="utf-8")
    return music


def test_scorched_earth_keeps_shorter_name(tmp_path: Path) -> None:
    music = _library(tmp_path)
    out = io.StringIO()

    summary = run_dedup(_config(tmp_path, music), in_stream=io.StringIO(), out_stream=out)

    assert sorted(path.name for path in music.iterdir()) == ["song1.mp3", "song2.mp3"]
    assert summary.duplicate_sets == 1
    assert summary.files_deleted == 1
    assert summary.bytes_reclaimed == len("duplicate_content")
    assert summary.cache_saved is True
    output = out.getvalue()
    assert "Scan complete" in output
    assert f"Scorched Earth: keeping {music / 'song1.mp3'}" in output
    assert f"Deleting {music / 'song1_copy.mp3'}... Done." in output
    assert "Cleanup complete. Found 1 duplicate set(s), deleted 1 file(s)." in output


def test_second_automatic_run_is_a_no_op(tmp_path: Path) -> None:
    music = _library(tmp_path)
    config = _config(tmp_path, music)
    run_dedup(config, in_stream=io.StringIO(), out_stream=io.StringIO())

    out = io.StringIO()
    summary = run_dedup(config, in_stream=io.StringIO(), out_stream=out)

    assert summary.duplicate_sets == 0
    assert summary.files_deleted == 0
    assert summary.files_hashed == 0
    assert summary.cache_hits == 2
    assert out.getvalue().rstrip().endswith("No duplicates found.")


def test_cache_file_tracks_survivors_only(tmp_path: Path) -> None:
    music = _library(tmp_path)
    config = _config(tmp_path, music)

    run_dedup(config, in_stream=io.StringIO(), out_stream=io.StringIO())

    payload = json.loads(config.cache_path.read_text(encoding="utf-8"))
    assert sorted(payload) == [str(music / "song1.mp3"), str(music / "song2.mp3")]
    entry = payload[str(music / "song2.mp3")]
    assert set(entry) == {"signature", "mod_time", "size"}
    assert entry["size"] == len("unique_content")


def test_externally_deleted_file_is_pruned_without_duplicates(tmp_path: Path) -> None:
    music = tmp_path / "music"
    music.mkdir()
    (music / "a.mp3").write_bytes(b"a")
    (music / "b.flac").write_bytes(b"b")
    config = _config(tmp_path, music)
    run_dedup(config, in_stream=io.StringIO(), out_stream=io.StringIO())

    (music / "b.flac").unlink()
    summary = run_dedup(config, in_stream=io.StringIO(), out_stream=io.StringIO())

    payload = json.loads(config.cache_path.read_text(encoding="utf-8"))
    assert str(music / "b.flac") not in payload
    assert str(music / "a.mp3") in payload
    assert summary.duplicate_sets == 0


def test_stale_entries_outside_target_are_pruned(tmp_path: Path) -> None:
    music = _library(tmp_path)
    config = _config(tmp_path, music)
    config.cache_path.parent.mkdir(parents=True)
    config.cache_path.write_text(
        json.dumps({"/nowhere/ghost.mp3": {"signature": "ab", "mod_time": 1, "size": 9}}),
        encoding="utf-8",
    )

    summary = run_dedup(config, in_stream=io.StringIO(), out_stream=io.StringIO())

    assert summary.pruned_entries == 1
    payload = json.loads(config.cache_path.read_text(encoding="utf-8"))
    assert "/nowhere/ghost.mp3" not in payload


def test_interactive_choice_keeps_selected_copy(tmp_path: Path) -> None:
    music = _library(tmp_path)
    out = io.StringIO()

    summary = run_dedup(
        _config(tmp_path, music, scorched_earth=False),
        in_stream=io.StringIO("bogus\n2\n"),
        out_stream=out,
    )

    assert sorted(path.name for path in music.iterdir()) == ["song1_copy.mp3", "song2.mp3"]
    assert summary.files_deleted == 1
    output = out.getvalue()
    assert f"1) {music / 'song1.mp3'}\n2) {music / 'song1_copy.mp3'}\n" in output
    assert "Invalid input." in output


def test_interactive_skip_deletes_nothing(tmp_path: Path) -> None:
    music = _library(tmp_path)

    summary = run_dedup(
        _config(tmp_path, music, scorched_earth=False),
        in_stream=io.StringIO("s\n"),
        out_stream=io.StringIO(),
    )

    assert len(list(music.iterdir())) == 3
    assert summary.duplicate_sets == 1
    assert summary.sets_skipped == 1
    assert summary.files_deleted == 0


def test_dry_run_reports_without_deleting(tmp_path: Path) -> None:
    music = _library(tmp_path)
    out = io.StringIO()

    summary = run_dedup(
        _config(tmp_path, music, dry_run=True), in_stream=io.StringIO(), out_stream=out
    )

    assert len(list(music.iterdir())) == 3
    assert summary.files_deleted == 1
    assert f"Would delete {music / 'song1_copy.mp3'}" in out.getvalue()
    assert "Dry run complete." in out.getvalue()
    payload = json.loads((tmp_path / "state" / "dedup_cache.json").read_text(encoding="utf-8"))
    assert len(payload) == 3


def test_corrupt_cache_starts_fresh(tmp_path: Path) -> None:
    music = _library(tmp_path)
    config = _config(tmp_path, music)
    config.cache_path.parent.mkdir(parents=True)
    config.cache_path.write_text("{{{", encoding="utf-8")
    out = io.StringIO()

    summary = run_dedup(config, in_stream=io.StringIO(), out_stream=out)

    assert "Warning: Could not load cache" in out.getvalue()
    assert summary.duplicate_sets == 1
    assert summary.cache_saved is True
    json.loads(config.cache_path.read_text(encoding="utf-8"))


def test_unsavable_cache_still_completes(tmp_path: Path) -> None:
    music = _library(tmp_path)
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    config = _config(tmp_path, music)
    config = DedupConfig(
        target_dir=config.target_dir,
        cache_path=blocker / "dedup_cache.json",
        audit_log_path=config.audit_log_path,
        scan=config.scan,
        resolve=config.resolve,
    )
    out = io.StringIO()

    summary = run_dedup(config, in_stream=io.StringIO(), out_stream=out)

    assert summary.cache_saved is False
    assert summary.cache_save_error
    assert summary.files_deleted == 1
    assert "Error saving cache:" in out.getvalue()
    assert "Cleanup complete." in out.getvalue()


def test_audit_log_records_deletions(tmp_path: Path) -> None:
    music = _library(tmp_path)
    config = _config(tmp_path, music)

    run_dedup(config, in_stream=io.StringIO(), out_stream=io.StringIO())

    events = [
        json.loads(line)
        for line in config.audit_log_path.read_text(encoding="utf-8").splitlines()
    ]
    assert [event["event"] for event in events] == ["delete", "run_complete"]
    assert events[0]["path"] == str(music / "song1_copy.mp3")
    assert events[1]["metadata"]["duplicate_sets"] == 1


def test_unlistable_subdirectory_aborts_before_any_mutation(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    music = _library(tmp_path)
    locked = music / "locked"
    locked.mkdir()
    (locked / "hidden.mp3").write_bytes(b"x")
    config = _config(tmp_path, music)
    config.cache_path.parent.mkdir(parents=True)
    seeded = json.dumps({"/elsewhere/ghost.mp3": {"signature": "ab", "mod_time": 1, "size": 9}})
    config.cache_path.write_text(seeded, encoding="utf-8")
    real_scandir = os.scandir

    def failing_scandir(path: object = ".") -> object:
        if os.fspath(path) == str(locked):
            raise PermissionError(13, "Permission denied", str(locked))
        return real_scandir(path)

    monkeypatch.setattr(discovery.os, "scandir", failing_scandir)

    with pytest.raises(ScanError, match="Permission denied"):
        run_dedup(config, in_stream=io.StringIO(), out_stream=io.StringIO())

    assert sorted(path.name for path in music.iterdir()) == [
        "locked",
        "song1.mp3",
        "song1_copy.mp3",
        "song2.mp3",
    ]
    assert config.cache_path.read_text(encoding="utf-8") == seeded
