"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from muxic.resolve.grouping import DEFAULT_STRATEGY, SURVIVOR_STRATEGIES

MAX_WORKERS_CAP = 32
DATA_DIR_NAME = ".muxic"
CACHE_FILE_NAME = "dedup_cache.json"
AUDIT_FILE_NAME = "audit.jsonl"
CONFIG_FILE_NAME = "muxic.toml"

DEFAULT_MEDIA_EXTENSIONS = (
    ".aac",
    ".aiff",
    ".alac",
    ".flac",
    ".m4a",
    ".mp3",
    ".ogg",
    ".opus",
    ".wav",
    ".wma",
)


@dataclass(slots=True, frozen=True)
class ScanConfig:
    """Which files are scanned and how many signing workers run."""

    extensions: tuple[str, ...]
    workers: int


@dataclass(slots=True, frozen=True)
class ResolveConfig:
    """How duplicate sets are resolved."""

    strategy: str
    scorched_earth: bool
    dry_run: bool


@dataclass(slots=True, frozen=True)
class DedupConfig:
    """Fully merged configuration for one dedup run."""

    target_dir: Path
    cache_path: Path
    audit_log_path: Path
    scan: ScanConfig
    resolve: ResolveConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for reports and the audit log."""
        return {
            "target_dir": str(self.target_dir),
            "cache_path": str(self.cache_path),
            "audit_log_path": str(self.audit_log_path),
            "scan": {
                "extensions": list(self.scan.extensions),
                "workers": self.scan.workers,
            },
            "resolve": {
                "strategy": self.resolve.strategy,
                "scorched_earth": self.resolve.scorched_earth,
                "dry_run": self.resolve.dry_run,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    cache_path: Path | None = None
    audit_log_path: Path | None = None
    extensions: tuple[str, ...] | None = None
    workers: int | None = None
    strategy: str | None = None
    scorched_earth: bool | None = None
    dry_run: bool | None = None


def default_data_dir() -> Path:
    """Per-user directory holding the cache, audit log and config file."""
    return Path.home() / DATA_DIR_NAME


def default_config(target_dir: Path) -> DedupConfig:
    """Build default config for a given target directory."""
    data_dir = default_data_dir()
    return DedupConfig(
        target_dir=target_dir.absolute(),
        cache_path=data_dir / CACHE_FILE_NAME,
        audit_log_path=data_dir / AUDIT_FILE_NAME,
        scan=ScanConfig(extensions=DEFAULT_MEDIA_EXTENSIONS, workers=1),
        resolve=ResolveConfig(strategy=DEFAULT_STRATEGY, scorched_earth=False, dry_run=False),
    )


def load_config_file(config_path: Path | None = None) -> dict[str, object]:
    """Load the TOML config; only an explicitly requested file must exist."""
    path = config_path if config_path is not None else default_data_dir() / CONFIG_FILE_NAME
    if not path.exists():
        if config_path is not None:
            raise ValueError(f"Config file '{config_path}' does not exist.")
        return {}
    with path.open("rb") as handle:
        try:
            payload = tomllib.load(handle)
        except tomllib.TOMLDecodeError as error:
            raise ValueError(f"Config file '{path}' is not valid TOML: {error}") from error
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def normalize_extensions(values: tuple[str, ...], name: str) -> tuple[str, ...]:
    """Lowercase, dedupe and sort extensions; each must start with a dot."""
    output: set[str] = set()
    for value in values:
        normalized = value.strip().lower()
        if not normalized.startswith(".") or len(normalized) < 2:
            raise ValueError(f"Config field '{name}' entries must look like '.mp3', got '{value}'.")
        output.add(normalized)
    if not output:
        raise ValueError(f"Config field '{name}' must list at least one extension.")
    return tuple(sorted(output))


def _optional_path(value: object, name: str, default: Path) -> Path:
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return Path(value).expanduser()


def merge_config(
    base: DedupConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> DedupConfig:
    """Merge defaults, config file, then CLI/startup overrides."""
    scan_payload = _get_table(file_payload, "scan")
    resolve_payload = _get_table(file_payload, "resolve")
    cache_payload = _get_table(file_payload, "cache")
    audit_payload = _get_table(file_payload, "audit")

    extensions = base.scan.extensions
    if "extensions" in scan_payload:
        extensions = normalize_extensions(
            _tuple_of_strings(scan_payload["extensions"], "scan", "extensions"),
            "scan.extensions",
        )
    workers = _optional_positive_int_with_cap(
        scan_payload.get("workers"), "scan.workers", base.scan.workers, MAX_WORKERS_CAP
    )
    strategy = _optional_strategy(
        resolve_payload.get("strategy"), "resolve.strategy", base.resolve.strategy
    )
    scorched_earth = _optional_bool(
        resolve_payload.get("scorched_earth"),
        "resolve.scorched_earth",
        base.resolve.scorched_earth,
    )

    merged = DedupConfig(
        target_dir=base.target_dir,
        cache_path=_optional_path(cache_payload.get("path"), "cache.path", base.cache_path),
        audit_log_path=_optional_path(
            audit_payload.get("path"), "audit.path", base.audit_log_path
        ),
        scan=ScanConfig(extensions=extensions, workers=workers),
        resolve=ResolveConfig(
            strategy=strategy,
            scorched_earth=scorched_earth,
            dry_run=base.resolve.dry_run,
        ),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: DedupConfig, overrides: CliOverrides) -> DedupConfig:
    """Apply startup overrides at highest precedence."""
    extensions = config.scan.extensions
    if overrides.extensions is not None:
        extensions = normalize_extensions(overrides.extensions, "overrides.extensions")
    workers = _optional_positive_int_with_cap(
        overrides.workers, "overrides.workers", config.scan.workers, MAX_WORKERS_CAP
    )
    strategy = _optional_strategy(overrides.strategy, "overrides.strategy", config.resolve.strategy)
    return DedupConfig(
        target_dir=config.target_dir,
        cache_path=(overrides.cache_path or config.cache_path).absolute(),
        audit_log_path=(overrides.audit_log_path or config.audit_log_path).absolute(),
        scan=ScanConfig(extensions=extensions, workers=workers),
        resolve=ResolveConfig(
            strategy=strategy,
            scorched_earth=(
                overrides.scorched_earth
                if overrides.scorched_earth is not None
                else config.resolve.scorched_earth
            ),
            dry_run=overrides.dry_run if overrides.dry_run is not None else config.resolve.dry_run,
        ),
    )


def load_effective_config(
    target_dir: Path,
    config_path: Path | None = None,
    overrides: CliOverrides | None = None,
) -> DedupConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    base = default_config(target_dir)
    payload = load_config_file(config_path)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_strategy(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or value not in SURVIVOR_STRATEGIES:
        raise ValueError(
            f"Config field '{name}' must be one of: {', '.join(SURVIVOR_STRATEGIES)}."
        )
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
