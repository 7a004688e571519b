"""
Configuration for risk-planner runs.

Layers, later ones winning:
  1. ``config/default.toml``   committed defaults (or the file given by ``--config``)
  2. ``local.toml``            same directory, optional, gitignored
  3. ``.env``                  loaded into the environment, never overriding it
  4. ``RISK_PLANNER_*``        environment variables, see ``_ENV_OVERRIDES``

``load_config()`` returns a frozen ``AppConfig``.  Only the CLI reads it: the
scoring engine and the portfolio planner take plain arguments, so a register
built from Python code never depends on what is on disk.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from risk_planner.models.portfolio import TargetDistribution

# ── Sub-config models ─────────────────────────────────────────────────────────


class ProductPaths(BaseModel):
    """Resolved per-product directories under ``<repo>/<qa_root>/<product>``."""

    model_config = ConfigDict(frozen=True)

    root: Path
    analyses: Path
    reports: Path
    unit: Path
    integration: Path
    e2e: Path


class PathsConfig(BaseModel):
    """Output layout: ``<repo>/<qa_root>/<product>/tests/...``."""

    model_config = ConfigDict(frozen=True)

    qa_root: str = "qa"

    def for_product(self, repo: str | Path, product: str) -> ProductPaths:
        root = Path(repo) / self.qa_root / product
        tests = root / "tests"
        return ProductPaths(
            root=root,
            analyses=tests / "analyses",
            reports=tests / "reports",
            unit=tests / "unit",
            integration=tests / "integration",
            e2e=tests / "e2e",
        )


class RiskConfig(BaseModel):
    """Risk register parameters."""

    model_config = ConfigDict(frozen=True)

    top_n: int = 5
    critical_coverage_target: float = 80.0
    high_coverage_target: float = 60.0
    coverage_file: str = "coverage-analysis.json"

    @field_validator("top_n")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if not 0 <= v <= 5:
            raise ValueError(f"top_n must be in [0, 5], got {v}.")
        return v

    @field_validator("critical_coverage_target", "high_coverage_target")
    @classmethod
    def validate_target(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"Coverage target must be in [0, 100], got {v}.")
        return v


class PortfolioConfig(BaseModel):
    """Target pyramid and report settings."""

    model_config = ConfigDict(frozen=True)

    unit_percent: float = 70.0
    service_percent: float = 20.0
    e2e_percent: float = 10.0
    max_ci_time_minutes: float = 12.0
    report_max_modules: int = 10

    def target(self) -> TargetDistribution:
        return TargetDistribution(
            unit_percent=self.unit_percent,
            service_percent=self.service_percent,
            e2e_percent=self.e2e_percent,
            max_ci_time_minutes=self.max_ci_time_minutes,
        )


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth."""

    model_config = ConfigDict(frozen=True)

    paths: PathsConfig = PathsConfig()
    risk: RiskConfig = RiskConfig()
    portfolio: PortfolioConfig = PortfolioConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

DEFAULT_CONFIG_RELPATH = Path("config") / "default.toml"
LOCAL_CONFIG_NAME = "local.toml"

_TRUTHY = frozenset({"1", "true", "yes", "on"})

# env var -> (section or None for top level, key, caster)
_ENV_OVERRIDES: dict[str, tuple[Optional[str], str, Callable[[str], Any]]] = {
    "RISK_PLANNER_QA_ROOT":       ("paths", "qa_root", str),
    "RISK_PLANNER_TOP_N":         ("risk", "top_n", int),
    "RISK_PLANNER_COVERAGE_FILE": ("risk", "coverage_file", str),
    "RISK_PLANNER_LOG_LEVEL":     ("logging", "level", str),
    "RISK_PLANNER_LOG_FILE":      ("logging", "log_file", str),
    "RISK_PLANNER_DEBUG":         (None, "debug", lambda v: v.strip().lower() in _TRUTHY),
}


def _project_root() -> Path:
    """Directory holding ``pyproject.toml``, searched upwards from this package."""
    here = Path(__file__).resolve().parent
    for candidate in (here, *here.parents):
        if (candidate / "pyproject.toml").exists():
            return candidate
    return here.parent


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit TOML file.  Defaults to
            ``<project_root>/config/default.toml``.  A ``local.toml`` beside
            it, when present, is merged on top.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If merged values fail validation.
        ValueError: If an override env var cannot be parsed.
    """
    root = _project_root()
    load_dotenv(dotenv_path=root / ".env", override=False)

    path = Path(config_path) if config_path is not None else root / DEFAULT_CONFIG_RELPATH
    if not path.is_file():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            "Pass --config or create config/default.toml first."
        )

    raw = _read_toml(path)
    local = path.with_name(LOCAL_CONFIG_NAME)
    if local != path and local.is_file():
        raw = _deep_merge(raw, _read_toml(local))

    return _build_app_config(_apply_env_overrides(raw, os.environ))


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested tables merge key by key."""
    merged = dict(base)
    for key, val in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(val, dict):
            merged[key] = _deep_merge(current, val)
        else:
            merged[key] = val
    return merged


def _apply_env_overrides(raw: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Apply ``RISK_PLANNER_*`` variables from ``environ`` (see ``_ENV_OVERRIDES``).

    Empty values are ignored.
    """
    for var, (section, key, cast) in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if not value:
            continue
        try:
            parsed = cast(value)
        except ValueError as exc:
            raise ValueError(f"{var}={value!r} is not valid: {exc}") from exc
        target = raw if section is None else raw.setdefault(section, {})
        target[key] = parsed
    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map the merged TOML dict onto ``AppConfig``.

    ``[project].debug`` is honoured unless a top-level ``debug`` is set.
    """
    project = raw.get("project", {})
    return AppConfig(
        paths=PathsConfig(**raw.get("paths", {})),
        risk=RiskConfig(**raw.get("risk", {})),
        portfolio=PortfolioConfig(**raw.get("portfolio", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
