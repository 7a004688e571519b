"""
Load boundary: JSON files → validated signal models.

This is the only place loosely-typed external JSON is checked.  Everything
downstream (scorer, register, planner) assumes fully-typed input.

Inputs
------
  cuj-catalog.json        ``{"cujs": [...]}``  (a bare array is accepted)
  slos.json               ``{"slos": [...]}``  (a bare array is accepted)
  coverage snapshot       ``{"<module path>": <0-100>, ...}`` — optional
  risk-register.json      as written by ``reporting.export``

Failure semantics
-----------------
- Required file missing       → ``FileNotFoundError``.
- Malformed JSON / schema     → ``InputValidationError`` (a ``ValueError``)
                                naming the file and up to five errors.
- Optional file missing       → ``None`` (coverage) or an empty catalog
                                (SLOs with ``required=False``).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from risk_planner.models.risk import RiskRegister
from risk_planner.models.signals import CUJCatalog, SLOCatalog, validate_coverage_snapshot

logger = logging.getLogger(__name__)

_MAX_REPORTED_ERRORS = 5


class InputValidationError(ValueError):
    """A catalog or snapshot failed structural validation."""

    def __init__(self, source: Path | str, errors: list[str]) -> None:
        self.source = str(source)
        self.errors = errors
        shown = errors[:_MAX_REPORTED_ERRORS]
        lines = [f"{self.source}: {len(errors)} validation error(s)"]
        lines += [f"  {msg}" for msg in shown]
        if len(errors) > _MAX_REPORTED_ERRORS:
            lines.append(f"  ... and {len(errors) - _MAX_REPORTED_ERRORS} more.")
        super().__init__("\n".join(lines))


def _format_validation_error(exc: ValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{loc or '<root>'}: {err.get('msg', 'invalid')}")
    return messages


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise InputValidationError(path, [f"JSON parse error: {exc}"]) from exc


def _wrap_list(raw: Any, key: str) -> Any:
    if isinstance(raw, list):
        return {key: raw}
    return raw


def load_cuj_catalog(path: Path) -> CUJCatalog:
    """Load and validate a CUJ catalog."""
    path = Path(path)
    raw = _wrap_list(_read_json(path), "cujs")
    try:
        catalog = CUJCatalog.model_validate(raw)
    except ValidationError as exc:
        raise InputValidationError(path, _format_validation_error(exc)) from exc
    logger.info("Loaded %d CUJ(s) from %s", len(catalog.cujs), path)
    return catalog


def load_slo_catalog(path: Path, required: bool = True) -> SLOCatalog:
    """Load and validate an SLO catalog.

    Args:
        path:     Path to ``slos.json``.
        required: When ``False`` a missing file yields an empty catalog.
    """
    path = Path(path)
    if not required and not path.exists():
        logger.warning("SLO file %s not found; scoring without SLOs.", path)
        return SLOCatalog()
    raw = _wrap_list(_read_json(path), "slos")
    try:
        catalog = SLOCatalog.model_validate(raw)
    except ValidationError as exc:
        raise InputValidationError(path, _format_validation_error(exc)) from exc
    logger.info("Loaded %d SLO(s) from %s", len(catalog.slos), path)
    return catalog


def load_coverage(path: Optional[Path]) -> Optional[dict[str, float]]:
    """Load an optional coverage snapshot; ``None`` when absent."""
    if path is None or not Path(path).exists():
        logger.info("No coverage snapshot at %s; using dependency heuristics.", path)
        return None
    path = Path(path)
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise InputValidationError(path, ["Coverage snapshot must be a JSON object."])
    try:
        snapshot = validate_coverage_snapshot(raw)
    except ValueError as exc:
        raise InputValidationError(path, [str(exc)]) from exc
    logger.info("Loaded coverage for %d module(s) from %s", len(snapshot), path)
    return snapshot


def load_risk_register(path: Path) -> RiskRegister:
    """Load a previously written ``risk-register.json``."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    try:
        return RiskRegister.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise InputValidationError(path, _format_validation_error(exc)) from exc
