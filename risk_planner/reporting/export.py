"""
Export helpers: persist risk registers and portfolio plans.

All functions write to disk and return the written ``Path``.

``risk-register.json`` is written with ``RiskRegister.model_dump_json()`` so
it reloads losslessly through ``ingestion.loaders.load_risk_register()``.

``flatten_risks_for_export()`` converts a register into one flat row per
risk (list fields joined with ``"; "``) for spreadsheet review.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from risk_planner.models.portfolio import PortfolioPlan
from risk_planner.models.risk import RiskRegister

logger = logging.getLogger(__name__)

RISK_REGISTER_FILENAME = "risk-register.json"
PORTFOLIO_PLAN_FILENAME = "portfolio-plan.json"


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def write_risk_register_json(register: RiskRegister, output_dir: Path) -> Path:
    """Write ``risk-register.json`` into ``output_dir``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / RISK_REGISTER_FILENAME
    path.write_text(register.model_dump_json(indent=2), encoding="utf-8")
    logger.info("Risk register written: %s (%d risks)", path, len(register.risks))
    return path


def write_portfolio_plan_json(plan: PortfolioPlan, output_dir: Path) -> Path:
    """Write ``portfolio-plan.json`` into ``output_dir``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / PORTFOLIO_PLAN_FILENAME
    path.write_text(plan.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
    logger.info(
        "Portfolio plan written: %s (%d recommendations)", path, len(plan.recommendations)
    )
    return path


def flatten_risks_for_export(register: RiskRegister) -> list[dict]:
    """One flat row per risk, in register order.

    Columns: rank, risk_id, cuj_id, title, impact, probability, risk_score,
    is_top_critical, test_coverage, affected_modules, recommended_tests,
    mitigation_strategies.
    """
    top = set(register.top_5_critical)
    rows: list[dict] = []
    for rank, risk in enumerate(register.risks, start=1):
        rows.append(
            {
                "rank":                  rank,
                "risk_id":               risk.id,
                "cuj_id":                risk.cuj_id,
                "title":                 risk.title,
                "impact":                risk.impact.value,
                "probability":           risk.probability.value,
                "risk_score":            risk.risk_score,
                "is_top_critical":       risk.id in top,
                "test_coverage":         "" if risk.test_coverage is None else risk.test_coverage,
                "affected_modules":      "; ".join(risk.affected_modules),
                "recommended_tests":     "; ".join(t.value for t in risk.recommended_tests),
                "mitigation_strategies": "; ".join(risk.mitigation_strategies),
            }
        )
    return rows
