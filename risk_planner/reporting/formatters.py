"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept engine models and return plain multi-line strings
suitable for ``typer.echo()``.  No third-party dependencies (no ``rich``).
"""

from __future__ import annotations

from risk_planner.models.portfolio import PortfolioAnalysis
from risk_planner.models.risk import RiskRegister
from risk_planner.taxonomy.risk_taxonomy import band_for_score


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def format_risk_table(register: RiskRegister, limit: int = 20) -> str:
    """Format the register as a ranked table; top-critical rows are starred.

    BAND is the score band (critical >= 75, high >= 50, medium >= 25), which
    can differ from IMPACT: a critical-impact, low-probability risk scores 25.

    Args:
        register: Risk register to display.
        limit:    Max rows shown.

    Returns:
        Multi-line string.
    """
    if not register.risks:
        return "  No CUJs in catalog -- risk register is empty."

    top = set(register.top_5_critical)
    header = f"  {'#':>3}  {'RISK':<32} {'IMPACT':<9} {'PROB':<10} {'BAND':<9} {'SCORE':>5}  COV"
    lines = [header, "  " + "-" * (len(header) - 2)]
    for rank, risk in enumerate(register.risks[:limit], start=1):
        star = "*" if risk.id in top else " "
        cov = "-" if risk.test_coverage is None else f"{risk.test_coverage:.0f}%"
        lines.append(
            f"{star} {rank:>3}  {_truncate(risk.id, 32):<32} {risk.impact.value:<9} "
            f"{risk.probability.value:<10} {band_for_score(risk.risk_score).value:<9} "
            f"{risk.risk_score:>5}  {cov}"
        )
    if len(register.risks) > limit:
        lines.append(f"  ... and {len(register.risks) - limit} more.")
    lines.append("")
    lines.append(
        f"  Total risk score: {register.total_risk_score}  |  "
        f"critical: {len(register.critical_risks)}  |  "
        f"coverage gaps: {len(register.coverage_gaps)}"
    )
    return "\n".join(lines)


def format_distribution_table(analysis: PortfolioAnalysis) -> str:
    """Format current vs target distribution with signed gaps."""
    cur, tgt, gaps = analysis.current, analysis.target, analysis.gaps
    rows = [
        ("unit",        cur.unit,        cur.unit_percent,        tgt.unit_percent,    gaps.unit_gap),
        ("integration", cur.integration, cur.integration_percent, tgt.service_percent, gaps.integration_gap),
        ("e2e",         cur.e2e,         cur.e2e_percent,         tgt.e2e_percent,     gaps.e2e_gap),
    ]
    lines = [
        f"  {'LAYER':<12} {'COUNT':>6} {'CURRENT':>8} {'TARGET':>7} {'GAP':>7}",
        "  " + "-" * 44,
    ]
    for name, count, pct, target, gap in rows:
        lines.append(f"  {name:<12} {count:>6} {pct:>7.1f}% {target:>6.1f}% {gap:>+6.1f}%")
    lines.append(f"  {'total':<12} {cur.total:>6}")
    if gaps.pyramid_inverted:
        lines.append("")
        lines.append("  [WARN] Pyramid inversion: e2e share above target.")
    return "\n".join(lines)
