"""
Markdown renderer for ``PORTFOLIO-PLAN.md``.

Sections
--------
  # Test Portfolio Plan
  ## Current State             — count / percentage / target / gap table
  ## Target Distribution       — ASCII test pyramid
  ## Summary                   — rebalancing bullets (gaps beyond ±5 points)
  ## Module Recommendations    — top-N modules, priority order
  ## Top 5 Critical Risks      — from the register's top_5_critical
  ## Action Items              — including the CI time budget

Rendering is pure string building; ``write_portfolio_report()`` is the only
function that touches disk.
"""

from __future__ import annotations

import logging
from pathlib import Path

from risk_planner.models.portfolio import ModuleRecommendation, PortfolioPlan
from risk_planner.models.risk import RiskRegister

logger = logging.getLogger(__name__)

PORTFOLIO_REPORT_FILENAME = "PORTFOLIO-PLAN.md"
SUMMARY_THRESHOLD = 5.0

_PRIORITY_TAG: dict[str, str] = {
    "critical": "[CRITICAL]",
    "high":     "[HIGH]",
    "medium":   "[MEDIUM]",
    "low":      "[LOW]",
}


def _signed(value: float) -> str:
    return f"{'+' if value > 0 else ''}{value:.1f}%"


def _pct(value: float) -> str:
    return f"{value:g}%"


def _current_state(plan: PortfolioPlan) -> list[str]:
    cur, tgt, gaps = plan.current_distribution, plan.target_distribution, plan.gaps
    return [
        "## Current State",
        "",
        "| Test Type | Count | Percentage | Target | Gap |",
        "|-----------|-------|------------|--------|-----|",
        f"| **Unit** | {cur.unit} | {cur.unit_percent:.1f}% | {_pct(tgt.unit_percent)} | {_signed(gaps.unit_gap)} |",
        f"| **Integration** | {cur.integration} | {cur.integration_percent:.1f}% | {_pct(tgt.service_percent)} | {_signed(gaps.integration_gap)} |",
        f"| **E2E** | {cur.e2e} | {cur.e2e_percent:.1f}% | {_pct(tgt.e2e_percent)} | {_signed(gaps.e2e_gap)} |",
        f"| **TOTAL** | {cur.total} | {'100' if cur.total else '0'}% | {_pct(tgt.total_percent)} | - |",
        "",
    ]


def _pyramid(plan: PortfolioPlan) -> list[str]:
    tgt = plan.target_distribution
    return [
        "## Target Distribution (Test Pyramid)",
        "",
        "```",
        f"        /\\     E2E ({_pct(tgt.e2e_percent)})",
        "       /  \\    Slow, brittle, expensive",
        "      /----\\",
        f"     /      \\  Integration ({_pct(tgt.service_percent)})",
        "    /        \\ Moderate speed, integration points",
        "   /----------\\",
        f"  /            \\ Unit ({_pct(tgt.unit_percent)})",
        " /              \\ Fast, reliable, cheap",
        "/________________\\",
        "```",
        "",
    ]


def _summary(plan: PortfolioPlan) -> list[str]:
    cur, tgt, gaps = plan.current_distribution, plan.target_distribution, plan.gaps
    lines = ["## Summary", ""]
    if cur.total == 0:
        lines.append("- No test files found; start with unit tests for the modules below.")
    if gaps.unit_gap > SUMMARY_THRESHOLD:
        lines.append(
            f"- **Add {abs(gaps.unit_gap):.0f}% more unit tests** "
            f"(currently {cur.unit_percent:.1f}%, target {_pct(tgt.unit_percent)})"
        )
    elif gaps.unit_gap < -SUMMARY_THRESHOLD:
        lines.append(f"- Unit test share is healthy ({cur.unit_percent:.1f}%)")
    if gaps.integration_gap > SUMMARY_THRESHOLD:
        lines.append(
            f"- **Add {abs(gaps.integration_gap):.0f}% more integration tests** "
            f"(currently {cur.integration_percent:.1f}%, target {_pct(tgt.service_percent)})"
        )
    if gaps.e2e_gap < -SUMMARY_THRESHOLD:
        lines.append(
            f"- **Pyramid inversion: trim {abs(gaps.e2e_gap):.0f}% of E2E tests** "
            f"(currently {cur.e2e_percent:.1f}%, target {_pct(tgt.e2e_percent)}) "
            "- likely duplicated by lower layers"
        )
    if len(lines) == 2:
        lines.append("- Test distribution is within 5 points of target.")
    lines.append("")
    return lines


def _module_block(rec: ModuleRecommendation) -> list[str]:
    cur, want = rec.current_tests, rec.recommended_tests
    lines = [
        f"### {_PRIORITY_TAG[rec.priority.value]} {rec.module}",
        "",
        f"**Priority**: {rec.priority.value}",
        "",
        "**Current Tests**:",
        f"- Unit: {cur.unit}",
        f"- Integration: {cur.integration}",
        f"- E2E: {cur.e2e}",
        "",
        "**Recommended Tests**:",
        f"- Unit: {want.unit}",
        f"- Integration: {want.integration}",
        f"- E2E: {want.e2e}",
    ]
    if want.cdc:
        lines.append(f"- **CDC (Pact)**: {want.cdc} contracts")
    if want.property:
        lines.append(f"- **Property-based**: {want.property} invariants")
    if want.approval:
        lines.append(f"- **Approval**: {want.approval} golden masters")
    lines += ["", "**Reasoning**:"]
    lines += [f"- {reason}" for reason in rec.reasoning]
    lines.append("")
    return lines


def _top_risks(register: RiskRegister) -> list[str]:
    lines = ["## Top 5 Critical Risks", ""]
    top = [r for r in (register.get_risk(i) for i in register.top_5_critical) if r is not None]
    if not top:
        lines += ["No critical risks identified (score >= 75).", ""]
        return lines
    lines += [
        "| Risk | CUJ | Score | Impact | Mitigation |",
        "|------|-----|-------|--------|------------|",
    ]
    for risk in top:
        mitigations = ", ".join(risk.mitigation_strategies[:2]) or "-"
        lines.append(
            f"| {risk.title} | {risk.cuj_id} | {risk.risk_score} | {risk.impact.value} | {mitigations} |"
        )
    lines.append("")
    return lines


def render_portfolio_report(
    plan: PortfolioPlan,
    register: RiskRegister,
    max_modules: int = 10,
) -> str:
    """Render the full ``PORTFOLIO-PLAN.md`` document."""
    tgt = plan.target_distribution
    lines = [
        "# Test Portfolio Plan",
        "",
        f"**Generated**: {plan.timestamp.isoformat()}",
        f"**Repository**: {plan.repo}",
        f"**Product**: {plan.product}",
        "",
        "---",
        "",
    ]
    lines += _current_state(plan)
    lines += _pyramid(plan)
    lines += _summary(plan)

    lines += [
        "## Module Recommendations",
        "",
        f"Based on {len(register.risks)} identified risks, prioritized by impact:",
        "",
    ]
    if not plan.recommendations:
        lines += ["No modules are linked to identified risks.", ""]
    for rec in plan.recommendations[:max_modules]:
        lines += _module_block(rec)

    lines += _top_risks(register)

    lines += [
        "## Action Items",
        "",
        f"1. **Rebalance pyramid**: focus on unit tests (target {_pct(tgt.unit_percent)})",
        f"2. **Address critical risks**: implement recommended tests for the top "
        f"{min(5, len(plan.recommendations))} modules",
        "3. **Add CDC tests**: validate API contracts for critical integrations",
        f"4. **Reduce E2E overhead**: remove duplicated E2E tests (target {_pct(tgt.e2e_percent)})",
        f"5. **Monitor CI time**: keep total suite runtime <= {tgt.max_ci_time_minutes:g} min",
        "",
        "---",
        "",
        "**Reference**: [The Practical Test Pyramid](https://martinfowler.com/articles/practical-test-pyramid.html)",
        "",
    ]
    return "\n".join(lines)


def write_portfolio_report(
    plan: PortfolioPlan,
    register: RiskRegister,
    output_dir: Path,
    max_modules: int = 10,
) -> Path:
    """Render and write ``PORTFOLIO-PLAN.md`` into ``output_dir``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / PORTFOLIO_REPORT_FILENAME
    path.write_text(render_portfolio_report(plan, register, max_modules), encoding="utf-8")
    logger.info("Portfolio report written: %s", path)
    return path
