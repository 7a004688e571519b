"""
Portfolio recommender: risk-driven, per-module test-count targets.

Usage flow
----------
1. group_risks_by_module(register)
   -> dict[module, list[Risk]]    (one risk can touch several modules)

2. driving_risk(risks)
   -> the highest-score risk for a module (first encountered on ties)

3. build_module_recommendation(module, risk, current)
   -> ModuleRecommendation with a three-tier absolute target

4. recommend(register, analysis)
   -> list[ModuleRecommendation] sorted by priority (critical first, stable)

Tiers (independent of the global pyramid percentages)
-----------------------------------------------------
    score >= 75        unit 80, integration 15, e2e 2
    50 <= score < 75   unit 50, integration 10, e2e 1
    score < 50         unit 20, integration 5,  e2e 0

Overlays: cdc=5 when the risk recommends CDC, property=3 when it recommends
property tests.  Chaos is surfaced as a reasoning line only, never a count.

Priority is the driving risk's **impact**, not its band — a critical-impact
risk with low probability still sorts with the critical modules.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from risk_planner.models.portfolio import (
    ModuleRecommendation,
    PortfolioAnalysis,
    PortfolioPlan,
    RecommendedTests,
    TargetDistribution,
    TestCounts,
)
from risk_planner.models.risk import Risk, RiskRegister
from risk_planner.portfolio.analyzer import analyze
from risk_planner.taxonomy.risk_taxonomy import (
    CRITICAL_THRESHOLD,
    HIGH_THRESHOLD,
    PRIORITY_ORDER,
    TestType,
)

logger = logging.getLogger(__name__)

CDC_CONTRACTS = 5
PROPERTY_INVARIANTS = 3


class CountTier(NamedTuple):
    unit: int
    integration: int
    e2e: int
    label: str


_CRITICAL_TIER = CountTier(80, 15, 2, "Critical risk (score: {score}) requires comprehensive coverage")
_HIGH_TIER = CountTier(50, 10, 1, "High risk (score: {score}) requires robust unit and integration tests")
_BASE_TIER = CountTier(20, 5, 0, "Moderate risk (score: {score}) needs essential tests only")


def tier_for_score(score: int) -> CountTier:
    if score >= CRITICAL_THRESHOLD:
        return _CRITICAL_TIER
    if score >= HIGH_THRESHOLD:
        return _HIGH_TIER
    return _BASE_TIER


def group_risks_by_module(register: RiskRegister) -> dict[str, list[Risk]]:
    """Group risks under every module they affect, in register order."""
    by_module: dict[str, list[Risk]] = {}
    for risk in register.risks:
        for module in risk.affected_modules:
            by_module.setdefault(module, []).append(risk)
    return by_module


def driving_risk(risks: list[Risk]) -> Risk:
    """Highest-score risk; the first one encountered wins a tie."""
    best = risks[0]
    for risk in risks[1:]:
        if risk.risk_score > best.risk_score:
            best = risk
    return best


def build_module_recommendation(
    module: str,
    risk: Risk,
    current: Optional[TestCounts] = None,
) -> ModuleRecommendation:
    """Build the recommendation for ``module`` driven by ``risk``."""
    tier = tier_for_score(risk.risk_score)
    reasoning = [tier.label.format(score=risk.risk_score)]

    cdc: Optional[int] = None
    prop: Optional[int] = None
    if TestType.CDC in risk.recommended_tests:
        cdc = CDC_CONTRACTS
        reasoning.append("CDC (Pact) contracts recommended to validate API compatibility")
    if TestType.PROPERTY in risk.recommended_tests:
        prop = PROPERTY_INVARIANTS
        reasoning.append("Property-based tests recommended to validate invariants")
    if TestType.CHAOS in risk.recommended_tests:
        reasoning.append("Consider chaos engineering to verify resilience")

    return ModuleRecommendation(
        module=module,
        current_tests=current or TestCounts(),
        recommended_tests=RecommendedTests(
            unit=tier.unit,
            integration=tier.integration,
            e2e=tier.e2e,
            cdc=cdc,
            property=prop,
        ),
        reasoning=reasoning,
        priority=risk.impact,
        driving_risk_id=risk.id,
    )


def recommend(
    register: RiskRegister,
    analysis: Optional[PortfolioAnalysis] = None,
    current_counts: Optional[Mapping[str, TestCounts]] = None,
) -> list[ModuleRecommendation]:
    """Produce per-module recommendations sorted by priority.

    Args:
        register:       The risk register.
        analysis:       Portfolio analysis; used for logging context only —
                        module targets are absolute, not pyramid-relative.
        current_counts: Optional module → existing test counts.

    Returns:
        Recommendations sorted critical → low, stable within a priority.
    """
    current_counts = current_counts or {}
    recommendations = [
        build_module_recommendation(module, driving_risk(risks), current_counts.get(module))
        for module, risks in group_risks_by_module(register).items()
    ]
    recommendations.sort(key=lambda rec: PRIORITY_ORDER[rec.priority])

    if analysis is not None:
        logger.info(
            "%d module recommendation(s); unit gap %+.1f, e2e gap %+.1f",
            len(recommendations),
            analysis.gaps.unit_gap,
            analysis.gaps.e2e_gap,
        )
    return recommendations


def build_portfolio_plan(
    register: RiskRegister,
    counts: TestCounts | dict[str, int],
    target: Optional[TargetDistribution] = None,
    current_counts: Optional[Mapping[str, TestCounts]] = None,
    timestamp: Optional[datetime] = None,
) -> PortfolioPlan:
    """Analyze the test mix and recommend per-module targets in one call."""
    analysis = analyze(counts, target)
    recommendations = recommend(register, analysis, current_counts)
    return PortfolioPlan(
        timestamp=timestamp or datetime.now(tz=timezone.utc),
        repo=register.repo,
        product=register.product,
        current_distribution=analysis.current,
        target_distribution=analysis.target,
        gaps=analysis.gaps,
        recommendations=recommendations,
    )
