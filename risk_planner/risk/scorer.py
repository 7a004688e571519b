"""
Risk scoring: converts one CUJ (+ its SLO and the coverage snapshot) into a
``Risk`` with impact, probability, mitigations and recommended test layers.

Impact (criticality × SLO strictness)
-------------------------------------
    critical CUJ AND strict SLO  → critical
    critical CUJ otherwise       → high   (capped below critical)
    high / medium / low CUJ      → same level

    "Strict" means latency_p99_ms < 200 OR availability_min > 0.999
    (both strict inequalities — exactly 200 ms does not qualify).

Probability (coverage × dependency count)
-----------------------------------------
    coverage unknown:   deps > 5 → high,  deps > 3 → medium,  else low
    coverage < 60:      deps > 3 → very-high,  else high
    coverage < 80:      deps > 3 → high,       else medium
    coverage >= 80:     low

Score
-----
    IMPACT_WEIGHT[impact] * PROBABILITY_MULTIPLIER[probability]
    (table in ``risk_planner.taxonomy.risk_taxonomy``; computed by ``Risk``).

Every function here is pure: no I/O, no shared state, and no exceptions for
absent SLOs or coverage.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Optional

from risk_planner.models.risk import Risk
from risk_planner.models.signals import CUJ, SLO
from risk_planner.risk.matching import CoverageMatcher, lowest_coverage
from risk_planner.taxonomy.risk_taxonomy import Criticality, Impact, Probability, TestType

logger = logging.getLogger(__name__)

MANY_DEPENDENCIES = 3      # deps > 3 → contract/circuit-breaker territory
VERY_MANY_DEPENDENCIES = 5
LOW_COVERAGE = 60.0
TARGET_COVERAGE = 80.0

_CRITICALITY_IMPACT: dict[Criticality, Impact] = {
    Criticality.HIGH:   Impact.HIGH,
    Criticality.MEDIUM: Impact.MEDIUM,
    Criticality.LOW:    Impact.LOW,
}


def determine_impact(cuj: CUJ, slo: Optional[SLO]) -> Impact:
    """Derive business impact from criticality and SLO strictness."""
    if cuj.criticality == Criticality.CRITICAL:
        if slo is not None and slo.is_strict:
            return Impact.CRITICAL
        return Impact.HIGH
    return _CRITICALITY_IMPACT.get(cuj.criticality, Impact.LOW)


def determine_probability(dependency_count: int, coverage: Optional[float]) -> Probability:
    """Derive failure probability from journey coverage and dependency count.

    Args:
        dependency_count: Number of external dependencies.
        coverage:         Journey coverage percentage, or ``None`` if unknown.
    """
    many_deps = dependency_count > MANY_DEPENDENCIES

    if coverage is None:
        if dependency_count > VERY_MANY_DEPENDENCIES:
            return Probability.HIGH
        if many_deps:
            return Probability.MEDIUM
        return Probability.LOW

    if coverage < LOW_COVERAGE:
        return Probability.VERY_HIGH if many_deps else Probability.HIGH
    if coverage < TARGET_COVERAGE:
        return Probability.HIGH if many_deps else Probability.MEDIUM
    return Probability.LOW


def recommend_test_types(cuj: CUJ, slo: Optional[SLO]) -> list[TestType]:
    """Return recommended test layers in fixed order (never re-sorted)."""
    tests = [TestType.UNIT]
    if cuj.dependencies:
        tests += [TestType.INTEGRATION, TestType.CDC]
    if cuj.criticality == Criticality.CRITICAL:
        tests.append(TestType.E2E)
    if slo is not None and slo.latency_p99_ms is not None and slo.latency_p99_ms < 200:
        tests.append(TestType.PROPERTY)
    if cuj.criticality == Criticality.CRITICAL and len(cuj.dependencies) > MANY_DEPENDENCIES:
        tests.append(TestType.CHAOS)
    return tests


def build_mitigation_strategies(
    cuj: CUJ,
    slo: Optional[SLO],
    coverage: Optional[float],
) -> list[str]:
    """Apply every matching mitigation rule, in rule order.

    May return an empty list for well-covered, low-criticality journeys.
    """
    strategies: list[str] = []

    if len(cuj.dependencies) > MANY_DEPENDENCIES:
        strategies.append("Add a circuit breaker around external dependencies")
        strategies.append("Add consumer-driven contract (CDC) tests for upstream APIs")

    if slo is not None and slo.is_strict:
        strategies.append("Add caching to reduce latency on the hot path")
        strategies.append("Enforce timeout and retry policies on outbound calls")

    if coverage is None or coverage < TARGET_COVERAGE:
        strategies.append("Increase unit and integration test coverage")
        strategies.append("Add E2E tests validating the complete user flow")

    if cuj.criticality == Criticality.CRITICAL:
        strategies.append("Ship behind a feature flag for fast rollback")
        strategies.append("Configure alerting on SLO violations")

    return strategies


def build_description(cuj: CUJ, impact: Impact, probability: Probability) -> str:
    return (
        f"{cuj.name} has {impact} impact and {probability} probability of failure. "
        f"This journey spans {len(cuj.endpoints)} endpoint(s) and "
        f"{len(cuj.dependencies)} dependency(ies)."
    )


def score_cuj(
    cuj: CUJ,
    slo: Optional[SLO] = None,
    coverage: Optional[Mapping[str, float]] = None,
    matcher: Optional[CoverageMatcher] = None,
) -> Risk:
    """Score one CUJ into a ``Risk``.

    Args:
        cuj:      The journey to score.
        slo:      Its SLO, or ``None``.
        coverage: Module path → percentage snapshot, or ``None``.
        matcher:  Coverage matcher; defaults to ``SuffixCoverageMatcher``.

    Returns:
        A ``Risk`` with id ``risk-<cuj.id>``.
    """
    modules = cuj.endpoint_files
    journey_coverage = lowest_coverage(modules, coverage, matcher)
    if coverage is not None and journey_coverage is None:
        logger.debug("No coverage match for CUJ '%s'; using dependency heuristic.", cuj.id)

    impact = determine_impact(cuj, slo)
    probability = determine_probability(len(cuj.dependencies), journey_coverage)

    return Risk(
        id=f"risk-{cuj.id}",
        cuj_id=cuj.id,
        title=f"Risk: {cuj.name}",
        description=build_description(cuj, impact, probability),
        impact=impact,
        probability=probability,
        affected_modules=modules,
        mitigation_strategies=build_mitigation_strategies(cuj, slo, journey_coverage),
        test_coverage=journey_coverage,
        recommended_tests=recommend_test_types(cuj, slo),
    )
