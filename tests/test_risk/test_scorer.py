"""
Tests for risk_planner/risk/scorer.py.

What we test
------------
determine_impact():
  - critical CUJ + strict SLO -> critical; otherwise capped at high.
  - Exactly 200 ms p99 is not strict.
  - Non-critical criticality maps 1:1.
determine_probability():
  - Full decision table, including coverage unknown and the 60/80 boundaries.
recommend_test_types():
  - Fixed ordering; unit always first.
build_mitigation_strategies():
  - Rule order, and an empty list for a well-covered low journey.
score_cuj():
  - Heavily-depended critical journey with poor coverage (max score).
  - Isolated low journey with no SLO and no coverage (unit only).
  - Coverage snapshot present but unmatched -> dependency heuristic.
  - affected_modules come from endpoint files only.
"""

from __future__ import annotations

import pytest

from risk_planner.models.signals import CUJ, SLO, Endpoint
from risk_planner.risk.scorer import (
    build_mitigation_strategies,
    determine_impact,
    determine_probability,
    recommend_test_types,
    score_cuj,
)
from risk_planner.taxonomy.risk_taxonomy import Criticality, Impact, Probability, TestType


def _cuj(
    criticality: str = "critical",
    deps: int = 0,
    files: tuple[str, ...] = (),
    cuj_id: str = "c1",
) -> CUJ:
    return CUJ(
        id=cuj_id,
        name="Journey",
        criticality=criticality,
        dependencies=[f"d{i}" for i in range(1, deps + 1)],
        endpoints=[Endpoint(path=f"/e{i}", file=f) for i, f in enumerate(files)],
    )


# ── Impact ────────────────────────────────────────────────────────────────────

class TestDetermineImpact:
    def test_critical_with_strict_latency(self):
        assert determine_impact(_cuj(), SLO(cuj_id="c1", latency_p99_ms=150)) == Impact.CRITICAL

    def test_critical_with_strict_availability(self):
        slo = SLO(cuj_id="c1", availability_min=0.9999)
        assert determine_impact(_cuj(), slo) == Impact.CRITICAL

    def test_exactly_200ms_caps_at_high(self):
        assert determine_impact(_cuj(), SLO(cuj_id="c1", latency_p99_ms=200)) == Impact.HIGH

    def test_critical_without_slo_caps_at_high(self):
        assert determine_impact(_cuj(), None) == Impact.HIGH

    @pytest.mark.parametrize("criticality", ["high", "medium", "low"])
    def test_non_critical_maps_directly(self, criticality):
        strict = SLO(cuj_id="c1", latency_p99_ms=10)
        assert determine_impact(_cuj(criticality), strict) == Impact(criticality)


# ── Probability ───────────────────────────────────────────────────────────────

class TestDetermineProbability:
    @pytest.mark.parametrize(
        "deps,coverage,expected",
        [
            (6, None, Probability.HIGH),
            (5, None, Probability.MEDIUM),
            (4, None, Probability.MEDIUM),
            (3, None, Probability.LOW),
            (0, None, Probability.LOW),
            (4, 59.9, Probability.VERY_HIGH),
            (3, 59.9, Probability.HIGH),
            (4, 60.0, Probability.HIGH),
            (3, 60.0, Probability.MEDIUM),
            (4, 79.9, Probability.HIGH),
            (0, 79.9, Probability.MEDIUM),
            (10, 80.0, Probability.LOW),
            (0, 100.0, Probability.LOW),
        ],
    )
    def test_decision_table(self, deps, coverage, expected):
        assert determine_probability(deps, coverage) == expected

    def test_zero_coverage_is_known(self):
        assert determine_probability(0, 0.0) == Probability.HIGH


# ── Recommended tests ─────────────────────────────────────────────────────────

class TestRecommendTestTypes:
    def test_isolated_low_is_unit_only(self):
        assert recommend_test_types(_cuj("low"), None) == [TestType.UNIT]

    def test_full_ordering(self):
        tests = recommend_test_types(_cuj(deps=4), SLO(cuj_id="c1", latency_p99_ms=100))
        assert tests == [
            TestType.UNIT,
            TestType.INTEGRATION,
            TestType.CDC,
            TestType.E2E,
            TestType.PROPERTY,
            TestType.CHAOS,
        ]

    def test_property_requires_fast_p99_not_availability(self):
        tests = recommend_test_types(_cuj("high"), SLO(cuj_id="c1", availability_min=0.9999))
        assert TestType.PROPERTY not in tests

    def test_chaos_needs_more_than_three_deps(self):
        assert TestType.CHAOS not in recommend_test_types(_cuj(deps=3), None)

    def test_chaos_only_for_critical(self):
        assert TestType.CHAOS not in recommend_test_types(_cuj("high", deps=8), None)


# ── Mitigations ───────────────────────────────────────────────────────────────

class TestBuildMitigationStrategies:
    def test_well_covered_low_journey_has_none(self):
        assert build_mitigation_strategies(_cuj("low"), None, 95.0) == []

    def test_unknown_coverage_triggers_coverage_rule(self):
        strategies = build_mitigation_strategies(_cuj("low"), None, None)
        assert strategies == [
            "Increase unit and integration test coverage",
            "Add E2E tests validating the complete user flow",
        ]

    def test_rule_order(self):
        strategies = build_mitigation_strategies(
            _cuj(deps=4), SLO(cuj_id="c1", latency_p99_ms=100), 10.0
        )
        assert len(strategies) == 8
        assert strategies[0].startswith("Add a circuit breaker")
        assert strategies[2].startswith("Add caching")
        assert strategies[4].startswith("Increase unit")
        assert strategies[6].startswith("Ship behind a feature flag")


# ── score_cuj ─────────────────────────────────────────────────────────────────

class TestScoreCuj:
    def test_dependency_heavy_critical_journey(self):
        cuj = _cuj(deps=4, files=("billing.ts",))
        risk = score_cuj(cuj, SLO(cuj_id="c1", latency_p99_ms=150), {"billing.ts": 40})

        assert risk.id == "risk-c1"
        assert risk.impact == Impact.CRITICAL
        assert risk.probability == Probability.VERY_HIGH
        assert risk.risk_score >= 75
        assert {
            TestType.UNIT,
            TestType.INTEGRATION,
            TestType.CDC,
            TestType.E2E,
            TestType.PROPERTY,
            TestType.CHAOS,
        } <= set(risk.recommended_tests)
        assert risk.test_coverage == 40.0
        assert risk.affected_modules == ["billing.ts"]

    def test_isolated_low_journey(self):
        risk = score_cuj(_cuj("low", cuj_id="c2"))
        assert risk.impact == Impact.LOW
        assert risk.probability == Probability.LOW
        assert risk.risk_score < 25
        assert risk.recommended_tests == [TestType.UNIT]
        assert risk.test_coverage is None
        assert risk.affected_modules == []

    def test_unmatched_snapshot_falls_back_to_dependencies(self):
        risk = score_cuj(_cuj("medium", deps=6, files=("src/a.ts",)), None, {"src/zzz.ts": 99})
        assert risk.test_coverage is None
        assert risk.probability == Probability.HIGH

    def test_weakest_file_drives_probability(self):
        cov = {"src/a.ts": 95.0, "src/b.ts": 50.0}
        risk = score_cuj(_cuj("high", files=("src/a.ts", "src/b.ts")), None, cov)
        assert risk.test_coverage == 50.0
        assert risk.probability == Probability.HIGH

    def test_title_and_description(self):
        risk = score_cuj(_cuj("medium", deps=2, files=("a.ts",)))
        assert risk.title == "Risk: Journey"
        assert "medium impact" in risk.description
        assert "1 endpoint(s)" in risk.description
        assert "2 dependency(ies)" in risk.description

    def test_endpoints_without_files_contribute_no_modules(self):
        cuj = CUJ(
            id="c3",
            name="J",
            criticality=Criticality.HIGH,
            endpoints=[Endpoint(path="/api/x")],
        )
        assert score_cuj(cuj).affected_modules == []

    def test_scoring_is_deterministic(self):
        cuj = _cuj(deps=4, files=("billing.ts",))
        slo = SLO(cuj_id="c1", latency_p99_ms=150)
        assert score_cuj(cuj, slo, {"billing.ts": 40}) == score_cuj(cuj, slo, {"billing.ts": 40})
