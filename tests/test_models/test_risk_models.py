"""
Tests for risk_planner/models/risk.py.

What we test
------------
Risk:
  - risk_score is computed from impact x probability, never stored.
  - id must be "risk-<cuj_id>"; recommended_tests must include unit.
  - test_coverage must be a percentage in [0, 100].
  - A stale risk_score in input JSON is ignored and recomputed.
RiskRegister:
  - JSON round trip is lossless (deep-equal).
  - top_5_critical: at most five ids, all known, all with score >= 75.
  - get_risk() / critical_risks helpers.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from risk_planner.models.risk import CoverageGap, Risk, RiskRegister
from risk_planner.taxonomy.risk_taxonomy import Impact, Probability, TestType


def _risk(
    cuj_id: str = "c1",
    impact: Impact = Impact.CRITICAL,
    probability: Probability = Probability.VERY_HIGH,
    **kwargs,
) -> Risk:
    return Risk(
        id=f"risk-{cuj_id}",
        cuj_id=cuj_id,
        title=f"Risk: {cuj_id}",
        description="desc",
        impact=impact,
        probability=probability,
        **kwargs,
    )


_TS = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestRisk:
    def test_score_computed(self):
        assert _risk(impact=Impact.HIGH, probability=Probability.MEDIUM).risk_score == 30

    def test_score_in_dump(self):
        assert _risk().model_dump()["risk_score"] == 100

    def test_id_must_match_cuj(self):
        with pytest.raises(ValidationError, match="risk-c1"):
            Risk(
                id="r1",
                cuj_id="c1",
                title="t",
                description="d",
                impact="low",
                probability="low",
            )

    def test_recommended_tests_default_is_unit(self):
        assert _risk().recommended_tests == [TestType.UNIT]

    def test_recommended_tests_without_unit_rejected(self):
        with pytest.raises(ValidationError, match="unit"):
            _risk(recommended_tests=[TestType.E2E])

    @pytest.mark.parametrize("value", [-1.0, 100.1])
    def test_coverage_out_of_range(self, value):
        with pytest.raises(ValidationError):
            _risk(test_coverage=value)

    def test_stale_score_in_json_is_recomputed(self):
        payload = json.loads(_risk(impact="low", probability="low").model_dump_json())
        payload["risk_score"] = 99
        assert Risk.model_validate(payload).risk_score == 5

    def test_is_critical(self):
        assert _risk(impact="critical", probability="high").is_critical
        assert not _risk(impact="high", probability="very-high").is_critical


class TestRiskRegisterValidation:
    def test_more_than_five_top_ids_rejected(self):
        risks = [_risk(cuj_id=f"c{i}") for i in range(6)]
        with pytest.raises(ValidationError, match="at most 5"):
            RiskRegister(timestamp=_TS, risks=risks, top_5_critical=[r.id for r in risks])

    def test_unknown_top_id_rejected(self):
        with pytest.raises(ValidationError, match="unknown risk"):
            RiskRegister(timestamp=_TS, risks=[_risk()], top_5_critical=["risk-nope"])

    def test_non_critical_top_id_rejected(self):
        low = _risk(cuj_id="c9", impact="low", probability="low")
        with pytest.raises(ValidationError, match="< 75"):
            RiskRegister(timestamp=_TS, risks=[low], top_5_critical=[low.id])

    def test_empty_register_valid(self):
        reg = RiskRegister(timestamp=_TS)
        assert reg.risks == []
        assert reg.top_5_critical == []
        assert reg.total_risk_score == 0


class TestRiskRegisterRoundTrip:
    def test_json_round_trip_is_lossless(self, sample_register):
        restored = RiskRegister.model_validate_json(sample_register.model_dump_json())
        assert restored == sample_register
        assert restored.model_dump() == sample_register.model_dump()

    def test_round_trip_with_gaps_and_none_coverage(self):
        reg = RiskRegister(
            timestamp=_TS,
            repo="r",
            product="p",
            risks=[_risk(), _risk(cuj_id="c2", impact="low", probability="low")],
            top_5_critical=["risk-c1"],
            total_risk_score=105,
            coverage_gaps=[
                CoverageGap(module="a.ts", current_coverage=40, target_coverage=80, gap=40)
            ],
        )
        assert RiskRegister.model_validate_json(reg.model_dump_json()) == reg


class TestRiskRegisterHelpers:
    def test_get_risk(self, sample_register):
        assert sample_register.get_risk("risk-checkout").cuj_id == "checkout"
        assert sample_register.get_risk("risk-missing") is None

    def test_critical_risks(self, sample_register):
        assert [r.id for r in sample_register.critical_risks] == ["risk-checkout"]
