"""
Tests for risk_planner/reporting/formatters.py.

What we test
------------
format_risk_table():
  - Non-empty string with a header row.
  - Top-critical rows are starred; unknown coverage shows "-".
  - BAND column comes from band_for_score(), not the impact field.
  - Empty register returns a friendly message.
  - limit truncates and reports the remainder.
format_distribution_table():
  - One row per layer with signed gaps; inversion warning when e2e is over target.
"""

from __future__ import annotations

from datetime import datetime, timezone

from risk_planner.models.portfolio import TestDistribution
from risk_planner.models.risk import RiskRegister
from risk_planner.portfolio.analyzer import analyze
from risk_planner.reporting.formatters import format_distribution_table, format_risk_table


class TestFormatRiskTable:
    def test_header_and_rows(self, sample_register):
        out = format_risk_table(sample_register)
        assert "RISK" in out
        assert "risk-checkout" in out
        assert "Total risk score: 150" in out

    def test_top_critical_starred(self, sample_register):
        lines = format_risk_table(sample_register).splitlines()
        checkout = next(line for line in lines if "risk-checkout" in line)
        search = next(line for line in lines if "risk-search" in line)
        assert checkout.startswith("*")
        assert search.startswith(" ")

    def test_band_column_from_score(self, sample_register):
        lines = format_risk_table(sample_register).splitlines()
        assert "BAND" in lines[0]
        search = next(line for line in lines if "risk-search" in line)
        # high impact, high probability -> 45, which lands in the medium band
        assert search.split()[2:6] == ["high", "high", "medium", "45"]

    def test_unknown_coverage_dash(self, sample_register):
        lines = format_risk_table(sample_register).splitlines()
        profile = next(line for line in lines if "risk-profile" in line)
        assert profile.rstrip().endswith("-")

    def test_empty_register(self):
        out = format_risk_table(RiskRegister(timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc)))
        assert "empty" in out

    def test_limit(self, sample_register):
        out = format_risk_table(sample_register, limit=1)
        assert "risk-search" not in out
        assert "and 2 more" in out


class TestFormatDistributionTable:
    def test_rows_and_gaps(self):
        out = format_distribution_table(analyze(TestDistribution(unit=70, integration=20, e2e=10)))
        assert "unit" in out
        assert "integration" in out
        assert "70.0%" in out
        assert "WARN" not in out

    def test_inversion_warning(self):
        out = format_distribution_table(analyze(TestDistribution(unit=10, integration=10, e2e=80)))
        assert "-70.0%" in out
        assert "[WARN] Pyramid inversion" in out
