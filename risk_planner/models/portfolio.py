"""
Test portfolio models.

``TestDistribution`` is the observed mix of test files per layer, with
derived percentages.  ``TargetDistribution`` is the pyramid to rebalance
towards (70/20/10 by default).  ``PortfolioGaps`` holds the signed
differences target − current: a positive ``unit_gap`` means unit tests are
under-represented; a negative ``e2e_gap`` flags a pyramid inversion.

``ModuleRecommendation`` is the per-module test-count target driven by the
highest-scoring risk touching that module, and ``PortfolioPlan`` bundles all
of the above for rendering.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from risk_planner.taxonomy.risk_taxonomy import Impact


def _percent(part: int, total: int) -> float:
    if total == 0:
        return 0.0
    return part / total * 100.0


class TestCounts(BaseModel):
    """Number of test files per pyramid layer."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    unit: int = 0
    integration: int = 0
    e2e: int = 0

    @field_validator("unit", "integration", "e2e")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Test count must be >= 0, got {v}.")
        return v


class TestDistribution(TestCounts):
    """Observed test mix with derived total and percentages.

    Percentages are 0.0 (never NaN) when there are no tests at all.
    """

    __test__ = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return self.unit + self.integration + self.e2e

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unit_percent(self) -> float:
        return _percent(self.unit, self.total)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def integration_percent(self) -> float:
        return _percent(self.integration, self.total)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def e2e_percent(self) -> float:
        return _percent(self.e2e, self.total)


class TargetDistribution(BaseModel):
    """Target pyramid percentages and CI time budget.

    Attributes:
        unit_percent:        Target share of unit tests.
        service_percent:     Target share of integration (service) tests.
        e2e_percent:         Target share of end-to-end tests.
        max_ci_time_minutes: Advisory CI runtime budget; reported, not enforced.
    """

    model_config = ConfigDict(frozen=True)

    unit_percent: float = 70.0
    service_percent: float = 20.0
    e2e_percent: float = 10.0
    max_ci_time_minutes: float = 12.0

    @field_validator("unit_percent", "service_percent", "e2e_percent", "max_ci_time_minutes")
    @classmethod
    def non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Target value must be >= 0, got {v}.")
        return v

    @property
    def total_percent(self) -> float:
        return self.unit_percent + self.service_percent + self.e2e_percent

    @classmethod
    def from_overrides(
        cls,
        overrides: Optional[dict[str, Any]] = None,
        base: Optional["TargetDistribution"] = None,
    ) -> "TargetDistribution":
        """Apply an external override dict on top of ``base`` (or defaults).

        Recognised keys: ``unit_percent``, ``service_percent``,
        ``e2e_percent``, ``max_ci_time_min``.  ``None`` values are skipped.
        """
        values = (base or cls()).model_dump()
        for key, val in (overrides or {}).items():
            if val is None:
                continue
            field = "max_ci_time_minutes" if key == "max_ci_time_min" else key
            if field not in values:
                raise ValueError(f"Unknown target override '{key}'.")
            values[field] = val
        return cls(**values)


class PortfolioGaps(BaseModel):
    """Signed target − current percentage-point gaps."""

    model_config = ConfigDict(frozen=True)

    unit_gap: float
    integration_gap: float
    e2e_gap: float

    @property
    def pyramid_inverted(self) -> bool:
        """``True`` when e2e tests exceed their target share."""
        return self.e2e_gap < 0


class PortfolioAnalysis(BaseModel):
    """Output of the portfolio analyzer."""

    model_config = ConfigDict(frozen=True)

    current: TestDistribution
    target: TargetDistribution
    gaps: PortfolioGaps


class RecommendedTests(BaseModel):
    """Absolute test-count target for one module.

    ``cdc``, ``property`` and ``approval`` are ``None`` when not recommended.
    """

    model_config = ConfigDict(frozen=True)

    unit: int
    integration: int
    e2e: int
    cdc: Optional[int] = None
    property: Optional[int] = None
    approval: Optional[int] = None


class ModuleRecommendation(BaseModel):
    """Test-count recommendation for one module.

    Attributes:
        module:            Module (source file) path.
        current_tests:     Test files found for this module per layer.
        recommended_tests: Absolute target counts.
        reasoning:         Ordered explanation lines.
        priority:          Impact of the driving (highest-score) risk.
        driving_risk_id:   Id of that risk.
    """

    model_config = ConfigDict(frozen=True)

    module: str
    current_tests: TestCounts = TestCounts()
    recommended_tests: RecommendedTests
    reasoning: list[str] = []
    priority: Impact
    driving_risk_id: Optional[str] = None


class PortfolioPlan(BaseModel):
    """Gap analysis plus risk-driven module recommendations."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    repo: str = ""
    product: str = ""
    current_distribution: TestDistribution
    target_distribution: TargetDistribution
    gaps: PortfolioGaps
    recommendations: list[ModuleRecommendation] = []
