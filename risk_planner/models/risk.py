"""
Risk Register models.

``Risk`` is the engine's assessment of one CUJ failing: exactly one per CUJ,
with id ``risk-<cuj_id>``.  Its ``risk_score`` is a computed field derived
from ``impact`` and ``probability`` through the score table in
``risk_planner.taxonomy.risk_taxonomy`` — it is never set directly.  When a
serialised register is reloaded the stored score is ignored and recomputed,
so a JSON round trip is lossless.

``RiskRegister`` is the persisted artifact (``risk-register.json``):
risks sorted by score, the top critical ids, a trend total, and the coverage
gaps behind critical/high risks.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field, field_validator, model_validator

from risk_planner.taxonomy.risk_taxonomy import (
    CRITICAL_THRESHOLD,
    Impact,
    Probability,
    TestType,
    risk_score as score_for,
)

MAX_TOP_CRITICAL = 5


class Risk(BaseModel):
    """Derived failure risk for one CUJ.

    Attributes:
        id:                    ``risk-<cuj_id>``.
        cuj_id:                The journey this risk belongs to.
        title:                 Short human-readable title.
        description:           One-paragraph explanation.
        impact:                Business impact of a failure.
        probability:           Likelihood of a failure.
        affected_modules:      Deduplicated endpoint source files.
        mitigation_strategies: Rule-generated strategies, in generation order.
        test_coverage:         Journey coverage percentage (0–100), if known.
        recommended_tests:     Ordered test layers; always starts with unit.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    cuj_id: str
    title: str
    description: str
    impact: Impact
    probability: Probability
    affected_modules: list[str] = []
    mitigation_strategies: list[str] = []
    test_coverage: Optional[float] = None
    recommended_tests: list[TestType] = [TestType.UNIT]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def risk_score(self) -> int:
        """Integer score 5–100, monotonic in impact and probability."""
        return score_for(self.impact, self.probability)

    @field_validator("test_coverage")
    @classmethod
    def validate_coverage_range(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 <= v <= 100.0:
            raise ValueError(f"test_coverage must be in [0, 100], got {v}.")
        return v

    @model_validator(mode="after")
    def validate_identity(self) -> "Risk":
        if self.id != f"risk-{self.cuj_id}":
            raise ValueError(f"Risk id '{self.id}' must be 'risk-{self.cuj_id}'.")
        if TestType.UNIT not in self.recommended_tests:
            raise ValueError("recommended_tests must always include 'unit'.")
        return self

    @property
    def is_critical(self) -> bool:
        return self.risk_score >= CRITICAL_THRESHOLD


class CoverageGap(BaseModel):
    """Coverage shortfall for one module behind a critical or high risk."""

    model_config = ConfigDict(frozen=True)

    module: str
    current_coverage: float
    target_coverage: float
    gap: float


class RiskRegister(BaseModel):
    """The prioritised risk register for one product.

    Attributes:
        timestamp:        When the register was built (UTC).
        repo:             Repository analysed.
        product:          Product name.
        risks:            One risk per CUJ, sorted by score descending
                          (stable on ties).
        top_5_critical:   Up to five ids with score >= 75, in register order.
        total_risk_score: Sum of all scores — a cross-run trend signal only.
        coverage_gaps:    Modules below their tiered coverage target.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    repo: str = ""
    product: str = ""
    risks: list[Risk] = []
    top_5_critical: list[str] = []
    total_risk_score: int = 0
    coverage_gaps: list[CoverageGap] = []

    @model_validator(mode="after")
    def validate_top_critical(self) -> "RiskRegister":
        if len(self.top_5_critical) > MAX_TOP_CRITICAL:
            raise ValueError(
                f"top_5_critical holds at most {MAX_TOP_CRITICAL} ids, "
                f"got {len(self.top_5_critical)}."
            )
        by_id = {r.id: r for r in self.risks}
        for risk_id in self.top_5_critical:
            risk = by_id.get(risk_id)
            if risk is None:
                raise ValueError(f"top_5_critical references unknown risk '{risk_id}'.")
            if not risk.is_critical:
                raise ValueError(
                    f"Risk '{risk_id}' has score {risk.risk_score} < {CRITICAL_THRESHOLD}."
                )
        return self

    def get_risk(self, risk_id: str) -> Optional[Risk]:
        """Return the risk with ``risk_id``, or ``None``."""
        for risk in self.risks:
            if risk.id == risk_id:
                return risk
        return None

    @property
    def critical_risks(self) -> list[Risk]:
        """All risks in the critical band, in register order."""
        return [r for r in self.risks if r.is_critical]
