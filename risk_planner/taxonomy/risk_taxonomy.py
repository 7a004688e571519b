"""
Risk taxonomy: the closed vocabularies shared by the scorer, the register
builder and the portfolio planner.

Four orthogonal dimensions describe every journey risk:
  - ``Criticality``  — the business weight assigned to a CUJ by its owners.
  - ``Impact``       — the *how bad*: derived from criticality + SLO strictness.
  - ``Probability``  — the *how likely*: derived from coverage + dependencies.
  - ``TestType``     — the test layers a risk can recommend.

``Priority`` reuses the impact vocabulary; a module recommendation inherits
the impact of the risk that drives it.

Rank tables (``*_RANK``) give a total order on each enum, lowest rank = least
severe.  They are the only source of ordering used for sorting.

This module has NO imports from any other ``risk_planner`` package.
"""

from enum import StrEnum


class Criticality(StrEnum):
    """Business criticality of a Critical User Journey."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Impact(StrEnum):
    """Business impact of a journey failure."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Probability(StrEnum):
    """Likelihood of a journey failure."""

    VERY_HIGH = "very-high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TestType(StrEnum):
    """Test layers a risk may recommend, in recommendation order."""

    __test__ = False

    UNIT = "unit"
    INTEGRATION = "integration"
    E2E = "e2e"
    CDC = "cdc"
    """Consumer-driven contract tests (e.g. Pact)."""

    PROPERTY = "property"
    CHAOS = "chaos"


Priority = Impact


IMPACT_RANK: dict[Impact, int] = {
    Impact.LOW:      0,
    Impact.MEDIUM:   1,
    Impact.HIGH:     2,
    Impact.CRITICAL: 3,
}

PROBABILITY_RANK: dict[Probability, int] = {
    Probability.LOW:       0,
    Probability.MEDIUM:    1,
    Probability.HIGH:      2,
    Probability.VERY_HIGH: 3,
}

# Sort key for recommendations: critical first.
PRIORITY_ORDER: dict[Impact, int] = {
    Impact.CRITICAL: 0,
    Impact.HIGH:     1,
    Impact.MEDIUM:   2,
    Impact.LOW:      3,
}


# ── Risk score table ──────────────────────────────────────────────────────────
#
#   risk_score = IMPACT_WEIGHT[impact] * PROBABILITY_MULTIPLIER[probability]
#
#                 low  medium  high  very-high
#   critical       25      50    75        100
#   high           15      30    45         60
#   medium         10      20    30         40
#   low             5      10    15         20

IMPACT_WEIGHT: dict[Impact, int] = {
    Impact.CRITICAL: 25,
    Impact.HIGH:     15,
    Impact.MEDIUM:   10,
    Impact.LOW:       5,
}

PROBABILITY_MULTIPLIER: dict[Probability, int] = {
    Probability.VERY_HIGH: 4,
    Probability.HIGH:      3,
    Probability.MEDIUM:    2,
    Probability.LOW:       1,
}

CRITICAL_THRESHOLD = 75
HIGH_THRESHOLD = 50
MEDIUM_THRESHOLD = 25


def risk_score(impact: Impact, probability: Probability) -> int:
    """Return the integer risk score (5–100) for an impact/probability pair."""
    return IMPACT_WEIGHT[Impact(impact)] * PROBABILITY_MULTIPLIER[Probability(probability)]


def band_for_score(score: int) -> Impact:
    """Map a risk score onto its band: >=75 critical, >=50 high, >=25 medium."""
    if score >= CRITICAL_THRESHOLD:
        return Impact.CRITICAL
    if score >= HIGH_THRESHOLD:
        return Impact.HIGH
    if score >= MEDIUM_THRESHOLD:
        return Impact.MEDIUM
    return Impact.LOW
