"""
Portfolio analyzer: compare an observed test mix with the target pyramid.

    gap = target% − current%

A positive ``unit_gap`` means unit tests are under-represented.  A negative
``e2e_gap`` flags a pyramid inversion — e2e tests above target are
candidates for trimming or replacement by lower layers.  Zero tests is a
valid state: every percentage is 0.0 and the gaps equal the targets.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from risk_planner.models.portfolio import (
    PortfolioAnalysis,
    PortfolioGaps,
    TargetDistribution,
    TestCounts,
    TestDistribution,
)

logger = logging.getLogger(__name__)


def to_distribution(counts: TestCounts | dict[str, int]) -> TestDistribution:
    """Coerce raw counts (model or ``{unit, integration, e2e}`` dict)."""
    if isinstance(counts, TestDistribution):
        return counts
    if isinstance(counts, TestCounts):
        return TestDistribution(**counts.model_dump())
    return TestDistribution(
        unit=counts.get("unit", 0),
        integration=counts.get("integration", 0),
        e2e=counts.get("e2e", 0),
    )


def calculate_gaps(current: TestDistribution, target: TargetDistribution) -> PortfolioGaps:
    return PortfolioGaps(
        unit_gap=target.unit_percent - current.unit_percent,
        integration_gap=target.service_percent - current.integration_percent,
        e2e_gap=target.e2e_percent - current.e2e_percent,
    )


def analyze(
    counts: TestCounts | dict[str, int],
    target: Optional[TargetDistribution] = None,
) -> PortfolioAnalysis:
    """Compute the current distribution and signed gaps against ``target``.

    Args:
        counts: Test file counts per layer.
        target: Target pyramid; defaults to 70/20/10.

    Returns:
        ``PortfolioAnalysis`` with ``current``, ``target`` and ``gaps``.
    """
    current = to_distribution(counts)
    target = target or TargetDistribution()

    if not math.isclose(target.total_percent, 100.0, abs_tol=0.01):
        logger.warning(
            "Target distribution sums to %.1f%%, not 100%%; gaps are still computed.",
            target.total_percent,
        )

    gaps = calculate_gaps(current, target)
    if gaps.pyramid_inverted:
        logger.info(
            "Pyramid inversion: e2e at %.1f%% vs target %.1f%%.",
            current.e2e_percent,
            target.e2e_percent,
        )

    return PortfolioAnalysis(current=current, target=target, gaps=gaps)
