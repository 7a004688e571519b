"""
Risk Register builder: scores every CUJ, sorts, and derives the top critical
risks and coverage gaps.

Usage flow
----------
1. index_slos(slos)                       -> dict[cuj_id, SLO]   (first wins)
2. score_cuj() once per CUJ               -> list[Risk]          (strict 1:1)
3. rank_risks(risks)                      -> stable sort by score desc
4. top_critical_ids(ranked)               -> <= 5 ids with score >= 75
5. identify_coverage_gaps(ranked, ...)    -> gaps behind critical/high risks

``build_risk_register()`` runs the whole flow and returns a ``RiskRegister``.
It is re-entrant: no module-level state, a fresh register per call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Optional

from risk_planner.models.risk import MAX_TOP_CRITICAL, CoverageGap, Risk, RiskRegister
from risk_planner.models.signals import CUJ, SLO
from risk_planner.risk.matching import DEFAULT_MATCHER, CoverageMatcher
from risk_planner.risk.scorer import score_cuj
from risk_planner.taxonomy.risk_taxonomy import CRITICAL_THRESHOLD, Impact

logger = logging.getLogger(__name__)

DEFAULT_COVERAGE_TARGETS: dict[Impact, float] = {
    Impact.CRITICAL: 80.0,
    Impact.HIGH:     60.0,
}


def index_slos(slos: Iterable[SLO], cuj_ids: Optional[set[str]] = None) -> dict[str, SLO]:
    """Map cuj_id → SLO.  The first SLO for a CUJ wins; later ones are ignored."""
    index: dict[str, SLO] = {}
    for slo in slos:
        if cuj_ids is not None and slo.cuj_id not in cuj_ids:
            logger.debug("SLO references unknown CUJ '%s' — ignored.", slo.cuj_id)
            continue
        if slo.cuj_id in index:
            logger.debug("Duplicate SLO for CUJ '%s' — keeping the first.", slo.cuj_id)
            continue
        index[slo.cuj_id] = slo
    return index


def rank_risks(risks: list[Risk]) -> list[Risk]:
    """Sort by risk_score descending; equal scores keep input order."""
    return sorted(risks, key=lambda r: -r.risk_score)


def top_critical_ids(
    ranked: list[Risk],
    n: int = MAX_TOP_CRITICAL,
    threshold: int = CRITICAL_THRESHOLD,
) -> list[str]:
    """First ``n`` ranked ids with score >= ``threshold``.  Never padded."""
    return [r.id for r in ranked if r.risk_score >= threshold][:n]


def identify_coverage_gaps(
    ranked: list[Risk],
    coverage: Optional[Mapping[str, float]],
    matcher: Optional[CoverageMatcher] = None,
    targets: Optional[Mapping[Impact, float]] = None,
) -> list[CoverageGap]:
    """Coverage gaps for modules behind critical/high-impact risks.

    Each module gets the highest target among the risks touching it
    (80 for critical impact, 60 for high by default).  A gap is emitted only
    when the module's coverage is known and below target.  Modules appear in
    first-seen order over ``ranked``.
    """
    if not coverage:
        return []
    matcher = matcher or DEFAULT_MATCHER
    targets = targets or DEFAULT_COVERAGE_TARGETS

    module_targets: dict[str, float] = {}
    for risk in ranked:
        target = targets.get(risk.impact)
        if target is None:
            continue
        for module in risk.affected_modules:
            module_targets[module] = max(module_targets.get(module, 0.0), target)

    gaps: list[CoverageGap] = []
    for module, target in module_targets.items():
        current = matcher.lookup(module, coverage)
        if current is None:
            continue
        gap = round(target - current, 2)
        if gap > 0:
            gaps.append(
                CoverageGap(
                    module=module,
                    current_coverage=current,
                    target_coverage=target,
                    gap=gap,
                )
            )
    return gaps


def build_risk_register(
    cujs: list[CUJ],
    slos: list[SLO],
    coverage: Optional[Mapping[str, float]] = None,
    *,
    repo: str = "",
    product: str = "",
    matcher: Optional[CoverageMatcher] = None,
    timestamp: Optional[datetime] = None,
    top_n: int = MAX_TOP_CRITICAL,
    coverage_targets: Optional[Mapping[Impact, float]] = None,
) -> RiskRegister:
    """Build a ``RiskRegister`` from validated CUJs, SLOs and coverage.

    Args:
        cujs:               Validated journeys.  Zero CUJs → empty register.
        slos:               Validated SLOs (left-joined by ``cuj_id``).
        coverage:           Module → percentage snapshot, or ``None``.
        repo:               Repository label for the artifact.
        product:            Product label for the artifact.
        matcher:            Coverage matcher override.
        timestamp:          Build time; defaults to now (UTC).
        top_n:              Max critical ids to list (at most 5).
        coverage_targets:   Impact → coverage target override.

    Returns:
        A fresh ``RiskRegister``.
    """
    slo_index = index_slos(slos, {c.id for c in cujs})

    risks = [score_cuj(cuj, slo_index.get(cuj.id), coverage, matcher) for cuj in cujs]
    ranked = rank_risks(risks)

    top_ids = top_critical_ids(ranked, n=min(top_n, MAX_TOP_CRITICAL))
    gaps = identify_coverage_gaps(ranked, coverage, matcher, coverage_targets)
    total = sum(r.risk_score for r in ranked)

    logger.info(
        "Risk register: %d risks, %d critical (score >= %d), %d coverage gaps, total=%d",
        len(ranked),
        sum(1 for r in ranked if r.is_critical),
        CRITICAL_THRESHOLD,
        len(gaps),
        total,
    )

    return RiskRegister(
        timestamp=timestamp or datetime.now(tz=timezone.utc),
        repo=repo,
        product=product,
        risks=ranked,
        top_5_critical=top_ids,
        total_risk_score=total,
        coverage_gaps=gaps,
    )
