"""
Default SLO generation for CUJ catalogs that ship without objectives.

Defaults follow common SRE practice, keyed by journey criticality:

    critical → "critical API"  p50 50 / p95 150 / p99 300 ms,
               error 0.1%, availability 99.9%
    high     → "web API"       p50 100 / p95 300 / p99 500 ms,
    medium     error 1%, availability 99.5%
    low      → "batch"         p99 5000 ms, error 5%, availability 99%

None of the defaults is *strict* (p99 < 200 ms or availability > 99.9%):
a critical journey only reaches critical impact once its owners commit to
a tighter objective.  Explicit SLOs always override the defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional

from risk_planner.models.signals import SLO, CUJCatalog, SLOCatalog
from risk_planner.taxonomy.risk_taxonomy import Criticality

logger = logging.getLogger(__name__)

DEFAULT_SLO_PROFILES: dict[str, dict[str, float]] = {
    "critical": {
        "latency_p50_ms": 50,
        "latency_p95_ms": 150,
        "latency_p99_ms": 300,
        "error_rate_max": 0.001,
        "availability_min": 0.999,
    },
    "web_api": {
        "latency_p50_ms": 100,
        "latency_p95_ms": 300,
        "latency_p99_ms": 500,
        "error_rate_max": 0.01,
        "availability_min": 0.995,
    },
    "batch": {
        "latency_p99_ms": 5000,
        "error_rate_max": 0.05,
        "availability_min": 0.99,
    },
}

_PROFILE_BY_CRITICALITY: dict[Criticality, str] = {
    Criticality.CRITICAL: "critical",
    Criticality.HIGH:     "web_api",
    Criticality.MEDIUM:   "web_api",
    Criticality.LOW:      "batch",
}


def default_slo_for(cuj_id: str, criticality: Criticality) -> SLO:
    """Return the default SLO for a journey of the given criticality."""
    profile = DEFAULT_SLO_PROFILES[_PROFILE_BY_CRITICALITY[Criticality(criticality)]]
    return SLO(cuj_id=cuj_id, **profile)


def generate_slos(
    catalog: CUJCatalog,
    explicit: Optional[Iterable[SLO]] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> SLOCatalog:
    """Build an SLO catalog covering every CUJ in ``catalog``.

    Args:
        catalog:   Validated CUJ catalog.
        explicit:  SLOs that take precedence over defaults for their CUJ.
        overrides: Field values applied on top of every *default* SLO,
                   e.g. ``{"availability_min": 0.9995}``.

    Returns:
        ``SLOCatalog`` with one SLO per CUJ, in catalog order.
    """
    explicit_by_cuj: dict[str, SLO] = {}
    for slo in explicit or []:
        explicit_by_cuj.setdefault(slo.cuj_id, slo)

    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    slos: list[SLO] = []
    defaults_applied = False

    for cuj in catalog.cujs:
        slo = explicit_by_cuj.get(cuj.id)
        if slo is None:
            slo = default_slo_for(cuj.id, cuj.criticality)
            if overrides:
                slo = SLO(**{**slo.model_dump(), **overrides})
            defaults_applied = True
        slos.append(slo)

    logger.info(
        "Generated %d SLO(s) (%d explicit).",
        len(slos),
        sum(1 for c in catalog.cujs if c.id in explicit_by_cuj),
    )
    return SLOCatalog(
        slos=slos,
        timestamp=datetime.now(tz=timezone.utc),
        repo=catalog.repo,
        product=catalog.product,
        defaults_applied=defaults_applied,
    )
