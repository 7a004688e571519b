"""
Signal models — the already-validated inputs the engine scores.

``CUJ`` is a Critical User Journey: a named end-to-end flow with a business
criticality, the external services it depends on, and the endpoints that
implement it.  ``SLO`` binds at most one reliability target to a CUJ.

Coverage is deliberately NOT a model: a coverage snapshot is a plain
``Mapping[str, float]`` of module path → percentage (0–100).  The whole
snapshot may be absent (``None``) and every consumer degrades gracefully.

All models are frozen — signals are immutable for the duration of a run.
Loose external JSON is validated into these models once, at the load
boundary (``risk_planner.ingestion.loaders``); the scoring core never
re-checks shape.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from risk_planner.taxonomy.risk_taxonomy import Criticality

CoverageSnapshot = Mapping[str, float]

TrafficVolume = Literal["very-high", "high", "medium", "low"]
RevenueImpact = Literal["critical", "high", "medium", "low"]

_HTTP_METHODS: frozenset[str] = frozenset(
    {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"}
)


class Endpoint(BaseModel):
    """One HTTP endpoint participating in a journey.

    Attributes:
        method: HTTP verb, upper-cased.
        path:   Route path, e.g. ``"/api/checkout"``.
        file:   Source file implementing the route, when known.  Only
                endpoints with a file contribute to a risk's affected modules.
    """

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    path: str
    file: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def coerce_route_string(cls, data: Any) -> Any:
        """Accept ``"POST /checkout"`` or ``"/checkout"`` shorthand."""
        if isinstance(data, str):
            parts = data.split(None, 1)
            if len(parts) == 2 and parts[0].upper() in _HTTP_METHODS:
                return {"method": parts[0], "path": parts[1].strip()}
            return {"path": data.strip()}
        return data

    @field_validator("method")
    @classmethod
    def upper_method(cls, v: str) -> str:
        return v.upper()


class CUJ(BaseModel):
    """A Critical User Journey.

    Attributes:
        id:             Unique identifier, e.g. ``"checkout-purchase"``.
        name:           Human-readable journey name.
        criticality:    Business criticality (``Criticality``).
        dependencies:   Ordered names of external services the journey calls.
        endpoints:      Endpoints implementing the journey.
        description:    Optional free-form description.
        user_flow:      Optional ordered user steps.
        traffic_volume: Optional traffic class.
        revenue_impact: Optional revenue class.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    criticality: Criticality
    dependencies: list[str] = []
    endpoints: list[Endpoint] = []
    description: Optional[str] = None
    user_flow: Optional[list[str]] = None
    traffic_volume: Optional[TrafficVolume] = None
    revenue_impact: Optional[RevenueImpact] = None

    @field_validator("id")
    @classmethod
    def id_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("CUJ id must not be empty.")
        return v.strip()

    @property
    def endpoint_files(self) -> list[str]:
        """Endpoint source files, in endpoint order, deduplicated."""
        seen: dict[str, None] = {}
        for ep in self.endpoints:
            if ep.file:
                seen.setdefault(ep.file, None)
        return list(seen)


class CUJCatalog(BaseModel):
    """A catalog of CUJs for one product.

    Raises:
        ValueError: If two CUJs share an id.
    """

    model_config = ConfigDict(frozen=True)

    cujs: list[CUJ] = []
    timestamp: Optional[datetime] = None
    repo: Optional[str] = None
    product: Optional[str] = None

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "CUJCatalog":
        seen: set[str] = set()
        for cuj in self.cujs:
            if cuj.id in seen:
                raise ValueError(f"Duplicate CUJ id '{cuj.id}'.")
            seen.add(cuj.id)
        return self


class SLO(BaseModel):
    """Service Level Objective bound to one CUJ.

    Attributes:
        cuj_id:             The CUJ this objective belongs to.
        latency_p50_ms:     Median latency target in milliseconds.
        latency_p95_ms:     95th percentile latency target.
        latency_p99_ms:     99th percentile latency target.
        availability_min:   Minimum availability in (0, 1].
        error_rate_max:     Maximum error rate in [0, 1].
        throughput_min_rps: Minimum sustained throughput (requests/second).
    """

    model_config = ConfigDict(frozen=True)

    cuj_id: str
    latency_p50_ms: Optional[float] = None
    latency_p95_ms: Optional[float] = None
    latency_p99_ms: Optional[float] = None
    availability_min: Optional[float] = None
    error_rate_max: Optional[float] = None
    throughput_min_rps: Optional[float] = None

    @field_validator("latency_p50_ms", "latency_p95_ms", "latency_p99_ms", "throughput_min_rps")
    @classmethod
    def non_negative(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError(f"SLO value must be >= 0, got {v}.")
        return v

    @field_validator("availability_min")
    @classmethod
    def validate_availability(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 < v <= 1.0:
            raise ValueError(f"availability_min must be in (0, 1], got {v}.")
        return v

    @field_validator("error_rate_max")
    @classmethod
    def validate_error_rate(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 <= v <= 1.0:
            raise ValueError(f"error_rate_max must be in [0, 1], got {v}.")
        return v

    @property
    def is_strict(self) -> bool:
        """``True`` when p99 latency < 200 ms or availability > 99.9%."""
        if self.latency_p99_ms is not None and self.latency_p99_ms < 200:
            return True
        return self.availability_min is not None and self.availability_min > 0.999


class SLOCatalog(BaseModel):
    """A catalog of SLOs for one product."""

    model_config = ConfigDict(frozen=True)

    slos: list[SLO] = []
    timestamp: Optional[datetime] = None
    repo: Optional[str] = None
    product: Optional[str] = None
    defaults_applied: bool = False


def validate_coverage_snapshot(raw: Mapping[str, Any]) -> dict[str, float]:
    """Validate a raw module → percentage mapping.

    Args:
        raw: Parsed JSON object.

    Returns:
        A new ``dict[str, float]`` preserving key order.

    Raises:
        ValueError: If any value is not a number in [0, 100].
    """
    snapshot: dict[str, float] = {}
    for module, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Coverage for '{module}' must be a number, got {value!r}.")
        if not 0.0 <= float(value) <= 100.0:
            raise ValueError(f"Coverage for '{module}' must be in [0, 100], got {value}.")
        snapshot[str(module)] = float(value)
    return snapshot
