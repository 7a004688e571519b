"""
Shared pytest fixtures for the risk-planner test suite.

Provides:
  - Sample CUJs covering each criticality, with and without dependencies.
  - A matching SLO list (one strict, one relaxed).
  - A coverage snapshot keyed the way coverage tools usually spell paths.
  - A fully built ``RiskRegister`` over all of the above.
  - ``write_json``: helper fixture that writes a payload into ``tmp_path``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

from risk_planner.models.risk import RiskRegister
from risk_planner.models.signals import CUJ, SLO, Endpoint
from risk_planner.risk.register import build_risk_register
from risk_planner.taxonomy.risk_taxonomy import Criticality

FIXED_TS = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_ts() -> datetime:
    return FIXED_TS


# ── Sample signals ────────────────────────────────────────────────────────────

@pytest.fixture
def checkout_cuj() -> CUJ:
    """Critical journey with four dependencies and two source files."""
    return CUJ(
        id="checkout",
        name="Checkout purchase",
        criticality=Criticality.CRITICAL,
        dependencies=["payments", "inventory", "tax", "shipping"],
        endpoints=[
            Endpoint(method="POST", path="/api/checkout", file="src/checkout.ts"),
            Endpoint(method="POST", path="/api/payments", file="src/billing.ts"),
        ],
    )


@pytest.fixture
def search_cuj() -> CUJ:
    """High-criticality journey with one dependency."""
    return CUJ(
        id="search",
        name="Product search",
        criticality=Criticality.HIGH,
        dependencies=["search-index"],
        endpoints=[Endpoint(path="/api/search", file="src/search.ts")],
    )


@pytest.fixture
def profile_cuj() -> CUJ:
    """Low-criticality journey with no dependencies and no files."""
    return CUJ(
        id="profile",
        name="Edit profile",
        criticality=Criticality.LOW,
        endpoints=[Endpoint(method="PUT", path="/api/profile")],
    )


@pytest.fixture
def sample_cujs(checkout_cuj: CUJ, search_cuj: CUJ, profile_cuj: CUJ) -> list[CUJ]:
    return [profile_cuj, search_cuj, checkout_cuj]


@pytest.fixture
def sample_slos() -> list[SLO]:
    return [
        SLO(cuj_id="checkout", latency_p99_ms=150, availability_min=0.9995),
        SLO(cuj_id="search", latency_p99_ms=500, availability_min=0.995),
    ]


@pytest.fixture
def sample_coverage() -> dict[str, float]:
    return {
        "./src/checkout.ts": 72.0,
        "src/billing.ts": 41.5,
        "src/search.ts": 55.0,
        "src/unrelated.ts": 10.0,
    }


@pytest.fixture
def sample_register(
    sample_cujs: list[CUJ],
    sample_slos: list[SLO],
    sample_coverage: dict[str, float],
) -> RiskRegister:
    return build_risk_register(
        sample_cujs,
        sample_slos,
        sample_coverage,
        repo="shop-repo",
        product="shop",
        timestamp=FIXED_TS,
    )


# ── File helpers ──────────────────────────────────────────────────────────────

@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Return a function ``(name, payload) -> Path`` writing JSON under tmp_path."""

    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
