"""
Coverage matching: resolve a module path against a coverage snapshot.

Endpoint files in a CUJ catalog are rarely spelled exactly like the keys in
a coverage report (``src/billing.ts`` vs ``./src/billing.ts`` vs
``/abs/repo/src/billing.ts``).  The scorer therefore never indexes the
snapshot directly; it asks a ``CoverageMatcher``.

``SuffixCoverageMatcher`` is the default heuristic:
  1. exact key match;
  2. first key (in snapshot order) where one normalised path ends with the
     other on a path-segment boundary;
  3. first key containing the module path as a substring that starts at a
     path segment and ends at a segment or extension boundary
     (``billing`` matches ``src/billing.ts``; ``a.ts`` does not match
     ``src/data.ts`` and ``src/cart.ts`` does not match ``src/cart.tsx``).

Swap in a stricter matcher by passing ``matcher=`` to ``score_cuj()`` or
``build_risk_register()`` — nothing else changes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Optional, Protocol


class CoverageMatcher(Protocol):
    """Anything that can look a module up in a coverage snapshot."""

    def lookup(self, module: str, coverage: Mapping[str, float]) -> Optional[float]:
        ...


def _normalise(path: str) -> str:
    path = path.replace("\\", "/").strip()
    while path.startswith("./"):
        path = path[2:]
    return path


def _segment_suffix(longer: str, shorter: str) -> bool:
    if not shorter or not longer.endswith(shorter):
        return False
    if len(longer) == len(shorter):
        return True
    return longer[-len(shorter) - 1] == "/" or shorter.startswith("/")


def _bounded_substring(haystack: str, needle: str) -> bool:
    start = haystack.find(needle)
    while start != -1:
        end = start + len(needle)
        head_ok = start == 0 or haystack[start - 1] == "/"
        tail_ok = end == len(haystack) or haystack[end] in "/."
        if head_ok and tail_ok:
            return True
        start = haystack.find(needle, start + 1)
    return False


class SuffixCoverageMatcher:
    """Exact → path-suffix → substring lookup."""

    def lookup(self, module: str, coverage: Mapping[str, float]) -> Optional[float]:
        if module in coverage:
            return float(coverage[module])

        target = _normalise(module)
        if not target:
            return None

        for key, value in coverage.items():
            candidate = _normalise(key)
            if _segment_suffix(candidate, target) or _segment_suffix(target, candidate):
                return float(value)

        for key, value in coverage.items():
            if _bounded_substring(_normalise(key), target):
                return float(value)

        return None


class ExactCoverageMatcher:
    """Strict matcher: only identical (normalised) paths match."""

    def lookup(self, module: str, coverage: Mapping[str, float]) -> Optional[float]:
        target = _normalise(module)
        for key, value in coverage.items():
            if _normalise(key) == target:
                return float(value)
        return None


DEFAULT_MATCHER: CoverageMatcher = SuffixCoverageMatcher()


def lowest_coverage(
    modules: Iterable[str],
    coverage: Optional[Mapping[str, float]],
    matcher: Optional[CoverageMatcher] = None,
) -> Optional[float]:
    """Return the lowest matched coverage among ``modules`` (weakest link).

    Returns ``None`` when the snapshot is absent or no module matches.
    """
    if not coverage:
        return None
    matcher = matcher or DEFAULT_MATCHER
    found = [
        pct for pct in (matcher.lookup(m, coverage) for m in modules)
        if pct is not None
    ]
    return min(found) if found else None
