"""
Tests for risk_planner/risk/matching.py.

What we test
------------
SuffixCoverageMatcher:
  - Exact key wins over any fuzzy candidate.
  - "./" prefixes and backslashes are normalised.
  - Suffix matches respect path-segment boundaries (no "bbilling.ts").
  - Substring fallback only on segment boundaries ("a.ts" never matches
    "src/data.ts", "src/cart.ts" never matches "src/cart.tsx"); first key
    in snapshot order wins.
  - No match -> None.
ExactCoverageMatcher:
  - Only normalised-identical paths match.
lowest_coverage():
  - Weakest link: the minimum over matched modules.
  - None / empty snapshot / no matches -> None.
  - A custom matcher is honoured.
"""

from __future__ import annotations

from typing import Optional

from risk_planner.risk.matching import (
    ExactCoverageMatcher,
    SuffixCoverageMatcher,
    lowest_coverage,
)


class TestSuffixCoverageMatcher:
    def setup_method(self):
        self.matcher = SuffixCoverageMatcher()

    def test_exact_key_wins(self):
        cov = {"/repo/src/billing.ts": 10.0, "src/billing.ts": 90.0}
        assert self.matcher.lookup("src/billing.ts", cov) == 90.0

    def test_dot_slash_prefix_normalised(self):
        assert self.matcher.lookup("src/billing.ts", {"./src/billing.ts": 42.0}) == 42.0

    def test_backslashes_normalised(self):
        assert self.matcher.lookup("src\\billing.ts", {"src/billing.ts": 42.0}) == 42.0

    def test_absolute_key_suffix(self):
        assert self.matcher.lookup("src/billing.ts", {"/home/ci/repo/src/billing.ts": 33.0}) == 33.0

    def test_key_shorter_than_module(self):
        assert self.matcher.lookup("services/api/src/billing.ts", {"src/billing.ts": 12.0}) == 12.0

    def test_suffix_respects_segment_boundary(self):
        cov = {"src/ebilling.ts": 5.0, "lib/billing.ts": 70.0}
        assert self.matcher.lookup("billing.ts", cov) == 70.0

    def test_substring_fallback(self):
        assert self.matcher.lookup("billing", {"src/billing.ts": 64.0}) == 64.0

    def test_substring_needs_leading_segment_boundary(self):
        assert self.matcher.lookup("a.ts", {"src/data.ts": 10.0}) is None

    def test_substring_needs_trailing_boundary(self):
        assert self.matcher.lookup("src/cart.ts", {"src/cart.tsx": 95.0}) is None

    def test_bounded_substring_later_occurrence(self):
        assert self.matcher.lookup("cart", {"src/mycart/cart.ts": 33.0}) == 33.0

    def test_first_candidate_in_snapshot_order(self):
        cov = {"a/billing.ts": 20.0, "b/billing.ts": 80.0}
        assert self.matcher.lookup("billing.ts", cov) == 20.0

    def test_no_match(self):
        assert self.matcher.lookup("src/orders.ts", {"src/billing.ts": 64.0}) is None

    def test_blank_module(self):
        assert self.matcher.lookup("  ", {"src/billing.ts": 64.0}) is None


class TestExactCoverageMatcher:
    def test_normalised_equality(self):
        assert ExactCoverageMatcher().lookup("src/a.ts", {"./src/a.ts": 50.0}) == 50.0

    def test_suffix_does_not_match(self):
        assert ExactCoverageMatcher().lookup("a.ts", {"src/a.ts": 50.0}) is None


class TestLowestCoverage:
    def test_weakest_link(self):
        cov = {"src/a.ts": 90.0, "src/b.ts": 30.0}
        assert lowest_coverage(["src/a.ts", "src/b.ts"], cov) == 30.0

    def test_unmatched_modules_ignored(self):
        cov = {"src/a.ts": 90.0}
        assert lowest_coverage(["src/a.ts", "src/zzz.ts"], cov) == 90.0

    def test_none_snapshot(self):
        assert lowest_coverage(["src/a.ts"], None) is None

    def test_empty_snapshot(self):
        assert lowest_coverage(["src/a.ts"], {}) is None

    def test_no_modules(self):
        assert lowest_coverage([], {"src/a.ts": 10.0}) is None

    def test_custom_matcher(self):
        class Always50:
            def lookup(self, module: str, coverage) -> Optional[float]:
                return 50.0

        assert lowest_coverage(["x"], {"y": 1.0}, Always50()) == 50.0
