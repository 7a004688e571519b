"""
Test portfolio planning: pyramid gap analysis + risk-driven module targets.

Modules
-------
analyzer    : analyze() — current distribution vs target, signed gaps.
recommender : recommend() + build_portfolio_plan() — tiered per-module
              test counts, sorted by priority.
"""
