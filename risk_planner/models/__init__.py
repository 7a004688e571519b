"""
risk_planner.models — frozen pydantic v2 models.

Modules:
  signals   — CUJ, SLO and their catalogs (engine inputs).
  risk      — Risk, CoverageGap, RiskRegister.
  portfolio — test distributions, gaps, module recommendations, plan.
"""
