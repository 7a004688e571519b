"""
risk_planner.reporting — render and persist engine outputs.

This package never computes risk or portfolio data; it only formats and
writes what the engine returns.

Modules:
  export     — JSON/CSV writers (risk-register.json, portfolio-plan.json).
  markdown   — PORTFOLIO-PLAN.md renderer.
  formatters — ASCII terminal tables for Typer CLI commands.
"""
