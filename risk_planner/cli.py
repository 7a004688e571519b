"""
risk-planner — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load and validate inputs (the only place JSON is checked).
  4. Run the pure engine.
  5. Write artifacts and report the result to stdout.

Install and run::

    pip install -e .
    risk-planner --help
    risk-planner validate-config
    risk-planner define-slos   --repo . --product shop
    risk-planner risk-register --repo . --product shop
    risk-planner scan-tests    --repo . --product shop
    risk-planner portfolio-plan --repo . --product shop
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="risk-planner",
    help="Risk register and test-portfolio planner driven by CUJs, SLOs and coverage.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pydantic import ValidationError

    from risk_planner.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config, command: str, product: Optional[str] = None) -> None:
    """Set up logging from config, stamping records with the command."""
    from risk_planner.utils.logging import configure_logging
    configure_logging(config.logging, command=command, product=product)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    pf = config.portfolio

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  QA root:          {config.paths.qa_root}")
    typer.echo(f"  Top critical:     {config.risk.top_n}")
    typer.echo(
        f"  Coverage targets: critical={config.risk.critical_coverage_target:g}% "
        f"high={config.risk.high_coverage_target:g}%"
    )
    typer.echo(
        f"  Target pyramid:   {pf.unit_percent:g}/{pf.service_percent:g}/{pf.e2e_percent:g} "
        f"(CI budget {pf.max_ci_time_minutes:g} min)"
    )
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("define-slos")
def define_slos(
    repo: str = typer.Option(".", "--repo", help="Repository root."),
    product: str = typer.Option(..., "--product", help="Product name."),
    cuj_file: Optional[str] = typer.Option(
        None, "--cuj-file", help="CUJ catalog JSON (default: <analyses>/cuj-catalog.json)."
    ),
    slos_file: Optional[str] = typer.Option(
        None, "--slos-file", help="Existing SLOs to keep; defaults fill the rest."
    ),
    output: Optional[str] = typer.Option(
        None, "--output", help="Output path (default: <analyses>/slos.json)."
    ),
    latency_p99_ms: Optional[float] = typer.Option(
        None, "--latency-p99-ms", min=0, help="Override p99 latency on every default SLO."
    ),
    error_rate_max: Optional[float] = typer.Option(
        None, "--error-rate-max", min=0, max=1, help="Override max error rate (0-1)."
    ),
    availability_min: Optional[float] = typer.Option(
        None, "--availability-min", max=1, help="Override min availability (0-1]."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Generate one SLO per CUJ from criticality-based defaults.

    Override flags apply to generated defaults only; SLOs from --slos-file
    are kept as written.

    \b
    Defaults:
      critical      p99 300 ms, availability 99.9%
      high / medium p99 500 ms, availability 99.5%
      low           p99 5000 ms, availability 99%
    """
    from pydantic import ValidationError

    from risk_planner.ingestion.loaders import (
        InputValidationError,
        load_cuj_catalog,
        load_slo_catalog,
    )
    from risk_planner.slo.defaults import generate_slos

    config = _load_config_or_exit(config_path)
    _configure_logging(config, "define-slos", product)
    paths = config.paths.for_product(repo, product)

    cuj_path = Path(cuj_file) if cuj_file else paths.analyses / "cuj-catalog.json"
    try:
        catalog = load_cuj_catalog(cuj_path)
        explicit = load_slo_catalog(Path(slos_file)).slos if slos_file else []
    except (FileNotFoundError, InputValidationError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    overrides = {
        "latency_p99_ms": latency_p99_ms,
        "error_rate_max": error_rate_max,
        "availability_min": availability_min,
    }
    try:
        slo_catalog = generate_slos(catalog, explicit, overrides=overrides)
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid SLO override: {exc}", err=True)
        raise typer.Exit(code=1)
    slo_catalog = slo_catalog.model_copy(update={"repo": repo, "product": product})

    out_path = Path(output) if output else paths.analyses / "slos.json"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(slo_catalog.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")

    typer.echo(f"  SLOs: {len(slo_catalog.slos)} ({len(explicit)} explicit)")
    typer.echo(f"  Written: {out_path}")
    typer.echo("[OK] SLOs defined.")


@app.command("risk-register")
def risk_register(
    repo: str = typer.Option(".", "--repo", help="Repository root."),
    product: str = typer.Option(..., "--product", help="Product name."),
    cuj_file: Optional[str] = typer.Option(None, "--cuj-file", help="CUJ catalog JSON."),
    slos_file: Optional[str] = typer.Option(None, "--slos-file", help="SLO catalog JSON."),
    coverage_file: Optional[str] = typer.Option(
        None, "--coverage-file", help="Coverage snapshot JSON (module -> percent). Optional."
    ),
    csv_out: bool = typer.Option(False, "--csv", help="Also write risk-register.csv."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Score every CUJ and write risk-register.json.

    A missing SLO file or coverage snapshot is not an error: scoring falls
    back to criticality and dependency-count heuristics.
    """
    from risk_planner.ingestion.loaders import (
        InputValidationError,
        load_coverage,
        load_cuj_catalog,
        load_slo_catalog,
    )
    from risk_planner.reporting.export import (
        export_to_csv,
        flatten_risks_for_export,
        write_risk_register_json,
    )
    from risk_planner.reporting.formatters import format_risk_table
    from risk_planner.risk.register import build_risk_register
    from risk_planner.taxonomy.risk_taxonomy import Impact

    config = _load_config_or_exit(config_path)
    _configure_logging(config, "risk-register", product)
    paths = config.paths.for_product(repo, product)

    cuj_path = Path(cuj_file) if cuj_file else paths.analyses / "cuj-catalog.json"
    slos_path = Path(slos_file) if slos_file else paths.analyses / "slos.json"
    cov_path = Path(coverage_file) if coverage_file else paths.analyses / config.risk.coverage_file

    try:
        catalog = load_cuj_catalog(cuj_path)
        slo_catalog = load_slo_catalog(slos_path, required=slos_file is not None)
        coverage = load_coverage(cov_path)
    except (FileNotFoundError, InputValidationError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"risk-register | product={product} | cujs={len(catalog.cujs)} | "
        f"slos={len(slo_catalog.slos)} | coverage={'yes' if coverage is not None else 'no'}"
    )

    register = build_risk_register(
        catalog.cujs,
        slo_catalog.slos,
        coverage,
        repo=repo,
        product=product,
        top_n=config.risk.top_n,
        coverage_targets={
            Impact.CRITICAL: config.risk.critical_coverage_target,
            Impact.HIGH: config.risk.high_coverage_target,
        },
    )

    out_path = write_risk_register_json(register, paths.analyses)
    if csv_out:
        export_to_csv(flatten_risks_for_export(register), paths.analyses / "risk-register.csv")

    typer.echo("")
    typer.echo(format_risk_table(register))
    typer.echo("")
    typer.echo(f"  Written: {out_path}")
    typer.echo("[OK] Risk register built.")


@app.command("scan-tests")
def scan_tests(
    repo: str = typer.Option(".", "--repo", help="Repository root."),
    product: str = typer.Option(..., "--product", help="Product name."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Count test files per layer and compare with the target pyramid."""
    from risk_planner.ingestion.suite_scan import scan_test_distribution
    from risk_planner.portfolio.analyzer import analyze
    from risk_planner.reporting.formatters import format_distribution_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config, "scan-tests", product)
    paths = config.paths.for_product(repo, product)

    counts = scan_test_distribution(paths.unit, paths.integration, paths.e2e)
    analysis = analyze(counts, config.portfolio.target())

    typer.echo(f"scan-tests | product={product} | root={paths.root}")
    typer.echo("")
    typer.echo(format_distribution_table(analysis))
    typer.echo("")
    typer.echo("[OK] Scan complete.")


@app.command("portfolio-plan")
def portfolio_plan(
    repo: str = typer.Option(".", "--repo", help="Repository root."),
    product: str = typer.Option(..., "--product", help="Product name."),
    risk_file: Optional[str] = typer.Option(
        None, "--risk-file", help="risk-register.json (default: <analyses>/risk-register.json)."
    ),
    unit: Optional[int] = typer.Option(None, "--unit", min=0, help="Unit test count (skips the scan)."),
    integration: Optional[int] = typer.Option(None, "--integration", min=0, help="Integration test count."),
    e2e: Optional[int] = typer.Option(None, "--e2e", min=0, help="E2E test count."),
    unit_percent: Optional[float] = typer.Option(None, "--unit-percent", help="Target unit %."),
    service_percent: Optional[float] = typer.Option(
        None, "--service-percent", help="Target integration %."
    ),
    e2e_percent: Optional[float] = typer.Option(None, "--e2e-percent", help="Target e2e %."),
    max_ci_time_min: Optional[float] = typer.Option(
        None, "--max-ci-time-min", help="CI time budget in minutes."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Rebalance the test pyramid using the risk register.

    Writes PORTFOLIO-PLAN.md to the reports directory and portfolio-plan.json
    to the analyses directory.  Test counts come from a directory scan unless
    --unit/--integration/--e2e are given.
    """
    from risk_planner.ingestion.loaders import InputValidationError, load_risk_register
    from risk_planner.ingestion.suite_scan import scan_module_test_counts, scan_test_distribution
    from risk_planner.models.portfolio import (
        PortfolioAnalysis,
        TargetDistribution,
        TestDistribution,
    )
    from risk_planner.portfolio.recommender import build_portfolio_plan, group_risks_by_module
    from risk_planner.reporting.export import write_portfolio_plan_json
    from risk_planner.reporting.formatters import format_distribution_table
    from risk_planner.reporting.markdown import write_portfolio_report

    config = _load_config_or_exit(config_path)
    _configure_logging(config, "portfolio-plan", product)
    paths = config.paths.for_product(repo, product)

    risk_path = Path(risk_file) if risk_file else paths.analyses / "risk-register.json"
    try:
        register = load_risk_register(risk_path)
        target = TargetDistribution.from_overrides(
            {
                "unit_percent": unit_percent,
                "service_percent": service_percent,
                "e2e_percent": e2e_percent,
                "max_ci_time_min": max_ci_time_min,
            },
            base=config.portfolio.target(),
        )
    except (FileNotFoundError, InputValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if any(v is not None for v in (unit, integration, e2e)):
        counts = TestDistribution(unit=unit or 0, integration=integration or 0, e2e=e2e or 0)
    else:
        counts = scan_test_distribution(paths.unit, paths.integration, paths.e2e)

    module_counts = scan_module_test_counts(
        group_risks_by_module(register), paths.unit, paths.integration, paths.e2e
    )
    plan = build_portfolio_plan(register, counts, target, module_counts)

    report_path = write_portfolio_report(
        plan, register, paths.reports, max_modules=config.portfolio.report_max_modules
    )
    json_path = write_portfolio_plan_json(plan, paths.analyses)

    typer.echo(f"portfolio-plan | product={product} | risks={len(register.risks)}")
    typer.echo("")
    typer.echo(
        format_distribution_table(
            PortfolioAnalysis(
                current=plan.current_distribution,
                target=plan.target_distribution,
                gaps=plan.gaps,
            )
        )
    )
    typer.echo("")
    typer.echo(f"  Recommendations: {len(plan.recommendations)}")
    typer.echo(f"  Report:          {report_path}")
    typer.echo(f"  Plan JSON:       {json_path}")
    typer.echo("[OK] Portfolio plan generated.")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
