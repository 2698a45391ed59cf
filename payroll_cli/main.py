#!/usr/bin/env python3
"""
Payroll Validation CLI

Rich-based command line interface for the payroll validation engine.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .commands.validate import run_validation
from .utils.config_helpers import resolve_config

# Initialize Rich console
console = Console()

# Main app
app = typer.Typer(
    name="payroll-validate",
    help="Payroll Validation Engine CLI - pre-valuation checks for actuarial payroll data",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


def version_callback(value: bool):
    if value:
        from payroll_cli import __version__
        console.print(f"Payroll Validation Engine v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version information"
    ),
):
    """
    [bold blue]Payroll Validation Engine CLI[/bold blue]

    Validates active personnel and termination snapshots before they feed an
    actuarial valuation.

    [dim]Examples:[/dim]
        payroll-validate run payroll.json                  # Validate a snapshot
        payroll-validate run activos.csv --terminations bajas.csv
        payroll-validate plan                              # Show validator layers
    """
    pass


@app.command("run")
def run(
    input_path: str = typer.Argument(..., help="Snapshot file (.json, .yaml or .csv of active personnel)"),
    terminations: Optional[str] = typer.Option(None, "--terminations", "-t", help="CSV of terminations"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to validation config YAML"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the JSON report to this path"),
    evaluation_date: Optional[str] = typer.Option(None, "--evaluation-date", help="Reference date (YYYY-MM-DD)"),
    fail_on_critical: bool = typer.Option(False, "--fail-on-critical", help="Exit with code 1 when valuation cannot proceed"),
    show_info: bool = typer.Option(False, "--show-info", help="Include informational findings in the table"),
    max_results: int = typer.Option(50, "--max-results", help="Maximum findings to print"),
    log_dir: Optional[str] = typer.Option(None, "--log-dir", help="Write structured JSON run logs to this directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug-level run logs and full error diagnostics"),
):
    """🔍 Validate a payroll snapshot and print the findings."""
    run_validation(
        input_path=input_path,
        terminations=terminations,
        config=config,
        output=output,
        evaluation_date=evaluation_date,
        fail_on_critical=fail_on_critical,
        show_info=show_info,
        max_results=max_results,
        log_dir=log_dir,
        verbose=verbose,
    )


@app.command("plan")
def plan(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to validation config YAML"),
):
    """🗂️ Show the validator execution layers without running them."""
    from payroll_validation.exceptions import PayrollValidationError
    from payroll_validation.orchestrator import ValidationOrchestrator

    try:
        cfg = resolve_config(config)
        orchestrator = ValidationOrchestrator.with_defaults(cfg)
        layers = orchestrator.plan()
    except (PayrollValidationError, FileNotFoundError) as e:
        console.print(f"❌ [red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Execution Plan", show_header=True, header_style="bold blue")
    table.add_column("Layer", justify="center")
    table.add_column("Validators")
    table.add_column("Timeouts", style="dim")
    for index, names in enumerate(layers):
        table.add_row(
            str(index),
            ", ".join(names),
            ", ".join(f"{orchestrator.timeout_for(n):g}s" for n in names),
        )
    console.print(table)


if __name__ == "__main__":
    app()
