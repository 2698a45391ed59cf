"""
Validate command for the payroll validation CLI

Loads a snapshot, runs the full validator suite and renders the report with
Rich tables.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from payroll_validation.exceptions import PayrollValidationError
from payroll_validation.logger import get_logger
from payroll_validation.models import Severity
from payroll_validation.orchestrator import ValidationOrchestrator
from payroll_validation.reporting import ExecutionStatus, ValidationReport, group_by_severity

from ..utils.config_helpers import resolve_config
from ..utils.data_loader import load_snapshot

console = Console()

_SEVERITY_STYLE = {
    Severity.CRITICAL.value: "bold red",
    Severity.WARNING.value: "yellow",
    Severity.INFO.value: "dim",
}
_STATUS_ICON = {
    ExecutionStatus.SUCCEEDED: "✅",
    ExecutionStatus.FAILED: "❌",
    ExecutionStatus.TIMED_OUT: "⏱️",
}


def _rows_label(rows, limit: int = 8) -> str:
    if not rows:
        return "-"
    shown = ", ".join(str(r) for r in rows[:limit])
    return f"{shown} (+{len(rows) - limit})" if len(rows) > limit else shown


def render_report(report: ValidationReport, *, show_info: bool = False, max_results: int = 50) -> None:
    """Print the validator table, the findings table and the summary panel."""
    executions = Table(title="Validators", show_header=True, header_style="bold blue")
    executions.add_column("Validator")
    executions.add_column("Layer", justify="center")
    executions.add_column("Status", justify="center")
    executions.add_column("Results", justify="right")
    executions.add_column("Time", justify="right", style="dim")
    for execution in report.executions:
        executions.add_row(
            execution.name,
            str(execution.layer),
            f"{_STATUS_ICON[execution.status]} {execution.status.value}",
            str(execution.result_count),
            f"{execution.duration_seconds:.2f}s",
        )
    console.print(executions)

    findings = Table(title="Findings", show_header=True, header_style="bold blue", show_lines=False)
    findings.add_column("Severity")
    findings.add_column("Validator")
    findings.add_column("Field")
    findings.add_column("Message")
    findings.add_column("Rows", style="dim")
    shown = 0
    for severity, results in group_by_severity(report.results).items():
        if severity == Severity.INFO.value and not show_info:
            continue
        for result in results:
            if shown >= max_results:
                break
            findings.add_row(
                f"[{_SEVERITY_STYLE[severity]}]{severity}[/{_SEVERITY_STYLE[severity]}]",
                result.agent,
                result.field,
                result.message,
                f"{result.collection.value}: {_rows_label(result.affected_rows)}" if result.affected_rows else "-",
            )
            shown += 1
    if shown:
        console.print(findings)

    summary = report.summary
    verdict = (
        "[green]Valuation may proceed[/green]"
        if summary.can_proceed
        else "[red]Valuation blocked by critical findings[/red]"
    )
    body = (
        f"Run: {report.run_id}\n"
        f"State: {report.state.value}\n"
        f"Records: {summary.total_records}\n"
        f"Critical: {summary.critical_errors}  Warnings: {summary.warnings}  Info: {summary.infos}\n"
        f"{verdict}"
    )
    if summary.failed_validators:
        body += f"\nFailed validators: {', '.join(summary.failed_validators)}"
    console.print(Panel(body, title="Validation Summary", border_style="green" if summary.can_proceed else "red"))


def run_validation(
    input_path: str,
    terminations: Optional[str] = None,
    config: Optional[str] = None,
    output: Optional[str] = None,
    evaluation_date: Optional[str] = None,
    fail_on_critical: bool = False,
    show_info: bool = False,
    max_results: int = 50,
    log_dir: Optional[str] = None,
    verbose: bool = False,
) -> ValidationReport:
    """Load, validate and render one snapshot."""
    try:
        cfg = resolve_config(config, evaluation_date)
        data = load_snapshot(Path(input_path), Path(terminations) if terminations else None)
    except PayrollValidationError as e:
        console.print(f"❌ [red]{escape(e.message)}[/red]")
        console.print(f"[dim]{escape(e.context.format_summary())}[/dim]")
        if verbose:
            console.print(e.format_diagnostic_message(), markup=False)
        raise typer.Exit(1)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"❌ [red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    run_logger = get_logger(log_level="DEBUG" if verbose else "INFO", log_dir=log_dir) if log_dir else None

    console.print(
        f"🔍 [bold blue]Validating {data.total_records} records[/bold blue] "
        f"[dim]({len(data.active_personnel)} active, {len(data.terminations)} terminations, "
        f"evaluation date {cfg.reference_date().isoformat()})[/dim]"
    )
    try:
        report = ValidationOrchestrator.with_defaults(cfg, run_logger=run_logger).run(data)
    finally:
        if run_logger is not None:
            run_logger.close()

    render_report(report, show_info=show_info, max_results=max_results)

    if output:
        out = Path(output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False, default=str), encoding="utf-8")
        console.print(f"💾 Report written to [cyan]{out}[/cyan]")

    if fail_on_critical and not report.can_proceed:
        raise typer.Exit(1)
    return report
