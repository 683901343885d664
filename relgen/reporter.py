from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from relgen.compiler.pipeline import CompilationReport
from relgen.domain.models import AccessorSpec


def _plan_summary(accessor: AccessorSpec) -> str:
    return " -> ".join(
        f"{step.primitive.value}({step.table}.{step.column})" for step in accessor.plan.steps
    )


def build_accessor_table(report: CompilationReport) -> Table:
    """
    Render compiled accessors as a rich table, grouped by owning entity.
    """
    table = Table(
        title="Compiled Accessors",
        box=box.ROUNDED,
        caption=f"{len(report.relations)} relation(s), {len(report.accessors)} accessor(s)",
    )
    table.add_column("Entity", style="cyan", no_wrap=True)
    table.add_column("Accessor", style="bold green", no_wrap=True)
    table.add_column("Target", style="magenta")
    table.add_column("Role", style="blue")
    table.add_column("Mode", style="yellow")
    table.add_column("Returns")
    table.add_column("Round trips", justify="right")
    table.add_column("Error type", style="red")
    table.add_column("Plan", style="dim")

    for entity in report.entities():
        for accessor in report.accessors_for(entity):
            table.add_row(
                entity,
                accessor.name,
                accessor.target_model,
                accessor.role.value,
                accessor.execution_mode.value,
                accessor.return_shape.value,
                str(accessor.max_round_trips),
                accessor.error_type or "-",
                _plan_summary(accessor),
            )
    return table


def build_failure_table(report: CompilationReport) -> Table:
    """
    Render rejected declarations with the relation kind and field at fault.
    """
    table = Table(title="Rejected Declarations", box=box.ROUNDED)
    table.add_column("Entity", style="cyan", no_wrap=True)
    table.add_column("#", justify="right")
    table.add_column("Error", style="red")
    table.add_column("Kind", style="magenta")
    table.add_column("Field", style="yellow")
    table.add_column("Message")

    for failure in report.failures:
        error = failure.error
        table.add_row(
            failure.entity,
            str(failure.index),
            type(error).__name__,
            error.kind or "-",
            error.field or "-",
            str(error),
        )
    return table


def print_report(report: CompilationReport, console: Optional[Console] = None, accessors: bool = True) -> None:
    console = console or Console()

    if not report.relations and not report.failures:
        console.print("[yellow]No declarations found.[/yellow]")
        return

    if accessors and report.relations:
        console.print(build_accessor_table(report))
    if report.failures:
        console.print(build_failure_table(report))
    else:
        console.print("[green]All declarations are valid.[/green]")


__all__ = ["build_accessor_table", "build_failure_table", "print_report"]
