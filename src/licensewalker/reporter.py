from collections.abc import Sequence

import humanize
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .schemas.compute import GCEInstance
from .schemas.conversion import ConversionRecord


def _disk_size(size_gb: int) -> str:
    if not size_gb:
        return "-"
    return str(humanize.naturalsize(size_gb * 1024**3, binary=True))


def render_instances(
    instances: Sequence[GCEInstance], title: str | None = None, details: bool = False
) -> Table:
    """One row per instance; `details` adds IP and boot disk columns."""
    table = Table(title=title)
    table.add_column("Name", style="green")
    table.add_column("Zone", style="cyan")
    table.add_column("Machine Type")
    table.add_column("Status")
    if details:
        table.add_column("External IP")
        table.add_column("Disk")
        table.add_column("Size", justify="right")
    table.add_column("Licenses", style="dim")

    for inst in instances:
        status_style = "green" if inst.is_running else "yellow"
        row = [
            inst.name,
            inst.zone,
            inst.machine_type,
            f"[{status_style}]{inst.status}[/{status_style}]",
        ]
        if details:
            row += [
                inst.external_ip or "-",
                inst.disk_type or "-",
                _disk_size(inst.disk_size_gb),
            ]
        row.append(inst.license_summary or "none")
        table.add_row(*row)

    return table


def summarize_conversions(conversions: Sequence[ConversionRecord]) -> tuple[int, int]:
    """Returns (succeeded, total)."""
    return sum(1 for c in conversions if c.success), len(conversions)


def print_conversion_report(
    console: Console, conversions: Sequence[ConversionRecord]
) -> None:
    console.print("\n[bold]Conversion Results:[/bold]")

    table = Table()
    table.add_column("Result")
    table.add_column("Instance", style="green")
    table.add_column("Zone", style="cyan")
    table.add_column("Before", style="dim")
    table.add_column("After")

    for c in conversions:
        if c.success:
            result = "[green]✓ Success[/green]"
            after = c.new_state
        else:
            result = "[red]✗ Failed[/red]"
            after = f"[red]{escape(c.error or 'unknown error')}[/red]"
        table.add_row(
            result,
            c.instance.name,
            c.instance.zone,
            c.original_licenses or "none",
            after,
        )

    console.print(table)

    succeeded, total = summarize_conversions(conversions)
    console.print(f"\nConverted {succeeded}/{total} instances successfully.")
