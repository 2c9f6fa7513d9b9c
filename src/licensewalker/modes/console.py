from collections.abc import Sequence

from rich.markup import escape
from rich.prompt import Confirm, IntPrompt, Prompt

from ..config import ConsoleContext
from ..errors import (
    ExportError,
    InstanceOperationError,
    NoMatchingInstancesError,
    ReconciliationError,
)
from ..inventory import export_instances
from ..matcher import match_exported_instances
from ..reporter import print_conversion_report, render_instances
from ..schemas.compute import GCEInstance
from ..schemas.conversion import ConversionRecord
from ..walkers import compute
from .convert import convert_to_payg
from .verify import verify_conversions

MENU = """
[bold]Management Options:[/bold]
[1] Turn ON an instance
[2] Turn OFF an instance
[3] Record license in instance metadata
[4] BYOS to PAYG Mass Mover
[5] Refresh instance list
[6] Export list to file
[0] Exit"""


def select_instance(
    ctx: ConsoleContext, instances: Sequence[GCEInstance]
) -> GCEInstance | None:
    """Numbered pick list; 0 cancels."""
    console = ctx.console
    if not instances:
        console.print("[yellow]No instances to choose from.[/yellow]")
        return None

    console.print("\nSelect an instance:")
    for i, inst in enumerate(instances, start=1):
        console.print(f"[{i}] {inst.name} ({inst.zone}, {inst.status})", markup=False)

    choice = IntPrompt.ask(
        "Enter instance number (or 0 to cancel)", console=console, default=0
    )
    if choice == 0:
        return None
    if choice < 1 or choice > len(instances):
        console.print(f"[red]Invalid choice: {choice}[/red]")
        return None
    return instances[choice - 1]


def handle_start(ctx: ConsoleContext, instances: Sequence[GCEInstance]) -> None:
    instance = select_instance(ctx, instances)
    if instance is None:
        return
    ctx.console.print(f"\nStarting instance: {instance.name}")
    try:
        op_name = compute.start_instance(ctx, instance)
    except InstanceOperationError as e:
        ctx.console.print(f"[red]Error: {escape(str(e))}[/red]")
        return
    ctx.console.print(f"Operation in progress: {op_name}")
    ctx.console.print("[green]Instance start initiated successfully[/green]")


def handle_stop(ctx: ConsoleContext, instances: Sequence[GCEInstance]) -> None:
    instance = select_instance(ctx, instances)
    if instance is None:
        return
    ctx.console.print(f"\nStopping instance: {instance.name}")
    try:
        op_name = compute.stop_instance(ctx, instance)
    except InstanceOperationError as e:
        ctx.console.print(f"[red]Error: {escape(str(e))}[/red]")
        return
    ctx.console.print(f"Operation in progress: {op_name}")
    ctx.console.print("[green]Instance stop initiated successfully[/green]")


def handle_replace_license(
    ctx: ConsoleContext, instances: Sequence[GCEInstance]
) -> None:
    console = ctx.console
    instance = select_instance(ctx, instances)
    if instance is None:
        return

    license_url = Prompt.ask("Enter new license URL", console=console, default="")
    license_url = license_url.strip()
    if not license_url:
        console.print("[red]License URL cannot be empty[/red]")
        return

    console.print(f"\nRecording license for instance: {instance.name}")
    try:
        op_name = compute.replace_license(ctx, instance, license_url)
    except InstanceOperationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return
    console.print(f"Operation in progress: {op_name}")
    console.print(
        "[yellow]Note: This does not change the actual license, "
        "only records it in metadata.[/yellow]"
    )


def handle_export(ctx: ConsoleContext, instances: Sequence[GCEInstance]) -> None:
    if not instances:
        ctx.console.print("No instances to export.")
        return
    try:
        path = export_instances(instances, ctx.project_id, ctx.settings.export_dir)
    except ExportError as e:
        ctx.console.print(
            f"[red]Error exporting instances: {escape(str(e))}[/red]"
        )
        return
    ctx.console.print(f"Instances exported to [bold]{path}[/bold]")


def run_conversion(
    ctx: ConsoleContext, instances: Sequence[GCEInstance], assume_yes: bool = False
) -> list[ConversionRecord] | None:
    """
    BYOS -> PAYG workflow: match the export file, confirm, convert, verify.
    Returns None when reconciliation fails or the operator declines.
    """
    console = ctx.console
    console.print("\n[bold]BYOS to PAYG Mass Mover[/bold]")

    try:
        match = match_exported_instances(
            instances, ctx.project_id, ctx.settings.export_dir
        )
    except NoMatchingInstancesError as e:
        for key in e.missing:
            console.print(f"  - {key}", markup=False)
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return None
    except ReconciliationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return None

    if match.missing:
        console.print(
            f"[yellow]Warning: {len(match.missing)} instances from the file were "
            "not found in the current project:[/yellow]"
        )
        for key in match.missing:
            console.print(f"  - {key}", markup=False)

    console.print(
        render_instances(
            match.matched, title=f"Found {len(match.matched)} instances to convert"
        )
    )

    if not assume_yes and not Confirm.ask(
        "Are these the instances you want to convert to PAYG?", console=console
    ):
        console.print("[yellow]Conversion cancelled.[/yellow]")
        return None

    console.print("\nConverting instances to PAYG licensing...")
    conversions = convert_to_payg(ctx, match.matched)

    console.print("\nVerifying license changes...")
    conversions = verify_conversions(ctx, conversions)

    print_conversion_report(console, conversions)
    return conversions


def manage_instances(ctx: ConsoleContext, instances: Sequence[GCEInstance]) -> bool:
    """
    Shows the management menu until an action needs a fresh listing.
    Returns True to refresh, False to exit.
    """
    console = ctx.console
    while True:
        console.print(MENU, highlight=False)
        choice = IntPrompt.ask("Enter choice", console=console)

        if choice == 0:
            return False
        if choice == 1:
            handle_start(ctx, instances)
            return True
        if choice == 2:
            handle_stop(ctx, instances)
            return True
        if choice == 3:
            handle_replace_license(ctx, instances)
            return True
        if choice == 4:
            run_conversion(ctx, instances)
            Prompt.ask("Press Enter to continue", console=console, default="")
            return True
        if choice == 5:
            console.print("Refreshing instance list...")
            return True
        if choice == 6:
            handle_export(ctx, instances)
            continue
        console.print("[red]Invalid choice[/red]")


def run_console(ctx: ConsoleContext) -> None:
    """Main loop: list, show, manage, repeat until the operator exits."""
    console = ctx.console
    while True:
        console.print(f"Fetching instances for project {ctx.project_id}...")
        instances = compute.list_instances(ctx)

        if not instances:
            console.print("No instances found in this project.")
        else:
            console.print(
                render_instances(instances, title=f"Found {len(instances)} instances")
            )

        if not manage_instances(ctx, instances):
            console.print("Goodbye!")
            return
