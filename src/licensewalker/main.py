import argparse
import logging
from importlib.metadata import version

from pydantic import ValidationError
from rich.console import Console
from rich.prompt import Prompt

from .config import ConsoleContext, Settings
from .core import (
    DEFAULT_PROPAGATION_DELAY,
    DEFAULT_VERIFY_INTERVAL,
    DEFAULT_VERIFY_TIMEOUT,
)
from .errors import LicenseWalkerError, ListingError, SetupError
from .logger import logger, setup_logger
from .modes import console as console_mode
from .modes.console import handle_export, run_conversion
from .reporter import render_instances
from .walkers import compute


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="licensewalker: GCE instance & license console",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive menu for a project
  licensewalker --project-id my-project

  # Export the instance list, edit it, then convert the remaining entries
  licensewalker --project-id my-project --action export
  licensewalker --project-id my-project --action convert

  # Unattended conversion with a longer verification window
  licensewalker --project-id my-project --action convert --yes --verify-timeout 60
""",
    )
    try:
        ver = version("licensewalker")
    except Exception:
        ver = "unknown"
    parser.add_argument("--version", action="version", version=f"licensewalker v{ver}")

    parser.add_argument("--project-id", help="GCP Project ID (prompted if omitted)")
    parser.add_argument(
        "--action",
        choices=["menu", "list", "export", "convert"],
        default="menu",
        help="Run one action and exit instead of the interactive menu",
    )
    parser.add_argument(
        "--details", action="store_true", help="Show IP and boot disk columns"
    )
    parser.add_argument(
        "--yes", action="store_true", help="Skip the conversion confirmation"
    )
    parser.add_argument(
        "--export-dir",
        default=".",
        help="Directory holding {project}-instances.yml (default: .)",
    )
    parser.add_argument(
        "--propagation-delay",
        type=float,
        default=DEFAULT_PROPAGATION_DELAY,
        help=f"Pause after a conversion batch (default: {DEFAULT_PROPAGATION_DELAY}s)",
    )
    parser.add_argument(
        "--verify-timeout",
        type=float,
        default=DEFAULT_VERIFY_TIMEOUT,
        help=(
            "Max time to poll each disk for licenses "
            f"(default: {DEFAULT_VERIFY_TIMEOUT}s)"
        ),
    )
    parser.add_argument(
        "--verify-interval",
        type=float,
        default=DEFAULT_VERIFY_INTERVAL,
        help=f"Delay between disk polls (default: {DEFAULT_VERIFY_INTERVAL}s)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def run_action(ctx: ConsoleContext, args: argparse.Namespace) -> int:
    """Dispatches a one-shot action. Returns the process exit code."""
    if args.action == "menu":
        console_mode.run_console(ctx)
        return 0

    instances = compute.list_instances(ctx)

    if args.action == "list":
        ctx.console.print(
            render_instances(
                instances,
                title=f"Found {len(instances)} instances",
                details=args.details,
            )
        )
        return 0

    if args.action == "export":
        handle_export(ctx, instances)
        return 0

    conversions = run_conversion(ctx, instances, assume_yes=args.yes)
    if conversions is None:
        return 1
    return 0 if all(c.success for c in conversions) else 2


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    try:
        settings = Settings.from_args(args)
    except ValidationError as e:
        parser.error(f"invalid timing options: {e}")

    if args.verbose:
        setup_logger(level=logging.DEBUG)

    console = Console()
    console.print("[bold green]licensewalker[/bold green] initialized.")

    try:
        code = _run(console, args, settings)
    except KeyboardInterrupt:
        Console(stderr=True).print(
            "\n[bold red]Operation cancelled by user.[/bold red]"
        )
        exit(130)
    exit(code)


def _run(console: Console, args: argparse.Namespace, settings: Settings) -> int:
    project_id = args.project_id or Prompt.ask("Enter Project ID", console=console)
    project_id = project_id.strip()
    if not project_id:
        console.print("[red]A project ID is required.[/red]")
        return 1

    try:
        console.print("Authenticating with GCP...")
        ctx = ConsoleContext.build(project_id, settings, console)
    except SetupError as e:
        logger.error(f"Authentication failed: {e}")
        return 1

    console.print(f"Using project: [bold]{project_id}[/bold]")

    try:
        return run_action(ctx, args)
    except ListingError as e:
        logger.error(f"Failed to list instances: {e}")
        return 1
    except LicenseWalkerError as e:
        logger.error(f"{e}")
        return 1


if __name__ == "__main__":
    main()
