from collections.abc import Sequence

from google.api_core.exceptions import GoogleAPIError
from rich.markup import escape
from tenacity import Retrying, retry_if_result, stop_after_delay, wait_fixed

from ..config import ConsoleContext
from ..licensing import license_identifier
from ..logger import logger
from ..schemas.compute import GCEInstance
from ..schemas.conversion import ConversionRecord, VerificationState
from ..walkers.disks import get_disk_licenses

NEEDS_START_STATE = "License changed, but VM needs to be started to verify"
PENDING_STATE = "License change may be pending"


def _poll_disk_licenses(
    ctx: ConsoleContext, instance: GCEInstance, disk_name: str, expected: str
) -> list[str]:
    """
    Re-reads the disk's licenses until `expected` shows up or the timeout
    expires. Returns the last read. API errors propagate.
    """
    settings = ctx.settings
    retryer = Retrying(
        stop=stop_after_delay(settings.verify_timeout),
        wait=wait_fixed(settings.verify_interval),
        retry=retry_if_result(lambda licenses: expected not in licenses),
        retry_error_callback=lambda state: state.outcome.result(),
        sleep=ctx.sleep,
    )
    licenses: list[str] = retryer(get_disk_licenses, ctx, instance, disk_name)
    return licenses


def verify_conversions(
    ctx: ConsoleContext, conversions: Sequence[ConversionRecord]
) -> list[ConversionRecord]:
    """
    Enriches successful conversions with the licenses observed on disk.
    Never changes a record's success flag; failed records are skipped.
    """
    console = ctx.console
    console.print("\nWaiting for license changes to propagate...")

    for conversion in conversions:
        if not conversion.success:
            continue

        instance = conversion.instance
        # Successful conversions always carry both; hand-built records may not.
        if not conversion.disk_name or not conversion.target_license:
            logger.warning(f"No disk or target license recorded for {instance.name}")
            conversion.verification = VerificationState.UNREACHABLE
            continue

        expected = license_identifier(conversion.target_license)
        console.print(
            f"\nVerifying license change for {instance.name} "
            f"(VM status: {instance.status})..."
        )
        console.print(f"Checking disk '{conversion.disk_name}' for license changes...")

        try:
            licenses = _poll_disk_licenses(
                ctx, instance, conversion.disk_name, expected
            )
        except GoogleAPIError as e:
            logger.warning(f"Error getting disk details for {instance.name}: {e}")
            console.print(
                f"[yellow]Error getting disk details: {escape(str(e))}[/yellow]"
            )
            conversion.verification = VerificationState.UNREACHABLE
            continue

        if licenses:
            console.print(
                f"[green]✓ Found {len(licenses)} licenses on disk: "
                f"{', '.join(licenses)}[/green]"
            )
            conversion.new_state = ", ".join(licenses)
            if expected in licenses:
                conversion.verification = VerificationState.VERIFIED
            else:
                conversion.verification = VerificationState.PENDING
        elif not instance.is_running:
            console.print(
                "[yellow]⚠️ No licenses found. VM is not running - "
                "start VM to apply license.[/yellow]"
            )
            conversion.new_state = NEEDS_START_STATE
            conversion.verification = VerificationState.PENDING_START
        else:
            console.print(
                "[yellow]⚠️ No licenses found, but VM is running. "
                "License change may be pending.[/yellow]"
            )
            conversion.new_state = PENDING_STATE
            conversion.verification = VerificationState.PENDING

    return list(conversions)
