from collections.abc import Sequence

from google.api_core.exceptions import GoogleAPIError
from rich.markup import escape

from ..config import ConsoleContext
from ..errors import DiskPatchError
from ..licensing import LicenseClassifier
from ..logger import logger
from ..schemas.compute import GCEInstance
from ..schemas.conversion import ConversionRecord
from ..walkers.compute import get_instance
from ..walkers.disks import (
    disk_name_from_source,
    disk_patch_url,
    get_disk,
    patch_disk_licenses,
)


def _resolve_target_license(
    ctx: ConsoleContext,
    instance: GCEInstance,
    disk_name: str,
    classifier: LicenseClassifier,
) -> str | None:
    """
    Picks the PAYG license for an instance.
    Known license identifiers win. With no identifiers at all, the boot
    disk's source image decides, falling back to the classifier default.
    Unrecognized existing identifiers return None.
    """
    if instance.licenses:
        return classifier.classify_licenses(instance.licenses)

    console = ctx.console
    console.print(
        f"No license codes found for VM {instance.name}. "
        "Attempting to determine OS version..."
    )
    try:
        disk = get_disk(ctx, instance, disk_name)
    except GoogleAPIError as e:
        console.print(
            f"[yellow]Could not get disk details: {escape(str(e))}. "
            f"Defaulting to {classifier.default}[/yellow]"
        )
        return classifier.default

    target = classifier.match(disk.source_image)
    if target:
        console.print(f"Detected OS from disk source image: {disk.source_image}")
        return target

    console.print(
        f"Could not determine specific OS version. Defaulting to {classifier.default}"
    )
    return classifier.default


def _convert_instance(
    ctx: ConsoleContext, instance: GCEInstance, classifier: LicenseClassifier
) -> ConversionRecord:
    console = ctx.console
    record = ConversionRecord(
        instance=instance, original_licenses=instance.license_summary
    )

    console.print(f"\n== Instance {instance.name} status: {instance.status} ==")
    if not instance.is_running:
        console.print(
            "[yellow]Note: VM is NOT running. License will be applied to disk "
            "but VM needs to be started to use the new license.[/yellow]"
        )

    # 1. Fresh detail (disk list)
    try:
        detail = get_instance(ctx, instance)
    except GoogleAPIError as e:
        console.print(
            f"[red]Error getting instance details for {instance.name}: "
            f"{escape(str(e))}[/red]"
        )
        return record.fail(f"error getting instance details: {e}")

    # 2. Boot disk
    if not detail.disks:
        console.print(f"[red]Instance {instance.name} has no disks[/red]")
        return record.fail("no disks")

    disk_name = disk_name_from_source(detail.disks[0].source)
    if not disk_name:
        console.print(
            f"[red]Could not determine disk name for instance {instance.name}[/red]"
        )
        return record.fail("could not determine disk name")
    record.disk_name = disk_name

    # 3. Target license
    target = _resolve_target_license(ctx, instance, disk_name, classifier)
    if target is None:
        console.print(
            f"[red]Could not determine appropriate PAYG license for {instance.name} "
            f"with OS: {escape(record.original_licenses)}[/red]"
        )
        return record.fail("could not determine license")
    record.target_license = target
    record.conversion_url = f"{disk_patch_url(ctx, instance, disk_name)}?paths=licenses"

    # 4. Patch the disk
    console.print(f"Converting disk for {instance.name} to PAYG license: {target}")
    try:
        operation = patch_disk_licenses(ctx, instance, disk_name, target)
    except DiskPatchError as e:
        console.print(f"[red]❌ {instance.name}: {escape(str(e))}[/red]")
        return record.fail(str(e))

    op_name = operation.get("name")
    if op_name:
        record.operation_name = op_name
        console.print(
            f"  GCP Disk Update Operation '{op_name}' "
            f"(status: {operation.get('status', 'UNKNOWN')}, target disk: {disk_name})"
        )

    record.success = True
    if instance.is_running:
        record.new_state = f"PAYG: Converting to {target}"
    else:
        record.new_state = (
            f"PAYG license applied to disk (VM status: {instance.status})"
        )
    return record


def convert_to_payg(
    ctx: ConsoleContext,
    instances: Sequence[GCEInstance],
    classifier: LicenseClassifier | None = None,
) -> list[ConversionRecord]:
    """
    Attempts a BYOS -> PAYG license switch on each instance's boot disk.
    Instances are handled one at a time, exactly once; a failure is
    recorded on that instance's ConversionRecord and the loop continues.
    """
    classifier = classifier or LicenseClassifier()
    results = []

    for instance in instances:
        try:
            record = _convert_instance(ctx, instance, classifier)
        except Exception as e:
            logger.exception(f"Unexpected error converting {instance.name}")
            record = ConversionRecord(
                instance=instance, original_licenses=instance.license_summary
            ).fail(f"unexpected error: {e}")
        results.append(record)

    succeeded = sum(1 for r in results if r.success)
    if succeeded and ctx.settings.propagation_delay > 0:
        logger.debug(
            f"Waiting {ctx.settings.propagation_delay}s for updates to propagate"
        )
        ctx.sleep(ctx.settings.propagation_delay)

    return results
