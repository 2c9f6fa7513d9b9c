from google.api_core.exceptions import GoogleAPIError
from google.cloud import compute_v1

from ..config import ConsoleContext
from ..errors import InstanceOperationError, ListingError
from ..licensing import extract_license_identifiers
from ..logger import logger
from ..schemas.compute import GCEInstance

LICENSE_METADATA_KEY = "license"


def _to_instance(
    project_id: str, zone: str, instance: compute_v1.Instance
) -> GCEInstance:
    # 1. Clean Machine Type
    m_type = instance.machine_type
    machine_type_clean = m_type.split("/")[-1] if m_type else "unknown"

    # 2. Extract external IP from the first NIC
    external_ip = None
    if instance.network_interfaces:
        nic = instance.network_interfaces[0]
        if nic.access_configs:
            external_ip = nic.access_configs[0].nat_i_p or None

    # 3. Boot disk (first attached) carries type, size and licenses
    disk_type = ""
    disk_size_gb = 0
    licenses: list[str] = []
    if instance.disks:
        boot_disk = instance.disks[0]
        disk_type = str(boot_disk.type_ or "")
        if boot_disk.interface:
            disk_type = f"{boot_disk.interface}-{disk_type}"
        disk_size_gb = int(boot_disk.disk_size_gb or 0)
        licenses = extract_license_identifiers(boot_disk.licenses)

    return GCEInstance(
        name=instance.name,
        zone=zone,
        project_id=project_id,
        machine_type=machine_type_clean,
        status=instance.status,
        external_ip=external_ip,
        disk_type=disk_type,
        disk_size_gb=disk_size_gb,
        licenses=licenses,
    )


def list_instances(ctx: ConsoleContext) -> list[GCEInstance]:
    """
    Lists every instance in the project across all zones.
    All result pages are drained before returning; any API error
    discards partial results and raises ListingError.
    """
    request = compute_v1.AggregatedListInstancesRequest(project=ctx.project_id)

    results = []
    try:
        # The client library handles pagination automatically when iterating
        for zone_key, scoped_list in ctx.instances_client.aggregated_list(
            request=request
        ):
            if not scoped_list.instances:
                continue
            zone = zone_key.removeprefix("zones/")
            for instance in scoped_list.instances:
                results.append(_to_instance(ctx.project_id, zone, instance))
    except GoogleAPIError as e:
        raise ListingError(f"failed to list instances: {e}") from e

    logger.debug(f"Listed {len(results)} instances in {ctx.project_id}")
    return results


def get_instance(ctx: ConsoleContext, instance: GCEInstance) -> compute_v1.Instance:
    """Fetches fresh instance detail (disks, metadata) from the API."""
    return ctx.instances_client.get(
        project=instance.project_id, zone=instance.zone, instance=instance.name
    )


def start_instance(ctx: ConsoleContext, instance: GCEInstance) -> str:
    try:
        op = ctx.instances_client.start(
            project=instance.project_id, zone=instance.zone, instance=instance.name
        )
    except GoogleAPIError as e:
        raise InstanceOperationError(f"failed to start instance: {e}") from e
    return str(op.name)


def stop_instance(ctx: ConsoleContext, instance: GCEInstance) -> str:
    try:
        op = ctx.instances_client.stop(
            project=instance.project_id, zone=instance.zone, instance=instance.name
        )
    except GoogleAPIError as e:
        raise InstanceOperationError(f"failed to stop instance: {e}") from e
    return str(op.name)


def replace_license(
    ctx: ConsoleContext, instance: GCEInstance, license_url: str
) -> str:
    """
    Records a license URL in the instance's `license` metadata item.
    This does not change the disk license itself.
    Returns the operation name.
    """
    try:
        detail = get_instance(ctx, instance)
    except GoogleAPIError as e:
        raise InstanceOperationError(f"failed to get instance details: {e}") from e

    if not detail.disks:
        raise InstanceOperationError("instance has no disks")

    items = []
    found = False
    for item in detail.metadata.items:
        if item.key == LICENSE_METADATA_KEY:
            items.append(compute_v1.Items(key=item.key, value=license_url))
            found = True
        else:
            items.append(compute_v1.Items(key=item.key, value=item.value))
    if not found:
        items.append(compute_v1.Items(key=LICENSE_METADATA_KEY, value=license_url))

    metadata = compute_v1.Metadata(
        fingerprint=detail.metadata.fingerprint, items=items
    )

    try:
        op = ctx.instances_client.set_metadata(
            project=instance.project_id,
            zone=instance.zone,
            instance=instance.name,
            metadata_resource=metadata,
        )
    except GoogleAPIError as e:
        raise InstanceOperationError(f"failed to set license metadata: {e}") from e
    return str(op.name)
