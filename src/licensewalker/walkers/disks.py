from typing import Any

import requests
from google.auth.exceptions import GoogleAuthError

from ..config import ConsoleContext
from ..errors import DiskPatchError
from ..licensing import extract_license_identifiers
from ..logger import logger
from ..schemas.compute import GCEInstance


def disk_name_from_source(source: str | None) -> str:
    """zones/us-central1-a/disks/my-disk -> my-disk ("" when unparseable)."""
    if not source:
        return ""
    return source.split("/")[-1]


def get_disk(ctx: ConsoleContext, instance: GCEInstance, disk_name: str) -> Any:
    return ctx.disks_client.get(
        project=instance.project_id, zone=instance.zone, disk=disk_name
    )


def get_disk_licenses(
    ctx: ConsoleContext, instance: GCEInstance, disk_name: str
) -> list[str]:
    """Current license identifiers on a disk."""
    disk = get_disk(ctx, instance, disk_name)
    return extract_license_identifiers(disk.licenses)


def disk_patch_url(ctx: ConsoleContext, instance: GCEInstance, disk_name: str) -> str:
    return (
        f"{ctx.settings.api_base}/projects/{instance.project_id}"
        f"/zones/{instance.zone}/disks/{disk_name}"
    )


def patch_disk_licenses(
    ctx: ConsoleContext, instance: GCEInstance, disk_name: str, license_url: str
) -> dict[str, Any]:
    """
    Replaces the disk's license list with exactly one license URL.
    Returns the decoded operation body ({} when the body is not JSON).
    Raises DiskPatchError on transport failures and non-2xx responses.
    """
    url = disk_patch_url(ctx, instance, disk_name)
    body = {"name": disk_name, "licenses": [license_url]}

    logger.debug(f"PATCH {url}?paths=licenses {body}")
    try:
        resp = ctx.session.patch(url, params={"paths": "licenses"}, json=body)
    except (requests.RequestException, GoogleAuthError) as e:
        raise DiskPatchError(f"Error making API request: {e}") from e

    if resp.status_code < 200 or resp.status_code >= 300:
        raise DiskPatchError(
            f"API request failed: {resp.status_code} {resp.reason} - {resp.text}",
            status_code=resp.status_code,
            body=resp.text,
        )

    try:
        operation = resp.json()
    except ValueError:
        return {}
    return operation if isinstance(operation, dict) else {}
