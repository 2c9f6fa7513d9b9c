from collections.abc import Sequence
from pathlib import Path

from .errors import ExportFileNotFoundError, NoMatchingInstancesError
from .inventory import export_path, load_exported_instances
from .logger import logger
from .schemas.compute import ExportedInstanceRecord, GCEInstance
from .schemas.conversion import MatchResult


def match_records(
    live_instances: Sequence[GCEInstance],
    records: Sequence[ExportedInstanceRecord],
) -> MatchResult:
    """
    Matches exported records to live instances by exact (zone, name).
    Matched instances keep the order of the records.
    """
    lookup = {instance.key: instance for instance in live_instances}

    result = MatchResult()
    for record in records:
        instance = lookup.get(record.key)
        if instance is not None:
            result.matched.append(instance)
        else:
            result.missing.append(f"{record.zone}/{record.name}")
    return result


def match_exported_instances(
    live_instances: Sequence[GCEInstance],
    project_id: str,
    directory: Path | str = ".",
) -> MatchResult:
    """
    Reconciles {project_id}-instances.yml against the live inventory.
    Raises ExportFileNotFoundError, ExportFileInvalidError or
    NoMatchingInstancesError; missing records alone are not fatal.
    """
    path = export_path(project_id, directory)
    if not path.exists():
        raise ExportFileNotFoundError(str(path))

    records = load_exported_instances(path)
    result = match_records(live_instances, records)

    if result.missing:
        logger.warning(
            f"{len(result.missing)} instances from {path} were not found "
            f"in {project_id}: {', '.join(result.missing)}"
        )

    if not result.matched:
        raise NoMatchingInstancesError(result.missing)

    return result
