from collections.abc import Sequence
from pathlib import Path

import yaml
from pydantic import ValidationError

from .core import EXPORT_FILENAME_TEMPLATE
from .errors import ExportError, ExportFileInvalidError
from .logger import logger
from .schemas.compute import ExportedInstanceRecord, GCEInstance


def export_filename(project_id: str) -> str:
    return EXPORT_FILENAME_TEMPLATE.format(project_id=project_id)


def export_path(project_id: str, directory: Path | str = ".") -> Path:
    return Path(directory) / export_filename(project_id)


def export_instances(
    instances: Sequence[GCEInstance], project_id: str, directory: Path | str = "."
) -> Path:
    """
    Writes a reduced view of each instance to {project_id}-instances.yml.
    Any existing file of that name is overwritten.
    """
    path = export_path(project_id, directory)
    records = [ExportedInstanceRecord.from_instance(i) for i in instances]

    try:
        with path.open("w") as f:
            yaml.safe_dump(
                [r.to_yaml_dict() for r in records],
                f,
                sort_keys=False,
                default_flow_style=False,
            )
    except OSError as e:
        raise ExportError(f"failed to write YAML to file: {e}") from e

    logger.info(f"Exported {len(records)} instances to {path}")
    return path


def load_exported_instances(path: Path | str) -> list[ExportedInstanceRecord]:
    """
    Reads an export file back into records.
    An empty file yields an empty list; anything unparseable raises
    ExportFileInvalidError naming the file.
    """
    path = Path(path)
    try:
        with path.open("r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ExportFileInvalidError(str(path), str(e)) from e
    except OSError as e:
        raise ExportFileInvalidError(str(path), f"error reading file: {e}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise ExportFileInvalidError(
            str(path), f"expected a list of instances, got {type(data).__name__}"
        )

    try:
        return [ExportedInstanceRecord.model_validate(item) for item in data]
    except ValidationError as e:
        raise ExportFileInvalidError(str(path), str(e)) from e
