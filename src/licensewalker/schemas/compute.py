from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core import RUNNING_STATUS


class GCEInstance(BaseModel):
    name: str
    zone: str
    project_id: str
    machine_type: str = Field(description="Cleaned machine type (e.g., n1-standard-1)")
    status: str
    external_ip: str | None = None
    disk_type: str = Field(default="", description="e.g., SCSI-PERSISTENT")
    disk_size_gb: int = 0
    licenses: list[str] = Field(
        default_factory=list, description="e.g., rhel-cloud:rhel-8-server"
    )

    @property
    def key(self) -> tuple[str, str]:
        return (self.zone, self.name)

    @property
    def is_running(self) -> bool:
        return self.status == RUNNING_STATUS

    @property
    def license_summary(self) -> str:
        return ", ".join(self.licenses)


class ExportedInstanceRecord(BaseModel):
    """One entry of the hand-editable {project}-instances.yml file."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    zone: str
    machine_type: str = Field(default="", alias="machineType")
    status: str = ""
    licenses: list[str] = Field(default_factory=list)

    @field_validator("machine_type", "status", mode="before")
    @classmethod
    def _blank_str(cls, v: object) -> object:
        # `status:` with no value loads as None
        return "" if v is None else v

    @field_validator("licenses", mode="before")
    @classmethod
    def _blank_list(cls, v: object) -> object:
        return [] if v is None else v

    @classmethod
    def from_instance(cls, instance: GCEInstance) -> "ExportedInstanceRecord":
        return cls(
            name=instance.name,
            zone=instance.zone,
            machine_type=instance.machine_type,
            status=instance.status,
            licenses=list(instance.licenses),
        )

    @property
    def key(self) -> tuple[str, str]:
        return (self.zone, self.name)

    def to_yaml_dict(self) -> dict[str, object]:
        data = self.model_dump(by_alias=True)
        if not data["licenses"]:
            del data["licenses"]
        return data
