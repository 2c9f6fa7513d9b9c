from enum import Enum

from pydantic import BaseModel, Field

from .compute import GCEInstance


class VerificationState(str, Enum):
    NOT_CHECKED = "NOT_CHECKED"
    VERIFIED = "VERIFIED"
    PENDING_START = "PENDING_START"
    PENDING = "PENDING"
    UNREACHABLE = "UNREACHABLE"


class ConversionRecord(BaseModel):
    instance: GCEInstance
    original_licenses: str = Field(description="Comma-joined license identifiers")
    disk_name: str | None = None
    target_license: str | None = None
    conversion_url: str | None = None
    operation_name: str | None = None
    success: bool = False
    error: str | None = None
    new_state: str = ""
    verification: VerificationState = VerificationState.NOT_CHECKED

    def fail(self, reason: str) -> "ConversionRecord":
        self.success = False
        self.error = reason
        return self


class MatchResult(BaseModel):
    matched: list[GCEInstance] = Field(default_factory=list)
    missing: list[str] = Field(
        default_factory=list, description="zone/name keys absent from the project"
    )
