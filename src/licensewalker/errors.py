class LicenseWalkerError(Exception):
    """Base class for every error raised by licensewalker."""


class SetupError(LicenseWalkerError):
    """Credentials or API clients could not be constructed."""


class ListingError(LicenseWalkerError):
    """The instance inventory could not be fetched."""


class InstanceOperationError(LicenseWalkerError):
    """A start, stop or metadata call against a single instance failed."""


class ExportError(LicenseWalkerError):
    """The export file could not be written."""


class ReconciliationError(LicenseWalkerError):
    """The export file could not be reconciled against live instances."""


class ExportFileNotFoundError(ReconciliationError):
    def __init__(self, path: str) -> None:
        super().__init__(f"file {path} not found. Please export instance list first")
        self.path = path


class ExportFileInvalidError(ReconciliationError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"error parsing {path}: {reason}")
        self.path = path
        self.reason = reason


class NoMatchingInstancesError(ReconciliationError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "no matching instances found between file and current project"
        )
        self.missing = missing


class DiskPatchError(LicenseWalkerError):
    """The license PATCH on a disk failed or returned a non-2xx status."""

    def __init__(
        self, message: str, status_code: int | None = None, body: str = ""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
