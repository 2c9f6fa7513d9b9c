from collections.abc import Iterable, Sequence

from .core import DEFAULT_PAYG_LICENSE, PAYG_LICENSE_TABLE


def license_identifier(license_url: str) -> str:
    """
    Reduces a license URL to a short identifier.
    https://.../projects/rhel-cloud/global/licenses/rhel-8-server
    -> rhel-cloud:rhel-8-server
    Short URLs fall back to their base name.
    """
    parts = license_url.split("/")
    if len(parts) >= 6:
        return f"{parts[-4]}:{parts[-1]}"
    return license_url.rstrip("/").split("/")[-1] or license_url


def extract_license_identifiers(license_urls: Iterable[str] | None) -> list[str]:
    if not license_urls:
        return []
    return [license_identifier(url) for url in license_urls]


class LicenseClassifier:
    """Maps license identifiers (or a source image) to a PAYG license URL."""

    def __init__(
        self,
        table: Sequence[tuple[str, str]] = tuple(PAYG_LICENSE_TABLE),
        default: str = DEFAULT_PAYG_LICENSE,
    ) -> None:
        self.table = [(marker.lower(), target) for marker, target in table]
        self.default = default

    def match(self, text: str | None) -> str | None:
        """Returns the target for the first marker found in text, if any."""
        if not text:
            return None
        haystack = text.lower()
        for marker, target in self.table:
            if marker in haystack:
                return target
        return None

    def classify_licenses(self, licenses: Sequence[str]) -> str | None:
        return self.match(" ".join(licenses))

    def classify_source_image(self, source_image: str | None) -> str:
        return self.match(source_image) or self.default
