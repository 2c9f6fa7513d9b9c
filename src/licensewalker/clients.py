from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import google.auth
from google.auth.exceptions import DefaultCredentialsError
from google.auth.transport.requests import AuthorizedSession
from google.cloud import compute_v1

from .core import ADC_SETUP_HINT, CLOUD_PLATFORM_SCOPE
from .errors import SetupError
from .logger import logger

# Shared Client Registry (Lazy-loaded and cached)


@lru_cache(maxsize=1)
def get_credentials() -> tuple[Any, str | None]:
    """
    Resolves Application Default Credentials.
    Raises SetupError with remediation text when none are available.
    """
    try:
        credentials, default_project = google.auth.default(
            scopes=[CLOUD_PLATFORM_SCOPE]
        )
    except DefaultCredentialsError as e:
        adc_path = (
            Path.home() / ".config" / "gcloud" / "application_default_credentials.json"
        )
        raise SetupError(
            f"failed to obtain credentials: {e}\n\n"
            + ADC_SETUP_HINT.format(adc_path=adc_path)
        ) from e

    logger.debug(f"Resolved credentials (default project: {default_project})")
    return credentials, default_project


@lru_cache(maxsize=1)
def get_compute_instances_client() -> Any:
    credentials, _ = get_credentials()
    return compute_v1.InstancesClient(credentials=credentials)


@lru_cache(maxsize=1)
def get_compute_disks_client() -> Any:
    credentials, _ = get_credentials()
    return compute_v1.DisksClient(credentials=credentials)


@lru_cache(maxsize=1)
def get_authorized_session() -> Any:
    credentials, _ = get_credentials()
    return AuthorizedSession(credentials)
