from __future__ import annotations

import argparse
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from google.api_core.exceptions import GoogleAPIError
from pydantic import BaseModel, Field
from rich.console import Console

from .clients import (
    get_authorized_session,
    get_compute_disks_client,
    get_compute_instances_client,
)
from .core import (
    DEFAULT_API_BASE,
    DEFAULT_PROPAGATION_DELAY,
    DEFAULT_VERIFY_INTERVAL,
    DEFAULT_VERIFY_TIMEOUT,
)
from .errors import SetupError


class Settings(BaseModel):
    export_dir: Path = Path(".")
    propagation_delay: float = Field(default=DEFAULT_PROPAGATION_DELAY, ge=0)
    verify_timeout: float = Field(default=DEFAULT_VERIFY_TIMEOUT, ge=0)
    verify_interval: float = Field(default=DEFAULT_VERIFY_INTERVAL, ge=0)
    api_base: str = DEFAULT_API_BASE

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> Settings:
        return cls(
            export_dir=Path(args.export_dir),
            propagation_delay=args.propagation_delay,
            verify_timeout=args.verify_timeout,
            verify_interval=args.verify_interval,
        )


@dataclass
class ConsoleContext:
    """Everything one invocation needs to talk to a single project."""

    project_id: str
    settings: Settings
    console: Console
    instances_client: Any
    disks_client: Any
    session: Any
    sleep: Callable[[float], None] = field(default=time.sleep)

    @classmethod
    def build(
        cls, project_id: str, settings: Settings, console: Console
    ) -> ConsoleContext:
        try:
            instances_client = get_compute_instances_client()
            disks_client = get_compute_disks_client()
            session = get_authorized_session()
        except GoogleAPIError as e:
            raise SetupError(
                f"failed to create Compute service: {e}\n\n"
                "Make sure the Compute Engine API is enabled in your GCP project"
            ) from e

        return cls(
            project_id=project_id,
            settings=settings,
            console=console,
            instances_client=instances_client,
            disks_client=disks_client,
            session=session,
        )
