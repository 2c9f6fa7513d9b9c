from unittest.mock import MagicMock

import pytest
from rich.console import Console

from licensewalker.config import ConsoleContext, Settings
from licensewalker.schemas.compute import GCEInstance


@pytest.fixture
def settings(tmp_path):
    return Settings(
        export_dir=tmp_path,
        propagation_delay=0,
        verify_timeout=0,
        verify_interval=0,
    )


@pytest.fixture
def ctx(settings):
    """Context with mocked Google clients and a no-op sleep."""
    return ConsoleContext(
        project_id="test-project",
        settings=settings,
        console=Console(quiet=True),
        instances_client=MagicMock(),
        disks_client=MagicMock(),
        session=MagicMock(),
        sleep=MagicMock(),
    )


@pytest.fixture
def make_instance():
    def _make(name="vm-1", zone="us-central1-a", status="RUNNING", licenses=None):
        return GCEInstance(
            name=name,
            zone=zone,
            project_id="test-project",
            machine_type="n2-standard-4",
            status=status,
            licenses=licenses or [],
        )

    return _make
