import pytest
from google.api_core.exceptions import Forbidden, NotFound

from licensewalker.errors import InstanceOperationError, ListingError
from licensewalker.walkers.compute import (
    list_instances,
    replace_license,
    start_instance,
    stop_instance,
)


def _mock_gce_instance(mocker, name="test-deep-instance", licenses=None):
    mock_instance = mocker.Mock()
    mock_instance.name = name
    mock_instance.status = "RUNNING"
    mock_instance.machine_type = "zones/us-west1-b/machineTypes/n2-standard-4"

    # Mock Disks
    mock_disk = mocker.Mock()
    mock_disk.type_ = "PERSISTENT"
    mock_disk.interface = "SCSI"
    mock_disk.disk_size_gb = 100
    mock_disk.licenses = licenses or []
    mock_instance.disks = [mock_disk]

    # Mock Network
    mock_nic = mocker.Mock()
    mock_access = mocker.Mock()
    mock_access.nat_i_p = "34.1.2.3"
    mock_nic.access_configs = [mock_access]
    mock_instance.network_interfaces = [mock_nic]
    return mock_instance


def test_list_instances_deep_mock(ctx, mocker):
    mock_instance = _mock_gce_instance(
        mocker,
        licenses=[
            "https://www.googleapis.com/compute/v1/projects/rhel-cloud/global/licenses/rhel-8-byos"
        ],
    )
    scoped = mocker.Mock(instances=[mock_instance])
    empty = mocker.Mock(instances=[])

    ctx.instances_client.aggregated_list.return_value = [
        ("zones/us-east1-b", empty),
        ("zones/us-west1-b", scoped),
    ]

    instances = list_instances(ctx)

    assert len(instances) == 1
    inst = instances[0]
    assert inst.name == "test-deep-instance"
    assert inst.zone == "us-west1-b"
    assert inst.project_id == "test-project"
    assert inst.machine_type == "n2-standard-4"
    assert inst.external_ip == "34.1.2.3"
    assert inst.disk_type == "SCSI-PERSISTENT"
    assert inst.disk_size_gb == 100
    assert inst.licenses == ["rhel-cloud:rhel-8-byos"]

    ctx.instances_client.aggregated_list.assert_called_once()


def test_list_instances_without_disks_or_nics(ctx, mocker):
    mock_instance = mocker.Mock()
    mock_instance.name = "bare"
    mock_instance.status = "TERMINATED"
    mock_instance.machine_type = ""
    mock_instance.disks = []
    mock_instance.network_interfaces = []

    ctx.instances_client.aggregated_list.return_value = [
        ("zones/us-central1-a", mocker.Mock(instances=[mock_instance]))
    ]

    inst = list_instances(ctx)[0]
    assert inst.machine_type == "unknown"
    assert inst.external_ip is None
    assert inst.licenses == []
    assert inst.disk_size_gb == 0


def test_list_instances_page_error_discards_partial_results(ctx, mocker):
    good = mocker.Mock(instances=[_mock_gce_instance(mocker)])

    def pages(request):
        yield ("zones/us-west1-b", good)
        raise Forbidden("denied")

    ctx.instances_client.aggregated_list.side_effect = pages

    with pytest.raises(ListingError):
        list_instances(ctx)


def test_start_and_stop_return_operation_name(ctx, make_instance):
    ctx.instances_client.start.return_value.name = "op-start"
    ctx.instances_client.stop.return_value.name = "op-stop"
    inst = make_instance()

    assert start_instance(ctx, inst) == "op-start"
    assert stop_instance(ctx, inst) == "op-stop"
    ctx.instances_client.start.assert_called_once_with(
        project="test-project", zone="us-central1-a", instance="vm-1"
    )


def test_start_failure_raises(ctx, make_instance):
    ctx.instances_client.start.side_effect = NotFound("gone")
    with pytest.raises(InstanceOperationError):
        start_instance(ctx, make_instance())


def test_replace_license_upserts_metadata(ctx, mocker, make_instance):
    existing = mocker.Mock(key="license", value="old")
    other = mocker.Mock(key="team", value="infra")
    detail = mocker.Mock()
    detail.disks = [mocker.Mock()]
    detail.metadata.fingerprint = "abc123"
    detail.metadata.items = [other, existing]
    ctx.instances_client.get.return_value = detail
    ctx.instances_client.set_metadata.return_value.name = "op-meta"

    op = replace_license(ctx, make_instance(), "https://example/new-license")

    assert op == "op-meta"
    metadata = ctx.instances_client.set_metadata.call_args.kwargs["metadata_resource"]
    assert metadata.fingerprint == "abc123"
    assert {i.key: i.value for i in metadata.items} == {
        "team": "infra",
        "license": "https://example/new-license",
    }


def test_replace_license_adds_missing_item(ctx, mocker, make_instance):
    detail = mocker.Mock()
    detail.disks = [mocker.Mock()]
    detail.metadata.fingerprint = "fp"
    detail.metadata.items = []
    ctx.instances_client.get.return_value = detail

    replace_license(ctx, make_instance(), "lic")

    metadata = ctx.instances_client.set_metadata.call_args.kwargs["metadata_resource"]
    assert [(i.key, i.value) for i in metadata.items] == [("license", "lic")]


def test_replace_license_requires_disks(ctx, mocker, make_instance):
    ctx.instances_client.get.return_value = mocker.Mock(disks=[])
    with pytest.raises(InstanceOperationError, match="no disks"):
        replace_license(ctx, make_instance(), "lic")
    ctx.instances_client.set_metadata.assert_not_called()
