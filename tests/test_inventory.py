import pytest
import yaml

from licensewalker.errors import ExportFileInvalidError
from licensewalker.inventory import (
    export_filename,
    export_instances,
    load_exported_instances,
)


def test_export_filename():
    assert export_filename("my-proj") == "my-proj-instances.yml"


def test_export_writes_reduced_records(tmp_path, make_instance):
    inst = make_instance(licenses=["rhel-cloud:rhel-8-byos"])
    inst.external_ip = "34.1.2.3"
    inst.disk_size_gb = 50
    bare = make_instance(name="vm-2", status="TERMINATED")

    path = export_instances([inst, bare], "test-project", tmp_path)

    assert path == tmp_path / "test-project-instances.yml"
    data = yaml.safe_load(path.read_text())
    assert data == [
        {
            "name": "vm-1",
            "zone": "us-central1-a",
            "machineType": "n2-standard-4",
            "status": "RUNNING",
            "licenses": ["rhel-cloud:rhel-8-byos"],
        },
        {
            "name": "vm-2",
            "zone": "us-central1-a",
            "machineType": "n2-standard-4",
            "status": "TERMINATED",
        },
    ]
    # Key order is stable for hand editing
    assert list(data[0]) == ["name", "zone", "machineType", "status", "licenses"]


def test_export_overwrites_existing_file(tmp_path, make_instance):
    path = tmp_path / "test-project-instances.yml"
    path.write_text("stale content")

    export_instances([make_instance()], "test-project", tmp_path)

    assert "stale" not in path.read_text()


def test_load_exported_instances(tmp_path):
    path = tmp_path / "p-instances.yml"
    path.write_text(
        "- name: vm-1\n"
        "  zone: us-central1-a\n"
        "  machineType: e2-small\n"
        "  status: RUNNING\n"
        "  licenses:\n"
        "  - rhel-cloud:rhel-9-byos\n"
        "- name: vm-2\n"
        "  zone: us-east1-b\n"
    )

    records = load_exported_instances(path)

    assert [r.key for r in records] == [("us-central1-a", "vm-1"), ("us-east1-b", "vm-2")]
    assert records[0].machine_type == "e2-small"
    assert records[0].licenses == ["rhel-cloud:rhel-9-byos"]
    assert records[1].licenses == []


def test_load_empty_file_is_empty_list(tmp_path):
    path = tmp_path / "p-instances.yml"
    path.write_text("")
    assert load_exported_instances(path) == []


def test_load_blank_fields_after_hand_edit(tmp_path):
    path = tmp_path / "p-instances.yml"
    path.write_text(
        "- name: vm-1\n  zone: us-central1-a\n  machineType:\n  status:\n  licenses:\n"
    )

    [record] = load_exported_instances(path)

    assert record.key == ("us-central1-a", "vm-1")
    assert record.machine_type == ""
    assert record.status == ""
    assert record.licenses == []


@pytest.mark.parametrize(
    "content",
    [
        "- name: vm-1\n  zone: [unclosed\n",
        "name: vm-1\nzone: us-central1-a\n",
        "- zone: us-central1-a\n",
    ],
)
def test_load_malformed_file_names_the_file(tmp_path, content):
    path = tmp_path / "p-instances.yml"
    path.write_text(content)

    with pytest.raises(ExportFileInvalidError) as excinfo:
        load_exported_instances(path)

    assert str(path) in str(excinfo.value)
