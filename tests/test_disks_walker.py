import pytest
import requests

from licensewalker.errors import DiskPatchError
from licensewalker.walkers.disks import (
    disk_name_from_source,
    get_disk_licenses,
    patch_disk_licenses,
)


def test_disk_name_from_source():
    src = "https://www.googleapis.com/compute/v1/projects/p/zones/z/disks/boot-1"
    assert disk_name_from_source(src) == "boot-1"
    assert disk_name_from_source("") == ""
    assert disk_name_from_source(None) == ""


def test_get_disk_licenses(ctx, mocker, make_instance):
    ctx.disks_client.get.return_value = mocker.Mock(
        licenses=["https://www.googleapis.com/compute/v1/projects/rhel-cloud/global/licenses/rhel-9-server"]
    )
    assert get_disk_licenses(ctx, make_instance(), "boot-1") == ["rhel-cloud:rhel-9-server"]
    ctx.disks_client.get.assert_called_once_with(
        project="test-project", zone="us-central1-a", disk="boot-1"
    )


def test_patch_disk_licenses_request_shape(ctx, mocker, make_instance):
    resp = mocker.Mock(status_code=200)
    resp.json.return_value = {"name": "operation-1", "status": "RUNNING"}
    ctx.session.patch.return_value = resp

    op = patch_disk_licenses(ctx, make_instance(), "boot-1", "https://lic/rhel-9-server")

    assert op["name"] == "operation-1"
    url = ctx.session.patch.call_args.args[0]
    kwargs = ctx.session.patch.call_args.kwargs
    assert url == (
        "https://compute.googleapis.com/compute/alpha/projects/test-project"
        "/zones/us-central1-a/disks/boot-1"
    )
    assert kwargs["params"] == {"paths": "licenses"}
    assert kwargs["json"] == {"name": "boot-1", "licenses": ["https://lic/rhel-9-server"]}


def test_patch_disk_licenses_non_json_body(ctx, mocker, make_instance):
    resp = mocker.Mock(status_code=204)
    resp.json.side_effect = ValueError("no body")
    ctx.session.patch.return_value = resp

    assert patch_disk_licenses(ctx, make_instance(), "boot-1", "lic") == {}


def test_patch_disk_licenses_http_error_captures_body(ctx, mocker, make_instance):
    ctx.session.patch.return_value = mocker.Mock(
        status_code=403, reason="Forbidden", text='{"error": "denied"}'
    )

    with pytest.raises(DiskPatchError) as excinfo:
        patch_disk_licenses(ctx, make_instance(), "boot-1", "lic")

    assert excinfo.value.status_code == 403
    assert "denied" in excinfo.value.body
    assert "403" in str(excinfo.value)


def test_patch_disk_licenses_transport_error(ctx, make_instance):
    ctx.session.patch.side_effect = requests.ConnectionError("reset")

    with pytest.raises(DiskPatchError, match="reset"):
        patch_disk_licenses(ctx, make_instance(), "boot-1", "lic")
