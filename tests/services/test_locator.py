import pytest

from tyson.errors import LocatorParseError
from tyson.models import Stage
from tyson.services.locator import parse_disk_uri, resource_group_from_id


def test_parse_disk_uri_splits_account_container_and_blob():
    locator = parse_disk_uri("https://acct1.blob.core.windows.net/vhds/disk1.vhd")

    assert locator.storage_account == "acct1"
    assert locator.container == "vhds"
    assert locator.blob_name == "disk1.vhd"
    assert locator.blob_endpoint == "https://acct1.blob.core.windows.net"
    assert locator.url == "https://acct1.blob.core.windows.net/vhds/disk1.vhd"


def test_parse_disk_uri_keeps_sovereign_cloud_endpoint():
    locator = parse_disk_uri("https://acct2.blob.core.chinacloudapi.cn/vhds/os.vhd")

    assert locator.storage_account == "acct2"
    assert locator.blob_endpoint == "https://acct2.blob.core.chinacloudapi.cn"


@pytest.mark.parametrize(
    "disk_uri",
    [
        None,
        "",
        "ftp://acct1.blob.core.windows.net/vhds/disk1.vhd",
        "https:///vhds/disk1.vhd",
        "https://acct1.blob.core.windows.net/vhds",
        "https://acct1.blob.core.windows.net/vhds/",
        "https://acct1.blob.core.windows.net/vhds/nested/disk1.vhd",
        "not a uri",
        "https://[acct1.blob.core.windows.net/vhds/disk1.vhd",
    ],
)
def test_parse_disk_uri_rejects_malformed_uris(disk_uri):
    with pytest.raises(LocatorParseError) as excinfo:
        parse_disk_uri(disk_uri)

    assert excinfo.value.stage is Stage.LOCATE_DISK


def test_resource_group_from_id_reads_group_segment():
    resource_id = (
        "/subscriptions/0000/resourceGroups/web-rg/providers/"
        "Microsoft.Compute/virtualMachines/web-01"
    )

    assert resource_group_from_id(resource_id) == "web-rg"


def test_resource_group_from_id_is_case_insensitive_on_segment_name():
    resource_id = "/subscriptions/0000/RESOURCEGROUPS/WEB-RG/providers/x/virtualMachines/web-01"

    assert resource_group_from_id(resource_id) == "WEB-RG"


def test_resource_group_from_id_rejects_ids_without_group():
    with pytest.raises(ValueError):
        resource_group_from_id("/subscriptions/0000/providers/Microsoft.Compute")


def test_parse_disk_uri_decodes_percent_encoded_segments():
    locator = parse_disk_uri("https://acct1.blob.core.windows.net/vhds/my%20disk.vhd")

    assert locator.container == "vhds"
    assert locator.blob_name == "my disk.vhd"
    assert locator.url == "https://acct1.blob.core.windows.net/vhds/my%20disk.vhd"
