"""Parsing helpers for Azure disk URIs and resource ids."""

from typing import Optional
from urllib.parse import unquote, urlparse

from tyson.errors import LocatorParseError
from tyson.models import DiskLocator


def parse_disk_uri(disk_uri: Optional[str]) -> DiskLocator:
    """Split a VHD URI such as ``https://acct.blob.core.windows.net/vhds/disk.vhd``.

    The storage account is the first DNS label of the host, the container the
    first path segment and the blob the second one. Anything else is rejected,
    so a malformed URI can never point deletion at the wrong blob.
    """
    if not disk_uri:
        raise LocatorParseError(
            "Virtual machine has no VHD disk URI. Only unmanaged OS disks can be located."
        )

    try:
        parsed = urlparse(disk_uri.strip())
        host = parsed.hostname or ""
    except ValueError as exc:
        raise LocatorParseError(f"Disk URI is malformed: {disk_uri}: {exc}") from exc

    if parsed.scheme.lower() not in {"http", "https"}:
        raise LocatorParseError(f"Disk URI must use http or https: {disk_uri}")

    storage_account = host.split(".")[0]
    if not storage_account:
        raise LocatorParseError(f"Disk URI has no storage account host: {disk_uri}")

    segments = [unquote(segment) for segment in parsed.path.split("/")[1:]]
    if len(segments) != 2 or not all(segments):
        raise LocatorParseError(
            f"Disk URI path must be '/<container>/<blob>', got '{parsed.path}': {disk_uri}"
        )

    container, blob_name = segments
    return DiskLocator(
        storage_account=storage_account,
        container=container,
        blob_name=blob_name,
        blob_endpoint=f"{parsed.scheme.lower()}://{parsed.netloc}",
    )


def resource_group_from_id(resource_id: str) -> str:
    """Return the resource group named in an ARM resource id."""
    segments = resource_id.strip("/").split("/")
    for index, segment in enumerate(segments[:-1]):
        if segment.lower() == "resourcegroups" and segments[index + 1]:
            return segments[index + 1]
    raise ValueError(f"Resource id has no resource group: {resource_id}")
