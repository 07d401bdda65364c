"""Azure Resource Manager and Blob Storage adapters."""

import base64
import binascii
from typing import List, Optional

from azure.core.credentials import AzureNamedKeyCredential
from azure.core.exceptions import ClientAuthenticationError, ResourceNotFoundError
from azure.identity import ClientSecretCredential
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.storage import StorageManagementClient
from azure.storage.blob import BlobServiceClient

from tyson.errors import AuthError
from tyson.models import Credentials, InstancePage, InstanceRecord
from tyson.services.locator import resource_group_from_id

MANAGEMENT_SCOPE = "https://management.azure.com/.default"


def instance_from_vm(vm) -> InstanceRecord:
    """Build an :class:`InstanceRecord` from an SDK ``VirtualMachine``."""
    vhd = None
    storage_profile = getattr(vm, "storage_profile", None)
    os_disk = getattr(storage_profile, "os_disk", None)
    if os_disk is not None and os_disk.vhd is not None:
        vhd = os_disk.vhd.uri

    return InstanceRecord(
        id=vm.id,
        name=vm.name,
        resource_group=resource_group_from_id(vm.id),
        disk_uri=vhd,
    )


class AzureControlPlane:
    """Compute and storage management calls used by the teardown."""

    def __init__(self, compute_client, storage_client, logger):
        self.compute = compute_client
        self.storage = storage_client
        self.logger = logger

    def get_instance(self, resource_group: str, name: str) -> InstanceRecord:
        vm = self.compute.virtual_machines.get(resource_group, name)
        return instance_from_vm(vm)

    def list_instances_page(self, resource_group: str, cursor: Optional[str]) -> InstancePage:
        pages = self.compute.virtual_machines.list(resource_group).by_page(continuation_token=cursor)
        return self._next_page(pages)

    def list_all_instances_page(self, cursor: Optional[str]) -> InstancePage:
        pages = self.compute.virtual_machines.list_all().by_page(continuation_token=cursor)
        return self._next_page(pages)

    def delete_instance(self, resource_group: str, name: str) -> bool:
        """Delete and wait. Returns False when the machine no longer exists."""
        try:
            poller = self.compute.virtual_machines.begin_delete(resource_group, name)
            poller.result()
        except ResourceNotFoundError:
            return False
        return True

    def list_storage_account_keys(self, resource_group: str, account_name: str) -> List[str]:
        result = self.storage.storage_accounts.list_keys(resource_group, account_name)
        return [key.value for key in (result.keys or []) if key.value]

    @staticmethod
    def _next_page(pages) -> InstancePage:
        try:
            page = next(pages)
        except StopIteration:
            return InstancePage(items=())
        items = tuple(instance_from_vm(vm) for vm in page)
        return InstancePage(items=items, next_cursor=pages.continuation_token)


class AzureBlobStore:
    """Blob service handle authenticated with a storage account key."""

    def __init__(self, blob_endpoint: str, account_name: str, account_key: str, service_client=None):
        try:
            base64.b64decode(account_key, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Storage account key for '{account_name}' is not valid base64.") from exc

        self.account_name = account_name
        self.client = service_client or BlobServiceClient(
            account_url=blob_endpoint,
            credential=AzureNamedKeyCredential(account_name, account_key),
        )

    def verify(self):
        self.client.get_account_information()

    def delete_blob_if_exists(self, container: str, blob_name: str) -> bool:
        blob = self.client.get_blob_client(container=container, blob=blob_name)
        try:
            blob.delete_blob(delete_snapshots="include")
        except ResourceNotFoundError:
            return False
        return True


def connect(credentials: Credentials, logger) -> AzureControlPlane:
    """Authenticate the service principal and build management clients."""
    logger.info("Authenticating service principal %s", credentials.client_id)
    try:
        credential = ClientSecretCredential(
            tenant_id=credentials.tenant_id,
            client_id=credentials.client_id,
            client_secret=credentials.client_secret,
        )
        credential.get_token(MANAGEMENT_SCOPE)
    except (ClientAuthenticationError, ValueError) as exc:
        raise AuthError(f"Unable to create an Azure client: {exc}") from exc

    return AzureControlPlane(
        compute_client=ComputeManagementClient(credential, credentials.subscription_id),
        storage_client=StorageManagementClient(credential, credentials.subscription_id),
        logger=logger,
    )
