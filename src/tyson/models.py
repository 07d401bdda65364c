"""Shared domain models for tyson."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple
from urllib.parse import quote


class Stage(str, Enum):
    """Ordered teardown stages."""

    RESOLVE = "resolve"
    LOCATE_DISK = "locate_disk"
    VERIFY_STORAGE = "verify_storage"
    DELETE_INSTANCE = "delete_instance"
    DELETE_BLOB = "delete_blob"


@dataclass(frozen=True)
class Credentials:
    """Service principal identity used to authorize management calls."""

    subscription_id: str
    client_id: str
    client_secret: str = field(repr=False)
    tenant_id: str


@dataclass(frozen=True)
class InstanceRecord:
    """Read-only snapshot of one virtual machine."""

    id: str
    name: str
    resource_group: str
    disk_uri: Optional[str] = None


@dataclass(frozen=True)
class InstancePage:
    """One page of a virtual machine listing."""

    items: Tuple[InstanceRecord, ...]
    next_cursor: Optional[str] = None


@dataclass(frozen=True)
class DiskLocator:
    """Storage address of a VHD blob."""

    storage_account: str
    container: str
    blob_name: str
    blob_endpoint: str

    @property
    def url(self) -> str:
        return f"{self.blob_endpoint}/{quote(self.container)}/{quote(self.blob_name)}"


@dataclass(frozen=True)
class TeardownOutcome:
    """Terminal result of one teardown run."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    ABORTED = "aborted"

    status: str
    stage: Optional[Stage] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None
    instance: Optional[InstanceRecord] = None
    locator: Optional[DiskLocator] = None

    @classmethod
    def complete(cls, instance: InstanceRecord, locator: DiskLocator) -> "TeardownOutcome":
        return cls(status=cls.COMPLETE, instance=instance, locator=locator)

    @classmethod
    def partial(
        cls,
        error: Exception,
        instance: InstanceRecord,
        locator: DiskLocator,
    ) -> "TeardownOutcome":
        return cls(
            status=cls.PARTIAL,
            stage=Stage.DELETE_BLOB,
            reason=str(error),
            error=error,
            instance=instance,
            locator=locator,
        )

    @classmethod
    def aborted(
        cls,
        stage: Stage,
        error: Exception,
        instance: Optional[InstanceRecord] = None,
        locator: Optional[DiskLocator] = None,
    ) -> "TeardownOutcome":
        return cls(
            status=cls.ABORTED,
            stage=stage,
            reason=str(error),
            error=error,
            instance=instance,
            locator=locator,
        )

    @property
    def is_complete(self) -> bool:
        return self.status == self.COMPLETE

    @property
    def is_partial(self) -> bool:
        return self.status == self.PARTIAL

    @property
    def is_aborted(self) -> bool:
        return self.status == self.ABORTED


@dataclass(frozen=True)
class RunSettings:
    """Resolved options for a single invocation."""

    credentials_file: str
    random: bool = False
    regex: str = ".*"
    force: bool = False
    resource_group: Optional[str] = None
    vm_name: Optional[str] = None
    seed: Optional[int] = None
    verbose: bool = False
    log_file: Optional[str] = None
    report_file: Optional[str] = None
