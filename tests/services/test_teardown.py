from rich.console import Console

from tyson.errors import (
    BlobDeletionError,
    InstanceDeletionError,
    LocatorParseError,
    ResolutionError,
    StorageAccessError,
)
from tyson.models import InstanceRecord, Stage
from tyson.services.teardown import TeardownOrchestrator

DISK_URI = "https://acct1.blob.core.windows.net/vhds/web-01.vhd"


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None

    def error(self, *_args, **_kwargs):
        return None


class FakeControlPlane:
    def __init__(self, calls, disk_uri=DISK_URI, fail=None, keys=("a2V5MQ==",), deleted=True):
        self.calls = calls
        self.disk_uri = disk_uri
        self.fail = fail or set()
        self.keys = list(keys)
        self.deleted = deleted

    def get_instance(self, group, name):
        self.calls.append(("get_instance", group, name))
        if "get_instance" in self.fail:
            raise LookupError("VM not found")
        return InstanceRecord(
            id=f"/subscriptions/0/resourceGroups/{group}/providers/Microsoft.Compute/virtualMachines/{name}",
            name=name,
            resource_group=group,
            disk_uri=self.disk_uri,
        )

    def list_storage_account_keys(self, group, account):
        self.calls.append(("list_keys", group, account))
        if "list_keys" in self.fail:
            raise PermissionError("authorization failed")
        return self.keys

    def delete_instance(self, group, name):
        self.calls.append(("delete_instance", group, name))
        if "delete_instance" in self.fail:
            raise RuntimeError("conflict")
        return self.deleted


class FakeBlobStore:
    def __init__(self, calls, fail=None, deleted=True):
        self.calls = calls
        self.fail = fail or set()
        self.deleted = deleted

    def verify(self):
        self.calls.append(("verify",))
        if "verify" in self.fail:
            raise ConnectionError("storage unreachable")

    def delete_blob_if_exists(self, container, blob_name):
        self.calls.append(("delete_blob", container, blob_name))
        if "delete_blob" in self.fail:
            raise RuntimeError("lease present")
        return self.deleted


class RecordingReport:
    def __init__(self):
        self.events = []

    def step_started(self, stage):
        self.events.append((stage, "running"))

    def step_finished(self, stage, status, error=None):
        self.events.append((stage, status))


def _orchestrator(calls, control_plane=None, store_fail=None, store_deleted=True, report=None):
    control_plane = control_plane or FakeControlPlane(calls)
    factory_args = []

    def factory(endpoint, account, key):
        factory_args.append((endpoint, account, key))
        calls.append(("build_store", account))
        return FakeBlobStore(calls, fail=store_fail, deleted=store_deleted)

    orchestrator = TeardownOrchestrator(
        control_plane=control_plane,
        blob_store_factory=factory,
        logger=DummyLogger(),
        console=Console(record=True),
        report=report,
    )
    return orchestrator, factory_args


def _names(calls):
    return [call[0] for call in calls]


def test_destroy_runs_every_stage_in_order():
    calls = []
    orchestrator, factory_args = _orchestrator(calls)

    outcome = orchestrator.destroy("g1", "web-01")

    assert outcome.is_complete
    assert outcome.instance.name == "web-01"
    assert outcome.locator.blob_name == "web-01.vhd"
    assert _names(calls) == [
        "get_instance",
        "list_keys",
        "build_store",
        "verify",
        "delete_instance",
        "delete_blob",
    ]
    assert calls[1] == ("list_keys", "g1", "acct1")
    assert calls[-1] == ("delete_blob", "vhds", "web-01.vhd")
    assert factory_args == [("https://acct1.blob.core.windows.net", "acct1", "a2V5MQ==")]


def test_resolution_failure_aborts_before_anything_else():
    calls = []
    control_plane = FakeControlPlane(calls, fail={"get_instance"})
    orchestrator, _ = _orchestrator(calls, control_plane=control_plane)

    outcome = orchestrator.destroy("g1", "ghost")

    assert outcome.is_aborted
    assert outcome.stage is Stage.RESOLVE
    assert isinstance(outcome.error, ResolutionError)
    assert _names(calls) == ["get_instance"]


def test_missing_disk_uri_aborts_at_locate_stage():
    calls = []
    control_plane = FakeControlPlane(calls, disk_uri=None)
    orchestrator, _ = _orchestrator(calls, control_plane=control_plane)

    outcome = orchestrator.destroy("g1", "managed-disk-vm")

    assert outcome.stage is Stage.LOCATE_DISK
    assert isinstance(outcome.error, LocatorParseError)
    assert "delete_instance" not in _names(calls)


def test_key_listing_failure_leaves_instance_untouched():
    calls = []
    control_plane = FakeControlPlane(calls, fail={"list_keys"})
    orchestrator, _ = _orchestrator(calls, control_plane=control_plane)

    outcome = orchestrator.destroy("g1", "web-01")

    assert outcome.stage is Stage.VERIFY_STORAGE
    assert isinstance(outcome.error, StorageAccessError)
    assert "authorization failed" in outcome.reason
    assert "delete_instance" not in _names(calls)


def test_empty_key_list_is_a_storage_access_error():
    calls = []
    control_plane = FakeControlPlane(calls, keys=())
    orchestrator, _ = _orchestrator(calls, control_plane=control_plane)

    outcome = orchestrator.destroy("g1", "web-01")

    assert isinstance(outcome.error, StorageAccessError)
    assert "no access keys" in outcome.reason
    assert "delete_instance" not in _names(calls)


def test_unreachable_storage_leaves_instance_untouched():
    calls = []
    orchestrator, _ = _orchestrator(calls, store_fail={"verify"})

    outcome = orchestrator.destroy("g1", "web-01")

    assert outcome.stage is Stage.VERIFY_STORAGE
    assert "delete_instance" not in _names(calls)
    assert "delete_blob" not in _names(calls)


def test_store_construction_failure_leaves_instance_untouched():
    calls = []
    control_plane = FakeControlPlane(calls)

    def broken_factory(endpoint, account, key):
        raise ValueError("Storage account key is not valid base64.")

    orchestrator = TeardownOrchestrator(
        control_plane=control_plane,
        blob_store_factory=broken_factory,
        logger=DummyLogger(),
        console=Console(record=True),
    )

    outcome = orchestrator.destroy("g1", "web-01")

    assert isinstance(outcome.error, StorageAccessError)
    assert "delete_instance" not in _names(calls)


def test_instance_deletion_always_follows_storage_verification():
    calls = []
    orchestrator, _ = _orchestrator(calls)

    orchestrator.destroy("g1", "web-01")

    names = _names(calls)
    assert names.index("verify") < names.index("delete_instance")


def test_instance_deletion_failure_never_touches_blob():
    calls = []
    control_plane = FakeControlPlane(calls, fail={"delete_instance"})
    orchestrator, _ = _orchestrator(calls, control_plane=control_plane)

    outcome = orchestrator.destroy("g1", "web-01")

    assert outcome.is_aborted
    assert outcome.stage is Stage.DELETE_INSTANCE
    assert isinstance(outcome.error, InstanceDeletionError)
    assert "delete_blob" not in _names(calls)


def test_blob_failure_after_instance_deletion_is_partial():
    calls = []
    orchestrator, _ = _orchestrator(calls, store_fail={"delete_blob"})

    outcome = orchestrator.destroy("g1", "web-01")

    assert outcome.is_partial
    assert not outcome.is_complete
    assert not outcome.is_aborted
    assert outcome.stage is Stage.DELETE_BLOB
    assert isinstance(outcome.error, BlobDeletionError)
    assert outcome.locator.url == DISK_URI


def test_already_deleted_instance_and_missing_blob_count_as_complete():
    calls = []
    control_plane = FakeControlPlane(calls, deleted=False)
    orchestrator, _ = _orchestrator(calls, control_plane=control_plane, store_deleted=False)

    outcome = orchestrator.destroy("g1", "web-01")

    assert outcome.is_complete


def test_report_records_each_stage():
    calls = []
    report = RecordingReport()
    orchestrator, _ = _orchestrator(calls, store_fail={"delete_blob"}, report=report)

    orchestrator.destroy("g1", "web-01")

    assert report.events == [
        ("resolve", "running"),
        ("resolve", "success"),
        ("locate_disk", "running"),
        ("locate_disk", "success"),
        ("verify_storage", "running"),
        ("verify_storage", "success"),
        ("delete_instance", "running"),
        ("delete_instance", "success"),
        ("delete_blob", "running"),
        ("delete_blob", "failed"),
    ]


def test_unparseable_disk_uri_aborts_at_locate_stage():
    calls = []
    control_plane = FakeControlPlane(calls, disk_uri="https://[acct1.blob.core.windows.net/vhds/d.vhd")
    orchestrator, _ = _orchestrator(calls, control_plane=control_plane)

    outcome = orchestrator.destroy("g1", "web-01")

    assert outcome.is_aborted
    assert outcome.stage is Stage.LOCATE_DISK
    assert isinstance(outcome.error, LocatorParseError)
    assert _names(calls) == ["get_instance"]
