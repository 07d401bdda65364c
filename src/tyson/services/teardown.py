"""Ordered, fail-safe teardown of a virtual machine and its disk blob."""

from typing import Callable, Optional

from tyson.errors import (
    BlobDeletionError,
    InstanceDeletionError,
    ResolutionError,
    StorageAccessError,
    TeardownError,
)
from tyson.errors_catalog import actionable_error
from tyson.models import DiskLocator, InstanceRecord, Stage, TeardownOutcome
from tyson.services.locator import parse_disk_uri


class TeardownOrchestrator:
    """Runs resolve, locate, verify, delete instance, delete blob.

    The virtual machine is only deleted once the storage account holding its
    disk has answered with a valid key. Blob failures after the machine is
    gone produce a partial outcome rather than an abort.
    """

    def __init__(
        self,
        control_plane,
        blob_store_factory: Callable,
        logger,
        console,
        report=None,
    ):
        self.control_plane = control_plane
        self.blob_store_factory = blob_store_factory
        self.logger = logger
        self.console = console
        self.report = report

    def destroy(self, resource_group: str, name: str) -> TeardownOutcome:
        self.logger.info("Destroying virtual machine %s in group %s", name, resource_group)
        instance: Optional[InstanceRecord] = None
        locator: Optional[DiskLocator] = None

        try:
            instance = self._run_stage(Stage.RESOLVE, self.resolve, resource_group, name)
            locator = self._run_stage(Stage.LOCATE_DISK, parse_disk_uri, instance.disk_uri)
            store = self._run_stage(Stage.VERIFY_STORAGE, self.verify_storage, resource_group, locator)
            self._run_stage(Stage.DELETE_INSTANCE, self.delete_instance, resource_group, name)
        except TeardownError as exc:
            self.logger.error("Teardown aborted at stage '%s': %s", exc.stage.value, exc)
            return TeardownOutcome.aborted(exc.stage, exc, instance=instance, locator=locator)

        try:
            self._run_stage(Stage.DELETE_BLOB, self.delete_blob, store, locator)
        except BlobDeletionError as exc:
            self.logger.warning(
                actionable_error("orphaned_blob", name=name, url=locator.url)
            )
            return TeardownOutcome.partial(exc, instance=instance, locator=locator)

        return TeardownOutcome.complete(instance=instance, locator=locator)

    def resolve(self, resource_group: str, name: str) -> InstanceRecord:
        try:
            return self.control_plane.get_instance(resource_group, name)
        except Exception as exc:
            raise ResolutionError(
                f"Unable to get virtual machine {name} in group {resource_group}: {exc}"
            ) from exc

    def verify_storage(self, resource_group: str, locator: DiskLocator):
        try:
            keys = self.control_plane.list_storage_account_keys(
                resource_group, locator.storage_account
            )
            if not keys:
                raise StorageAccessError(
                    f"Storage account '{locator.storage_account}' returned no access keys."
                )
            store = self.blob_store_factory(
                locator.blob_endpoint, locator.storage_account, keys[0]
            )
            store.verify()
        except StorageAccessError:
            raise
        except Exception as exc:
            raise StorageAccessError(
                f"{actionable_error('storage_unreachable', account=locator.storage_account)} "
                f"Cause: {exc}"
            ) from exc
        return store

    def delete_instance(self, resource_group: str, name: str):
        try:
            deleted = self.control_plane.delete_instance(resource_group, name)
        except Exception as exc:
            raise InstanceDeletionError(f"Unable to delete virtual machine {name}: {exc}") from exc

        if deleted:
            self.console.print(f"[green]Virtual machine {name} deleted.[/green]")
        else:
            self.logger.warning("Virtual machine %s was already gone.", name)

    def delete_blob(self, store, locator: DiskLocator):
        self.logger.info(
            "Removing blob %s in container %s", locator.blob_name, locator.container
        )
        try:
            deleted = store.delete_blob_if_exists(locator.container, locator.blob_name)
        except Exception as exc:
            raise BlobDeletionError(f"Unable to delete blob {locator.blob_name}: {exc}") from exc

        if deleted:
            self.console.print(f"[green]Blob {locator.blob_name} deleted.[/green]")
        else:
            self.logger.warning("Blob %s did not exist.", locator.url)

    def _run_stage(self, stage: Stage, callback, *args):
        self.logger.debug("Entering stage %s", stage.value)
        if self.report:
            self.report.step_started(stage.value)

        try:
            result = callback(*args)
        except Exception as exc:
            if self.report:
                self.report.step_finished(stage.value, "failed", error=str(exc))
            raise

        if self.report:
            self.report.step_finished(stage.value, "success")
        return result
