import logging
import random
import time
import uuid
from dataclasses import asdict
from typing import Callable, Optional, Tuple

from rich.console import Console

from .errors import ConfigError, TysonError
from .errors_catalog import actionable_error
from .models import RunSettings, TeardownOutcome
from .services.azure import AzureBlobStore, connect
from .services.credentials import CredentialLoader
from .services.directory import ResourceDirectory
from .services.prompt import ConfirmationPrompt
from .services.report import ReportService
from .services.selector import TargetSelector, compile_pattern
from .services.teardown import TeardownOrchestrator

console = Console()
logger = logging.getLogger("tyson")

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_PARTIAL = 3


class Tyson:
    """Selects a virtual machine and tears it down, one run per instance."""

    def __init__(
        self,
        settings: RunSettings,
        connect_func: Callable = connect,
        blob_store_factory: Callable = AzureBlobStore,
        prompt: Optional[ConfirmationPrompt] = None,
    ):
        self.settings = settings
        self.run_id = uuid.uuid4().hex[:10]
        self.pattern = compile_pattern(settings.regex)
        self._validate_settings()

        self.connect = connect_func
        self.blob_store_factory = blob_store_factory
        self.credential_loader = CredentialLoader(logger=logger)
        self.selector = TargetSelector(logger=logger)
        self.prompt = prompt or ConfirmationPrompt(console=console, logger=logger)
        self.report_service = ReportService(report_file=settings.report_file, logger=logger)

    def _validate_settings(self):
        if self.settings.random:
            if self.settings.vm_name:
                logger.warning(
                    "Ignoring --vm-name '%s' because random selection is enabled.",
                    self.settings.vm_name,
                )
            return

        if not self.settings.resource_group:
            raise ConfigError(actionable_error("missing_resource_group"))
        if not self.settings.vm_name:
            raise ConfigError(actionable_error("missing_vm_name"))

    def new_rng(self) -> random.Random:
        seed = self.settings.seed if self.settings.seed is not None else time.time_ns()
        logger.debug("Selection seed: %s", seed)
        return random.Random(seed)

    def pick_target(self, control_plane) -> Tuple[str, str]:
        if not self.settings.random:
            return self.settings.resource_group, self.settings.vm_name

        console.print("[blue]Finding a random target to destroy...[/blue]")
        directory = ResourceDirectory(control_plane=control_plane, logger=logger)
        group = self.settings.resource_group
        population = directory.list_in_group(group) if group else directory.list_all()

        target = self.selector.select(population, self.pattern, group, self.new_rng())
        self.report_service.set_target(target)
        console.print(
            f"[bold]Selected {target.name} in resource group {target.resource_group}.[/bold]"
        )
        return target.resource_group, target.name

    def confirm(self, resource_group: str, vm_name: str) -> bool:
        if self.settings.force:
            return True
        return self.prompt.ask(
            f"Are you sure you want to delete {vm_name} in resource group {resource_group}? "
        )

    def render_outcome(self, outcome: TeardownOutcome) -> int:
        if outcome.is_complete:
            console.print(
                f"[bold green]Virtual machine {outcome.instance.name} and its disk blob were destroyed.[/bold green]"
            )
            return EXIT_SUCCESS

        if outcome.is_partial:
            message = actionable_error(
                "orphaned_blob", name=outcome.instance.name, url=outcome.locator.url
            )
            console.print(f"[bold yellow]Partial teardown:[/bold yellow] {message}")
            console.print(f"[yellow]Cause:[/yellow] {outcome.reason}")
            return EXIT_PARTIAL

        console.print(
            f"[bold red]Teardown aborted at stage '{outcome.stage.value}':[/bold red] {outcome.reason}"
        )
        return EXIT_FAILURE

    def run(self) -> int:
        exit_code = EXIT_FAILURE
        report_status = "failed"
        report_error: Optional[str] = None

        try:
            logger.info("Starting tyson run %s...", self.run_id)
            self.report_service.start_run(self.run_id, asdict(self.settings))

            credentials = self.credential_loader.load(self.settings.credentials_file)
            control_plane = self.connect(credentials, logger)

            resource_group, vm_name = self.pick_target(control_plane)

            if not self.confirm(resource_group, vm_name):
                console.print("[yellow]Nothing was deleted.[/yellow]")
                logger.info("Operator declined teardown of %s", vm_name)
                report_status = "declined"
                exit_code = EXIT_SUCCESS
                return exit_code

            orchestrator = TeardownOrchestrator(
                control_plane=control_plane,
                blob_store_factory=self.blob_store_factory,
                logger=logger,
                console=console,
                report=self.report_service,
            )
            outcome = orchestrator.destroy(resource_group, vm_name)
            if outcome.instance:
                self.report_service.set_target(outcome.instance)
            self.report_service.set_outcome(outcome)

            report_status = outcome.status
            report_error = outcome.reason
            exit_code = self.render_outcome(outcome)
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            report_status = "cancelled"
            report_error = "Operation cancelled by user."
            exit_code = EXIT_FAILURE
            return exit_code
        except TysonError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            report_error = str(exc)
            exit_code = EXIT_FAILURE
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            report_error = str(exc)
            exit_code = EXIT_FAILURE
            return exit_code
        finally:
            self.report_service.finalize(report_status, error=report_error)
