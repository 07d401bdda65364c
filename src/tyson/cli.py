import logging

import click
from rich.logging import RichHandler

from .core import Tyson
from .errors import TysonError
from .models import RunSettings
from .services.config_loader import ConfigLoader
from .services.credentials import DEFAULT_CREDENTIALS_PATH


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if config.get(key) is not None:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--credentials-file",
    required=False,
    type=click.Path(),
    help=f"JSON file with the Azure service principal credentials (default: {DEFAULT_CREDENTIALS_PATH}).",
)
@click.option("--random", "random_", is_flag=True, default=None, help="Randomly select a machine to destroy.")
@click.option("--regex", required=False, help="Regex matched against machine names during random selection.")
@click.option("-f", "--force", is_flag=True, default=None, help="Do not prompt before destroying.")
@click.option(
    "--resource-group",
    required=False,
    help="Resource group of the virtual machine, or the scope of random selection.",
)
@click.option("--vm-name", required=False, help="Name of the virtual machine to destroy.")
@click.option("--seed", required=False, type=int, default=None, help="Fixed seed for random selection.")
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .tyson.yml if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option("--report-file", type=click.Path(), help="Write a JSON report of the run to this path.")
def main(
    credentials_file,
    random_,
    regex,
    force,
    resource_group,
    vm_name,
    seed,
    config,
    verbose,
    log_file,
    report_file,
):
    """Destroy an Azure virtual machine and the VHD blob behind it."""
    logger = logging.getLogger("tyson")

    try:
        config_loader = ConfigLoader()
        config_values = config_loader.load(config_loader.resolve_path(config))
    except TysonError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    settings = RunSettings(
        credentials_file=str(
            _resolve_option(
                credentials_file,
                config_values,
                "credentials_file",
                default=DEFAULT_CREDENTIALS_PATH,
            )
        ),
        random=bool(_resolve_option(random_, config_values, "random", default=False)),
        regex=_resolve_option(regex, config_values, "regex", default=".*"),
        force=bool(_resolve_option(force, config_values, "force", default=False)),
        resource_group=_resolve_option(resource_group, config_values, "resource_group"),
        vm_name=_resolve_option(vm_name, config_values, "vm_name"),
        seed=_resolve_option(seed, config_values, "seed"),
        verbose=verbose,
        log_file=_resolve_option(log_file, config_values, "log_file"),
        report_file=_resolve_option(report_file, config_values, "report_file"),
    )

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if settings.log_file:
        file_handler = logging.FileHandler(settings.log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        runner = Tyson(settings=settings)
    except TysonError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(runner.run())


if __name__ == "__main__":
    main()
