import logging
import os

import click
from rich.logging import RichHandler

from . import constants
from .core import Provisioner
from .errors import ProvisionerError
from .models import ProvisioningConfig
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


class ProvisionCommand(click.Command):
    """Reports every command line mistake with exit status 1."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            exc.exit_code = 1
            raise


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command(cls=ProvisionCommand, context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-u",
    "--postgres-user",
    required=False,
    help=f"PostgreSQL username (default: {constants.DEFAULT_POSTGRES_USER})",
)
@click.option(
    "-p",
    "--postgres-password",
    required=False,
    help=f"PostgreSQL password (default: {constants.DEFAULT_POSTGRES_PASSWORD})",
)
@click.option(
    "--postgres-port",
    required=False,
    help=f"PostgreSQL host port (default: {constants.DEFAULT_POSTGRES_PORT})",
)
@click.option(
    "--pgadmin-email",
    required=False,
    help=f"pgAdmin login email (default: {constants.DEFAULT_PGADMIN_EMAIL})",
)
@click.option(
    "--pgadmin-password",
    required=False,
    help=f"pgAdmin password (default: {constants.DEFAULT_PGADMIN_PASSWORD})",
)
@click.option(
    "--pgadmin-port",
    required=False,
    help=f"pgAdmin host port (default: {constants.DEFAULT_PGADMIN_PORT})",
)
@click.option(
    "--no-cleanup",
    is_flag=True,
    default=None,
    help="Skip cleanup of existing containers before provisioning.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .pgprovision.yml if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    postgres_user,
    postgres_password,
    postgres_port,
    pgadmin_email,
    pgadmin_password,
    pgadmin_port,
    no_cleanup,
    config,
    verbose,
    log_file,
):
    """Provision a local PostgreSQL database and pgAdmin console with Docker."""
    logger = logging.getLogger("pgprovision")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            resolved_config = config_loader.find_default(os.getcwd())

        config_values = config_loader.load(resolved_config)
    except ProvisionerError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    provisioning_config = ProvisioningConfig(
        postgres_user=str(
            _resolve_option(postgres_user, config_values, "postgres_user", constants.DEFAULT_POSTGRES_USER)
        ),
        postgres_password=str(
            _resolve_option(
                postgres_password,
                config_values,
                "postgres_password",
                constants.DEFAULT_POSTGRES_PASSWORD,
            )
        ),
        postgres_port=_resolve_option(
            postgres_port, config_values, "postgres_port", constants.DEFAULT_POSTGRES_PORT
        ),
        pgadmin_email=str(
            _resolve_option(pgadmin_email, config_values, "pgadmin_email", constants.DEFAULT_PGADMIN_EMAIL)
        ),
        pgadmin_password=str(
            _resolve_option(
                pgadmin_password,
                config_values,
                "pgadmin_password",
                constants.DEFAULT_PGADMIN_PASSWORD,
            )
        ),
        pgadmin_port=_resolve_option(
            pgadmin_port, config_values, "pgadmin_port", constants.DEFAULT_PGADMIN_PORT
        ),
        skip_cleanup=bool(_resolve_option(no_cleanup, config_values, "no_cleanup", default=False)),
        postgres_image=str(
            _resolve_option(None, config_values, "postgres_image", constants.DEFAULT_POSTGRES_IMAGE)
        ),
        pgadmin_image=str(
            _resolve_option(None, config_values, "pgadmin_image", constants.DEFAULT_PGADMIN_IMAGE)
        ),
    )

    provisioner = Provisioner(config=provisioning_config)
    raise SystemExit(provisioner.run())


if __name__ == "__main__":
    main()
