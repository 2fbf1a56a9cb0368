import logging
import os
from typing import List, Optional

import requests
from rich.console import Console
from rich.markup import escape

from .errors import CleanupWarning, ProvisionerError, RuntimeEnvironmentError, ValidationError
from .models import ProvisioningConfig, ResourceNames
from .services.cleanup import CleanupController
from .services.command_runner import CommandRunner
from .services.compose import ComposeService
from .services.docker_runtime import DockerRuntimeService
from .services.filesystem import FileSystemService
from .services.ports import PortResolver
from .services.readiness import ReadinessGate
from .services.validation import ValidationService

console = Console()
error_console = Console(stderr=True)
logger = logging.getLogger("pgprovision")


def _one_line(exc: BaseException) -> str:
    return escape(" ".join(str(exc).split()))


class Provisioner:
    def __init__(
        self,
        config: ProvisioningConfig,
        runtime=None,
        port_resolver: Optional[PortResolver] = None,
        requests_module=requests,
        directory: Optional[str] = None,
        readiness_attempts: Optional[int] = None,
        readiness_delay: Optional[float] = None,
    ):
        self.config = config
        self.names = ResourceNames()
        self.directory = directory or os.getcwd()
        self.current_step_name: Optional[str] = None
        self.cleanup_warnings: List[CleanupWarning] = []

        self.filesystem_service = FileSystemService(logger=logger)
        self.command_runner = CommandRunner(logger=logger)
        self.runtime = runtime or DockerRuntimeService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
        )
        self.validation_service = ValidationService()
        self.port_resolver = port_resolver or PortResolver(logger=logger)
        self.compose_service = ComposeService(
            logger=logger,
            filesystem_service=self.filesystem_service,
            names=self.names,
        )

        gate_options = {}
        if readiness_attempts is not None:
            gate_options["max_attempts"] = readiness_attempts
        if readiness_delay is not None:
            gate_options["delay_seconds"] = readiness_delay
        self.readiness_gate = ReadinessGate(
            logger=logger,
            console=console,
            runtime=self.runtime,
            requests_module=requests_module,
            **gate_options,
        )
        self.cleanup_controller = CleanupController(
            logger=logger,
            console=console,
            runtime=self.runtime,
            filesystem_service=self.filesystem_service,
            names=self.names,
            directory=self.directory,
        )

    def _run_step(self, name: str, callback, *args, **kwargs):
        self.current_step_name = name
        logger.debug("Step started: %s", name)
        result = callback(*args, **kwargs)
        logger.debug("Step finished: %s", name)
        self.current_step_name = None
        return result

    def check_requirements(self):
        self.runtime.ensure_available()

    def validate_config(self) -> ProvisioningConfig:
        console.print("[blue]Validating configuration...[/blue]")
        logger.info("Validating configuration...")
        return self.validation_service.validate(self.config)

    def resolve_ports(self, config: ProvisioningConfig) -> ProvisioningConfig:
        return self.port_resolver.resolve(config)

    def pre_run_cleanup(self):
        if self.config.skip_cleanup:
            logger.info("Skipping cleanup as requested")
            return
        self.cleanup_warnings.extend(self.cleanup_controller.cleanup(include_runtime=True))

    def create_config_files(self, config: ProvisioningConfig):
        self.compose_service.write(config, self.directory)

    def start_containers(self):
        manifest_path = os.path.join(self.directory, self.names.compose_file)
        self.runtime.bring_up(manifest_path)

    def wait_for_services(self, config: ProvisioningConfig):
        logger.info("Waiting for containers to be ready...")
        self.readiness_gate.wait_for_database(self.names.postgres_container, config.postgres_user)
        self.readiness_gate.wait_for_console(int(config.pgadmin_port), self.names.pgadmin_container)
        logger.info("All containers are ready!")

    def remove_config_files(self):
        logger.info("Cleaning up configuration files...")
        self.cleanup_warnings.extend(self.cleanup_controller.cleanup(include_runtime=False))

    def rollback(self):
        error_console.print("[yellow]Rolling back: removing containers, volumes and network...[/yellow]")
        logger.info("Rolling back provisioned resources...")
        self.cleanup_warnings.extend(self.cleanup_controller.cleanup(include_runtime=True))

    def show_connection_info(self, config: ProvisioningConfig):
        console.print("[bold green]Setup completed successfully![/bold green]")
        console.print(f"PostgreSQL is running on localhost:{config.postgres_port}")
        console.print(f"pgAdmin is accessible at http://localhost:{config.pgadmin_port}")
        console.print("")
        console.print("[bold]PostgreSQL Credentials:[/bold]")
        console.print(f"Username: {escape(config.postgres_user)}")
        console.print(f"Password: {escape(config.postgres_password)}")
        console.print("")
        console.print("[bold]pgAdmin Credentials:[/bold]")
        console.print(f"Email: {escape(config.pgadmin_email)}")
        console.print(f"Password: {escape(config.pgadmin_password)}")

    def run(self) -> int:
        # Nothing exists before validation succeeds, so only later failures roll back.
        needs_rollback = False
        exit_code = 1

        try:
            logger.info("Starting pgprovision...")
            self._run_step("check_requirements", self.check_requirements)
            config = self._run_step("validate_config", self.validate_config)
            config = self._run_step("resolve_ports", self.resolve_ports, config)

            needs_rollback = True
            self._run_step("pre_run_cleanup", self.pre_run_cleanup)
            self._run_step("create_config_files", self.create_config_files, config)
            self._run_step("start_containers", self.start_containers)
            self._run_step("wait_for_services", self.wait_for_services, config)
            needs_rollback = False

            self._run_step("remove_config_files", self.remove_config_files)
            self.show_connection_info(config)
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            error_console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return exit_code
        except (ValidationError, RuntimeEnvironmentError) as exc:
            error_console.print(f"[bold red]Error:[/bold red] {_one_line(exc)}", soft_wrap=True)
            logger.error(str(exc))
            return exit_code
        except ProvisionerError as exc:
            error_console.print(f"[bold red]Error:[/bold red] {_one_line(exc)}", soft_wrap=True)
            logger.error("Step '%s' failed: %s", self.current_step_name or "run", exc)
            return exit_code
        except Exception as exc:
            error_console.print(f"[bold red]Unexpected error:[/bold red] {_one_line(exc)}", soft_wrap=True)
            logger.exception("Unexpected error")
            return exit_code
        finally:
            if needs_rollback:
                self.rollback()
