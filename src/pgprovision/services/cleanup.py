"""Best-effort teardown of everything pgprovision manages."""

import os
from typing import Callable, List, Optional

from pgprovision.errors import CleanupWarning, ProvisionerError
from pgprovision.models import ResourceNames


class CleanupController:
    """Removes managed containers, volumes, network and generated files.

    Safe to call when nothing exists. Failures are collected as
    ``CleanupWarning`` objects and logged; they never propagate.
    """

    def __init__(
        self,
        logger,
        console,
        runtime,
        filesystem_service,
        names: Optional[ResourceNames] = None,
        directory: str = ".",
    ):
        self.logger = logger
        self.console = console
        self.runtime = runtime
        self.filesystem_service = filesystem_service
        self.names = names or ResourceNames()
        self.directory = directory

    def _attempt(self, step: str, action: Callable[[], None], warnings: List[CleanupWarning]):
        try:
            action()
        except ProvisionerError as exc:
            warnings.append(CleanupWarning(step, str(exc)))

    def remove_generated_files(self) -> List[CleanupWarning]:
        self.logger.info("Removing configuration files...")
        paths = [os.path.join(self.directory, name) for name in self.names.generated_files]
        return self.filesystem_service.remove_files(paths)

    def cleanup(self, include_runtime: bool = True) -> List[CleanupWarning]:
        warnings: List[CleanupWarning] = []

        if include_runtime:
            self.console.print("[dim]Cleaning up existing setup...[/dim]")
            self.logger.info("Cleaning up existing setup...")
            for container in self.names.containers:
                self._attempt(
                    f"remove container {container}",
                    lambda name=container: self.runtime.remove_container(name),
                    warnings,
                )
            for volume in self.names.volumes:
                self._attempt(
                    f"remove volume {volume}",
                    lambda name=volume: self.runtime.remove_volume(name),
                    warnings,
                )
            self._attempt("prune dangling volumes", self.runtime.prune_volumes, warnings)
            self._attempt(
                f"remove network {self.names.network}",
                lambda: self.runtime.remove_network(self.names.network),
                warnings,
            )

        warnings.extend(self.remove_generated_files())

        for warning in warnings:
            self.logger.warning("Cleanup step failed (%s): %s", warning.step, warning.detail)
        return warnings
