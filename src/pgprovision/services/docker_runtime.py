"""Docker runtime adapter for pgprovision."""

import re
from typing import List, Optional

from pgprovision import constants
from pgprovision.errors import (
    CommandError,
    CommandNotFoundError,
    OrchestrationError,
    RuntimeEnvironmentError,
)
from pgprovision.errors_catalog import actionable_error


class DockerRuntimeService:
    """Thin adapter over the docker CLI.

    Every method addresses resources by name only. Removal of something that
    does not exist is treated as success.
    """

    NOT_FOUND_MARKERS = ("no such container", "no such volume", "no such network")
    NETWORK_NOT_FOUND = re.compile(r"network \S+ not found")

    def __init__(self, logger, console, command_runner):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.compose_cmd: Optional[List[str]] = None

    def get_docker_compose_cmd(self) -> List[str]:
        for candidate in (["docker", "compose"], ["docker-compose"]):
            version_arg = "version" if len(candidate) == 2 else "--version"
            try:
                self.command_runner.run(candidate + [version_arg])
                return candidate
            except CommandError:
                continue
        raise RuntimeEnvironmentError(actionable_error("compose_missing"))

    def ensure_available(self):
        self.console.print("[blue]Checking system requirements...[/blue]")
        self.logger.info("Checking system requirements...")
        try:
            self.command_runner.run(["docker", "--version"])
        except CommandNotFoundError as exc:
            raise RuntimeEnvironmentError(actionable_error("docker_not_installed")) from exc
        except CommandError as exc:
            raise RuntimeEnvironmentError(f"{actionable_error('docker_not_installed')} ({exc})") from exc

        try:
            self.command_runner.run(["docker", "info"])
        except CommandError as exc:
            raise RuntimeEnvironmentError(actionable_error("docker_daemon_down")) from exc

        self.compose_cmd = self.get_docker_compose_cmd()
        self.console.print("[green]Docker is available.[/green]")

    def _is_not_found(self, exc: CommandError) -> bool:
        text = f"{exc.stderr} {exc}".lower()
        if any(marker in text for marker in self.NOT_FOUND_MARKERS):
            return True
        return bool(self.NETWORK_NOT_FOUND.search(text))

    def _remove(self, cmd: List[str]):
        try:
            self.command_runner.run(cmd)
        except CommandNotFoundError:
            raise
        except CommandError as exc:
            if self._is_not_found(exc):
                self.logger.debug("Nothing to remove: %s", " ".join(cmd))
                return
            raise

    def remove_container(self, name: str):
        self.logger.info("Removing container: %s", name)
        self._remove(["docker", "rm", "-f", name])

    def remove_volume(self, name: str):
        self.logger.info("Removing volume: %s", name)
        self._remove(["docker", "volume", "rm", "-f", name])

    def prune_volumes(self):
        self.logger.info("Removing any dangling volumes...")
        self.command_runner.run(["docker", "volume", "prune", "-f"])

    def remove_network(self, name: str):
        # `docker network rm` has no force flag, so check first.
        result = self.command_runner.run(
            ["docker", "network", "ls", "-q", "--filter", f"name=^{name}$"],
            check=False,
        )
        if not (result.stdout or "").strip():
            self.logger.debug("Network %s does not exist.", name)
            return
        self.logger.info("Removing network: %s", name)
        self._remove(["docker", "network", "rm", name])

    def bring_up(self, manifest_path: str):
        if self.compose_cmd is None:
            self.compose_cmd = self.get_docker_compose_cmd()

        self.console.print("[blue]Starting containers...[/blue]")
        self.logger.info("Starting containers...")
        try:
            self.command_runner.run(self.compose_cmd + ["-f", manifest_path, "up", "-d"])
        except CommandError as exc:
            raise OrchestrationError(actionable_error("bring_up_failed", detail=str(exc))) from exc

    def probe_health(self, container: str, user: str) -> bool:
        try:
            result = self.command_runner.run(
                ["docker", "exec", container, "pg_isready", "-U", user],
                check=False,
                timeout=constants.HEALTH_PROBE_TIMEOUT_SECONDS,
            )
        except CommandNotFoundError:
            raise
        except CommandError as exc:
            self.logger.debug("Health probe did not complete: %s", exc)
            return False
        return result.returncode == 0
