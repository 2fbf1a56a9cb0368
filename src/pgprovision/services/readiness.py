"""Readiness polling for the provisioned services."""

import time
from typing import Callable

import requests

from pgprovision import constants
from pgprovision.errors import ReadinessTimeoutError
from pgprovision.errors_catalog import actionable_error


class ReadinessGate:
    """Blocks until a service answers, or gives up after a fixed attempt count."""

    def __init__(
        self,
        logger,
        console,
        runtime,
        requests_module=requests,
        max_attempts: int = constants.READINESS_MAX_ATTEMPTS,
        delay_seconds: float = constants.READINESS_DELAY_SECONDS,
        request_timeout: float = constants.CONSOLE_REQUEST_TIMEOUT_SECONDS,
    ):
        self.logger = logger
        self.console = console
        self.runtime = runtime
        self.requests = requests_module
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.request_timeout = request_timeout

    def _poll(self, service: str, container: str, probe: Callable[[], bool]):
        for attempt in range(1, self.max_attempts + 1):
            if probe():
                self.logger.debug("%s ready after %s attempt(s).", service, attempt)
                return
            if attempt < self.max_attempts:
                time.sleep(self.delay_seconds)

        raise ReadinessTimeoutError(
            service,
            actionable_error(
                "readiness_timeout",
                service=service,
                attempts=str(self.max_attempts),
                container=container,
            ),
        )

    def wait_for_database(self, container: str, user: str):
        self.console.print("[yellow]Waiting for PostgreSQL to be ready...[/yellow]")
        self.logger.info("Waiting for PostgreSQL to be ready...")
        self._poll("PostgreSQL", container, lambda: self.runtime.probe_health(container, user))
        self.console.print("[green]PostgreSQL is ready.[/green]")

    def console_answers(self, url: str) -> bool:
        # Any HTTP response counts; pgAdmin redirects to its login page.
        try:
            response = self.requests.get(url, timeout=self.request_timeout, allow_redirects=False)
        except self.requests.RequestException:
            return False
        response.close()
        return True

    def wait_for_console(self, port: int, container: str):
        url = f"http://localhost:{port}"
        self.console.print("[yellow]Waiting for pgAdmin to be ready...[/yellow]")
        self.logger.info("Waiting for pgAdmin to be ready at %s", url)
        self._poll("pgAdmin", container, lambda: self.console_answers(url))
        self.console.print("[green]pgAdmin is ready.[/green]")
