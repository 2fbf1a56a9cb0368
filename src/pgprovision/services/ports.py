"""Host port conflict detection for pgprovision."""

import dataclasses
import errno
import socket

from pgprovision import constants
from pgprovision.errors import PortExhaustedError
from pgprovision.errors_catalog import actionable_error
from pgprovision.models import ProvisioningConfig


class PortResolver:
    """Picks the first free host port at or above a candidate.

    The answer is a snapshot of the host's listeners; nothing is reserved, so
    another process may still bind the port before Docker does.
    """

    LOOPBACK_HOSTS = ((socket.AF_INET, "127.0.0.1"), (socket.AF_INET6, "::1"))

    def __init__(self, logger, socket_module=socket, probe_timeout: float = 1.0):
        self.logger = logger
        self.socket = socket_module
        self.probe_timeout = probe_timeout

    def _accepts_connection(self, family, host: str, port: int) -> bool:
        try:
            with self.socket.socket(family, self.socket.SOCK_STREAM) as sock:
                sock.settimeout(self.probe_timeout)
                return sock.connect_ex((host, port)) == 0
        except OSError:
            # Address family not available on this host.
            return False

    def _bind_refused(self, family, port: int) -> bool:
        # Docker publishes on the wildcard addresses, so any listener on the
        # port, whatever interface it is bound to, makes this bind fail.
        try:
            with self.socket.socket(family, self.socket.SOCK_STREAM) as sock:
                sock.bind(("", port))
        except OSError as exc:
            return exc.errno == errno.EADDRINUSE
        return False

    def is_port_in_use(self, port: int) -> bool:
        for family, host in self.LOOPBACK_HOSTS:
            if self._accepts_connection(family, host, port):
                return True
        return any(self._bind_refused(family, port) for family, _host in self.LOOPBACK_HOSTS)

    def resolve_port(self, candidate: int, label: str = "service", option: str = "--port") -> int:
        port = candidate
        while self.is_port_in_use(port):
            if port >= constants.MAX_PORT:
                raise PortExhaustedError(
                    actionable_error("ports_exhausted", label=label, port=candidate, option=option)
                )
            port += 1

        if port != candidate:
            self.logger.warning("Port %s is in use. Using port %s for %s instead", candidate, port, label)
        return port

    def resolve(self, config: ProvisioningConfig) -> ProvisioningConfig:
        postgres_port = self.resolve_port(int(config.postgres_port), "PostgreSQL", "--postgres-port")
        pgadmin_port = self.resolve_port(int(config.pgadmin_port), "pgAdmin", "--pgadmin-port")
        return dataclasses.replace(config, postgres_port=postgres_port, pgadmin_port=pgadmin_port)
