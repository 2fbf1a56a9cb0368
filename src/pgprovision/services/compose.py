"""Compose manifest and pgAdmin registration generation."""

import json
import os
import tempfile
from typing import Any, Dict, List, Optional, Tuple

import yaml

from pgprovision import constants
from pgprovision.errors import ManifestError
from pgprovision.models import (
    ConnectionRegistration,
    HealthCheck,
    ProvisioningConfig,
    ResourceNames,
    ServiceDescriptor,
)


def _escape_interpolation(value: str) -> str:
    # Compose expands $VAR in the file; $$ is its literal dollar sign.
    return value.replace("$", "$$")


class ComposeService:
    """Renders the two generated files from a resolved configuration."""

    def __init__(self, logger, filesystem_service, names: Optional[ResourceNames] = None):
        self.logger = logger
        self.filesystem_service = filesystem_service
        self.names = names or ResourceNames()

    def build_services(self, config: ProvisioningConfig) -> List[ServiceDescriptor]:
        names = self.names
        postgres = ServiceDescriptor(
            name=names.postgres_service,
            image=config.postgres_image,
            container_name=names.postgres_container,
            environment={
                "POSTGRES_USER": config.postgres_user,
                "POSTGRES_PASSWORD": config.postgres_password,
            },
            published_port=int(config.postgres_port),
            internal_port=constants.POSTGRES_INTERNAL_PORT,
            volume_name=names.postgres_volume,
            mount_path="/var/lib/postgresql/data",
            network_name=names.network,
            healthcheck=HealthCheck(test=["CMD-SHELL", f"pg_isready -U {config.postgres_user}"]),
        )
        pgadmin = ServiceDescriptor(
            name=names.pgadmin_service,
            image=config.pgadmin_image,
            container_name=names.pgadmin_container,
            environment={
                "PGADMIN_DEFAULT_EMAIL": config.pgadmin_email,
                "PGADMIN_DEFAULT_PASSWORD": config.pgadmin_password,
                "PGADMIN_CONFIG_SERVER_MODE": "False",
            },
            published_port=int(config.pgadmin_port),
            internal_port=constants.PGADMIN_INTERNAL_PORT,
            volume_name=names.pgadmin_volume,
            mount_path="/var/lib/pgadmin",
            network_name=names.network,
            depends_on=[names.postgres_service],
            bind_mounts=[f"./{names.servers_file}:/pgadmin4/servers.json:ro"],
        )
        return [postgres, pgadmin]

    def build_registration(self, config: ProvisioningConfig) -> ConnectionRegistration:
        # pgAdmin reaches the database over the compose network, so the
        # internal port applies no matter where the host port was moved.
        return ConnectionRegistration(
            name="PostgreSQL Server",
            group="Servers",
            host=self.names.postgres_container,
            port=constants.POSTGRES_INTERNAL_PORT,
            maintenance_db="postgres",
            username=config.postgres_user,
            password=config.postgres_password,
        )

    def manifest_document(self, services: List[ServiceDescriptor]) -> Dict[str, Any]:
        document: Dict[str, Any] = {"services": {}}
        for service in services:
            entry: Dict[str, Any] = {
                "image": service.image,
                "container_name": service.container_name,
                "environment": [
                    f"{key}={_escape_interpolation(value)}" for key, value in service.environment.items()
                ],
                "volumes": [f"{service.volume_name}:{service.mount_path}"] + list(service.bind_mounts),
                "ports": [f"{service.published_port}:{service.internal_port}"],
                "networks": [service.network_name],
                "restart": service.restart,
            }
            if service.healthcheck is not None:
                entry["healthcheck"] = {
                    "test": [_escape_interpolation(part) for part in service.healthcheck.test],
                    "interval": service.healthcheck.interval,
                    "timeout": service.healthcheck.timeout,
                    "retries": service.healthcheck.retries,
                }
            if service.depends_on:
                entry["depends_on"] = list(service.depends_on)
            document["services"][service.name] = entry

        document["networks"] = {
            network: {"name": network, "driver": "bridge"}
            for network in sorted({service.network_name for service in services})
        }
        document["volumes"] = {service.volume_name: {"name": service.volume_name} for service in services}
        return document

    def registration_document(self, registration: ConnectionRegistration) -> Dict[str, Any]:
        return {
            "Servers": {
                "1": {
                    "Name": registration.name,
                    "Group": registration.group,
                    "Host": registration.host,
                    "Port": registration.port,
                    "MaintenanceDB": registration.maintenance_db,
                    "Username": registration.username,
                    "Password": registration.password,
                    "SSLMode": registration.ssl_mode,
                    "ConnectTimeout": registration.connect_timeout,
                }
            }
        }

    def render(self, config: ProvisioningConfig) -> Tuple[str, str]:
        manifest = self.manifest_document(self.build_services(config))
        registration = self.registration_document(self.build_registration(config))

        manifest_text = yaml.safe_dump(manifest, default_flow_style=False, sort_keys=False)
        registration_text = json.dumps(registration, indent=4) + "\n"
        return manifest_text, registration_text

    def write(self, config: ProvisioningConfig, directory: str = ".") -> Tuple[str, str]:
        """Writes both files or neither of them."""
        manifest_text, registration_text = self.render(config)
        manifest_path = os.path.join(directory, self.names.compose_file)
        registration_path = os.path.join(directory, self.names.servers_file)

        self.logger.info("Creating configuration files...")
        temp_paths: List[str] = []
        try:
            for text in (manifest_text, registration_text):
                fd, temp_path = tempfile.mkstemp(prefix=".pgprovision-", dir=directory)
                temp_paths.append(temp_path)
                with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as file_obj:
                    file_obj.write(text)
                self.filesystem_service.set_permissions(temp_path, constants.FILE_MODE)
            os.replace(temp_paths[0], manifest_path)
            os.replace(temp_paths[1], registration_path)
        except OSError as exc:
            for path in temp_paths + [manifest_path, registration_path]:
                if os.path.exists(path):
                    try:
                        os.remove(path)
                    except OSError:
                        pass
            raise ManifestError(f"Could not write configuration files: {exc}") from exc

        self.logger.debug("Wrote %s and %s", manifest_path, registration_path)
        return manifest_path, registration_path
