"""Shared domain models for pgprovision."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from . import constants


@dataclass(frozen=True)
class ProvisioningConfig:
    """User facing settings. Ports may be raw strings until validated."""

    postgres_user: str = constants.DEFAULT_POSTGRES_USER
    postgres_password: str = constants.DEFAULT_POSTGRES_PASSWORD
    postgres_port: Union[int, str] = constants.DEFAULT_POSTGRES_PORT
    pgadmin_email: str = constants.DEFAULT_PGADMIN_EMAIL
    pgadmin_password: str = constants.DEFAULT_PGADMIN_PASSWORD
    pgadmin_port: Union[int, str] = constants.DEFAULT_PGADMIN_PORT
    skip_cleanup: bool = False
    postgres_image: str = constants.DEFAULT_POSTGRES_IMAGE
    pgadmin_image: str = constants.DEFAULT_PGADMIN_IMAGE


@dataclass(frozen=True)
class ResourceNames:
    """Names of everything the workflow creates or removes."""

    postgres_service: str = constants.POSTGRES_SERVICE
    pgadmin_service: str = constants.PGADMIN_SERVICE
    postgres_container: str = constants.POSTGRES_CONTAINER
    pgadmin_container: str = constants.PGADMIN_CONTAINER
    postgres_volume: str = constants.POSTGRES_VOLUME
    pgadmin_volume: str = constants.PGADMIN_VOLUME
    network: str = constants.NETWORK_NAME
    compose_file: str = constants.COMPOSE_FILE
    servers_file: str = constants.SERVERS_FILE

    @property
    def containers(self) -> Tuple[str, str]:
        return (self.postgres_container, self.pgadmin_container)

    @property
    def volumes(self) -> Tuple[str, str]:
        return (self.postgres_volume, self.pgadmin_volume)

    @property
    def generated_files(self) -> Tuple[str, str]:
        return (self.compose_file, self.servers_file)


@dataclass(frozen=True)
class HealthCheck:
    test: List[str]
    interval: str = "5s"
    timeout: str = "5s"
    retries: int = 5


@dataclass(frozen=True)
class ServiceDescriptor:
    """One managed service as declared in the Compose manifest."""

    name: str
    image: str
    container_name: str
    environment: Dict[str, str]
    published_port: int
    internal_port: int
    volume_name: str
    mount_path: str
    network_name: str
    restart: str = "unless-stopped"
    healthcheck: Optional[HealthCheck] = None
    depends_on: List[str] = field(default_factory=list)
    bind_mounts: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConnectionRegistration:
    """Saved pgAdmin server entry pointing at the database container."""

    name: str
    group: str
    host: str
    port: int
    maintenance_db: str
    username: str
    password: str
    ssl_mode: str = "prefer"
    connect_timeout: int = 10
