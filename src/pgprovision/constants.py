"""Well-known names and defaults shared across pgprovision."""

DEFAULT_POSTGRES_USER = "postgres"
DEFAULT_POSTGRES_PASSWORD = "postgres123456"
DEFAULT_POSTGRES_PORT = 5432
DEFAULT_PGADMIN_EMAIL = "admin@admin.com"
DEFAULT_PGADMIN_PASSWORD = "pgadmin123456"
DEFAULT_PGADMIN_PORT = 5050

DEFAULT_POSTGRES_IMAGE = "postgres:latest"
DEFAULT_PGADMIN_IMAGE = "dpage/pgadmin4:latest"

POSTGRES_SERVICE = "postgres"
PGADMIN_SERVICE = "pgadmin"
POSTGRES_CONTAINER = "postgres_db"
PGADMIN_CONTAINER = "pgadmin4"
POSTGRES_VOLUME = "postgres_data"
PGADMIN_VOLUME = "pgadmin_data"
NETWORK_NAME = "postgres_network"

COMPOSE_FILE = "docker-compose.yml"
SERVERS_FILE = "servers.json"

# Ports inside the containers; the host side is remapped freely.
POSTGRES_INTERNAL_PORT = 5432
PGADMIN_INTERNAL_PORT = 80

MIN_PASSWORD_LENGTH = 8
MIN_PORT = 1
MAX_PORT = 65535

READINESS_MAX_ATTEMPTS = 30
READINESS_DELAY_SECONDS = 1.0
CONSOLE_REQUEST_TIMEOUT_SECONDS = 2.0

# Generated files are bind-mounted into containers running as other users.
FILE_MODE = 0o644

# Upper bound for one `pg_isready` exec; a hung probe counts as not ready.
HEALTH_PROBE_TIMEOUT_SECONDS = 5.0
