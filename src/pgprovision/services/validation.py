"""Configuration validation for pgprovision."""

import dataclasses
import re
from typing import Union

from pgprovision import constants
from pgprovision.errors import ValidationError
from pgprovision.errors_catalog import actionable_error
from pgprovision.models import ProvisioningConfig


class ValidationService:
    """Checks credential strength and port ranges before anything is touched."""

    def __init__(self, min_password_length: int = constants.MIN_PASSWORD_LENGTH):
        self.min_password_length = min_password_length

    def validate(self, config: ProvisioningConfig) -> ProvisioningConfig:
        """Returns a copy of ``config`` with integer ports, or raises ``ValidationError``."""
        self.ensure_password_strength(config.postgres_password, "PostgreSQL", "--postgres-password")
        self.ensure_password_strength(config.pgadmin_password, "pgAdmin", "--pgadmin-password")

        postgres_port = self.parse_port(config.postgres_port, "PostgreSQL", "--postgres-port")
        pgadmin_port = self.parse_port(config.pgadmin_port, "pgAdmin", "--pgadmin-port")

        return dataclasses.replace(config, postgres_port=postgres_port, pgadmin_port=pgadmin_port)

    def ensure_password_strength(self, password: str, label: str, option: str):
        if len(password or "") < self.min_password_length:
            raise ValidationError(
                actionable_error(
                    "weak_password",
                    label=label,
                    min_length=str(self.min_password_length),
                    option=option,
                )
            )

    def parse_port(self, value: Union[int, str], label: str, option: str) -> int:
        text = str(value).strip()
        if isinstance(value, bool) or not re.fullmatch(r"[0-9]+", text):
            raise ValidationError(actionable_error("invalid_port", label=label, value=value, option=option))

        port = int(text)
        if port < constants.MIN_PORT or port > constants.MAX_PORT:
            raise ValidationError(actionable_error("invalid_port", label=label, value=value, option=option))
        return port
