"""Configuration loader for pgprovision."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pgprovision.errors import ProvisionerError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    DEFAULT_FILE_NAME = ".pgprovision.yml"

    SUPPORTED_KEYS = {
        "postgres_user",
        "postgres_password",
        "postgres_port",
        "pgadmin_email",
        "pgadmin_password",
        "pgadmin_port",
        "postgres_image",
        "pgadmin_image",
        "no_cleanup",
        "verbose",
        "log_file",
    }

    BOOLEAN_KEYS = {"no_cleanup", "verbose"}

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ProvisionerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ProvisionerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ProvisionerError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ProvisionerError(f"Unknown configuration keys: {unknown_list}")

        for key in sorted(self.BOOLEAN_KEYS & set(parsed)):
            if not isinstance(parsed[key], bool):
                raise ProvisionerError(
                    f"Configuration key '{key}' must be true or false, got {parsed[key]!r}."
                )

        return parsed

    def find_default(self, directory: str) -> Optional[str]:
        candidate = Path(directory) / self.DEFAULT_FILE_NAME
        if candidate.exists():
            return str(candidate)
        return None
