"""Actionable error catalog for pgprovision."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "weak_password": {
        "what": "{label} password must be at least {min_length} characters long.",
        "next": "Pass a longer password with `{option}`.",
    },
    "invalid_port": {
        "what": "Invalid {label} port: {value}",
        "next": "Use a number between 1 and 65535 for `{option}`.",
    },
    "ports_exhausted": {
        "what": "No free port found for {label} starting at {port}.",
        "next": "Free a port on the host or pick a lower value for `{option}`.",
    },
    "docker_not_installed": {
        "what": "Docker is not installed.",
        "next": "Install Docker Engine and make sure `docker` is on your PATH.",
    },
    "docker_daemon_down": {
        "what": "Docker daemon is not running.",
        "next": "Start the Docker service and check that your user may access it.",
    },
    "compose_missing": {
        "what": "Docker Compose is not available.",
        "next": "Install Docker Compose v2 (`docker compose`) or v1 (`docker-compose`).",
    },
    "bring_up_failed": {
        "what": "Docker Compose could not start the services: {detail}",
        "next": "Inspect `docker compose logs` and retry.",
    },
    "readiness_timeout": {
        "what": "Timeout waiting for {service} to be ready after {attempts} attempts.",
        "next": "Check `docker logs {container}` for startup errors.",
    },
}


def actionable_error(code: str, **kwargs) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
