"""Domain errors for pgprovision."""

from typing import Optional


class ProvisionerError(RuntimeError):
    """Raised when provisioning cannot continue safely."""


class ValidationError(ProvisionerError):
    """Raised when user supplied configuration is rejected."""


class RuntimeEnvironmentError(ProvisionerError):
    """Raised when the container runtime is missing or unreachable."""


class OrchestrationError(ProvisionerError):
    """Raised when the runtime rejects bringing the services up."""


class ManifestError(ProvisionerError):
    """Raised when the generated files cannot be written consistently."""


class ReadinessTimeoutError(ProvisionerError):
    """Raised when a service does not become ready within its attempt bound."""

    def __init__(self, service: str, message: str):
        super().__init__(message)
        self.service = service


class PortExhaustedError(ProvisionerError):
    """Raised when no free port remains above the requested one."""


class CommandError(ProvisionerError):
    """Raised when an external command fails."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CommandNotFoundError(CommandError):
    """Raised when the executable of an external command is not installed."""


class CleanupWarning(UserWarning):
    """Best-effort teardown step that failed. Logged, never raised."""

    def __init__(self, step: str, detail: str):
        super().__init__(f"{step}: {detail}")
        self.step = step
        self.detail = detail
