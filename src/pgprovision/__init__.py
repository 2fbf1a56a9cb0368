"""
pgprovision - local PostgreSQL and pgAdmin provisioning with Docker
"""

__version__ = "0.1.0"

from .core import Provisioner
from .errors import ProvisionerError
from .models import ProvisioningConfig

__all__ = ["Provisioner", "ProvisionerError", "ProvisioningConfig"]
