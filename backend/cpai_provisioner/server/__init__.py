"""
Server module - HTTP client for the CodeProject.AI Server API
"""

from cpai_provisioner.server.client import ServerClient
from cpai_provisioner.server.exceptions import (
    ModuleInstallationError,
    ServerConnectionError,
    ServerException,
)
from cpai_provisioner.server.models import InstalledModule

__all__ = [
    "InstalledModule",
    "ModuleInstallationError",
    "ServerClient",
    "ServerConnectionError",
    "ServerException",
]
