"""
Docker module - engine discovery and container lifecycle through the docker CLI
"""

from cpai_provisioner.docker.client import DockerClient
from cpai_provisioner.docker.models import (
    CommandResult,
    ContainerInfo,
    ContainerSpec,
    ContainerStatus,
    DockerStatus,
)

__all__ = [
    "CommandResult",
    "ContainerInfo",
    "ContainerSpec",
    "ContainerStatus",
    "DockerClient",
    "DockerStatus",
]
