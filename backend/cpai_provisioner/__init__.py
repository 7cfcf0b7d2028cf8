"""
CodeProject.AI Provisioner

Installs CodeProject.AI Server in Docker on a single host and leaves
management scripts behind.
"""

__version__ = "1.0.0"
__license__ = "MIT"

from cpai_provisioner.core.config import ProvisionerSettings, load_settings
from cpai_provisioner.provisioning.orchestrator import Provisioner

__all__ = [
    "Provisioner",
    "ProvisionerSettings",
    "load_settings",
]
