"""
Core module - Configuration, paths and the exception hierarchy

Provides foundational components used across the provisioner.
"""

from cpai_provisioner.core.config import (
    ModuleSpec,
    ProvisionerSettings,
    load_settings,
)
from cpai_provisioner.core.exceptions import ProvisionerError

__all__ = [
    "ModuleSpec",
    "ProvisionerSettings",
    "ProvisionerError",
    "load_settings",
]
