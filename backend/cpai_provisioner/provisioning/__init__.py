"""
Provisioning module - the install workflow and everything it leaves behind

Provides the ordered provisioning workflow, cancellable waits, the
in-container dependency repair, management script generation and the final
summary.
"""

from cpai_provisioner.provisioning.models import ModuleResult, ProvisioningReport
from cpai_provisioner.provisioning.orchestrator import Provisioner
from cpai_provisioner.provisioning.repair import (
    RepairCommand,
    RepairReport,
    build_repair_plan,
    run_repair_plan,
)
from cpai_provisioner.provisioning.scripts import write_management_scripts
from cpai_provisioner.provisioning.waits import Waiter

__all__ = [
    "ModuleResult",
    "Provisioner",
    "ProvisioningReport",
    "RepairCommand",
    "RepairReport",
    "Waiter",
    "build_repair_plan",
    "run_repair_plan",
    "write_management_scripts",
]
