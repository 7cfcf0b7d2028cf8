"""
Provisioning run models
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from cpai_provisioner.core.config import ModuleSpec
from cpai_provisioner.host.firewall import FirewallResult
from cpai_provisioner.provisioning.repair import RepairReport

logger = logging.getLogger(__name__)

CleanupOutcome = Literal["absent", "removed", "failed"]
ModuleOutcome = Literal["confirmed", "requested", "failed"]


@dataclass
class ModuleResult:
    """What happened to one module install"""

    module: ModuleSpec
    outcome: ModuleOutcome
    detail: str = ""


@dataclass
class ProvisioningReport:
    """
    Everything the summary needs about a finished run

    Soft failures land in warnings; hard failures never produce a report.
    """

    container_name: str
    base_url: str
    cleanup: CleanupOutcome = "absent"
    api_ready: bool = False
    modules: list[ModuleResult] = field(default_factory=list)
    repair: RepairReport | None = None
    restarted: bool = False
    firewall: FirewallResult | None = None
    scripts: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_waited: float = 0.0

    def warn(self, message: str) -> None:
        logger.warning(f"[WARN] {message}")
        self.warnings.append(message)
