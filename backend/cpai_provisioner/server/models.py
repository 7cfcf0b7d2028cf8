"""
CodeProject.AI Server data models
"""

from dataclasses import dataclass

# Module states that mean the server is still busy with the module
PENDING_MODULE_STATES = frozenset(
    {"installing", "uninstalling", "notavailable", "unknown", ""}
)

# Module states that mean the install ended and will not recover by waiting
FAILED_MODULE_STATES = frozenset({"failedinstall"})


@dataclass
class InstalledModule:
    """A module entry from the installed-modules listing"""

    module_id: str
    status: str = ""
    version: str | None = None

    @property
    def failed(self) -> bool:
        return self.status.lower() in FAILED_MODULE_STATES

    @property
    def settled(self) -> bool:
        """True once installation has finished and the module is usable"""
        return not self.failed and self.status.lower() not in PENDING_MODULE_STATES

    @property
    def finished(self) -> bool:
        """True once waiting longer cannot change the outcome"""
        return self.settled or self.failed
