"""
Windows Firewall rule management through netsh
"""

import logging
import platform
import subprocess
from dataclasses import dataclass
from typing import Literal

from cpai_provisioner.docker.engine import CREATION_FLAGS

logger = logging.getLogger(__name__)

FirewallOutcome = Literal["created", "exists", "skipped", "failed"]


@dataclass
class FirewallResult:
    """Outcome of ensuring an inbound rule"""

    outcome: FirewallOutcome
    message: str = ""
    manual_command: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome in ("created", "exists")


def add_rule_args(rule_name: str, port: int) -> list[str]:
    return [
        "netsh", "advfirewall", "firewall", "add", "rule",
        f"name={rule_name}",
        "dir=in",
        "action=allow",
        "protocol=TCP",
        f"localport={port}",
    ]


def manual_command(rule_name: str, port: int) -> str:
    """The command an operator can paste into an elevated prompt."""
    return (
        f'netsh advfirewall firewall add rule name="{rule_name}" '
        f"dir=in action=allow protocol=TCP localport={port}"
    )


def _netsh(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        args,
        capture_output=True,
        text=True,
        encoding='utf-8',
        errors='replace',
        timeout=30,
        creationflags=CREATION_FLAGS,
    )


def rule_exists(rule_name: str) -> bool:
    """Check whether a firewall rule with this display name exists."""
    try:
        result = _netsh(["netsh", "advfirewall", "firewall", "show", "rule", f"name={rule_name}"])
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug(f"Firewall rule lookup failed: {e}")
        return False
    return result.returncode == 0


def ensure_inbound_rule(rule_name: str, port: int) -> FirewallResult:
    """
    Make sure an inbound TCP allow rule exists for the port.

    Never raises; the result says what happened and carries the manual
    command whenever the rule could not be confirmed.
    """
    fallback = manual_command(rule_name, port)

    if platform.system() != "Windows":
        return FirewallResult(
            outcome="skipped",
            message=f"Windows Firewall is not available on {platform.system()}",
            manual_command=fallback,
        )

    if rule_exists(rule_name):
        logger.info(f"Firewall rule '{rule_name}' already exists")
        return FirewallResult(outcome="exists", message=f"Rule '{rule_name}' already present")

    try:
        result = _netsh(add_rule_args(rule_name, port))
    except (subprocess.TimeoutExpired, OSError) as e:
        return FirewallResult(outcome="failed", message=str(e), manual_command=fallback)

    if result.returncode != 0:
        detail = (result.stdout or result.stderr or "").strip()[:200]
        return FirewallResult(outcome="failed", message=detail or "netsh failed", manual_command=fallback)

    logger.info(f"Created firewall rule '{rule_name}' for TCP {port}")
    return FirewallResult(outcome="created", message=f"Inbound TCP {port} allowed")
