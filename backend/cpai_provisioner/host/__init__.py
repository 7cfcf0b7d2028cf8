"""
Host module - privilege checks and firewall configuration
"""

from cpai_provisioner.host.firewall import FirewallResult, ensure_inbound_rule
from cpai_provisioner.host.privileges import is_elevated

__all__ = ["FirewallResult", "ensure_inbound_rule", "is_elevated"]
