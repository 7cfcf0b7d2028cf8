"""
Elevated privilege detection
"""

import ctypes
import logging
import os
import platform

logger = logging.getLogger(__name__)


def is_elevated() -> bool:
    """
    Check whether the current process runs with administrative rights.

    Windows: the token belongs to the Administrators group (IsUserAnAdmin).
    Other platforms: effective uid is root.
    """
    if platform.system() == "Windows":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError) as e:
            logger.debug(f"IsUserAnAdmin unavailable: {e}")
            return False

    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        return False
    return geteuid() == 0
