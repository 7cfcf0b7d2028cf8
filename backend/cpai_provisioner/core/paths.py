"""
Dynamic path resolution for the CodeProject.AI provisioner.

Host directories default to the locations the CodeProject.AI Docker
documentation uses on Windows (under %ProgramData%) and to /opt on other
platforms. Every default can be overridden through settings.
"""

import os
import platform
from pathlib import Path


def is_windows() -> bool:
    """Check if running on a Windows host."""
    return platform.system() == "Windows"


# === Core Project Structure ===


def get_package_root() -> Path:
    """
    Get the directory containing the cpai_provisioner/ package.

    Returns:
        Path: Absolute path to the backend root
    """
    # This file is at: cpai_provisioner/core/paths.py
    return Path(__file__).parent.parent.parent.resolve()


def get_env_file() -> Path:
    """Get the optional .env file read by the settings loader."""
    return get_package_root() / ".env"


# === Host Directories ===


def get_host_root() -> Path:
    """
    Get the root of all host-side CodeProject.AI directories.

    Returns:
        Path: %ProgramData%\\CodeProject\\AI\\docker on Windows,
        /opt/codeproject/ai elsewhere
    """
    if is_windows():
        program_data = os.environ.get("ProgramData", "C:\\ProgramData")
        return Path(program_data) / "CodeProject" / "AI" / "docker"
    return Path("/opt/codeproject/ai")


def get_default_data_dir() -> Path:
    """Host directory bound to the server's settings volume."""
    return get_host_root() / "data"


def get_default_modules_dir() -> Path:
    """Host directory bound to the server's module install volume."""
    return get_host_root() / "modules"


def get_default_scripts_dir() -> Path:
    """Host directory receiving the generated management scripts."""
    return get_host_root() / "scripts"
