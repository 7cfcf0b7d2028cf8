"""
Docker engine discovery and launch.

Handles:
- Docker executable detection on Windows, Linux and WSL
- Locating and launching Docker Desktop when the daemon is down
"""

import logging
import os
import platform
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

# Windows-specific subprocess flag to hide console window
# On non-Windows platforms, use 0 (no flags)
CREATION_FLAGS = (
    subprocess.CREATE_NO_WINDOW if platform.system() == "Windows" else 0
)

# Flags for a launched engine process that must outlive the provisioner
DETACHED_FLAGS = (
    subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    if platform.system() == "Windows"
    else 0
)


def is_wsl() -> bool:
    """
    Check if running inside Windows Subsystem for Linux (WSL).

    Returns:
        True if running in WSL, False otherwise
    """
    if platform.system() != "Linux":
        return False

    try:
        with open("/proc/version", "r", encoding="utf-8", errors="replace") as f:
            version_info = f.read().lower()
            return "microsoft" in version_info or "wsl" in version_info
    except OSError:
        return False


def _windows_program_dirs() -> list[Path]:
    dirs = []
    for var, fallback in (("ProgramFiles", "C:\\Program Files"), ("ProgramW6432", "C:\\Program Files")):
        path = Path(os.environ.get(var, fallback))
        if path not in dirs:
            dirs.append(path)
    return dirs


def find_docker_executable() -> str | None:
    """
    Find the Docker executable path.

    Checks in order:
    1. PATH
    2. Linux standard paths: /usr/bin/docker, /usr/local/bin/docker, /snap/bin/docker
    3. WSL view of Docker Desktop: /mnt/c/Program Files/Docker/...
    4. Native Windows Docker Desktop paths

    Returns:
        Path to docker executable, or None if not found
    """
    current_platform = platform.system()
    logger.debug(f"Finding Docker executable - Platform: {current_platform}")

    docker_path = shutil.which("docker")
    if docker_path:
        logger.debug(f"Docker found in PATH: {docker_path}")
        return docker_path

    candidates: list[Path] = []
    if current_platform == "Linux":
        candidates += [
            Path("/usr/bin/docker"),
            Path("/usr/local/bin/docker"),
            Path("/snap/bin/docker"),
        ]
        if is_wsl():
            candidates.append(Path("/mnt/c/Program Files/Docker/Docker/resources/bin/docker.exe"))
    elif current_platform == "Windows":
        candidates += [
            program_dir / "Docker" / "Docker" / "resources" / "bin" / "docker.exe"
            for program_dir in _windows_program_dirs()
        ]

    for path in candidates:
        if path.exists():
            logger.info(f"Found Docker at: {path}")
            return str(path)

    logger.info("Docker executable not found anywhere")
    return None


def get_docker_command() -> list[str]:
    """
    Get the Docker command with proper path handling.

    Returns:
        List containing the docker command (may include full path on Windows)
    """
    docker_path = find_docker_executable()
    if docker_path:
        return [docker_path]

    # Fall back to just "docker" and let subprocess handle it
    return ["docker"]


def find_docker_desktop() -> Path | None:
    """Locate the Docker Desktop application on Windows."""
    if platform.system() != "Windows":
        return None

    for program_dir in _windows_program_dirs():
        path = program_dir / "Docker" / "Docker" / "Docker Desktop.exe"
        if path.exists():
            return path
    return None


def launch_engine() -> bool:
    """
    Try to start the Docker engine without waiting for it.

    Windows: starts Docker Desktop detached from this process.
    Linux: asks systemd to start the docker service.

    Returns:
        True if a launch was issued, False if there was nothing to launch
    """
    current_platform = platform.system()

    if current_platform == "Windows":
        desktop = find_docker_desktop()
        if desktop is None:
            logger.warning("[WARN] Docker Desktop application not found, cannot launch it")
            return False
        logger.info(f"Launching Docker Desktop: {desktop}")
        try:
            subprocess.Popen(
                [str(desktop)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                close_fds=True,
                creationflags=DETACHED_FLAGS,
            )
            return True
        except OSError as e:
            logger.warning(f"[WARN] Failed to launch Docker Desktop: {e}")
            return False

    if current_platform == "Linux" and shutil.which("systemctl"):
        logger.info("Starting docker service via systemctl")
        try:
            result = subprocess.run(
                ["systemctl", "start", "docker"],
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=60,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.warning(f"[WARN] systemctl start docker failed: {e}")
            return False
        if result.returncode != 0:
            logger.warning(f"[WARN] systemctl start docker failed: {result.stderr.strip()[:200]}")
            return False
        return True

    logger.info(f"Automatic engine launch is not supported on {current_platform}")
    return False
