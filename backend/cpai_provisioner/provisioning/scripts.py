"""
Management wrapper scripts

Small scripts left next to the installation so an operator can start, stop,
restart, inspect and repair the container without remembering docker
syntax. Windows hosts get .bat files, other hosts get .sh files.
Content depends only on settings, so regenerating is idempotent.
"""

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path

from cpai_provisioner.core.config import ProvisionerSettings
from cpai_provisioner.core.paths import is_windows
from cpai_provisioner.provisioning.repair import build_repair_plan, plan_as_shell

logger = logging.getLogger(__name__)

# Characters cmd.exe treats specially outside double quotes
_BATCH_SPECIAL = set(' \t^&|<>()%!,;=')


@dataclass(frozen=True)
class ManagementScript:
    """A named script made of docker command lines"""

    name: str
    description: str
    commands: tuple[tuple[str, ...], ...]


def _batch_quote(arg: str) -> str:
    if arg and not any(c in _BATCH_SPECIAL for c in arg):
        return arg
    return '"' + arg.replace("%", "%%") + '"'


def render_batch(script: ManagementScript) -> str:
    lines = [
        "@echo off",
        f"REM CodeProject.AI Server - {script.description}",
        "REM Generated by cpai-provisioner; re-running the installer overwrites this file.",
    ]
    lines += [" ".join(_batch_quote(arg) for arg in command) for command in script.commands]
    return "\r\n".join(lines) + "\r\n"


def render_shell(script: ManagementScript) -> str:
    lines = [
        "#!/bin/sh",
        f"# CodeProject.AI Server - {script.description}",
        "# Generated by cpai-provisioner; re-running the installer overwrites this file.",
        "set -e",
    ]
    lines += [shlex.join(command) for command in script.commands]
    return "\n".join(lines) + "\n"


def build_management_scripts(settings: ProvisionerSettings) -> list[ManagementScript]:
    """The six management scripts for the configured container."""
    name = settings.container_name
    return [
        ManagementScript("start", "Start container", (("docker", "start", name),)),
        ManagementScript("stop", "Stop container", (("docker", "stop", name),)),
        ManagementScript("restart", "Restart container", (("docker", "restart", name),)),
        ManagementScript(
            "status",
            "Container status",
            (("docker", "ps", "-a", "--filter", f"name=^/{name}$"),),
        ),
        ManagementScript(
            "logs",
            "Follow container logs",
            (("docker", "logs", "-f", "--tail", "200", name),),
        ),
        ManagementScript(
            "fix-dependencies",
            "Repair module dependencies and restart",
            (
                ("docker", "exec", name, "sh", "-c", plan_as_shell(build_repair_plan(settings))),
                ("docker", "restart", name),
            ),
        ),
    ]


def write_management_scripts(
    settings: ProvisionerSettings,
    windows: bool | None = None,
) -> list[Path]:
    """
    Write (overwrite) all management scripts into settings.scripts_dir

    Args:
        settings: Provisioner settings
        windows: Force batch (True) or shell (False) output; defaults to host OS

    Returns:
        Paths of the written scripts, in a fixed order

    Raises:
        OSError: If the directory or a file cannot be written
    """
    windows = is_windows() if windows is None else windows
    settings.scripts_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for script in build_management_scripts(settings):
        if windows:
            path = settings.scripts_dir / f"{script.name}.bat"
            content = render_batch(script)
        else:
            path = settings.scripts_dir / f"{script.name}.sh"
            content = render_shell(script)

        path.write_bytes(content.encode("utf-8"))
        if not windows:
            path.chmod(0o755)
        written.append(path)
        logger.debug(f"Wrote {path}")

    logger.info(f"Wrote {len(written)} management scripts to {settings.scripts_dir}")
    return written
