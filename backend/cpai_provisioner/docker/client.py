"""
Docker CLI client - Container lifecycle through the docker executable

Every call shells out to the docker CLI and returns a CommandResult rather
than raising, so callers decide which failures are fatal.
"""

import logging
import subprocess

from cpai_provisioner.docker.engine import (
    CREATION_FLAGS,
    find_docker_executable,
    get_docker_command,
)
from cpai_provisioner.docker.models import (
    CommandResult,
    ContainerInfo,
    ContainerSpec,
    DockerStatus,
)

logger = logging.getLogger(__name__)

# Exit code reported when the docker binary itself could not be executed
EXEC_FAILURE_CODE = 127

_KNOWN_STATES = ("running", "exited", "paused", "restarting", "created")


class DockerClient:
    """
    Thin wrapper around the docker CLI.

    Example:
        docker = DockerClient()
        if docker.is_running():
            docker.pull("codeproject/ai-server:latest")
    """

    def __init__(self, docker_cmd: list[str] | None = None):
        self.docker_cmd = docker_cmd or get_docker_command()

    def _run(self, args: list[str], timeout: float = 30) -> CommandResult:
        cmd = self.docker_cmd + args
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=timeout,
                creationflags=CREATION_FLAGS,
            )
        except subprocess.TimeoutExpired:
            logger.debug(f"Docker command timed out after {timeout}s: {' '.join(args[:2])}")
            return CommandResult(returncode=EXEC_FAILURE_CODE, stderr=f"timed out after {timeout}s")
        except (FileNotFoundError, OSError) as e:
            logger.debug(f"Docker command could not run: {e}")
            return CommandResult(returncode=EXEC_FAILURE_CODE, stderr=str(e))

        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    # Engine

    def version(self) -> str | None:
        """Get Docker version string, e.g. 'Docker version 24.0.7, build afdd53b'."""
        result = self._run(["--version"], timeout=30)
        return result.stdout.strip() if result.ok else None

    def is_running(self) -> bool:
        """Check if the Docker daemon answers."""
        result = self._run(["info"], timeout=45)
        if result.ok:
            logger.debug("Docker daemon is running")
            return True
        logger.debug(f"Docker daemon not running: {result.stderr.strip()[:200]}")
        return False

    def get_status(self) -> DockerStatus:
        """Get comprehensive Docker status."""
        docker_path = find_docker_executable()
        version = self.version() if docker_path else None
        installed = version is not None
        running = self.is_running() if installed else False
        return DockerStatus(
            installed=installed,
            running=running,
            version=version,
            docker_path=docker_path,
        )

    # Containers

    @staticmethod
    def _name_filter(name: str) -> str:
        # docker matches name filters as a regex against "/<name>"
        return f"name=^/{name}$"

    def find_container(self, name: str) -> ContainerInfo | None:
        """
        Look up a container (running or not) by exact name.

        Returns:
            ContainerInfo if it exists, None if it does not

        Raises:
            RuntimeError: If docker could not answer the query
        """
        result = self._run(
            ["ps", "-a", "--filter", self._name_filter(name), "--format", "{{.Names}}\t{{.State}}\t{{.Image}}"],
            timeout=15,
        )
        if not result.ok:
            raise RuntimeError(f"docker ps failed: {result.stderr.strip()[:200]}")

        for line in result.stdout.splitlines():
            parts = line.strip().split("\t")
            if parts and parts[0] == name:
                state = parts[1].lower() if len(parts) > 1 else "unknown"
                return ContainerInfo(
                    name=name,
                    status=state if state in _KNOWN_STATES else "unknown",
                    image=parts[2] if len(parts) > 2 else None,
                )
        return None

    def is_container_running(self, name: str) -> bool:
        """Check that a container with exactly this name is listed as running."""
        result = self._run(
            ["ps", "--filter", self._name_filter(name), "--filter", "status=running", "--format", "{{.Names}}"],
            timeout=15,
        )
        if not result.ok:
            return False
        return name in [line.strip() for line in result.stdout.splitlines()]

    def get_container_status(self, name: str) -> ContainerInfo:
        """Inspect a container's state."""
        result = self._run(["inspect", "-f", "{{.State.Status}}", name], timeout=15)
        if result.returncode == EXEC_FAILURE_CODE:
            return ContainerInfo(name=name, status="unknown", error=result.stderr.strip())
        if not result.ok:
            # Container doesn't exist
            return ContainerInfo(name=name, status="not_created")

        status = result.stdout.strip().lower()
        if status in _KNOWN_STATES:
            error = None
            if status == "restarting":
                error = "Container is crash-looping. Check docker logs for details."
            return ContainerInfo(name=name, status=status, error=error)
        return ContainerInfo(name=name, status="unknown", error=f"Unexpected container state: {status}")

    def stop(self, name: str) -> CommandResult:
        return self._run(["stop", name], timeout=120)

    def remove(self, name: str) -> CommandResult:
        return self._run(["rm", name], timeout=60)

    def pull(self, image: str) -> CommandResult:
        logger.info(f"Pulling {image} (this can take several minutes)...")
        return self._run(["pull", image], timeout=1800)

    def run(self, spec: ContainerSpec) -> CommandResult:
        return self._run(spec.run_args(), timeout=300)

    def restart(self, name: str) -> CommandResult:
        return self._run(["restart", name], timeout=180)

    def exec_shell(self, name: str, command: str, timeout: float = 600) -> CommandResult:
        """Run a shell command inside a running container."""
        return self._run(["exec", name, "sh", "-c", command], timeout=timeout)
