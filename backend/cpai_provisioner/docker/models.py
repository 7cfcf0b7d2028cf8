"""
Docker data models.

Contains dataclasses for engine, container and command results.
"""

from dataclasses import dataclass
from typing import Literal

ContainerStatus = Literal[
    "running", "exited", "paused", "restarting", "created", "not_created", "unknown"
]


@dataclass
class CommandResult:
    """Outcome of one docker CLI invocation."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr together, for classification and logging"""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


@dataclass
class DockerStatus:
    """Docker daemon status."""

    installed: bool
    running: bool
    version: str | None = None
    docker_path: str | None = None


@dataclass
class ContainerInfo:
    """Container handle as reported by docker."""

    name: str
    status: ContainerStatus
    image: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class ContainerSpec:
    """Everything docker run needs to create the server container."""

    name: str
    image: str
    host_port: int
    container_port: int
    volumes: tuple[tuple[str, str], ...]
    environment: tuple[tuple[str, str], ...]
    restart_policy: str

    def run_args(self) -> list[str]:
        """Arguments following 'docker' for a detached docker run."""
        args = ["run", "-d", "--name", self.name, "-p", f"{self.host_port}:{self.container_port}"]
        for host_path, container_path in self.volumes:
            args += ["-v", f"{host_path}:{container_path}"]
        for key, value in self.environment:
            args += ["-e", f"{key}={value}"]
        args += ["--restart", self.restart_policy, self.image]
        return args
