"""
Shared fixtures and fakes for provisioner tests

The fakes record every call so tests can assert ordering and counts
without a docker daemon, a server or real time.
"""

import pytest

from cpai_provisioner.core.config import load_settings
from cpai_provisioner.docker.models import CommandResult, ContainerInfo
from cpai_provisioner.host.firewall import FirewallResult
from cpai_provisioner.provisioning.waits import Waiter
from cpai_provisioner.server.exceptions import ModuleInstallationError
from cpai_provisioner.server.models import InstalledModule

VENV_PATH = "/app/modules/ALPR/bin/linux/python39/venv"


class RecordingWaiter(Waiter):
    """Waiter on a fake clock that records every pause instead of sleeping"""

    def __init__(self, cancel_after: int | None = None):
        self.now = 0.0
        super().__init__(clock=lambda: self.now)
        self.sleeps: list[float] = []
        self.cancel_after = cancel_after

    def _pause(self, seconds: float) -> bool:
        self.sleeps.append(seconds)
        self.now += seconds
        if self.cancel_after is not None and len(self.sleeps) >= self.cancel_after:
            self.cancel()
        return self.cancelled


class FakeDocker:
    """In-memory stand-in for DockerClient"""

    def __init__(
        self,
        running: bool | list[bool] = True,
        containers: set[str] | None = None,
        pull_ok: bool = True,
        starts_running: bool = True,
        remove_ok: bool = True,
        restart_ok: bool = True,
        exec_results: list[CommandResult] | None = None,
    ):
        self.running = running
        self.containers = set(containers or ())
        self.pull_ok = pull_ok
        self.starts_running = starts_running
        self.remove_ok = remove_ok
        self.restart_ok = restart_ok
        self.exec_results = list(exec_results) if exec_results is not None else None
        self.calls: list[tuple] = []

    def is_running(self) -> bool:
        self.calls.append(("info",))
        if isinstance(self.running, list):
            return self.running.pop(0) if self.running else False
        return self.running

    def find_container(self, name):
        self.calls.append(("find", name))
        if name in self.containers:
            return ContainerInfo(name=name, status="exited")
        return None

    def stop(self, name):
        self.calls.append(("stop", name))
        return CommandResult(0, stdout=name)

    def remove(self, name):
        self.calls.append(("rm", name))
        if not self.remove_ok:
            return CommandResult(1, stderr="Error: container is in use")
        self.containers.discard(name)
        return CommandResult(0, stdout=name)

    def pull(self, image):
        self.calls.append(("pull", image))
        if self.pull_ok:
            return CommandResult(0, stdout="Status: Image is up to date")
        return CommandResult(1, stderr="Error response from daemon: network unreachable")

    def run(self, spec):
        self.calls.append(("run", spec))
        if spec.name in self.containers:
            return CommandResult(125, stderr=f'Conflict. The container name "/{spec.name}" is already in use')
        self.containers.add(spec.name)
        return CommandResult(0, stdout="3f2c9a8b7d6e5f4a3b2c1d0e\n")

    def is_container_running(self, name):
        self.calls.append(("ps", name))
        return self.starts_running and name in self.containers

    def restart(self, name):
        self.calls.append(("restart", name))
        if self.restart_ok:
            return CommandResult(0, stdout=name)
        return CommandResult(1, stderr="Error: No such container")

    def exec_shell(self, name, command, timeout=600):
        self.calls.append(("exec", name, command))
        if self.exec_results is not None:
            return self.exec_results.pop(0) if self.exec_results else CommandResult(0)
        if command.startswith("for d in"):
            return CommandResult(0, stdout=VENV_PATH + "\n")
        return CommandResult(0, stdout="Successfully done")

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeServer:
    """In-memory stand-in for ServerClient"""

    def __init__(
        self,
        ready: bool | list[bool] = True,
        install_error: Exception | None = None,
        installed: set[str] | None = None,
        failed: set[str] | None = None,
    ):
        self.ready = ready
        self.install_error = install_error
        self.installed = set(installed or ())
        self.failed = set(failed or ())
        self.status_probes: list[float | None] = []
        self.install_requests: list[tuple[str, float | None]] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass

    def is_ready(self, timeout=None):
        self.status_probes.append(timeout)
        if isinstance(self.ready, list):
            return self.ready.pop(0) if self.ready else False
        return self.ready

    def install_module(self, module_id, timeout=None):
        self.install_requests.append((module_id, timeout))
        if self.install_error is not None:
            raise self.install_error

    def get_installed_module(self, module_id, timeout=None):
        if module_id in self.failed:
            return InstalledModule(module_id=module_id, status="FailedInstall")
        if module_id in self.installed:
            return InstalledModule(module_id=module_id, status="Started")
        return None


def firewall_created(rule_name: str, port: int) -> FirewallResult:
    return FirewallResult(outcome="created", message=f"Inbound TCP {port} allowed")


@pytest.fixture
def settings(tmp_path):
    """Settings pointing every host directory into tmp_path"""
    return load_settings(
        data_dir=tmp_path / "data",
        modules_dir=tmp_path / "modules",
        scripts_dir=tmp_path / "scripts",
    )


@pytest.fixture
def waiter():
    return RecordingWaiter()


@pytest.fixture
def rejecting_server():
    return FakeServer(
        ready=False,
        install_error=ModuleInstallationError("Install request rejected", context={"status": 500}),
    )
