"""
Provisioning orchestrator

Drives a host from "nothing installed" to a running CodeProject.AI Server
container with its modules installed, then leaves management scripts behind.

Steps run strictly in order:
1-3, 6-8 are CRITICAL: a failure raises a ProvisionerError and stops the run.
4, 5, 9-14 are NON-FATAL: a failure is recorded as a warning and the run goes on.
"""

import logging
from pathlib import Path
from typing import Callable

from cpai_provisioner.core.config import (
    CONTAINER_DATA_PATH,
    CONTAINER_MODULES_PATH,
    CONTAINER_PORT,
    ModuleSpec,
    ProvisionerSettings,
)
from cpai_provisioner.core.exceptions import (
    ContainerNotRunningError,
    ContainerStartError,
    EngineNotFoundError,
    EngineUnavailableError,
    ImagePullError,
    PrivilegeError,
)
from cpai_provisioner.docker.client import DockerClient
from cpai_provisioner.docker.engine import find_docker_executable, launch_engine
from cpai_provisioner.docker.models import ContainerSpec
from cpai_provisioner.host.firewall import FirewallResult, ensure_inbound_rule
from cpai_provisioner.host.privileges import is_elevated
from cpai_provisioner.provisioning.models import (
    CleanupOutcome,
    ModuleResult,
    ProvisioningReport,
)
from cpai_provisioner.provisioning.repair import (
    RepairReport,
    build_repair_plan,
    run_repair_plan,
)
from cpai_provisioner.provisioning.scripts import write_management_scripts
from cpai_provisioner.provisioning.waits import Waiter
from cpai_provisioner.server.client import ServerClient
from cpai_provisioner.server.exceptions import ServerException
from cpai_provisioner.server.models import InstalledModule

logger = logging.getLogger(__name__)

TOTAL_STEPS = 14


class Provisioner:
    """
    Runs the provisioning workflow against one settings snapshot

    Collaborators are injectable so the workflow can run against fakes.

    Example:
        report = Provisioner(load_settings(port=32168)).run()
    """

    def __init__(
        self,
        settings: ProvisionerSettings,
        docker: DockerClient | None = None,
        server_factory: Callable[[str], ServerClient] | None = None,
        waiter: Waiter | None = None,
        privilege_check: Callable[[], bool] = is_elevated,
        engine_locator: Callable[[], str | None] = find_docker_executable,
        engine_launcher: Callable[[], bool] = launch_engine,
        firewall: Callable[[str, int], FirewallResult] = ensure_inbound_rule,
        windows_scripts: bool | None = None,
    ):
        self.settings = settings
        self._docker = docker
        self.server_factory = server_factory or ServerClient
        self.waiter = waiter or Waiter()
        self.privilege_check = privilege_check
        self.engine_locator = engine_locator
        self.engine_launcher = engine_launcher
        self.firewall = firewall
        self.windows_scripts = windows_scripts

    @property
    def docker(self) -> DockerClient:
        if self._docker is None:
            self._docker = DockerClient()
        return self._docker

    def _step(self, number: int, title: str) -> None:
        self.waiter.check_cancelled()
        logger.info(f"Step {number}/{TOTAL_STEPS}: {title}")

    def run(self) -> ProvisioningReport:
        """
        Execute the whole workflow

        Returns:
            ProvisioningReport for the summary

        Raises:
            ProvisionerError: On any critical step failure
            ProvisioningCancelled: If the waiter is cancelled
        """
        settings = self.settings
        report = ProvisioningReport(container_name=settings.container_name, base_url=settings.base_url)

        logger.info("=" * 60)
        logger.info(f"CodeProject.AI Server provisioning - {settings.container_name} on port {settings.port}")
        logger.info("=" * 60)

        self._step(1, "Privilege check")
        self.check_privileges()

        self._step(2, "Docker installation check")
        self.check_engine_installed()

        self._step(3, "Docker daemon check")
        self.ensure_engine_running()

        self._step(4, "Host directories")
        self.prepare_directories(report)

        self._step(5, "Existing container cleanup")
        report.cleanup = self.remove_stale_container(report)

        self._step(6, f"Pull image {settings.image}")
        self.pull_image()

        self._step(7, "Start container")
        self.start_container()

        self._step(8, "Verify container is running")
        self.verify_running()

        with self.server_factory(settings.base_url) as server:
            self._step(9, "Wait for server API")
            report.api_ready = self.wait_for_api(server, report)

            self._step(10, "Install modules")
            for module in settings.modules:
                report.modules.append(self.install_module(server, module, report))

        self._step(11, "Repair module dependencies")
        report.repair = self.repair_dependencies(report)

        self._step(12, "Restart container")
        report.restarted = self.restart_container(report)

        self._step(13, "Firewall rule")
        report.firewall = self.configure_firewall(report)

        self._step(14, "Management scripts")
        report.scripts = self.generate_scripts(report)

        report.total_waited = self.waiter.total_waited
        logger.info(f"[OK] Provisioning finished with {len(report.warnings)} warning(s)")
        return report

    # ------------------------------------------------------------------
    # CRITICAL steps
    # ------------------------------------------------------------------

    def check_privileges(self) -> None:
        if not self.privilege_check():
            raise PrivilegeError()
        logger.info("[OK] Running with administrator privileges")

    def check_engine_installed(self) -> None:
        docker_path = self.engine_locator()
        if not docker_path:
            raise EngineNotFoundError()
        logger.info(f"[OK] Docker found: {docker_path}")

    def ensure_engine_running(self) -> None:
        attempts = self.settings.engine_attempts
        for attempt in range(1, attempts + 1):
            if self.docker.is_running():
                logger.info("[OK] Docker daemon is running")
                return

            logger.warning(f"[WARN] Docker daemon not responding (attempt {attempt}/{attempts})")
            if attempt < attempts:
                self.engine_launcher()
                self.waiter.sleep(self.settings.engine_retry_seconds, reason="for Docker to start")

        raise EngineUnavailableError(f"Docker daemon did not respond after {attempts} attempts")

    def pull_image(self) -> None:
        result = self.docker.pull(self.settings.image)
        if not result.ok:
            self.waiter.check_cancelled()
            raise ImagePullError(f"Failed to pull {self.settings.image}: {result.stderr.strip()[:300]}")
        logger.info(f"[OK] Image pulled: {self.settings.image}")

    def container_spec(self) -> ContainerSpec:
        settings = self.settings
        return ContainerSpec(
            name=settings.container_name,
            image=settings.image,
            host_port=settings.port,
            container_port=CONTAINER_PORT,
            volumes=(
                (str(settings.data_dir), CONTAINER_DATA_PATH),
                (str(settings.modules_dir), CONTAINER_MODULES_PATH),
            ),
            environment=(("TZ", settings.timezone),),
            restart_policy=settings.restart_policy,
        )

    def start_container(self) -> None:
        result = self.docker.run(self.container_spec())
        if not result.ok:
            self.waiter.check_cancelled()
            raise ContainerStartError(
                f"Failed to start {self.settings.container_name}: {result.stderr.strip()[:300]}"
            )
        logger.info(f"[OK] Container started: {result.stdout.strip()[:12]}")
        self.waiter.sleep(self.settings.container_settle_seconds, reason="for the container to initialise")

    def verify_running(self) -> None:
        name = self.settings.container_name
        if not self.docker.is_container_running(name):
            raise ContainerNotRunningError(
                f"Container {name} is not running",
                recovery_hint=f"Inspect the container output: docker logs {name}",
            )
        logger.info(f"[OK] Container {name} is running")

    # ------------------------------------------------------------------
    # NON-FATAL steps
    # ------------------------------------------------------------------

    def prepare_directories(self, report: ProvisioningReport) -> None:
        for directory in (self.settings.data_dir, self.settings.modules_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                report.warn(f"Cannot create {directory}: {e}; docker will create it on start")
                continue
            logger.info(f"[OK] Directory ready: {directory}")

    def remove_stale_container(self, report: ProvisioningReport) -> CleanupOutcome:
        name = self.settings.container_name
        try:
            existing = self.docker.find_container(name)
        except RuntimeError as e:
            report.warn(f"Could not check for an existing container: {e}")
            return "failed"

        if existing is None:
            logger.info(f"No existing container named {name}")
            return "absent"

        logger.info(f"Removing existing container {name} ({existing.status})")
        stopped = self.docker.stop(name)
        if not stopped.ok:
            logger.debug(f"docker stop {name}: {stopped.stderr.strip()[:200]}")

        removed = self.docker.remove(name)
        if not removed.ok:
            report.warn(f"Could not remove existing container {name}: {removed.stderr.strip()[:200]}")
            return "failed"

        logger.info(f"[OK] Removed existing container {name}")
        return "removed"

    def wait_for_api(self, server: ServerClient, report: ProvisioningReport) -> bool:
        settings = self.settings
        attempts = settings.readiness_attempts
        for attempt in range(1, attempts + 1):
            if server.is_ready(timeout=settings.readiness_timeout_seconds):
                logger.info(f"[OK] Server API ready at {settings.base_url}")
                return True

            logger.info(f"Server API not ready yet (attempt {attempt}/{attempts})")
            if attempt < attempts:
                self.waiter.sleep(settings.readiness_interval_seconds)

        report.warn(
            f"Server API did not answer after {attempts} attempts; continuing anyway. "
            f"Check {settings.base_url} in a few minutes."
        )
        return False

    def install_module(
        self,
        server: ServerClient,
        module: ModuleSpec,
        report: ProvisioningReport,
    ) -> ModuleResult:
        settings = self.settings
        logger.info(f"Installing {module.display_name} ({module.name})")

        result = ModuleResult(module=module, outcome="requested")
        try:
            server.install_module(module.name, timeout=settings.module_install_timeout_seconds)
        except ServerException as e:
            result.outcome = "failed"
            result.detail = e.message
            report.warn(f"Install request for {module.name} failed: {e.message}")

        if not settings.wait_for_module_completion:
            self.waiter.sleep(module.settle_seconds, reason=f"for {module.name} to install")
            return result

        latest: list[InstalledModule | None] = [None]

        def finished() -> bool:
            latest[0] = server.get_installed_module(module.name, timeout=settings.readiness_timeout_seconds)
            return latest[0] is not None and latest[0].finished

        self.waiter.poll_until(
            finished,
            timeout=module.settle_seconds,
            description=f"{module.name} installed",
        )
        state = latest[0]
        if state is not None and state.failed:
            result.outcome = "failed"
            result.detail = f"server reports {state.status}"
            report.warn(f"{module.name} failed to install on the server ({state.status})")
        elif state is not None and state.settled:
            result.outcome = "confirmed"
            result.detail = ""
            logger.info(f"[OK] {module.name} installed")
        elif result.outcome != "failed":
            report.warn(
                f"{module.name} not confirmed within {module.settle_seconds:g}s; "
                "it may still be installing in the background"
            )
        return result

    def repair_dependencies(self, report: ProvisioningReport) -> RepairReport:
        plan = build_repair_plan(self.settings)
        repair = run_repair_plan(self.docker, self.settings.container_name, plan)
        if repair.ok:
            logger.info(f"[OK] Dependency repair complete ({repair.summary()})")
        else:
            report.warn(
                f"Dependency repair incomplete ({repair.summary()}); "
                "run the fix-dependencies script once module installs finish"
            )
        return repair

    def restart_container(self, report: ProvisioningReport) -> bool:
        name = self.settings.container_name
        result = self.docker.restart(name)
        if not result.ok:
            report.warn(f"Restart of {name} failed: {result.stderr.strip()[:200]}")
            return False
        logger.info(f"[OK] Container {name} restarted")
        self.waiter.sleep(self.settings.restart_settle_seconds, reason="for the server to come back")
        return True

    def configure_firewall(self, report: ProvisioningReport) -> FirewallResult:
        settings = self.settings
        if not settings.firewall_enabled:
            logger.info("Firewall configuration disabled")
            return FirewallResult(outcome="skipped", message="disabled by configuration")

        result = self.firewall(settings.firewall_rule_name, settings.port)
        if result.ok:
            logger.info(f"[OK] Firewall: {result.message}")
        else:
            report.warn(
                f"Firewall rule not created ({result.message}). "
                f"Run manually from an elevated prompt: {result.manual_command}"
            )
        return result

    def generate_scripts(self, report: ProvisioningReport) -> list[Path]:
        try:
            return write_management_scripts(self.settings, windows=self.windows_scripts)
        except OSError as e:
            report.warn(f"Could not write management scripts to {self.settings.scripts_dir}: {e}")
            return []

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def repair_and_restart(self) -> ProvisioningReport:
        """
        Re-run the dependency repair and restart against an existing container

        Raises:
            ContainerNotRunningError: If the container is not running
        """
        settings = self.settings
        report = ProvisioningReport(container_name=settings.container_name, base_url=settings.base_url)
        self.verify_running()
        report.repair = self.repair_dependencies(report)
        report.restarted = self.restart_container(report)
        report.total_waited = self.waiter.total_waited
        return report
