"""
In-container dependency repair

The ALPR module's virtual environment ships package versions that clash
inside the Linux image. The repair is an ordered list of shell commands run
one at a time through docker exec; each result is classified so that an
uninstall of an absent package is not mistaken for a failure.
"""

import logging
from dataclasses import dataclass, field
from typing import Literal

from cpai_provisioner.core.config import ProvisionerSettings
from cpai_provisioner.docker.client import DockerClient
from cpai_provisioner.docker.models import CommandResult

logger = logging.getLogger(__name__)

RepairOutcome = Literal["ok", "noop", "failed", "skipped"]

# Placeholder substituted with the located virtual environment
VENV = "{venv}"


@dataclass(frozen=True)
class RepairCommand:
    """
    One step of the repair procedure

    Attributes:
        description: Human readable step name
        script: POSIX shell snippet; may reference {venv}
        noop_markers: Output fragments meaning "nothing to do"
        required: Later steps are skipped when this one fails
        captures: Context key that receives the last stdout line
        timeout: Seconds before the step is abandoned
    """

    description: str
    script: str
    noop_markers: tuple[str, ...] = ()
    required: bool = False
    captures: str | None = None
    timeout: float = 120

    def render(self, context: dict[str, str]) -> str:
        script = self.script
        for key, value in context.items():
            script = script.replace("{" + key + "}", value)
        return script

    def classify(self, result: CommandResult) -> RepairOutcome:
        if not result.ok:
            return "failed"
        output = result.output.lower()
        if any(marker.lower() in output for marker in self.noop_markers):
            return "noop"
        return "ok"


@dataclass
class RepairStepResult:
    """Result of one executed (or skipped) repair command"""

    command: RepairCommand
    outcome: RepairOutcome
    returncode: int | None = None
    output: str = ""


@dataclass
class RepairReport:
    """Results of a whole repair run, in execution order"""

    steps: list[RepairStepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(step.outcome in ("ok", "noop") for step in self.steps)

    @property
    def failed_steps(self) -> list[RepairStepResult]:
        return [step for step in self.steps if step.outcome == "failed"]

    def summary(self) -> str:
        counts: dict[str, int] = {}
        for step in self.steps:
            counts[step.outcome] = counts.get(step.outcome, 0) + 1
        return ", ".join(f"{count} {outcome}" for outcome, count in counts.items()) or "nothing run"


def build_repair_plan(settings: ProvisionerSettings) -> list[RepairCommand]:
    """
    Build the ordered repair procedure from settings

    Scripts avoid double quotes so the same snippets can be embedded in
    Windows batch files.
    """
    python = f"{VENV}/bin/python"
    plan = [
        RepairCommand(
            description="Locate module virtual environment",
            script=(
                f"for d in {settings.repair_module_dir}/{settings.repair_venv_pattern}; do "
                "test -x $d/bin/python && echo $d && exit 0; "
                "done; exit 1"
            ),
            required=True,
            captures="venv",
            timeout=30,
        )
    ]

    for package in settings.repair_uninstall:
        plan.append(
            RepairCommand(
                description=f"Uninstall {package}",
                script=f"{python} -m pip uninstall -y {package}",
                noop_markers=("not installed",),
            )
        )

    if settings.repair_install:
        index_args = f"--index-url {settings.repair_index_url}"
        if settings.repair_extra_index_url:
            index_args += f" --extra-index-url {settings.repair_extra_index_url}"
        plan.append(
            RepairCommand(
                description=f"Install {', '.join(settings.repair_install)}",
                script=(
                    f"{python} -m pip install --no-cache-dir {index_args} "
                    f"{' '.join(settings.repair_install)}"
                ),
                required=True,
                timeout=settings.repair_timeout_seconds,
            )
        )

    if settings.repair_verify_imports:
        plan.append(
            RepairCommand(
                description=f"Verify imports: {', '.join(settings.repair_verify_imports)}",
                script=f"{python} -c 'import {', '.join(settings.repair_verify_imports)}'",
                timeout=60,
            )
        )
    return plan


def plan_as_shell(plan: list[RepairCommand]) -> str:
    """
    Fold a plan into one shell snippet for the standalone fix script

    Captured values become shell variables; required steps abort the
    snippet on failure.
    """
    context = {
        command.captures: f"${command.captures.upper()}"
        for command in plan
        if command.captures
    }
    parts = []
    for command in plan:
        script = command.render(context)
        if command.captures:
            parts.append(f"{command.captures.upper()}=$({script}) || exit 1")
        elif command.required:
            parts.append(f"{{ {script} || exit 1; }}")
        else:
            parts.append(script)
    return "; ".join(parts)


def run_repair_plan(
    docker: DockerClient,
    container_name: str,
    plan: list[RepairCommand],
) -> RepairReport:
    """
    Execute a repair plan inside the container, one command at a time

    Never raises for command failures; inspect the returned report.
    """
    report = RepairReport()
    context: dict[str, str] = {}
    blocked_by: str | None = None

    for index, command in enumerate(plan, start=1):
        if blocked_by is not None:
            report.steps.append(
                RepairStepResult(command=command, outcome="skipped", output=f"skipped: {blocked_by} failed")
            )
            continue

        logger.info(f"  [{index}/{len(plan)}] {command.description}")
        result = docker.exec_shell(container_name, command.render(context), timeout=command.timeout)
        outcome = command.classify(result)
        report.steps.append(
            RepairStepResult(
                command=command,
                outcome=outcome,
                returncode=result.returncode,
                output=result.output[-2000:],
            )
        )

        if outcome == "failed":
            logger.warning(f"[WARN] {command.description} failed (exit {result.returncode})")
            logger.debug(result.output[-2000:])
            if command.required:
                blocked_by = command.description
            continue

        if outcome == "noop":
            logger.info(f"  {command.description}: nothing to do")

        if command.captures:
            lines = result.stdout.strip().splitlines()
            context[command.captures] = lines[-1].strip() if lines else ""
            logger.info(f"  {command.captures} = {context[command.captures]}")

    return report
