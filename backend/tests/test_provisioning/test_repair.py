"""
Tests for the in-container dependency repair
"""

from conftest import VENV_PATH, FakeDocker
from cpai_provisioner.core.config import load_settings
from cpai_provisioner.docker.models import CommandResult
from cpai_provisioner.provisioning.repair import (
    RepairCommand,
    build_repair_plan,
    plan_as_shell,
    run_repair_plan,
)


class TestBuildRepairPlan:
    """Tests for the ordered repair plan"""

    def test_order(self, settings):
        """Test locate, uninstalls, install, verify"""
        plan = build_repair_plan(settings)
        assert [command.description for command in plan] == [
            "Locate module virtual environment",
            "Uninstall paddlepaddle",
            "Uninstall numpy",
            "Install numpy==1.26.4, paddlepaddle==2.6.2",
            "Verify imports: paddle, numpy",
        ]

    def test_locate_searches_module_dir(self, settings):
        """Test the venv search uses the module dir and pattern"""
        locate = build_repair_plan(settings)[0]
        assert "/app/modules/ALPR/bin/*/python*/venv" in locate.script
        assert locate.required is True
        assert locate.captures == "venv"

    def test_install_uses_mirror(self, settings):
        """Test the install step uses the alternate index with a fallback"""
        install = build_repair_plan(settings)[3]
        assert "{venv}/bin/python -m pip install --no-cache-dir" in install.script
        assert "--index-url https://www.paddlepaddle.org.cn/packages/stable/cpu/" in install.script
        assert "--extra-index-url https://pypi.org/simple" in install.script
        assert install.script.endswith("numpy==1.26.4 paddlepaddle==2.6.2")
        assert install.timeout == settings.repair_timeout_seconds

    def test_no_double_quotes(self, settings):
        """Test scripts can be embedded in batch files"""
        assert all('"' not in command.script for command in build_repair_plan(settings))

    def test_optional_steps_dropped(self):
        """Test empty install and verify lists produce no steps"""
        settings = load_settings(repair_install=(), repair_verify_imports=())
        assert len(build_repair_plan(settings)) == 3


class TestRepairCommand:
    """Tests for rendering and classification"""

    def test_render_substitutes_context(self):
        """Test placeholders are replaced"""
        command = RepairCommand("x", "{venv}/bin/python -V")
        assert command.render({"venv": "/v"}) == "/v/bin/python -V"

    def test_classify_ok(self):
        """Test success without markers is ok"""
        command = RepairCommand("x", "true", noop_markers=("not installed",))
        assert command.classify(CommandResult(0, stdout="Successfully uninstalled numpy")) == "ok"

    def test_classify_noop(self):
        """Test a noop marker is recognised case-insensitively"""
        command = RepairCommand("x", "true", noop_markers=("not installed",))
        result = CommandResult(0, stderr="WARNING: Skipping numpy as it is Not Installed.")
        assert command.classify(result) == "noop"

    def test_classify_failed(self):
        """Test non-zero exit is a failure"""
        assert RepairCommand("x", "false").classify(CommandResult(1)) == "failed"


class TestRunRepairPlan:
    """Tests for executing a plan"""

    def test_all_steps_run_with_located_venv(self, settings):
        """Test every command runs in order with the venv substituted"""
        docker = FakeDocker()
        report = run_repair_plan(docker, "codeproject-ai", build_repair_plan(settings))

        assert report.ok
        commands = [call[2] for call in docker.calls]
        assert len(commands) == 5
        assert commands[1] == f"{VENV_PATH}/bin/python -m pip uninstall -y paddlepaddle"
        assert all("{venv}" not in command for command in commands)
        assert all(call[1] == "codeproject-ai" for call in docker.calls)

    def test_required_failure_skips_rest(self, settings):
        """Test a failed venv lookup skips every later step"""
        docker = FakeDocker(exec_results=[CommandResult(1)])
        report = run_repair_plan(docker, "codeproject-ai", build_repair_plan(settings))

        assert len(docker.calls) == 1
        assert [step.outcome for step in report.steps] == ["failed"] + ["skipped"] * 4
        assert not report.ok
        assert report.summary() == "1 failed, 4 skipped"

    def test_optional_failure_continues(self, settings):
        """Test a failed uninstall does not stop the install"""
        docker = FakeDocker(
            exec_results=[
                CommandResult(0, stdout=VENV_PATH),
                CommandResult(1, stderr="permission denied"),
                CommandResult(0, stderr="WARNING: Skipping numpy as it is not installed."),
                CommandResult(0, stdout="Successfully installed numpy-1.26.4 paddlepaddle-2.6.2"),
                CommandResult(0),
            ]
        )
        report = run_repair_plan(docker, "codeproject-ai", build_repair_plan(settings))

        assert [step.outcome for step in report.steps] == ["ok", "failed", "noop", "ok", "ok"]
        assert [step.command.description for step in report.failed_steps] == ["Uninstall paddlepaddle"]

    def test_failed_install_skips_verify(self, settings):
        """Test verification is skipped after a failed install"""
        docker = FakeDocker(
            exec_results=[
                CommandResult(0, stdout=VENV_PATH),
                CommandResult(0),
                CommandResult(0),
                CommandResult(1, stderr="Could not find a version"),
            ]
        )
        report = run_repair_plan(docker, "codeproject-ai", build_repair_plan(settings))
        assert report.steps[-1].outcome == "skipped"


class TestPlanAsShell:
    """Tests for folding a plan into one snippet"""

    def test_venv_becomes_variable(self, settings):
        """Test the located venv is captured into $VENV"""
        snippet = plan_as_shell(build_repair_plan(settings))
        assert snippet.startswith("VENV=$(for d in /app/modules/ALPR/")
        assert "$VENV/bin/python -m pip uninstall -y numpy" in snippet
        assert "{venv}" not in snippet

    def test_required_steps_abort(self, settings):
        """Test required steps stop the snippet on failure"""
        snippet = plan_as_shell(build_repair_plan(settings))
        assert ") || exit 1;" in snippet
        assert "paddlepaddle==2.6.2 || exit 1; }" in snippet
