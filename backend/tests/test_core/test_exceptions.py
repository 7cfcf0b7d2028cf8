"""
Tests for the provisioner exception hierarchy
"""

import pytest

from cpai_provisioner.core.exceptions import (
    ContainerNotRunningError,
    EngineNotFoundError,
    ImagePullError,
    PrivilegeError,
    ProvisionerError,
    ProvisioningCancelled,
)


class TestProvisionerError:
    """Tests for ProvisionerError formatting"""

    def test_message_only(self):
        """Test plain message without component or hint"""
        assert str(ProvisionerError("boom")) == "boom"

    def test_component_and_hint(self):
        """Test component prefix and recovery line"""
        error = ProvisionerError("boom", component="Docker", recovery_hint="restart it")
        assert str(error) == "[Docker] boom\nRecovery: restart it"

    @pytest.mark.parametrize(
        "error_cls",
        [PrivilegeError, EngineNotFoundError],
    )
    def test_defaults_carry_hint(self, error_cls):
        """Test step errors ship a default recovery hint"""
        error = error_cls()
        assert isinstance(error, ProvisionerError)
        assert error.recovery_hint
        assert "Recovery:" in str(error)

    def test_engine_not_found_points_to_installer(self):
        """Test installation guidance for a missing engine"""
        assert "docker.com" in EngineNotFoundError().recovery_hint

    def test_pull_hint_mentions_network(self):
        """Test pull failures suggest checking connectivity"""
        assert "internet" in ImagePullError("pull failed").recovery_hint

    def test_not_running_uses_given_hint(self):
        """Test the running-state error keeps the caller's hint"""
        error = ContainerNotRunningError("not running", recovery_hint="docker logs cpai")
        assert error.recovery_hint == "docker logs cpai"
        assert error.component == "Container"

    def test_cancelled_is_provisioner_error(self):
        """Test cancellation is part of the hierarchy"""
        assert isinstance(ProvisioningCancelled(), ProvisionerError)
