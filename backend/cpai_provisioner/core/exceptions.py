"""
Base exception hierarchy

Every fatal provisioning failure is a ProvisionerError carrying the
component that failed and a hint telling the operator what to do next.
"""


class ProvisionerError(Exception):
    """
    Base exception for all provisioner errors

    Attributes:
        message: Error message
        component: Component that raised the error
        recovery_hint: Optional hint for recovery
    """

    def __init__(self, message: str, component: str = "", recovery_hint: str = ""):
        self.message = message
        self.component = component
        self.recovery_hint = recovery_hint
        super().__init__(message)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.component:
            msg = f"[{self.component}] {msg}"
        if self.recovery_hint:
            msg += f"\nRecovery: {self.recovery_hint}"
        return msg


class ConfigurationError(ProvisionerError):
    """Configuration-related errors"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(
            message,
            component="Configuration",
            recovery_hint=recovery_hint or "Check CPAI_* environment variables and your .env file",
        )


class PrivilegeError(ProvisionerError):
    """The process lacks elevated rights"""

    def __init__(self, message: str = "Administrator privileges are required", recovery_hint: str = ""):
        super().__init__(
            message,
            component="Privileges",
            recovery_hint=recovery_hint
            or "Re-run from an elevated prompt (Run as Administrator) or with sudo",
        )


class EngineNotFoundError(ProvisionerError):
    """Docker executable could not be located"""

    def __init__(self, message: str = "Docker is not installed", recovery_hint: str = ""):
        super().__init__(
            message,
            component="Docker",
            recovery_hint=recovery_hint
            or "Install Docker Desktop from https://www.docker.com/products/docker-desktop/ "
            "and re-run once it has started",
        )


class EngineUnavailableError(ProvisionerError):
    """Docker is installed but the daemon never answered"""

    def __init__(self, message: str = "Docker daemon is not responding", recovery_hint: str = ""):
        super().__init__(
            message,
            component="Docker",
            recovery_hint=recovery_hint
            or "Start Docker Desktop manually, wait for it to report 'running' and re-run",
        )


class ImagePullError(ProvisionerError):
    """docker pull failed"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(
            message,
            component="Image",
            recovery_hint=recovery_hint
            or "Check your internet connection and that Docker Hub is reachable",
        )


class ContainerStartError(ProvisionerError):
    """docker run failed"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(
            message,
            component="Container",
            recovery_hint=recovery_hint
            or "Check that the port is free and the mount directories are shared with Docker",
        )


class ContainerNotRunningError(ProvisionerError):
    """Container was created but is not running"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(message, component="Container", recovery_hint=recovery_hint)


class ProvisioningCancelled(ProvisionerError):
    """The operator interrupted the run"""

    def __init__(self, message: str = "Provisioning cancelled by operator"):
        super().__init__(message, component="Provisioning")
