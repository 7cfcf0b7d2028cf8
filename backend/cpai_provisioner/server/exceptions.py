"""
Server client exceptions with recovery hints
"""


class ServerException(Exception):
    """Base exception for all CodeProject.AI Server errors"""

    def __init__(
        self,
        message: str,
        recovery_hint: str = "",
        context: dict | None = None,
    ):
        self.message = message
        self.recovery_hint = recovery_hint
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format exception message with context and recovery hint"""
        parts = [self.message]
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"[{context_str}]")
        if self.recovery_hint:
            parts.append(f"Hint: {self.recovery_hint}")
        return " ".join(parts)


class ServerConnectionError(ServerException):
    """Raised when the server cannot be reached or does not answer in time"""

    def __init__(
        self,
        message: str = "Failed to connect to CodeProject.AI Server",
        recovery_hint: str = "",
        context: dict | None = None,
    ):
        default_hint = "The server may still be starting. Check the container logs."
        super().__init__(message, recovery_hint or default_hint, context)


class ModuleInstallationError(ServerException):
    """Raised when the server rejects a module install request"""

    def __init__(
        self,
        message: str = "Module installation request failed",
        recovery_hint: str = "",
        context: dict | None = None,
    ):
        default_hint = "Install the module manually from the dashboard's Install Modules tab."
        super().__init__(message, recovery_hint or default_hint, context)
