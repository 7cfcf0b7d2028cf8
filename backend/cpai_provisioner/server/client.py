"""
CodeProject.AI Server REST API client
"""

import logging

import httpx

from cpai_provisioner.server.endpoints import ServerEndpoints
from cpai_provisioner.server.exceptions import (
    ModuleInstallationError,
    ServerConnectionError,
    ServerException,
)
from cpai_provisioner.server.models import InstalledModule

logger = logging.getLogger(__name__)


class ServerClient:
    """
    Client for the parts of the CodeProject.AI Server API used by provisioning

    Example:
        with ServerClient("http://localhost:32168") as server:
            if server.is_ready(timeout=5):
                server.install_module("FaceProcessing", timeout=30)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize server client

        Args:
            base_url: Server base URL (e.g., "http://localhost:32168")
            timeout: Default request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Close HTTP client connection"""
        self.client.close()

    def _request(self, method: str, path: str, timeout: float | None, **kwargs) -> httpx.Response:
        try:
            return self.client.request(method, path, timeout=timeout or self.timeout, **kwargs)
        except httpx.TimeoutException as e:
            raise ServerConnectionError(
                f"Request timed out: {method} {path}",
                context={"timeout": timeout or self.timeout, "error": type(e).__name__},
            )
        except httpx.HTTPError as e:
            raise ServerConnectionError(f"Unable to reach server at {self.base_url}: {e}")

    # System

    def get_status_code(self, timeout: float | None = None) -> int:
        """
        Query the status endpoint

        Returns:
            HTTP status code of GET /v1/status

        Raises:
            ServerConnectionError: If the server cannot be reached
        """
        response = self._request("GET", ServerEndpoints.STATUS, timeout)
        return response.status_code

    def is_ready(self, timeout: float | None = None) -> bool:
        """
        Check whether the server answers GET /v1/status with HTTP 200

        Any other status code or a network error means not ready.
        """
        try:
            status_code = self.get_status_code(timeout)
        except ServerConnectionError as e:
            logger.debug(f"Status probe failed: {e.message}")
            return False
        if status_code != 200:
            logger.debug(f"Status probe returned HTTP {status_code}")
        return status_code == 200

    # Modules

    def install_module(self, module_id: str, timeout: float | None = None) -> None:
        """
        Ask the server to install a module

        The server installs in the background; this only confirms the request
        was accepted. The response body is ignored.

        Raises:
            ModuleInstallationError: If the server answers with a non-2xx status
            ServerConnectionError: If the request fails or times out
        """
        response = self._request(
            "POST",
            ServerEndpoints.module_install(module_id),
            timeout,
            json={},
        )
        if not response.is_success:
            raise ModuleInstallationError(
                f"Install request for {module_id} rejected",
                context={"status": response.status_code},
            )
        logger.info(f"Install request accepted for {module_id}")

    def list_installed_modules(self, timeout: float | None = None) -> list[InstalledModule]:
        """
        List modules the server reports as installed

        Raises:
            ServerException: If the listing cannot be fetched or parsed
        """
        response = self._request("GET", ServerEndpoints.MODULES_INSTALLED, timeout)
        if not response.is_success:
            raise ServerException(
                "Installed module listing failed",
                context={"status": response.status_code},
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ServerException(f"Installed module listing is not JSON: {e}")

        entries = data.get("modules", []) if isinstance(data, dict) else data
        modules = []
        for entry in entries or []:
            if not isinstance(entry, dict):
                continue
            module_id = entry.get("moduleId") or entry.get("id")
            if not module_id:
                continue
            modules.append(
                InstalledModule(
                    module_id=module_id,
                    status=str(entry.get("status") or ""),
                    version=entry.get("version"),
                )
            )
        return modules

    def get_installed_module(self, module_id: str, timeout: float | None = None) -> InstalledModule | None:
        """The listing entry for a module, or None if it is not listed or the listing failed."""
        try:
            modules = self.list_installed_modules(timeout)
        except ServerException as e:
            logger.debug(f"Module listing unavailable: {e.message}")
            return None
        for module in modules:
            if module.module_id.lower() == module_id.lower():
                return module
        return None
