"""
CodeProject.AI Server REST API endpoint definitions
"""


class ServerEndpoints:
    """
    CodeProject.AI Server endpoints used during provisioning

    All endpoints are relative to the server base URL (e.g., http://localhost:32168)
    """

    # System
    STATUS = "/v1/status"

    # Module management
    MODULE_INSTALL = "/v1/module/install/{module_id}"
    MODULES_INSTALLED = "/v1/module/list/installed"

    @staticmethod
    def module_install(module_id: str) -> str:
        return ServerEndpoints.MODULE_INSTALL.format(module_id=module_id)
