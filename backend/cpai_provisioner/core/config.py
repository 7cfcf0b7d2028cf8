"""
Configuration management

Centralized settings using Pydantic BaseSettings for type-safe configuration
with environment variable support. A settings object is built once per run
and handed to every provisioning step; it is frozen so no step can change it.
"""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .paths import (
    get_default_data_dir,
    get_default_modules_dir,
    get_default_scripts_dir,
    get_env_file,
)

logger = logging.getLogger(__name__)

# Port the server listens on inside the container
CONTAINER_PORT = 32168

# Mount points inside the container
CONTAINER_DATA_PATH = "/etc/codeproject/ai"
CONTAINER_MODULES_PATH = "/app/modules"


class ModuleSpec(BaseModel):
    """A server module to install and how long to give it"""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    settle_seconds: float


DEFAULT_MODULES = (
    ModuleSpec(name="FaceProcessing", display_name="Face Processing", settle_seconds=60),
    ModuleSpec(name="ALPR", display_name="License Plate Recognition", settle_seconds=90),
)


class ProvisionerSettings(BaseSettings):
    """
    Provisioner settings with environment variable support

    Settings can be overridden via environment variables:
    - CPAI_PORT=32168
    - CPAI_CONTAINER_NAME=codeproject-ai
    - CPAI_DATA_DIR=D:\\cpai\\data
    """

    # Container
    port: int = Field(default=32168, ge=1, le=65535)
    container_name: str = Field(default="codeproject-ai", min_length=1)
    image: str = "codeproject/ai-server:latest"
    timezone: str = "Etc/UTC"
    restart_policy: str = "unless-stopped"

    # Host directories
    data_dir: Path = Field(default_factory=get_default_data_dir)
    modules_dir: Path = Field(default_factory=get_default_modules_dir)
    scripts_dir: Path = Field(default_factory=get_default_scripts_dir)

    # Engine liveness
    engine_attempts: int = Field(default=3, ge=1)
    engine_retry_seconds: float = 30

    # Container start and readiness
    container_settle_seconds: float = 60
    readiness_attempts: int = Field(default=20, ge=1)
    readiness_interval_seconds: float = 10
    readiness_timeout_seconds: float = 5

    # Modules
    modules: tuple[ModuleSpec, ...] = DEFAULT_MODULES
    module_install_timeout_seconds: float = 30
    wait_for_module_completion: bool = False

    # Restart
    restart_settle_seconds: float = 45

    # Firewall
    firewall_enabled: bool = True
    firewall_rule_name: str = "CodeProject.AI Server"

    # Dependency repair inside the container
    repair_module_dir: str = "/app/modules/ALPR"
    repair_venv_pattern: str = "bin/*/python*/venv"
    repair_uninstall: tuple[str, ...] = ("paddlepaddle", "numpy")
    repair_install: tuple[str, ...] = ("numpy==1.26.4", "paddlepaddle==2.6.2")
    repair_index_url: str = "https://www.paddlepaddle.org.cn/packages/stable/cpu/"
    repair_extra_index_url: str = "https://pypi.org/simple"
    repair_verify_imports: tuple[str, ...] = ("paddle", "numpy")
    repair_timeout_seconds: float = 900

    model_config = SettingsConfigDict(
        env_prefix="CPAI_",
        env_file=str(get_env_file()),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @property
    def base_url(self) -> str:
        """Base URL of the server API as seen from the host"""
        return f"http://localhost:{self.port}"


def load_settings(**overrides) -> ProvisionerSettings:
    """
    Build settings, applying explicit overrides on top of env/.env values

    Overrides whose value is None are ignored so CLI options that were not
    given fall through to the environment.

    Raises:
        ConfigurationError: If a value fails validation
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        settings = ProvisionerSettings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
    logger.debug(f"Loaded settings: port={settings.port}, container={settings.container_name}")
    return settings
