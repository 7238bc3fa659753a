import json
from pathlib import Path
from typing import Dict, Any, Optional

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tlsbench.const import (
    CONFIG_FILE_NAME, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_PROTOCOL_VERSION,
    DEFAULT_MAX_WAIT_SECONDS, DEFAULT_RESULTS_DIR, DEFAULT_CERT_FILE,
    DEFAULT_KEY_FILE, DEFAULT_LOG_LEVEL, DEFAULT_CHART_WIDTH, LIBRARY_LOG_LEVELS
)


class Config(BaseSettings):
    """Global configuration settings for the handshake benchmark."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    server_name: Optional[str] = None
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    probe_timeout: Optional[float] = None
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS
    results_dir: Path = Path(DEFAULT_RESULTS_DIR)
    cert_file: Path = Path(DEFAULT_CERT_FILE)
    key_file: Path = Path(DEFAULT_KEY_FILE)
    log_level: str = DEFAULT_LOG_LEVEL
    chart_width: int = DEFAULT_CHART_WIDTH
    library_log_levels: Dict[str, str] = dict(LIBRARY_LOG_LEVELS)

    model_config = SettingsConfigDict(
        env_prefix='TLSBENCH_',
    )

    @field_validator("probe_timeout", "max_wait_seconds")
    @classmethod
    def _positive_seconds(cls, value: Optional[float], info: ValidationInfo) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return value

    @property
    def sni(self) -> str:
        """Server name sent in the handshake, defaulting to the target host."""
        return self.server_name or self.host

    @classmethod
    def load_config_from_json(cls) -> Dict[str, Any]:
        """Load configuration from config.json file."""
        config_path = Path(CONFIG_FILE_NAME)
        if config_path.exists():
            with open(config_path, 'r') as f:
                config = json.load(f)
                for key in ("results_dir", "cert_file", "key_file"):
                    if key in config:
                        config[key] = Path(config[key])
                return config
        return {}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """
        Customise the sources for settings.

        Order of precedence (highest to lowest):
        1. Environment variables
        2. Init settings (kwargs passed to constructor)
        3. JSON config file
        4. Default values
        """
        def json_source():
            return cls.load_config_from_json()

        return (
            env_settings,
            init_settings,
            json_source,
        )
