"""
Package configuration loaded from environment variables,
and loading of the YAML encryption configuration file.
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENCRYPTION_CONFIG_FILE_NAME = ".karenc.yml"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Settings(BaseSettings):
    """Settings from environment variables (prefixed with ``KAREN_``)."""

    model_config = SettingsConfigDict(env_prefix="KAREN_", env_file=".env", extra="ignore")

    # MongoDB Atlas
    mongo_username: str = ""
    mongo_password: str = ""
    mongo_cluster: str = ""
    mongo_dbname: str = ""
    server_selection_timeout_ms: int = 30000

    # Encryption
    encryption_config_file: str = ENCRYPTION_CONFIG_FILE_NAME

    # GCP KMS credentials
    gcp_email: str | None = None
    gcp_private_key: str | None = None

    # Logging
    log_level: str = "INFO"

    def kms_providers(self) -> dict[str, dict[str, str]]:
        """KMS providers mapping built from the GCP credentials, if any."""
        if not self.gcp_email or not self.gcp_private_key:
            return {}
        return {
            "gcp": {
                "email": self.gcp_email,
                "privateKey": self.gcp_private_key,
            }
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging the way the package's entry points expect."""
    level = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def load_encryption_config(path: str | Path = ENCRYPTION_CONFIG_FILE_NAME) -> dict[str, Any]:
    """
    Read the YAML encryption configuration.

    Relative paths are resolved from the current working directory.

    Returns:
        The parsed document, or an empty dict when the file is absent,
        unreadable or does not hold a mapping.
    """
    config_path = Path.cwd() / Path(path)
    try:
        content = config_path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.debug(f"Encryption configuration not loaded from {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Encryption configuration {config_path} is not a mapping")
        return {}
    return data


@lru_cache
def get_encryption_configuration() -> dict[str, Any]:
    """Encryption configuration loaded once per process."""
    return load_encryption_config(get_settings().encryption_config_file)
