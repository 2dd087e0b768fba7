"""Configuration management module"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class Settings(BaseSettings):
    """Process-level settings read before any drush.yml file is loaded"""

    # Home directory (HOMEDRIVE + HOMEPATH on Windows)
    home: str = ""
    homedrive: str = ""
    homepath: str = ""

    # Install prefixes for system-wide configuration and shared commands
    etc_prefix: str = ""          # <etc_prefix>/etc/drush
    share_prefix: str = "/usr"    # <share_prefix>/share/drush

    tmpdir: str = ""

    # Log level used once the dispatcher configures logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global settings instance
settings = Settings()
