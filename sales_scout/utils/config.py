"""Configuration management for Sales Scout."""

from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = "sqlite:///data/db/sales.db"
    echo: bool = False


class ScrapingConfig(BaseModel):
    """Scraping configuration."""

    timeout: float = Field(default=20.0, ge=1.0, le=120.0)
    max_redirects: int = Field(default=5, ge=0, le=20)
    rate_limit_delay: float = Field(default=2.0, ge=0.0)
    max_literal_length: int = Field(default=2_000_000, gt=0)

    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    )
    accept: str = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
    accept_language: str = "zh-TW,zh;q=0.9,en-US;q=0.8,en;q=0.7"
    accept_encoding: str = "gzip, deflate"


class ScheduleConfig(BaseModel):
    """Scheduling configuration."""

    scrape_interval_minutes: int = Field(default=60, gt=0)
    scrape_on_start: bool = True
    max_instances_per_job: int = Field(default=1, gt=0)
    misfire_grace_time_seconds: int = Field(default=120, ge=0)


class APIConfig(BaseModel):
    """API configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    allowed_url_prefixes: list[str] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = "data/logs/sales_scout.log"
    format: Literal["text", "json"] = "text"
    rotation: str = "10 MB"
    retention: str = "30 days"
    compression: Optional[str] = "zip"


class Config(BaseModel):
    """Main configuration model."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scraping: ScrapingConfig = Field(default_factory=ScrapingConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Settings(BaseSettings):
    """Environment-based settings."""

    database_url: str = ""
    log_level: str = ""
    api_host: str = ""
    api_port: int = 0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class ConfigManager:
    """Configuration manager for loading and merging config sources."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to YAML configuration file
        """
        load_dotenv()

        if config_path is None:
            config_path = Path(__file__).parent.parent.parent / "config" / "config.yaml"

        self.config_path = Path(config_path)
        self.yaml_config = self._load_yaml()

        self.env_settings = Settings()

        self.config = self._merge_config()

    def _load_yaml(self) -> Dict[str, Any]:
        """Load YAML configuration file."""
        if not self.config_path.exists():
            return {}

        with open(self.config_path, "r") as f:
            return yaml.safe_load(f) or {}

    def _merge_config(self) -> Config:
        """Merge YAML config with environment variables."""
        merged = self.yaml_config.copy()

        # Environment wins over YAML when set
        if self.env_settings.database_url:
            merged.setdefault("database", {})["url"] = self.env_settings.database_url

        if self.env_settings.log_level:
            merged.setdefault("logging", {})["level"] = self.env_settings.log_level

        if self.env_settings.api_host:
            merged.setdefault("api", {})["host"] = self.env_settings.api_host

        if self.env_settings.api_port:
            merged.setdefault("api", {})["port"] = self.env_settings.api_port

        return Config(**merged)


# Global config instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> Config:
    """Get global configuration instance."""
    return get_config_manager().config


def get_settings() -> Settings:
    """Get environment settings."""
    return get_config_manager().env_settings


def get_config_manager() -> ConfigManager:
    """Get configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
