# config/settings.py

"""
Configuration Management - Graph NLP Platform

Type-safe, environment-driven configuration using Pydantic settings. Each
concern gets its own section with its own environment prefix, and the main
``Settings`` class composes them. Values that operators may change at runtime
(default pipeline, fallback language) are overlaid at runtime by
``application.services.dynamic_configuration.DynamicConfiguration``.

Key Features:
- Environment-specific configuration profiles
- Per-section environment prefixes (``NLP_``, ``PERSISTENCE_``, ...)
- Validation of languages, log levels and backends
- Logging setup through ``logging.config.dictConfig``

Author: Graph NLP Platform
Date: 2026
"""

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Environment Types
EnvironmentType = Literal["development", "testing", "staging", "production"]

VALID_LOG_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class NLPConfig(BaseSettings):
    """Annotation defaults: pipelines, processors and language handling."""

    default_pipeline: Optional[str] = Field(None, description="Pipeline used when none is named")
    fallback_language: Optional[str] = Field(
        None, description="Language substituted when the detected one is unsupported"
    )
    supported_languages: List[str] = Field(
        default_factory=lambda: ["en", "de", "fr", "es", "it"],
        description="Languages the configured analyzers can handle"
    )
    default_language: str = Field("en", description="Language assumed for empty text")
    default_processor: str = Field("simple", description="Processor used when none is named")
    spacy_model: str = Field("en_core_web_sm", description="spaCy model for the spacy processor")

    model_config = SettingsConfigDict(env_prefix="NLP_")

    @field_validator("supported_languages")
    @classmethod
    def normalise_languages(cls, v: List[str]) -> List[str]:
        """Lower-case language codes and reject empty lists."""
        languages = [code.strip().lower() for code in v if code and code.strip()]
        if not languages:
            raise ValueError("At least one supported language is required")
        return languages


class PersistenceConfig(BaseSettings):
    """Storage backend for annotations and dynamic configuration."""

    backend: Literal["memory", "sqlalchemy"] = Field("memory", description="Storage backend")
    database_url: str = Field("sqlite:///nlp.db", description="SQLAlchemy database URL")
    echo: bool = Field(False, description="Echo SQL statements")

    model_config = SettingsConfigDict(env_prefix="PERSISTENCE_")


class WorkflowConfig(BaseSettings):
    """Workflow task execution settings."""

    max_workers: int = Field(4, ge=1, le=32, description="Threads for asynchronous task runs")
    default_sync: bool = Field(True, description="Run tasks inline unless told otherwise")

    model_config = SettingsConfigDict(env_prefix="WORKFLOW_")


class MonitoringConfig(BaseSettings):
    """Monitoring and logging configuration."""

    enable_prometheus: bool = Field(False, description="Expose Prometheus metrics")
    prometheus_port: int = Field(9100, ge=1024, le=65535, description="Prometheus metrics port")

    log_level: str = Field("INFO", description="Logging level")
    log_format: Literal["structured", "simple"] = Field("structured", description="Log format")
    log_file: Optional[Path] = Field(None, description="Log file path")
    log_backup_count: int = Field(7, ge=1, le=30, description="Number of log backups to keep")

    model_config = SettingsConfigDict(env_prefix="MONITORING_")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {VALID_LOG_LEVELS}")
        return level


class ExtensionConfig(BaseSettings):
    """Entry-point discovery of extensions, processors and enrichers."""

    auto_discover: bool = Field(True, description="Load installed entry points at startup")
    extensions_group: str = Field("nlp_extensions", description="Entry-point group for extensions")
    processors_group: str = Field("nlp_text_processors", description="Entry-point group for processors")
    enrichers_group: str = Field("nlp_enrichers", description="Entry-point group for enrichers")

    model_config = SettingsConfigDict(env_prefix="EXTENSION_")


# Main Settings Class
class Settings(BaseSettings):
    """
    Main application settings.

    Combines all configuration sections. Sections read their own prefixed
    environment variables; nested overrides also work through ``__``
    (``NLP__FALLBACK_LANGUAGE=en``).
    """

    environment: EnvironmentType = Field("development", description="Application environment")
    debug: bool = Field(False, description="Enable debug mode")
    testing: bool = Field(False, description="Enable testing mode")

    app_name: str = Field("Graph NLP Platform", description="Application name")
    app_version: str = Field("1.0.0", description="Application version")

    nlp: NLPConfig = Field(default_factory=NLPConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    extensions: ExtensionConfig = Field(default_factory=ExtensionConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing" or self.testing

    def export_config(self) -> Dict[str, Any]:
        """Export configuration as a plain dictionary."""
        return self.model_dump(mode="json")


# Environment-Specific Settings Classes
class DevelopmentSettings(Settings):
    """Development environment specific settings."""

    environment: EnvironmentType = "development"
    debug: bool = True


class TestingSettings(Settings):
    """Testing environment specific settings."""

    environment: EnvironmentType = "testing"
    testing: bool = True

    model_config = SettingsConfigDict(env_file=None, env_nested_delimiter="__", extra="ignore")


class ProductionSettings(Settings):
    """Production environment specific settings."""

    environment: EnvironmentType = "production"
    debug: bool = False


def get_settings(environment: Optional[str] = None) -> Settings:
    """
    Get settings instance based on environment.

    Args:
        environment: Optional environment override

    Returns:
        Configured settings instance
    """
    env = environment or os.getenv("ENVIRONMENT", "development")

    if env == "production":
        return ProductionSettings()
    elif env == "testing":
        return TestingSettings()
    else:
        return DevelopmentSettings()


def get_log_config(settings: Settings) -> Dict[str, Any]:
    """Get logging configuration dictionary."""
    monitoring = settings.monitoring
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": monitoring.log_format,
            "level": monitoring.log_level
        }
    }
    if monitoring.log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(monitoring.log_file),
            "formatter": "structured",
            "level": monitoring.log_level,
            "maxBytes": 104857600,  # 100MB
            "backupCount": monitoring.log_backup_count
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "simple": {
                "format": "%(levelname)s - %(message)s"
            }
        },
        "handlers": handlers,
        "root": {
            "level": monitoring.log_level,
            "handlers": list(handlers)
        }
    }


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Setup logging configuration."""
    logging.config.dictConfig(get_log_config(settings or get_settings()))


__all__ = [
    "Settings",
    "DevelopmentSettings",
    "TestingSettings",
    "ProductionSettings",
    "NLPConfig",
    "PersistenceConfig",
    "WorkflowConfig",
    "MonitoringConfig",
    "ExtensionConfig",
    "get_settings",
    "get_log_config",
    "setup_logging"
]
