#!/usr/bin/env python3
"""
Unit Tests for Configuration Management

Author: Graph NLP Platform
Date: 2026
"""

import pytest
from pydantic import ValidationError

from config.settings import (
    DevelopmentSettings, MonitoringConfig, NLPConfig, PersistenceConfig,
    ProductionSettings, TestingSettings, WorkflowConfig, get_log_config, get_settings
)

pytestmark = pytest.mark.unit


class TestSections:

    def test_nlp_defaults(self):
        config = NLPConfig()
        assert config.default_pipeline is None
        assert config.default_language == "en"
        assert "en" in config.supported_languages

    def test_languages_normalised(self):
        config = NLPConfig(supported_languages=[" EN ", "De", ""])
        assert config.supported_languages == ["en", "de"]

    def test_languages_required(self):
        with pytest.raises(ValidationError):
            NLPConfig(supported_languages=[])

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("NLP_FALLBACK_LANGUAGE", "en")
        monkeypatch.setenv("PERSISTENCE_BACKEND", "sqlalchemy")
        monkeypatch.setenv("WORKFLOW_MAX_WORKERS", "2")
        assert NLPConfig().fallback_language == "en"
        assert PersistenceConfig().backend == "sqlalchemy"
        assert WorkflowConfig().max_workers == 2

    def test_invalid_backend(self):
        with pytest.raises(ValidationError):
            PersistenceConfig(backend="neo4j")

    def test_worker_bounds(self):
        with pytest.raises(ValidationError):
            WorkflowConfig(max_workers=0)

    def test_log_level(self):
        assert MonitoringConfig(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            MonitoringConfig(log_level="chatty")


class TestEnvironments:

    @pytest.mark.parametrize("environment, expected", [
        ("production", ProductionSettings),
        ("testing", TestingSettings),
        ("development", DevelopmentSettings),
        ("anything-else", DevelopmentSettings),
    ])
    def test_get_settings(self, environment, expected):
        assert type(get_settings(environment)) is expected

    def test_environment_variable_selects_profile(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "testing")
        settings = get_settings()
        assert settings.is_testing()
        assert not settings.is_production()

    def test_export_config(self):
        exported = TestingSettings().export_config()
        assert exported["environment"] == "testing"
        assert exported["persistence"]["backend"] == "memory"


class TestLogConfig:

    def test_console_only(self):
        config = get_log_config(TestingSettings())
        assert list(config["handlers"]) == ["console"]
        assert config["root"]["level"] == "INFO"

    def test_file_handler(self, temporary_directory):
        settings = TestingSettings(monitoring=MonitoringConfig(
            log_file=temporary_directory / "nlp.log", log_level="warning", log_format="simple"
        ))

        config = get_log_config(settings)

        assert config["handlers"]["console"]["formatter"] == "simple"
        assert config["handlers"]["file"]["filename"].endswith("nlp.log")
        assert config["root"]["handlers"] == ["console", "file"]
        assert config["root"]["level"] == "WARNING"
