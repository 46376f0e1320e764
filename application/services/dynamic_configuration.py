# application/services/dynamic_configuration.py

"""
Dynamic Configuration

Runtime-mutable settings layered over the static ``NLPConfig``: a value
written to the configuration store wins over the one the process was
started with.
"""

import logging
from typing import Any, Optional

from config.settings import NLPConfig
from domain.repositories import ConfigurationStore

logger = logging.getLogger(__name__)


class DynamicConfiguration:
    """Read-through view of runtime settings."""

    DEFAULT_PIPELINE = "default_pipeline"
    FALLBACK_LANGUAGE = "fallback_language"

    def __init__(self, store: ConfigurationStore, static: Optional[NLPConfig] = None):
        self.store = store
        self.static = static or NLPConfig()

    def get(self, key: str, default: Any = None) -> Any:
        stored = self.store.get_setting(key)
        if stored is not None:
            return stored
        return getattr(self.static, key, default)

    def update(self, key: str, value: Any) -> None:
        self.store.update_setting(key, value)
        logger.info(f"Setting {key} updated to {value!r}")

    @property
    def default_pipeline(self) -> Optional[str]:
        return self.get(self.DEFAULT_PIPELINE)

    @default_pipeline.setter
    def default_pipeline(self, name: str) -> None:
        self.update(self.DEFAULT_PIPELINE, name)

    @property
    def fallback_language(self) -> Optional[str]:
        return self.get(self.FALLBACK_LANGUAGE)

    @fallback_language.setter
    def fallback_language(self, language: Optional[str]) -> None:
        self.update(self.FALLBACK_LANGUAGE, language)

    def has_fallback_language(self) -> bool:
        return bool(self.fallback_language)
