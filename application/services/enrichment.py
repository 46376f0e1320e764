# application/services/enrichment.py

"""Registry of concept enrichers contributed by extensions."""

import logging
import threading
from types import MappingProxyType
from typing import List, Mapping

from domain.exceptions import ConfigurationError
from interfaces.nlp_interfaces import Enricher

logger = logging.getLogger(__name__)


class EnrichmentRegistry:

    def __init__(self):
        self._enrichers: Mapping[str, Enricher] = MappingProxyType({})
        self._lock = threading.Lock()

    def register(self, enricher: Enricher) -> None:
        with self._lock:
            updated = dict(self._enrichers)
            updated[enricher.name] = enricher
            self._enrichers = MappingProxyType(updated)
        logger.info(f"Registered enricher {enricher.name}")

    def resolve(self, name: str) -> Enricher:
        """
        Raises:
            ConfigurationError: If no enricher is registered under the name
        """
        enricher = self._enrichers.get(name)
        if enricher is None:
            raise ConfigurationError(f"Enricher {name} does not exist")
        return enricher

    def names(self) -> List[str]:
        return list(self._enrichers)
