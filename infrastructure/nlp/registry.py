"""
Text Processor Registry

Holds the named text processors of a platform context, resolves them by
name and reports the default one. Lookups are lock-free reads of an
immutable snapshot; registration swaps the snapshot under a lock.
"""

import logging
import threading
from types import MappingProxyType
from typing import List, Mapping, Optional

from domain.entities import PipelineSpecification
from interfaces.nlp_interfaces import TextProcessor

logger = logging.getLogger(__name__)


class ProcessorRegistry:
    """
    Named catalog of text processors.

    Args:
        default_processor: Name reported as default when registered; when it
            is not, the first registered processor is the default
    """

    def __init__(self, default_processor: Optional[str] = None):
        self.default_processor_name = default_processor
        self._processors: Mapping[str, TextProcessor] = MappingProxyType({})
        self._lock = threading.Lock()

    def register(self, processor: TextProcessor) -> None:
        with self._lock:
            updated = dict(self._processors)
            if processor.name in updated:
                logger.warning(f"Replacing text processor {processor.name}")
            updated[processor.name] = processor
            self._processors = MappingProxyType(updated)
        logger.info(f"Registered text processor {processor.name}")

    def get(self, name: Optional[str]) -> Optional[TextProcessor]:
        """Resolve a processor by name, ``None`` when unregistered."""
        if not name:
            return None
        return self._processors.get(name)

    def names(self) -> List[str]:
        """Registered processor names, in registration order."""
        return list(self._processors)

    def __contains__(self, name: object) -> bool:
        return name in self._processors

    def get_default(self) -> Optional[TextProcessor]:
        processors = self._processors
        if self.default_processor_name in processors:
            return processors[self.default_processor_name]
        return next(iter(processors.values()), None)

    def create_pipeline(self, specification: PipelineSpecification) -> bool:
        """
        Hand a pipeline to its processor.

        Returns:
            False when the pipeline names an unregistered processor
        """
        processor = self.get(specification.processor)
        if processor is None:
            return False
        processor.create_pipeline(specification)
        return True

    def remove_pipeline(self, name: str, processor_name: str) -> None:
        processor = self.get(processor_name)
        if processor is not None:
            processor.remove_pipeline(name)
