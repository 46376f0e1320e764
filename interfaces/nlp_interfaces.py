#!/usr/bin/env python3
"""
NLP Processing Interfaces for the Graph NLP Platform

This module defines the contracts for the pluggable NLP collaborators of the
platform: text processors, language detectors and enrichers. The platform
only orchestrates these; the linguistic algorithms themselves live behind
the interfaces.

Key Principles:
- Plugin-First Architecture: every processor implements ``TextProcessor``
- Dependency Inversion: orchestration depends on abstractions, not concretions
- Processors know the pipelines they serve (``create_pipeline``) but never
  persist or publish anything themselves

Author: Graph NLP Platform
Date: 2026
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from domain.entities import AnnotatedText, PipelineSpecification
from domain.exceptions import ConfigurationError


# Core Processor Interface

class TextProcessor(ABC):
    """
    Abstract base class for all text processors.

    A processor turns raw text into an ``AnnotatedText`` according to a
    pipeline specification. Processors keep a table of the pipelines
    registered with them so that expensive per-pipeline resources (models,
    annotator chains) can be prepared once.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the processor with optional configuration.

        Args:
            config: Processor-specific configuration dictionary
        """
        self.config = config or {}
        self._pipelines: Dict[str, PipelineSpecification] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the processor name used for registration and lookup."""
        pass

    @abstractmethod
    def annotate_text(self, text: str, language: str,
                      specification: PipelineSpecification) -> AnnotatedText:
        """
        Annotate a text.

        Args:
            text: Text to annotate
            language: Language code resolved by the orchestrator
            specification: Pipeline options to apply

        Returns:
            Annotated text, not yet persisted
        """
        pass

    def sentiment(self, annotated_text: AnnotatedText) -> AnnotatedText:
        """
        Compute sentence sentiment in place.

        Default implementation does nothing. Processors with a sentiment
        model override this.
        """
        return annotated_text

    def create_pipeline(self, specification: PipelineSpecification) -> None:
        """Register a pipeline with this processor."""
        self._pipelines[specification.name] = specification.copy()

    def remove_pipeline(self, name: str) -> None:
        self._pipelines.pop(name, None)

    def get_pipelines(self) -> List[str]:
        """Names of the pipelines registered with this processor."""
        return sorted(self._pipelines)

    def train(self, algorithm: str, model_id: str, input_file: str,
              language: str, parameters: Dict[str, Any]) -> str:
        """Train a custom model. Unsupported unless overridden."""
        raise ConfigurationError(f"Processor {self.name} does not support training")

    def test(self, algorithm: str, model_id: str, input_file: str, language: str) -> str:
        """Evaluate a custom model. Unsupported unless overridden."""
        raise ConfigurationError(f"Processor {self.name} does not support model testing")


# Language Detection Interface

class LanguageDetector(ABC):
    """Detects the language of a text and reports analyzer support for it."""

    @abstractmethod
    def detect(self, text: str) -> str:
        """Return an ISO 639-1 code, or ``"unknown"``."""
        pass

    @abstractmethod
    def is_supported(self, language: Optional[str]) -> bool:
        """Whether the configured analyzers handle this language."""
        pass


# Enrichment Interface

class Enricher(ABC):
    """
    External concept enrichment (ontology or knowledge-base lookups).

    Only the contract and registry are part of the platform; concrete
    enrichers are contributed through the ``nlp_enrichers`` entry-point group.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def import_concept(self, annotated_text: AnnotatedText, parameters: Dict[str, Any]) -> AnnotatedText:
        """Enrich the tags of an annotated text with related concepts."""
        pass
