# application/services/annotation_service.py

"""
Annotation Service - Application Layer

Orchestrates text annotation: resolves the pipeline and the language of a
text, runs the pipeline's processor, persists the result and announces it to
the registered listeners.

Key Features:
- Pipeline resolution by name with fallback to the configured default
- Three-way language resolution: fallback language, strict failure, detected
- Exactly one persistence write followed by exactly one event per annotation
- Pipeline administration (add, remove, default selection)
- Sentiment, term-frequency vectors and custom-model passthrough on stored
  annotations

Author: Graph NLP Platform
Date: 2026
"""

import logging
from typing import List, Optional
from uuid import uuid4

from application.services.dynamic_configuration import DynamicConfiguration
from application.services.pipeline_catalog import PipelineCatalog
from domain.entities import (
    AnnotatedText, CustomModelsRequest, PersistedNode, PipelineSpecification
)
from domain.events import NLPEvents, TextAnnotationEvent
from domain.exceptions import ConfigurationError, UnsupportedLanguageError
from domain.repositories import AnnotatedTextPersister
from infrastructure.events.dispatcher import EventDispatcher
from infrastructure.monitoring.metrics import track_annotation
from infrastructure.nlp.registry import ProcessorRegistry
from infrastructure.nlp.vectors import cosine, term_frequency
from interfaces.nlp_interfaces import LanguageDetector, TextProcessor

logger = logging.getLogger(__name__)


class AnnotationService:
    """
    Annotation orchestrator.

    All collaborators are injected; the service holds no state of its own
    beyond them, so one instance is shared by every caller of a context.

    Args:
        processors: Registered text processors
        catalog: Pipeline specifications
        persister: Store for annotated texts
        dispatcher: Event hub notified after every persisted annotation
        language_detector: Language detection collaborator
        configuration: Runtime settings (fallback language)
        default_language: Language assigned to texts without any words
    """

    def __init__(self,
                 processors: ProcessorRegistry,
                 catalog: PipelineCatalog,
                 persister: AnnotatedTextPersister,
                 dispatcher: EventDispatcher,
                 language_detector: LanguageDetector,
                 configuration: DynamicConfiguration,
                 default_language: str = "en"):
        self.processors = processors
        self.catalog = catalog
        self.persister = persister
        self.dispatcher = dispatcher
        self.language_detector = language_detector
        self.configuration = configuration
        self.default_language = default_language
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # Annotation

    def annotate_and_persist(self, text: str, id: Optional[str] = None,
                             pipeline_name: Optional[str] = None, force: bool = False,
                             check_language: Optional[bool] = None) -> PersistedNode:
        """
        Annotate a text through a named pipeline and store the result.

        Args:
            text: Text to annotate
            id: Caller identifier the annotation is stored under
            pipeline_name: Pipeline to use; the configured default when omitted
            force: Accepted for API compatibility; re-annotation always replaces
            check_language: Fail on unsupported languages; defaults to the
                pipeline's ``check_language`` flag

        Returns:
            Handle of the persisted annotation

        Raises:
            ConfigurationError: If the pipeline or its processor does not exist
            UnsupportedLanguageError: If strict checking rejects the language
        """
        specification = self.catalog.resolve(pipeline_name)
        return self.annotate_and_persist_with_spec(text, id, check_language, specification)

    def annotate_and_persist_with_spec(self, text: str, id: Optional[str],
                                       check_language: Optional[bool],
                                       specification: PipelineSpecification) -> PersistedNode:
        """Annotate with an explicit specification instead of a catalog entry."""
        processor = self._require_processor(specification.processor)
        strict = specification.check_language if check_language is None else check_language
        language = self.check_text_language(text, strict)
        annotated = self._annotate(processor, text, language, specification)
        return self.process_annotation_persist(id, text, annotated, specification)

    def process_annotation_persist(self, id: Optional[str], text: str,
                                   annotated_text: AnnotatedText,
                                   specification: PipelineSpecification) -> PersistedNode:
        """
        Persist an annotation and publish ``POST_TEXT_ANNOTATION``.

        The event is published only after the write returns, so listeners
        can load the node they are told about.
        """
        version_token = uuid4().hex
        node = self.persister.persist(annotated_text, id, version_token)
        annotated_text.text = text
        event = TextAnnotationEvent(
            persisted_handle=node,
            annotated_text=annotated_text,
            caller_id=id,
            version_token=version_token,
            pipeline_spec_used=specification,
        )
        self.dispatcher.notify(NLPEvents.POST_TEXT_ANNOTATION, event)
        self.logger.debug(f"Annotated text {id} stored as node {node.handle} via {specification.name}")
        return node

    def filter(self, text: str, filter_expression: str, pipeline_name: Optional[str] = None) -> bool:
        """
        Annotate without persisting and evaluate a filter expression.

        See ``AnnotatedText.filter`` for the expression syntax.
        """
        specification = self.catalog.resolve(pipeline_name)
        processor = self._require_processor(specification.processor)
        language = self.check_text_language(text, False)
        annotated = self._annotate(processor, text, language, specification)
        return annotated.filter(filter_expression)

    @track_annotation(lambda args, kwargs: args[1].name)
    def _annotate(self, processor: TextProcessor, text: str, language: str,
                  specification: PipelineSpecification) -> AnnotatedText:
        return processor.annotate_text(text, language, specification)

    def check_text_language(self, text: str, strict: bool) -> str:
        """
        Resolve the language a text is annotated in.

        An unsupported detected language is replaced by the fallback language
        when one is configured, even in strict mode. Without a fallback,
        strict mode fails and lenient mode keeps the detected code.

        Raises:
            UnsupportedLanguageError: Unsupported language, no fallback, strict mode
        """
        if not text or not text.strip():
            return self.default_language

        language = self.language_detector.detect(text)
        supported = self.language_detector.is_supported(language)
        if not supported and self.configuration.has_fallback_language():
            fallback = self.configuration.fallback_language
            self.logger.debug(f"Language {language} unsupported, using fallback {fallback}")
            return fallback
        if not supported and strict:
            raise UnsupportedLanguageError(language)
        return language

    # Pipeline administration

    def add_pipeline(self, specification: PipelineSpecification) -> None:
        """
        Raises:
            ConfigurationError: If the processor is not registered or the
                pipeline name is taken
        """
        if specification.processor not in self.processors:
            raise ConfigurationError(f"Processor {specification.processor} does not exist")
        self.catalog.add(specification)
        try:
            self.processors.create_pipeline(specification)
        except Exception:
            self.catalog.remove(specification.name, specification.processor)
            raise

    def remove_pipeline(self, name: str, processor: str) -> None:
        self.catalog.remove(name, processor)
        self.processors.remove_pipeline(name, processor)

    def set_default_pipeline(self, name: str) -> None:
        self.catalog.set_default(name)
        self.logger.info(f"Default pipeline set to {name}")

    def get_processors(self) -> List[str]:
        return self.processors.names()

    def get_pipeline_specifications(self, name: Optional[str] = None) -> List[PipelineSpecification]:
        if name is None:
            return self.catalog.all()
        specification = self.catalog.get(name)
        return [specification] if specification is not None else []

    # Operations on stored annotations

    def apply_sentiment(self, node: PersistedNode, processor_name: str = "") -> PersistedNode:
        """
        Compute sentiment for a stored annotation and store it again.

        The annotation is re-persisted under its caller id with a fresh
        version token; no event is published.
        """
        processor = self._processor_or_default(processor_name)
        annotated = self.persister.load(node)
        processor.sentiment(annotated)
        return self.persister.persist(annotated, node.caller_id, uuid4().hex)

    def compute_vector_and_persist(self, node: PersistedNode, property_name: str = "tf_vector") -> List[float]:
        """Store the sparse term-frequency vector of an annotation on its node."""
        vector = term_frequency(self.persister.load(node)).to_list()
        self.persister.store_vector(node, property_name, vector)
        return vector

    def similarity(self, first: PersistedNode, second: PersistedNode,
                   property_name: str = "tf_vector") -> float:
        """Cosine similarity of two stored sparse vectors; 0.0 if either is missing."""
        return cosine(self.persister.load_vector(first, property_name),
                      self.persister.load_vector(second, property_name),
                      is_sparse=True)

    def train(self, request: CustomModelsRequest) -> str:
        processor = self._require_processor(request.processor)
        return processor.train(request.algorithm, request.model_id, request.input_file,
                               request.language, request.parameters)

    def test(self, request: CustomModelsRequest) -> str:
        processor = self._require_processor(request.processor)
        return processor.test(request.algorithm, request.model_id, request.input_file, request.language)

    # Helpers

    def _require_processor(self, name: Optional[str]) -> TextProcessor:
        processor = self.processors.get(name)
        if processor is None:
            raise ConfigurationError(f"Processor {name} does not exist")
        return processor

    def _processor_or_default(self, name: Optional[str]) -> TextProcessor:
        if name:
            return self._require_processor(name)
        processor = self.processors.get_default()
        if processor is None:
            raise ConfigurationError("No text processor registered")
        return processor
