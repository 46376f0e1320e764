# application/context.py

"""
Platform Context

The explicitly constructed object holding every collaborator of a running
platform instance. Components receive it (or the pieces they need) at
construction time; nothing in the platform reaches for a global.

``build_context`` wires the collaborators from settings. ``initialize``
then loads extensions and registers stored pipelines with their processors;
it runs once per context and later calls return without doing anything.

Usage:
    context = build_context(get_settings("testing"))
    context.initialize()
    node = context.annotation.annotate_and_persist("Hello world", id="doc1")
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from application.services.annotation_service import AnnotationService
from application.services.dynamic_configuration import DynamicConfiguration
from application.services.enrichment import EnrichmentRegistry
from application.services.pipeline_catalog import PipelineCatalog
from application.workflow.manager import WorkflowManager
from application.workflow.registry import WorkflowRegistry
from config.settings import Settings, get_settings
from domain.repositories import AnnotatedTextPersister, ConfigurationStore
from infrastructure.events.dispatcher import EventDispatcher
from infrastructure.extensions.loader import load_entry_points
from infrastructure.nlp.language import StopwordLanguageDetector
from infrastructure.nlp.processors import SimpleTextProcessor
from infrastructure.nlp.registry import ProcessorRegistry
from infrastructure.persistence.repository_implementations import create_stores
from interfaces.nlp_interfaces import Enricher, LanguageDetector, TextProcessor
from interfaces.plugin_interfaces import ExtensionRegistry, NLPExtension

logger = logging.getLogger(__name__)


@dataclass
class NLPContext:
    """All collaborators of one platform instance."""
    settings: Settings
    dispatcher: EventDispatcher
    processors: ProcessorRegistry
    language_detector: LanguageDetector
    persister: AnnotatedTextPersister
    configuration_store: ConfigurationStore
    configuration: DynamicConfiguration
    catalog: PipelineCatalog
    enrichers: EnrichmentRegistry
    annotation: AnnotationService
    workflow_registry: WorkflowRegistry
    workflows: Optional[WorkflowManager] = None
    extensions: ExtensionRegistry = field(default_factory=dict)
    pending_extensions: List[NLPExtension] = field(default_factory=list)
    _initialized: bool = field(default=False, repr=False)
    _init_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        """
        Load extensions, register stored pipelines and restore stored
        workflow tasks.

        Returns:
            True if this call initialised the context, False if it already was
        """
        with self._init_lock:
            if self._initialized:
                logger.debug("Context already initialised")
                return False

            if self.settings.extensions.auto_discover:
                self._discover_entry_points()
            for extension in self.pending_extensions:
                self._load_extension(extension)
            self.pending_extensions = []
            self.register_pipelines_from_config()
            if self.workflows is not None:
                self.workflows.load_tasks()

            self._initialized = True
        logger.info(f"{self.settings.app_name} context initialised with processors "
                    f"{self.processors.names()} and extensions {list(self.extensions)}")
        return True

    def _discover_entry_points(self) -> None:
        groups = self.settings.extensions
        processor_config = self.settings.nlp.model_dump()

        for name, factory in load_entry_points(groups.processors_group).items():
            if name in self.processors:
                continue
            try:
                processor = factory(processor_config)
            except Exception:
                logger.exception(f"Failed to create text processor {name}")
                continue
            if isinstance(processor, TextProcessor):
                self.processors.register(processor)
            else:
                logger.error(f"Entry point {name} did not produce a TextProcessor")

        for name, factory in load_entry_points(groups.enrichers_group).items():
            try:
                enricher = factory()
            except Exception:
                logger.exception(f"Failed to create enricher {name}")
                continue
            if isinstance(enricher, Enricher):
                self.enrichers.register(enricher)
            else:
                logger.error(f"Entry point {name} did not produce an Enricher")

        for name, factory in load_entry_points(groups.extensions_group).items():
            try:
                extension = factory()
            except Exception:
                logger.exception(f"Failed to create extension {name}")
                continue
            if isinstance(extension, NLPExtension):
                self.pending_extensions.append(extension)
            else:
                logger.error(f"Entry point {name} did not produce an NLPExtension")

    def _load_extension(self, extension: NLPExtension) -> None:
        if extension.name in self.extensions:
            logger.warning(f"Extension {extension.name} already loaded, skipping")
            return
        try:
            extension.post_loaded(self)
            extension.register_event_listeners(self.dispatcher)
        except Exception:
            logger.exception(f"Failed to load extension {extension.name}")
            return
        self.extensions[extension.name] = extension
        logger.info(f"Loaded extension {extension.name} {extension.get_extension_version()}")

    def register_pipelines_from_config(self) -> int:
        """
        Hand every stored pipeline to its processor.

        Pipelines naming an unregistered processor are skipped.

        Returns:
            Number of pipelines registered
        """
        registered = 0
        for specification in self.catalog.all():
            if self.processors.create_pipeline(specification):
                registered += 1
            else:
                logger.warning(f"Skipping pipeline {specification.name}: "
                               f"processor {specification.processor} is not registered")
        return registered

    def get_extension(self, name: str) -> Optional[NLPExtension]:
        return self.extensions.get(name)

    def get_enricher(self, name: str) -> Enricher:
        return self.enrichers.resolve(name)

    def shutdown(self) -> None:
        if self.workflows is not None:
            self.workflows.shutdown()


def build_context(settings: Optional[Settings] = None,
                  persister: Optional[AnnotatedTextPersister] = None,
                  configuration_store: Optional[ConfigurationStore] = None,
                  language_detector: Optional[LanguageDetector] = None,
                  processors: Iterable[TextProcessor] = (),
                  extensions: Iterable[NLPExtension] = ()) -> NLPContext:
    """
    Wire a context from settings.

    Collaborators passed explicitly replace the ones the settings describe.
    The simple processor is always registered; explicitly passed processors
    are registered after it and may replace it.

    Args:
        settings: Platform settings; the current environment's when omitted
        persister: Annotation store
        configuration_store: Configuration store
        language_detector: Language detection collaborator
        processors: Additional text processors
        extensions: Extensions loaded by ``initialize`` besides discovered ones

    Returns:
        An uninitialised context
    """
    settings = settings or get_settings()

    if persister is None or configuration_store is None:
        default_persister, default_store = create_stores(settings.persistence)
        persister = persister or default_persister
        configuration_store = configuration_store or default_store

    processor_registry = ProcessorRegistry(settings.nlp.default_processor)
    processor_registry.register(SimpleTextProcessor(settings.nlp.model_dump()))
    for processor in processors:
        processor_registry.register(processor)

    dispatcher = EventDispatcher()
    detector = language_detector or StopwordLanguageDetector(settings.nlp.supported_languages)
    configuration = DynamicConfiguration(configuration_store, settings.nlp)
    catalog = PipelineCatalog(configuration_store, configuration)
    annotation = AnnotationService(
        processors=processor_registry,
        catalog=catalog,
        persister=persister,
        dispatcher=dispatcher,
        language_detector=detector,
        configuration=configuration,
        default_language=settings.nlp.default_language,
    )

    context = NLPContext(
        settings=settings,
        dispatcher=dispatcher,
        processors=processor_registry,
        language_detector=detector,
        persister=persister,
        configuration_store=configuration_store,
        configuration=configuration,
        catalog=catalog,
        enrichers=EnrichmentRegistry(),
        annotation=annotation,
        workflow_registry=WorkflowRegistry(),
        pending_extensions=list(extensions),
    )
    context.workflows = WorkflowManager(
        context.workflow_registry,
        configuration_store,
        context=context,
        max_workers=settings.workflow.max_workers,
        default_sync=settings.workflow.default_sync,
    )
    return context
