#!/usr/bin/env python3
"""
Graph NLP Platform - Test Configuration and Fixtures

Shared fixtures for the unit and integration suites.

Key Features:
- Domain entity factories (factory_boy)
- Stub text processor and language detector with fixed, inspectable output
- In-memory and SQLite-backed stores
- Fully wired platform contexts with entry-point discovery disabled
- Scriptable workflow components for state machine tests

Author: Graph NLP Platform
Date: 2026
"""

import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional
import tempfile

import factory
import pytest

from application.context import NLPContext, build_context
from application.workflow.registry import WorkflowRegistry
from config.settings import ExtensionConfig, PersistenceConfig, TestingSettings
from domain.entities import AnnotatedText, PipelineSpecification, Sentence, Tag
from infrastructure.persistence.repository_implementations import (
    InMemoryAnnotatedTextPersister, InMemoryConfigurationStore,
    create_engine_from_url, create_session_factory, initialize_database_schema
)
from interfaces.nlp_interfaces import LanguageDetector, TextProcessor
from interfaces.workflow_interfaces import (
    WorkflowEntry, WorkflowInput, WorkflowProcessor
)
from plugins.workflow.outputs import CollectingOutput


# Domain Entity Factories
class TagFactory(factory.Factory):
    """Factory for creating Tag entities."""

    class Meta:
        model = Tag

    lemma = factory.Sequence(lambda n: f"lemma{n}")
    pos = factory.LazyFunction(lambda: ["NN"])
    ne = factory.LazyFunction(list)
    multiplicity = 1


class SentenceFactory(factory.Factory):
    """Factory for creating Sentence entities."""

    class Meta:
        model = Sentence

    text = "Hello world."
    index = factory.Sequence(lambda n: n)
    tags = factory.LazyFunction(lambda: [TagFactory(lemma="hello"), TagFactory(lemma="world")])
    sentiment = None


class AnnotatedTextFactory(factory.Factory):
    """Factory for creating AnnotatedText entities."""

    class Meta:
        model = AnnotatedText

    text = "Hello world."
    language = "en"
    sentences = factory.LazyFunction(lambda: [SentenceFactory(index=0)])
    metadata = factory.LazyFunction(dict)


class PipelineSpecificationFactory(factory.Factory):
    """Factory for creating PipelineSpecification entities."""

    class Meta:
        model = PipelineSpecification

    name = factory.Sequence(lambda n: f"pipeline-{n}")
    processor = "stub"
    annotators = factory.LazyFunction(lambda: ["tokenizer"])
    check_language = False
    exclude_stopwords = False
    options = factory.LazyFunction(dict)


# NLP Collaborator Stubs
class StubTextProcessor(TextProcessor):
    """Returns a copy of a fixed annotation and records every call."""

    def __init__(self, name: str = "stub", annotation: Optional[AnnotatedText] = None):
        super().__init__()
        self._name = name
        self.annotation = annotation or AnnotatedTextFactory()
        self.calls: List[Dict[str, Any]] = []
        self.sentiment_calls = 0

    @property
    def name(self) -> str:
        return self._name

    def annotate_text(self, text: str, language: str,
                      specification: PipelineSpecification) -> AnnotatedText:
        self.calls.append({"text": text, "language": language, "pipeline": specification.name})
        result = AnnotatedText.from_dict(self.annotation.to_dict())
        result.language = language
        return result

    def sentiment(self, annotated_text: AnnotatedText) -> AnnotatedText:
        self.sentiment_calls += 1
        for sentence in annotated_text.sentences:
            sentence.sentiment = 3
        return annotated_text


class StubLanguageDetector(LanguageDetector):
    """Detects a fixed language; supports a fixed set."""

    def __init__(self, detected: str = "en", supported: Iterable[str] = ("en",)):
        self.detected = detected
        self.supported = set(supported)

    def detect(self, text: str) -> str:
        return self.detected

    def is_supported(self, language: Optional[str]) -> bool:
        return language in self.supported


# Scriptable Workflow Components
class ListInput(WorkflowInput):
    """
    Yields the ``payloads`` parameter as entries. ``on_pull`` is called with
    the position of each entry just before it is yielded.
    """

    def __init__(self, name: str, context: Any = None,
                 on_pull: Optional[Callable[[int], None]] = None, valid: bool = True):
        super().__init__(name, context)
        self.payloads: List[Any] = []
        self.on_pull = on_pull
        self.valid = valid
        self.iterations = 0

    def init(self, parameters: Mapping[str, Any]) -> None:
        super().init(parameters)
        self.payloads = list(parameters.get("payloads", []))

    def is_valid(self) -> bool:
        return self.valid

    def entries(self) -> Iterator[WorkflowEntry]:
        self.iterations += 1
        for position, payload in enumerate(self.payloads):
            if self.on_pull is not None:
                self.on_pull(position)
            yield WorkflowEntry(payload=payload, id=f"{self.name}-{position}")


class CallbackProcessor(WorkflowProcessor):
    """Forwards each entry after calling ``callback(entry)``."""

    def __init__(self, name: str, context: Any = None,
                 callback: Optional[Callable[[WorkflowEntry], None]] = None, valid: bool = True):
        super().__init__(name, context)
        self.callback = callback
        self.valid = valid
        self.seen: List[WorkflowEntry] = []

    def is_valid(self) -> bool:
        return self.valid

    def process(self, entry: WorkflowEntry) -> Iterator[WorkflowEntry]:
        self.seen.append(entry)
        if self.callback is not None:
            self.callback(entry)
        yield entry


def build_registry(payloads: Iterable[Any] = ("a", "b", "c"),
                   on_pull: Optional[Callable[[int], None]] = None,
                   callback: Optional[Callable[[WorkflowEntry], None]] = None):
    """Registry holding one ``source``, ``stage`` and ``sink``."""
    registry = WorkflowRegistry()
    source = ListInput("source", on_pull=on_pull)
    source.init({"payloads": list(payloads)})
    stage = CallbackProcessor("stage", callback=callback)
    stage.init({})
    sink = CollectingOutput("sink")
    sink.init({})
    for item in (source, stage, sink):
        registry.register(item)
    return registry, source, stage, sink


TASK_PARAMETERS = {"input": "source", "processor": "stage", "output": "sink"}


# Configuration Fixtures
@pytest.fixture
def test_settings() -> TestingSettings:
    """Testing settings: in-memory persistence, no entry-point discovery."""
    return TestingSettings(
        persistence=PersistenceConfig(backend="memory"),
        extensions=ExtensionConfig(auto_discover=False),
    )


@pytest.fixture
def stub_processor() -> StubTextProcessor:
    return StubTextProcessor()


@pytest.fixture
def language_detector() -> StubLanguageDetector:
    return StubLanguageDetector()


@pytest.fixture
def configuration_store() -> InMemoryConfigurationStore:
    return InMemoryConfigurationStore()


@pytest.fixture
def persister() -> InMemoryAnnotatedTextPersister:
    return InMemoryAnnotatedTextPersister()


@pytest.fixture
def nlp_context(test_settings, stub_processor, language_detector,
                configuration_store, persister) -> Iterator[NLPContext]:
    """Initialised context with the stub processor registered."""
    context = build_context(
        test_settings,
        persister=persister,
        configuration_store=configuration_store,
        language_detector=language_detector,
        processors=[stub_processor],
    )
    context.initialize()
    yield context
    context.shutdown()


@pytest.fixture
def annotation_service(nlp_context):
    return nlp_context.annotation


# SQLite Fixtures
@pytest.fixture
def sqlite_session_factory():
    """Session factory over a fresh in-memory SQLite database."""
    engine = create_engine_from_url("sqlite://")
    initialize_database_schema(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def temporary_directory():
    """Create temporary directory for testing."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def run_in_thread():
    """Start a callable on a daemon thread; returns the thread."""
    def start(target: Callable[[], Any]) -> threading.Thread:
        thread = threading.Thread(target=target, daemon=True)
        thread.start()
        return thread
    return start


# Markers for different test types
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external dependencies"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests wiring several components together"
    )
    config.addinivalue_line(
        "markers", "slow: Slow tests that take more than 5 seconds"
    )
