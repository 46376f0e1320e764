#!/usr/bin/env python3
"""
Unit Tests for the Platform Context

Test Coverage:
- Wiring from settings
- Idempotent initialisation
- Extension loading, explicit and discovered
- Registration of stored pipelines and restoration of stored tasks

Author: Graph NLP Platform
Date: 2026
"""

import threading

import pytest

from application.context import build_context
from application.workflow.registry import WorkflowItemKind
from domain.entities import AnnotatedText, TaskStatus
from domain.exceptions import ConfigurationError
from infrastructure.events.dispatcher import EventDispatcher
from infrastructure.nlp.processors import SimpleTextProcessor
from interfaces.nlp_interfaces import Enricher
from interfaces.plugin_interfaces import NLPExtension
from plugins.extensions.annotation_metrics import AnnotationMetricsExtension

from conftest import PipelineSpecificationFactory, StubTextProcessor

pytestmark = pytest.mark.unit


class RecordingExtension(NLPExtension):

    def __init__(self, name="recording", fail=False):
        self._name = name
        self.fail = fail
        self.loaded_with = []

    @property
    def name(self):
        return self._name

    def post_loaded(self, context):
        if self.fail:
            raise RuntimeError("cannot start")
        self.loaded_with.append(context)

    def register_event_listeners(self, dispatcher: EventDispatcher) -> None:
        pass


class UpperCaseEnricher(Enricher):

    @property
    def name(self):
        return "upper"

    def import_concept(self, annotated_text: AnnotatedText, parameters):
        for tag in annotated_text.tags:
            tag.lemma = tag.lemma.upper()
        return annotated_text


@pytest.fixture
def make_context(test_settings, language_detector, configuration_store, persister):
    contexts = []

    def make(**kwargs):
        kwargs.setdefault("processors", [StubTextProcessor()])
        context = build_context(test_settings, persister=persister,
                                configuration_store=configuration_store,
                                language_detector=language_detector, **kwargs)
        contexts.append(context)
        return context

    yield make
    for context in contexts:
        context.shutdown()


class TestBuildContext:

    def test_simple_processor_always_registered(self, make_context):
        context = make_context()
        assert context.processors.names() == ["simple", "stub"]
        assert context.processors.get_default().name == "simple"

    def test_shared_collaborators(self, make_context, persister, configuration_store):
        context = make_context()
        assert context.annotation.persister is persister
        assert context.catalog.store is configuration_store
        assert context.workflows.context is context
        assert context.workflows.registry is context.workflow_registry

    def test_default_stores_from_settings(self, test_settings):
        context = build_context(test_settings)
        assert context.persister is not None
        assert context.configuration_store is not None
        context.shutdown()


class TestInitialize:

    def test_initialize_runs_once(self, make_context):
        extension = RecordingExtension()
        context = make_context(extensions=[extension])

        assert context.initialize() is True
        assert context.initialize() is False
        assert context.initialized
        assert extension.loaded_with == [context]

    def test_concurrent_initialize(self, make_context):
        extension = RecordingExtension()
        context = make_context(extensions=[extension])
        results = []
        threads = [threading.Thread(target=lambda: results.append(context.initialize()))
                   for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(results) == [False] * 4 + [True]
        assert len(extension.loaded_with) == 1

    def test_failing_extension_is_skipped(self, make_context):
        context = make_context(extensions=[RecordingExtension("broken", fail=True),
                                           RecordingExtension("healthy")])
        context.initialize()

        assert context.get_extension("broken") is None
        assert context.get_extension("healthy") is not None

    def test_duplicate_extension_names(self, make_context):
        first, second = RecordingExtension("same"), RecordingExtension("same")
        context = make_context(extensions=[first, second])
        context.initialize()

        assert context.get_extension("same") is first
        assert second.loaded_with == []

    def test_stored_pipelines_registered_with_processors(self, make_context, configuration_store):
        configuration_store.store_custom_pipeline(PipelineSpecificationFactory(name="known", processor="stub"))
        configuration_store.store_custom_pipeline(PipelineSpecificationFactory(name="legacy", processor="gone"))
        stub = StubTextProcessor()
        context = make_context(processors=[stub])

        context.initialize()

        assert stub.get_pipelines() == ["known"]
        assert context.catalog.exists("legacy")

    def test_stored_tasks_restored(self, make_context, configuration_store):
        first = make_context()
        first.workflows.create_item(WorkflowItemKind.INPUT, "in",
                                    "plugins.workflow.inputs:TextListInput", {"texts": ["a"]})
        first.workflows.create_item(WorkflowItemKind.PROCESSOR, "proc",
                                    "plugins.workflow.processors:PassThroughProcessor")
        first.workflows.create_item(WorkflowItemKind.OUTPUT, "out",
                                    "plugins.workflow.outputs:CollectingOutput")
        first.workflows.create_task("copy", {"input": "in", "processor": "proc", "output": "out"})

        second = make_context()
        second.initialize()

        assert second.workflows.run_task("copy") is TaskStatus.SUCCEEDED
        assert [e.payload for e in second.workflow_registry.get_output("out").collected] == ["a"]

    def test_annotation_metrics_extension(self, make_context):
        extension = AnnotationMetricsExtension()
        context = make_context(extensions=[extension])
        context.initialize()
        context.annotation.add_pipeline(PipelineSpecificationFactory(name="p1"))

        context.annotation.annotate_and_persist("Hello world.", id="doc1", pipeline_name="p1")
        context.annotation.annotate_and_persist("Hello again.", id="doc2", pipeline_name="p1")

        assert extension.context is context
        assert extension.statistics() == {("p1", "en"): 2}


class TestEntryPointDiscovery:

    @pytest.fixture
    def discovering_context(self, make_context, test_settings, mocker):
        test_settings.extensions.auto_discover = True
        groups = {
            test_settings.extensions.processors_group: {
                "simple": SimpleTextProcessor,
                "extra": lambda config: StubTextProcessor("extra"),
                "broken": lambda config: 1 / 0,
                "wrong": lambda config: object(),
            },
            test_settings.extensions.enrichers_group: {"upper": UpperCaseEnricher},
            test_settings.extensions.extensions_group: {
                "recording": RecordingExtension,
                "wrong": object,
            },
        }
        loader = mocker.patch("application.context.load_entry_points",
                              side_effect=lambda group: groups.get(group, {}))
        context = make_context()
        context.initialize()
        assert loader.call_count == 3
        return context

    def test_processors_discovered(self, discovering_context):
        assert discovering_context.processors.names() == ["simple", "stub", "extra"]

    def test_enrichers_discovered(self, discovering_context):
        enricher = discovering_context.get_enricher("upper")
        assert isinstance(enricher, UpperCaseEnricher)
        with pytest.raises(ConfigurationError):
            discovering_context.get_enricher("missing")

    def test_extensions_discovered(self, discovering_context):
        assert list(discovering_context.extensions) == ["recording"]
