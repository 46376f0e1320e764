#!/usr/bin/env python3
"""
Integration Tests for Annotation Workflows

Runs the real text processor, language detector and SQLAlchemy stores
(SQLite) together with the workflow engine.

Test Coverage:
- JSON Lines input -> annotation -> JSON Lines output, end to end
- Asynchronous task runs through the manager
- Events published for every persisted annotation
- State surviving a restart of the platform context

Author: Graph NLP Platform
Date: 2026
"""

import json

import pytest

from application.context import build_context
from application.workflow.registry import WorkflowItemKind
from config.settings import ExtensionConfig, NLPConfig, PersistenceConfig, TestingSettings
from domain.entities import PipelineSpecification, TaskStatus
from domain.events import NLPEvents
from infrastructure.nlp.processors import POSITIVE, VERY_NEGATIVE
from plugins.extensions.annotation_metrics import AnnotationMetricsExtension

pytestmark = pytest.mark.integration

TEXTS = [
    {"id": "s1", "text": "The outlook is good for the economy."},
    {"id": "s2", "text": "The crisis and the loss were terrible."},
    {"id": "s3", "text": "Der Bericht und die Aussichten der Wirtschaft."},
]


@pytest.fixture
def settings(temporary_directory):
    return TestingSettings(
        nlp=NLPConfig(supported_languages=["en"], fallback_language=None),
        persistence=PersistenceConfig(backend="sqlalchemy",
                                      database_url=f"sqlite:///{temporary_directory / 'nlp.db'}"),
        extensions=ExtensionConfig(auto_discover=False),
    )


@pytest.fixture
def platform(settings):
    contexts = []

    def start(**kwargs):
        context = build_context(settings, **kwargs)
        context.initialize()
        contexts.append(context)
        return context

    yield start
    for context in contexts:
        context.shutdown()


@pytest.fixture
def input_file(temporary_directory):
    path = temporary_directory / "speeches.jsonl"
    path.write_text("\n".join(json.dumps(record) for record in TEXTS) + "\n", encoding="utf-8")
    return path


def define_workflow(context, input_file, output_file, sync=True):
    context.annotation.add_pipeline(PipelineSpecification(
        name="sentiment", processor="simple", annotators=["tokenizer", "sentiment"],
        check_language=False,
    ))
    workflows = context.workflows
    workflows.create_item(WorkflowItemKind.INPUT, "speeches", "plugins.workflow.inputs:JsonLinesInput",
                          {"path": str(input_file)})
    workflows.create_item(WorkflowItemKind.PROCESSOR, "annotate",
                          "plugins.workflow.processors:AnnotationProcessor", {"pipeline": "sentiment"})
    workflows.create_item(WorkflowItemKind.OUTPUT, "nodes", "plugins.workflow.outputs:JsonLinesOutput",
                          {"path": str(output_file)})
    workflows.create_task("annotate-speeches",
                          {"input": "speeches", "processor": "annotate", "output": "nodes", "sync": sync})


class TestAnnotationWorkflow:

    def test_jsonl_to_jsonl(self, platform, input_file, temporary_directory):
        context = platform()
        output_file = temporary_directory / "nodes.jsonl"
        events = []
        context.dispatcher.register(NLPEvents.POST_TEXT_ANNOTATION, events.append)
        define_workflow(context, input_file, output_file)

        assert context.workflows.run_task("annotate-speeches") is TaskStatus.SUCCEEDED

        lines = [json.loads(line) for line in output_file.read_text(encoding="utf-8").splitlines()]
        assert [line["id"] for line in lines] == ["s1", "s2", "s3"]
        assert [line["payload"]["caller_id"] for line in lines] == ["s1", "s2", "s3"]
        assert [event.caller_id for event in events] == ["s1", "s2", "s3"]

        first = context.persister.load(context.persister.find_by_id("s1"))
        second = context.persister.load(context.persister.find_by_id("s2"))
        assert first.sentences[0].sentiment == POSITIVE
        assert second.sentences[0].sentiment == VERY_NEGATIVE

    def test_unsupported_language_uses_detected_code_when_lenient(self, platform, input_file,
                                                                  temporary_directory):
        context = platform()
        define_workflow(context, input_file, temporary_directory / "nodes.jsonl")

        context.workflows.run_task("annotate-speeches")

        german = context.persister.load(context.persister.find_by_id("s3"))
        assert german.language == "de"

    def test_strict_language_check_fails_task(self, platform, input_file, temporary_directory):
        context = platform()
        define_workflow(context, input_file, temporary_directory / "nodes.jsonl")
        context.workflows.create_item(WorkflowItemKind.PROCESSOR, "strict",
                                      "plugins.workflow.processors:AnnotationProcessor",
                                      {"pipeline": "sentiment", "check_language": True})
        context.workflows.create_task("strict-run",
                                      {"input": "speeches", "processor": "strict", "output": "nodes"})

        assert context.workflows.run_task("strict-run") is TaskStatus.FAILED
        info = context.workflows.get_task_info("strict-run")
        assert "de" in info.additional_info
        assert context.persister.find_by_id("s2") is not None
        assert context.persister.find_by_id("s3") is None

    def test_async_run(self, platform, input_file, temporary_directory):
        extension = AnnotationMetricsExtension()
        context = platform(extensions=[extension])
        define_workflow(context, input_file, temporary_directory / "nodes.jsonl", sync=False)

        future = context.workflows.run_task("annotate-speeches")

        assert future.result(timeout=30) is TaskStatus.SUCCEEDED
        assert extension.statistics() == {("sentiment", "en"): 2, ("sentiment", "de"): 1}

    def test_definitions_survive_restart(self, platform, input_file, temporary_directory):
        output_file = temporary_directory / "nodes.jsonl"
        first = platform()
        define_workflow(first, input_file, output_file)
        first.annotation.set_default_pipeline("sentiment")
        first.workflows.run_task("annotate-speeches")
        first.shutdown()

        second = platform()

        assert second.catalog.default_name == "sentiment"
        assert second.processors.get("simple").get_pipelines() == ["sentiment"]
        assert second.persister.find_by_id("s1") is not None
        assert second.workflows.get_task_info("annotate-speeches").status is TaskStatus.IDLE
        assert second.workflows.run_task("annotate-speeches") is TaskStatus.SUCCEEDED
        assert len(output_file.read_text(encoding="utf-8").splitlines()) == 6
