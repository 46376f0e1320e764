#!/usr/bin/env python3
"""
Unit Tests for Bundled Workflow Components

Test Coverage:
- TextListInput and JsonLinesInput entry production
- AnnotationProcessor validity and forwarding
- Collecting, JSON Lines and logging outputs

Author: Graph NLP Platform
Date: 2026
"""

import json
import logging

import pytest

from domain.entities import PersistedNode
from domain.exceptions import ProcessingFailure
from interfaces.workflow_interfaces import WorkflowEntry
from plugins.workflow.inputs import JsonLinesInput, TextListInput
from plugins.workflow.outputs import CollectingOutput, JsonLinesOutput, LoggingOutput, entry_to_dict
from plugins.workflow.processors import AnnotationProcessor, PassThroughProcessor

from conftest import PipelineSpecificationFactory

pytestmark = pytest.mark.unit


class TestTextListInput:

    def test_plain_and_mapping_texts(self):
        source = TextListInput("texts")
        source.init({"texts": ["first", {"id": "doc-7", "text": "second"}]})

        entries = list(source)

        assert [(e.id, e.payload) for e in entries] == [("texts-0", "first"), ("doc-7", "second")]

    def test_each_iteration_restarts(self):
        source = TextListInput("texts")
        source.init({"texts": ["a", "b"]})
        assert len(list(source)) == 2
        assert len(list(source)) == 2

    def test_uninitialised_input_is_empty(self):
        assert list(TextListInput("texts")) == []


class TestJsonLinesInput:

    def test_reads_records(self, temporary_directory):
        path = temporary_directory / "in.jsonl"
        path.write_text('{"id": 1, "text": "one", "source": "x"}\n\n{"text": "two"}\n', encoding="utf-8")
        source = JsonLinesInput("lines")
        source.init({"path": str(path)})

        entries = list(source)

        assert source.is_valid()
        assert [e.payload for e in entries] == ["one", "two"]
        assert entries[0].id == "1"
        assert entries[0].metadata == {"source": "x"}
        assert entries[1].id == "lines-3"

    def test_custom_fields(self, temporary_directory):
        path = temporary_directory / "in.jsonl"
        path.write_text('{"key": "k1", "body": "hello"}\n', encoding="utf-8")
        source = JsonLinesInput("lines")
        source.init({"path": str(path), "text_field": "body", "id_field": "key"})

        entry = next(iter(source))

        assert (entry.id, entry.payload) == ("k1", "hello")

    def test_invalid_without_existing_file(self, temporary_directory):
        source = JsonLinesInput("lines")
        assert not source.is_valid()
        source.init({"path": str(temporary_directory / "missing.jsonl")})
        assert not source.is_valid()

    def test_bad_json_raises_processing_failure(self, temporary_directory):
        path = temporary_directory / "in.jsonl"
        path.write_text('{"text": "ok"}\nnot json\n', encoding="utf-8")
        source = JsonLinesInput("lines")
        source.init({"path": str(path)})

        with pytest.raises(ProcessingFailure, match=":2:"):
            list(source)

    def test_missing_text_field(self, temporary_directory):
        path = temporary_directory / "in.jsonl"
        path.write_text('{"id": "x"}\n', encoding="utf-8")
        source = JsonLinesInput("lines")
        source.init({"path": str(path)})

        with pytest.raises(ProcessingFailure, match="missing field 'text'"):
            list(source)


class TestAnnotationProcessor:

    def test_invalid_without_context(self):
        processor = AnnotationProcessor("annotate")
        processor.init({})
        assert not processor.is_valid()

    def test_validity_follows_pipeline_catalog(self, nlp_context):
        processor = AnnotationProcessor("annotate", nlp_context)
        processor.init({"pipeline": "p1"})
        assert not processor.is_valid()

        nlp_context.annotation.add_pipeline(PipelineSpecificationFactory(name="p1"))
        assert processor.is_valid()

    def test_default_pipeline_required_when_unnamed(self, nlp_context):
        processor = AnnotationProcessor("annotate", nlp_context)
        processor.init({})
        assert not processor.is_valid()

        nlp_context.annotation.add_pipeline(PipelineSpecificationFactory(name="p1"))
        nlp_context.annotation.set_default_pipeline("p1")
        assert processor.is_valid()

    def test_forwards_persisted_node(self, nlp_context, stub_processor):
        nlp_context.annotation.add_pipeline(PipelineSpecificationFactory(name="p1"))
        processor = AnnotationProcessor("annotate", nlp_context)
        processor.init({"pipeline": "p1"})
        sink = CollectingOutput("sink")
        processor.set_successor(sink)

        processor.handle(WorkflowEntry(payload="Hello world.", id="doc1", metadata={"k": "v"}))

        [entry] = sink.collected
        assert isinstance(entry.payload, PersistedNode)
        assert entry.payload.caller_id == "doc1"
        assert entry.metadata == {"k": "v"}
        assert stub_processor.calls[0]["pipeline"] == "p1"


class TestOutputs:

    def test_pass_through_then_collect(self):
        stage = PassThroughProcessor("pass")
        sink = CollectingOutput("sink")
        stage.set_successor(sink)

        stage.handle(WorkflowEntry(payload="x", id="1"))

        assert [e.payload for e in sink.collected] == ["x"]
        sink.clear()
        assert sink.collected == []

    def test_entry_to_dict_converts_dataclasses(self):
        node = PersistedNode(handle=1, caller_id="doc1", version_token="t")
        data = entry_to_dict(WorkflowEntry(payload=node, id="doc1"))
        assert data["payload"] == {"handle": 1, "caller_id": "doc1", "version_token": "t"}
        assert data["metadata"] == {}

    def test_json_lines_output_appends(self, temporary_directory):
        path = temporary_directory / "out.jsonl"
        sink = JsonLinesOutput("file")
        sink.init({"path": str(path)})
        assert sink.is_valid()

        sink.handle(WorkflowEntry(payload="a", id="1"))
        sink.handle(WorkflowEntry(payload="b", id="2"))

        lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
        assert [line["payload"] for line in lines] == ["a", "b"]

    def test_json_lines_output_invalid_directory(self, temporary_directory):
        sink = JsonLinesOutput("file")
        sink.init({"path": str(temporary_directory / "missing" / "out.jsonl")})
        assert not sink.is_valid()

    def test_json_lines_output_write_failure(self, temporary_directory):
        sink = JsonLinesOutput("file")
        sink.init({"path": str(temporary_directory)})
        with pytest.raises(ProcessingFailure):
            sink.handle(WorkflowEntry(payload="a"))

    def test_logging_output(self, caplog):
        sink = LoggingOutput("log")
        sink.init({"level": "warning"})

        with caplog.at_level(logging.WARNING, logger="plugins.workflow.outputs"):
            sink.handle(WorkflowEntry(payload="hello", id="1"))

        assert "[log] 1: hello" in caplog.text

    def test_logging_output_unknown_level_defaults_to_info(self):
        sink = LoggingOutput("log")
        sink.init({"level": "chatty"})
        assert sink.level == logging.INFO
