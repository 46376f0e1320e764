# tools/cli.py

"""
Graph NLP Platform CLI Tool

Command line interface to annotate texts, administer pipelines, run
workflow definitions and expose metrics.

Usage:
    nlpctl annotate "Hello world" --id doc1 --pipeline default
    nlpctl add-pipeline default --processor simple --annotator sentiment --default
    nlpctl pipelines
    nlpctl run-workflow workflow.yaml
    nlpctl start-metrics --port 9100

Commands keep their state in SQLite (``PERSISTENCE_DATABASE_URL``, ``nlp.db`` by
default) unless ``PERSISTENCE_BACKEND`` says otherwise.

Author: Graph NLP Platform
Date: 2026
"""

import dataclasses
import json
import logging
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml

from application.context import NLPContext, build_context
from application.workflow.registry import WorkflowItemKind
from config.settings import get_settings, setup_logging
from domain.entities import PipelineSpecification
from domain.exceptions import NLPError
from infrastructure.monitoring.metrics import start_metrics_server

app = typer.Typer(add_completion=False, help="Graph NLP Platform command line interface")
logger = logging.getLogger(__name__)

# Section of a workflow definition file -> kind of component it declares
WORKFLOW_SECTIONS = {
    "inputs": WorkflowItemKind.INPUT,
    "processors": WorkflowItemKind.PROCESSOR,
    "outputs": WorkflowItemKind.OUTPUT,
}


def get_context() -> NLPContext:
    settings = get_settings()
    # An unset backend persists across invocations
    if "backend" not in settings.persistence.model_fields_set:
        settings.persistence.backend = "sqlalchemy"
    setup_logging(settings)
    context = build_context(settings)
    context.initialize()
    return context


def fail(error: Exception) -> None:
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(code=1)


@app.command()
def annotate(
    text: str = typer.Argument(..., help="Text to annotate"),
    id: Optional[str] = typer.Option(None, "--id", help="Identifier the annotation is stored under"),
    pipeline: Optional[str] = typer.Option(None, help="Pipeline name (default pipeline when omitted)"),
    check_language: Optional[bool] = typer.Option(
        None, "--check-language/--no-check-language", help="Fail on unsupported languages"
    ),
):
    """
    Annotate a text and persist the result.
    """
    context = get_context()
    try:
        node = context.annotation.annotate_and_persist(
            text, id=id, pipeline_name=pipeline, check_language=check_language
        )
    except NLPError as e:
        fail(e)
    typer.echo(json.dumps(dataclasses.asdict(node)))


@app.command()
def pipelines(
    name: Optional[str] = typer.Option(None, help="Only show this pipeline"),
):
    """
    Lists the stored pipeline specifications.
    """
    context = get_context()
    default = context.catalog.default_name
    for specification in context.annotation.get_pipeline_specifications(name):
        marker = " (default)" if specification.name == default else ""
        typer.echo(f"{json.dumps(specification.to_dict())}{marker}")


@app.command("add-pipeline")
def add_pipeline(
    name: str = typer.Argument(..., help="Pipeline name"),
    processor: str = typer.Option("simple", help="Text processor name"),
    annotator: List[str] = typer.Option([], "--annotator", help="Annotator to enable (repeatable)"),
    check_language: bool = typer.Option(True, "--check-language/--no-check-language"),
    exclude_stopwords: bool = typer.Option(False, "--exclude-stopwords"),
    default: bool = typer.Option(False, "--default", help="Also make it the default pipeline"),
):
    """
    Creates a pipeline specification.
    """
    context = get_context()
    try:
        specification = PipelineSpecification(
            name=name,
            processor=processor,
            annotators=list(annotator),
            check_language=check_language,
            exclude_stopwords=exclude_stopwords,
        )
        context.annotation.add_pipeline(specification)
        if default:
            context.annotation.set_default_pipeline(name)
    except (NLPError, ValueError) as e:
        fail(e)
    typer.echo(f"Pipeline {name} added")


@app.command("remove-pipeline")
def remove_pipeline(
    name: str = typer.Argument(..., help="Pipeline name"),
    processor: str = typer.Option("simple", help="Processor the pipeline is bound to"),
):
    """
    Removes a pipeline specification.
    """
    context = get_context()
    context.annotation.remove_pipeline(name, processor)
    typer.echo(f"Pipeline {name} removed")


@app.command("set-default-pipeline")
def set_default_pipeline(name: str = typer.Argument(..., help="Pipeline name")):
    """
    Makes a pipeline the default.
    """
    context = get_context()
    try:
        context.annotation.set_default_pipeline(name)
    except NLPError as e:
        fail(e)
    typer.echo(f"Default pipeline set to {name}")


@app.command()
def processors():
    """
    Lists the registered text processors.
    """
    context = get_context()
    default = context.processors.get_default()
    for name in context.annotation.get_processors():
        marker = " (default)" if default is not None and default.name == name else ""
        typer.echo(f"{name}{marker}")


def load_workflow_definition(context: NLPContext, definition: Dict[str, Any]) -> List[str]:
    """
    Register the pipelines, components and tasks of a workflow definition.

    Returns:
        Names of the tasks created
    """
    for pipeline in definition.get("pipelines", []):
        specification = PipelineSpecification.from_dict(pipeline)
        if not context.catalog.exists(specification.name):
            context.annotation.add_pipeline(specification)
    if definition.get("default_pipeline"):
        context.annotation.set_default_pipeline(definition["default_pipeline"])

    for section, kind in WORKFLOW_SECTIONS.items():
        for name, item in (definition.get(section) or {}).items():
            context.workflows.create_item(kind, name, item["class"], item.get("parameters"))

    created = []
    for name, parameters in (definition.get("tasks") or {}).items():
        if context.workflows.has_task(name):
            context.workflows.remove_task(name)
        context.workflows.create_task(name, parameters)
        created.append(name)
    return created


@app.command("run-workflow")
def run_workflow(
    definition: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML workflow definition"),
    task: Optional[str] = typer.Option(None, help="Only run this task"),
):
    """
    Registers the components and tasks of a YAML definition and runs them.
    """
    context = get_context()
    try:
        with open(definition, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        names = load_workflow_definition(context, data)
        for name in ([task] if task else names):
            result = context.workflows.run_task(name)
            if isinstance(result, Future):
                result = result.result()
            info = context.workflows.get_task_info(name)
            suffix = f" ({info.additional_info})" if info.additional_info else ""
            typer.echo(f"{name}: {result.value}{suffix}")
    except (NLPError, KeyError, yaml.YAMLError) as e:
        fail(e)
    finally:
        context.shutdown()


@app.command("start-metrics")
def start_metrics(
    port: int = typer.Option(9100, help="Port to expose /metrics (Prometheus scrape endpoint)"),
    host: str = typer.Option("0.0.0.0", help="Interface to bind"),
    block: bool = typer.Option(True, "--block/--no-block", help="Keep serving until interrupted"),
):
    """
    Starts the Prometheus metrics server (exposes /metrics).
    """
    start_metrics_server(port, host)
    typer.echo(f"Metrics server started at http://{host}:{port}/metrics")
    while block:
        time.sleep(3600)


def main():
    app()


if __name__ == "__main__":
    main()
