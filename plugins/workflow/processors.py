#!/usr/bin/env python3
"""
Workflow Processors

1. ``AnnotationProcessor``: annotates each entry through the platform's
   annotation service and forwards the persisted node
2. ``PassThroughProcessor``: forwards entries unchanged

Author: Graph NLP Platform
Date: 2026
"""

import logging
from typing import Any, Iterable, Mapping

from interfaces.workflow_interfaces import WorkflowEntry, WorkflowProcessor

logger = logging.getLogger(__name__)


class AnnotationProcessor(WorkflowProcessor):
    """
    Parameters:
        pipeline: Pipeline name; the configured default when omitted
        check_language: Strict language checking; the pipeline's flag when omitted
    """

    def init(self, parameters: Mapping[str, Any]) -> None:
        super().init(parameters)
        self.pipeline = parameters.get("pipeline")
        self.check_language = parameters.get("check_language")

    @property
    def annotation(self):
        return getattr(self.context, "annotation", None)

    def is_valid(self) -> bool:
        if self.annotation is None:
            return False
        if self.pipeline is None:
            return bool(self.annotation.catalog.default_name)
        return self.annotation.catalog.exists(self.pipeline)

    def process(self, entry: WorkflowEntry) -> Iterable[WorkflowEntry]:
        node = self.annotation.annotate_and_persist(
            str(entry.payload),
            id=entry.id,
            pipeline_name=self.pipeline,
            check_language=self.check_language,
        )
        yield WorkflowEntry(payload=node, id=entry.id, metadata=dict(entry.metadata))


class PassThroughProcessor(WorkflowProcessor):

    def process(self, entry: WorkflowEntry) -> Iterable[WorkflowEntry]:
        yield entry
