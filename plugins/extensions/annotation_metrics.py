#!/usr/bin/env python3
"""
Annotation Statistics Extension

Bundled extension counting persisted annotations per pipeline and language.
Registered through the ``nlp_extensions`` entry-point group and exported to
Prometheus as ``nlp_annotations_by_language_total``.

Author: Graph NLP Platform
Date: 2026
"""

import logging
import threading
from collections import Counter as TallyCounter
from typing import Any, Dict, Tuple

from prometheus_client import Counter

from domain.events import NLPEvents, TextAnnotationEvent
from infrastructure.events.dispatcher import EventDispatcher
from infrastructure.monitoring.metrics import REGISTRY
from interfaces.plugin_interfaces import NLPExtension

logger = logging.getLogger(__name__)

ANNOTATIONS_BY_LANGUAGE = Counter(
    "nlp_annotations_by_language_total",
    "Persisted annotations per pipeline and language",
    ["pipeline", "language"],
    registry=REGISTRY
)


class AnnotationMetricsExtension(NLPExtension):
    """Tallies ``POST_TEXT_ANNOTATION`` events."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tally: TallyCounter = TallyCounter()
        self.context: Any = None

    @property
    def name(self) -> str:
        return "annotation_metrics"

    def post_loaded(self, context: Any) -> None:
        self.context = context

    def register_event_listeners(self, dispatcher: EventDispatcher) -> None:
        dispatcher.register(NLPEvents.POST_TEXT_ANNOTATION, self.on_text_annotated)

    def on_text_annotated(self, event: TextAnnotationEvent) -> None:
        key = (event.pipeline_spec_used.name, event.annotated_text.language)
        with self._lock:
            self._tally[key] += 1
        ANNOTATIONS_BY_LANGUAGE.labels(pipeline=key[0], language=key[1]).inc()
        logger.debug(f"Annotation {event.caller_id} stored as node {event.persisted_handle.handle}")

    def statistics(self) -> Dict[Tuple[str, str], int]:
        """Annotation counts keyed by ``(pipeline, language)``."""
        with self._lock:
            return dict(self._tally)
