"""
Domain Events for the Graph NLP Platform

Event kinds and payloads published through the event dispatcher. Listeners
depend only on these payload shapes, never on the publisher.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from domain.entities import AnnotatedText, PersistedNode, PipelineSpecification


class NLPEvents(Enum):
    """Event kinds published by the platform."""
    POST_TEXT_ANNOTATION = "post_text_annotation"


@dataclass
class TextAnnotationEvent:
    """Payload of ``NLPEvents.POST_TEXT_ANNOTATION``."""
    persisted_handle: PersistedNode
    annotated_text: AnnotatedText
    caller_id: Optional[str]
    version_token: str
    pipeline_spec_used: PipelineSpecification
