"""
Domain Entities for the Graph NLP Platform

This module contains the core domain objects of text annotation and workflow
execution: pipeline specifications, annotated texts and their features,
handles to persisted annotations, and workflow task configuration/state.

Key Principles:
- Entities encapsulate their own invariants (see ``__post_init__``)
- Entities are technology-agnostic (no database or framework dependencies)
- Persistence adapters serialise through ``to_dict``/``from_dict``
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class TaskStatus(Enum):
    """Lifecycle states of a workflow task."""
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        """True for states that only ``reset`` can leave."""
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.CANCELLED)


@dataclass
class PipelineSpecification:
    """
    Named configuration bundle selecting a processor and its annotation options.

    The annotator list is an ordered set: duplicates are dropped on creation,
    keeping the first occurrence.
    """
    name: str
    processor: str
    annotators: List[str] = field(default_factory=list)
    check_language: bool = True
    exclude_stopwords: bool = False
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Pipeline name cannot be empty")
        self.annotators = list(dict.fromkeys(self.annotators))

    def has_annotator(self, annotator: str) -> bool:
        """Check whether an annotator is enabled for this pipeline."""
        return annotator in self.annotators

    def copy(self) -> "PipelineSpecification":
        """Independent copy, so callers cannot mutate catalog state."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "processor": self.processor,
            "annotators": list(self.annotators),
            "check_language": self.check_language,
            "exclude_stopwords": self.exclude_stopwords,
            "options": copy.deepcopy(self.options),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PipelineSpecification":
        return cls(
            name=data["name"],
            processor=data.get("processor") or data.get("textProcessor"),
            annotators=list(data.get("annotators", [])),
            check_language=bool(data.get("check_language", True)),
            exclude_stopwords=bool(data.get("exclude_stopwords", False)),
            options=dict(data.get("options", {})),
        )


@dataclass
class Tag:
    """A token-level feature: lemma plus part-of-speech and named-entity labels."""
    lemma: str
    pos: List[str] = field(default_factory=list)
    ne: List[str] = field(default_factory=list)
    multiplicity: int = 1

    def matches(self, lemma: str, ne: Optional[str] = None) -> bool:
        """Case-insensitive match on lemma and, when given, named-entity label."""
        if self.lemma.lower() != lemma.lower():
            return False
        if ne is None:
            return True
        return ne.lower() in (label.lower() for label in self.ne)

    def to_dict(self) -> Dict[str, Any]:
        return {"lemma": self.lemma, "pos": list(self.pos), "ne": list(self.ne),
                "multiplicity": self.multiplicity}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Tag":
        return cls(lemma=data["lemma"], pos=list(data.get("pos", [])),
                   ne=list(data.get("ne", [])), multiplicity=int(data.get("multiplicity", 1)))


@dataclass
class Sentence:
    """A sentence of an annotated text with its tags and optional sentiment."""
    text: str
    index: int
    tags: List[Tag] = field(default_factory=list)
    sentiment: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "index": self.index,
                "tags": [tag.to_dict() for tag in self.tags], "sentiment": self.sentiment}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Sentence":
        return cls(text=data["text"], index=int(data["index"]),
                   tags=[Tag.from_dict(tag) for tag in data.get("tags", [])],
                   sentiment=data.get("sentiment"))


@dataclass
class AnnotatedText:
    """
    Result of annotating one piece of text.

    The features (sentences, tags, sentiment) are produced by a processor and
    are opaque to the orchestration layer, which only persists and publishes
    them.
    """
    text: str
    language: str
    sentences: List[Sentence] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def tags(self) -> List[Tag]:
        """All tags across sentences, in sentence order."""
        return [tag for sentence in self.sentences for tag in sentence.tags]

    def filter(self, expression: str) -> bool:
        """
        Evaluate a filter expression against the tags of this text.

        The expression is a comma-separated list of criteria, each either a
        lemma or ``NE/lemma``. Returns True when any tag satisfies any
        criterion.

        Example:
            >>> text.filter("Person/Marie Curie, Location/Paris")
        """
        criteria = []
        for element in expression.split(","):
            element = element.strip()
            if not element:
                continue
            if "/" in element:
                ne, lemma = element.split("/", 1)
                criteria.append((lemma.strip(), ne.strip() or None))
            else:
                criteria.append((element, None))

        return any(tag.matches(lemma, ne) for tag in self.tags for lemma, ne in criteria)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "language": self.language,
            "sentences": [sentence.to_dict() for sentence in self.sentences],
            "metadata": copy.deepcopy(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnnotatedText":
        return cls(
            text=data.get("text", ""),
            language=data.get("language", ""),
            sentences=[Sentence.from_dict(s) for s in data.get("sentences", [])],
            metadata=dict(data.get("metadata", {})),
        )


@dataclass(frozen=True)
class PersistedNode:
    """Handle to a stored annotated text."""
    handle: int
    caller_id: Optional[str]
    version_token: Optional[str]


@dataclass
class WorkflowTaskConfiguration:
    """
    Configuration of a workflow task: named input, processor and output.

    Names are not checked here; ``WorkflowTask.init`` resolves them against
    the registry and rejects missing or unknown ones.
    """
    input: Optional[str] = None
    processor: Optional[str] = None
    output: Optional[str] = None
    sync: bool = True
    parameters: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_parameters(cls, parameters: Mapping[str, Any]) -> "WorkflowTaskConfiguration":
        """Build from a free-form mapping such as a stored task definition."""
        return cls(
            input=parameters.get("input"),
            processor=parameters.get("processor"),
            output=parameters.get("output"),
            sync=bool(parameters.get("sync", True)),
            parameters=dict(parameters),
        )

    @property
    def configuration(self) -> Dict[str, Any]:
        """The full parameter mapping, including the three component names."""
        merged = dict(self.parameters)
        merged.update({"input": self.input, "processor": self.processor,
                       "output": self.output, "sync": self.sync})
        return merged


@dataclass(frozen=True)
class WorkflowTaskInfo:
    """Point-in-time snapshot of a workflow task."""
    task_class_name: str
    task_name: str
    configuration: Dict[str, Any]
    is_valid: bool
    status: TaskStatus
    additional_info: Optional[str] = None


@dataclass
class CustomModelsRequest:
    """Training/testing request passed through to a text processor."""
    processor: str
    algorithm: str
    model_id: str
    input_file: str
    language: str = "en"
    parameters: Dict[str, Any] = field(default_factory=dict)
