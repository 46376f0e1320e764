"""
Workflow Component Interfaces

Contracts for the three pluggable stages of a workflow task:

    WorkflowInput ──► WorkflowProcessor ──► WorkflowOutput

Inputs produce a lazy sequence of entries, processors turn one entry into
zero or more downstream entries and forward them to their successor, outputs
are terminal sinks. Every stage reports its own validity so a task can refuse
to run with an unreachable resource.

Concrete stages are registered by name in the ``WorkflowRegistry``; see
``plugins/workflow`` for the bundled ones.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from domain.exceptions import ProcessingFailure


@dataclass
class WorkflowEntry:
    """One unit flowing through a workflow (a document, a record, a node)."""
    payload: Any
    id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class WorkflowItem(ABC):
    """
    Base class of every named workflow component.

    Items are constructed with a name and the platform context, then
    configured once through ``init``. The storage prefix namespaces stored
    definitions per item kind.
    """

    PREFIX = "WORKFLOW_ITEM_"

    def __init__(self, name: str, context: Any = None):
        self.name = name
        self.context = context
        self.configuration: Dict[str, Any] = {}

    def init(self, parameters: Mapping[str, Any]) -> None:
        """Store the item configuration."""
        self.configuration = dict(parameters)

    def is_valid(self) -> bool:
        """Whether the resources this item needs are available."""
        return True

    @property
    def prefix(self) -> str:
        return self.PREFIX

    @property
    def storage_key(self) -> str:
        return f"{self.prefix}{self.name}"

    def get_info(self) -> Dict[str, Any]:
        return {
            "class_name": f"{type(self).__module__}.{type(self).__qualname__}",
            "name": self.name,
            "configuration": dict(self.configuration),
            "valid": self.is_valid(),
        }


class WorkflowOutput(WorkflowItem):
    """Terminal sink of a workflow."""

    PREFIX = "WORKFLOW_OUTPUT_"

    @abstractmethod
    def handle(self, entry: WorkflowEntry) -> None:
        pass


class WorkflowProcessor(WorkflowItem):
    """
    Processing stage of a workflow.

    Subclasses implement ``process``; ``handle`` forwards whatever it yields
    to the successor, so a stage emitting several entries per input needs no
    help from the task's run loop.
    """

    PREFIX = "WORKFLOW_PROCESSOR_"

    def __init__(self, name: str, context: Any = None):
        super().__init__(name, context)
        self._successor: Optional[WorkflowOutput] = None

    @property
    def successor(self) -> Optional[WorkflowOutput]:
        return self._successor

    def set_successor(self, successor: WorkflowOutput) -> None:
        self._successor = successor

    @abstractmethod
    def process(self, entry: WorkflowEntry) -> Iterable[WorkflowEntry]:
        """Turn one entry into zero or more downstream entries."""
        pass

    def handle(self, entry: WorkflowEntry) -> None:
        for produced in self.process(entry):
            self.forward(produced)

    def forward(self, entry: WorkflowEntry) -> None:
        if self._successor is None:
            raise ProcessingFailure(f"Processor {self.name} has no successor")
        self._successor.handle(entry)


class WorkflowInput(WorkflowItem):
    """
    Source of a workflow.

    ``entries`` must return a fresh iterator on every call, so a task that is
    reset and run again starts from the beginning.
    """

    PREFIX = "WORKFLOW_INPUT_"

    def __init__(self, name: str, context: Any = None):
        super().__init__(name, context)
        self._successor: Optional[WorkflowProcessor] = None

    @property
    def successor(self) -> Optional[WorkflowProcessor]:
        return self._successor

    def set_successor(self, successor: WorkflowProcessor) -> None:
        self._successor = successor

    @abstractmethod
    def entries(self) -> Iterator[WorkflowEntry]:
        pass

    def __iter__(self) -> Iterator[WorkflowEntry]:
        return self.entries()
