# application/workflow/registry.py

"""
Workflow Registry

Named catalogs of workflow inputs, processors and outputs. Lookups return
``None`` for unregistered names so a task can tell "not configured" from
"misconfigured" and report which component is missing.

Each catalog is an immutable snapshot replaced under a lock on every
change; concurrent lookups never wait for a registration.
"""

import logging
import threading
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Type

from domain.exceptions import ConfigurationError
from interfaces.workflow_interfaces import (
    WorkflowInput, WorkflowItem, WorkflowOutput, WorkflowProcessor
)

logger = logging.getLogger(__name__)


class WorkflowItemKind(Enum):
    INPUT = "input"
    PROCESSOR = "processor"
    OUTPUT = "output"

    @property
    def item_class(self) -> Type[WorkflowItem]:
        return _ITEM_CLASSES[self]

    @classmethod
    def of(cls, item: WorkflowItem) -> "WorkflowItemKind":
        for kind, item_class in _ITEM_CLASSES.items():
            if isinstance(item, item_class):
                return kind
        raise ConfigurationError(f"{type(item).__name__} is not a workflow input, processor or output")


_ITEM_CLASSES: Dict[WorkflowItemKind, Type[WorkflowItem]] = {
    WorkflowItemKind.INPUT: WorkflowInput,
    WorkflowItemKind.PROCESSOR: WorkflowProcessor,
    WorkflowItemKind.OUTPUT: WorkflowOutput,
}


class WorkflowRegistry:
    """Process-wide catalog of named workflow components."""

    def __init__(self):
        self._items: Dict[WorkflowItemKind, Mapping[str, WorkflowItem]] = {
            kind: MappingProxyType({}) for kind in WorkflowItemKind
        }
        self._lock = threading.Lock()

    def register(self, item: WorkflowItem) -> WorkflowItemKind:
        """
        Register a component under its name, replacing any previous one of
        the same kind and name.
        """
        kind = WorkflowItemKind.of(item)
        with self._lock:
            updated = dict(self._items[kind])
            if item.name in updated:
                logger.warning(f"Replacing workflow {kind.value} {item.name}")
            updated[item.name] = item
            self._items[kind] = MappingProxyType(updated)
        logger.info(f"Registered workflow {kind.value} {item.name} ({type(item).__name__})")
        return kind

    def get(self, kind: WorkflowItemKind, name: Optional[str]) -> Optional[WorkflowItem]:
        if not name:
            return None
        return self._items[kind].get(name)

    def get_input(self, name: Optional[str]) -> Optional[WorkflowInput]:
        return self.get(WorkflowItemKind.INPUT, name)

    def get_processor(self, name: Optional[str]) -> Optional[WorkflowProcessor]:
        return self.get(WorkflowItemKind.PROCESSOR, name)

    def get_output(self, name: Optional[str]) -> Optional[WorkflowOutput]:
        return self.get(WorkflowItemKind.OUTPUT, name)

    def remove(self, kind: WorkflowItemKind, name: str) -> Optional[WorkflowItem]:
        with self._lock:
            updated = dict(self._items[kind])
            removed = updated.pop(name, None)
            self._items[kind] = MappingProxyType(updated)
        return removed

    def list(self, kind: WorkflowItemKind) -> List[str]:
        return list(self._items[kind])
