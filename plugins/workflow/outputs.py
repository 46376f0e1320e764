#!/usr/bin/env python3
"""
Workflow Outputs

1. ``CollectingOutput``: keeps entries in memory
2. ``JsonLinesOutput``: appends entries to a JSON Lines file
3. ``LoggingOutput``: logs each entry

Author: Graph NLP Platform
Date: 2026
"""

import dataclasses
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping

from domain.exceptions import ProcessingFailure
from interfaces.workflow_interfaces import WorkflowEntry, WorkflowOutput

logger = logging.getLogger(__name__)


def entry_to_dict(entry: WorkflowEntry) -> Dict[str, Any]:
    """JSON-ready form of an entry; dataclass payloads become mappings."""
    payload = entry.payload
    if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
        payload = dataclasses.asdict(payload)
    elif hasattr(payload, "to_dict"):
        payload = payload.to_dict()
    return {"id": entry.id, "payload": payload, "metadata": entry.metadata}


class CollectingOutput(WorkflowOutput):
    """Keeps every handled entry, in arrival order."""

    def __init__(self, name: str, context: Any = None):
        super().__init__(name, context)
        self._lock = threading.Lock()
        self.collected: List[WorkflowEntry] = []

    def handle(self, entry: WorkflowEntry) -> None:
        with self._lock:
            self.collected.append(entry)

    def clear(self) -> None:
        with self._lock:
            self.collected = []


class JsonLinesOutput(WorkflowOutput):
    """
    Parameters:
        path: File to append to (required); its directory must exist
    """

    path = None

    def init(self, parameters: Mapping[str, Any]) -> None:
        super().init(parameters)
        self.path = Path(parameters["path"]) if parameters.get("path") else None
        self._lock = threading.Lock()

    def is_valid(self) -> bool:
        return self.path is not None and self.path.parent.is_dir()

    def handle(self, entry: WorkflowEntry) -> None:
        line = json.dumps(entry_to_dict(entry), default=str)
        try:
            with self._lock, open(self.path, "a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        except OSError as e:
            raise ProcessingFailure(f"Cannot write to {self.path}: {e}") from e


class LoggingOutput(WorkflowOutput):

    level = logging.INFO

    def init(self, parameters: Mapping[str, Any]) -> None:
        super().init(parameters)
        self.level = logging.getLevelName(str(parameters.get("level", "INFO")).upper())
        if not isinstance(self.level, int):
            self.level = logging.INFO

    def handle(self, entry: WorkflowEntry) -> None:
        logger.log(self.level, f"[{self.name}] {entry.id}: {entry_to_dict(entry)['payload']}")
