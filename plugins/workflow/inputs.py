#!/usr/bin/env python3
"""
Workflow Inputs

Bundled sources for workflow tasks:

1. ``TextListInput``: texts given inline in the item parameters
2. ``JsonLinesInput``: one JSON object per line of a local file

Both are restartable: every run re-reads the source from the start.

Author: Graph NLP Platform
Date: 2026
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Mapping

from domain.exceptions import ProcessingFailure
from interfaces.workflow_interfaces import WorkflowEntry, WorkflowInput

logger = logging.getLogger(__name__)


class TextListInput(WorkflowInput):
    """
    Texts listed in the ``texts`` parameter, either plain strings or
    ``{"id": ..., "text": ...}`` mappings. Plain strings get the id
    ``<input name>-<position>``.
    """

    texts = ()

    def init(self, parameters: Mapping[str, Any]) -> None:
        super().init(parameters)
        self.texts = list(parameters.get("texts", []))

    def entries(self) -> Iterator[WorkflowEntry]:
        for position, item in enumerate(list(self.texts)):
            if isinstance(item, Mapping):
                yield WorkflowEntry(payload=item.get("text", ""),
                                    id=item.get("id") or f"{self.name}-{position}")
            else:
                yield WorkflowEntry(payload=str(item), id=f"{self.name}-{position}")


class JsonLinesInput(WorkflowInput):
    """
    Reads a JSON Lines file lazily, one entry per non-blank line.

    Parameters:
        path: File to read (required)
        text_field: Field holding the text (default ``text``)
        id_field: Field holding the entry id (default ``id``)
    """

    path = None

    def init(self, parameters: Mapping[str, Any]) -> None:
        super().init(parameters)
        self.path = Path(parameters["path"]) if parameters.get("path") else None
        self.text_field = parameters.get("text_field", "text")
        self.id_field = parameters.get("id_field", "id")

    def is_valid(self) -> bool:
        return self.path is not None and self.path.is_file()

    def entries(self) -> Iterator[WorkflowEntry]:
        with open(self.path, "r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError as e:
                    raise ProcessingFailure(f"{self.path}:{line_number}: invalid JSON ({e.msg})") from e
                if self.text_field not in record:
                    raise ProcessingFailure(f"{self.path}:{line_number}: missing field '{self.text_field}'")
                entry_id = record.get(self.id_field)
                yield WorkflowEntry(
                    payload=record[self.text_field],
                    id=str(entry_id) if entry_id is not None else f"{self.name}-{line_number}",
                    metadata={k: v for k, v in record.items() if k not in (self.text_field, self.id_field)},
                )
