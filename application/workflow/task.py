# application/workflow/task.py

"""
Workflow Task

A named, stateful run of one input -> processor -> output chain.

Lifecycle:

    IDLE ──run()──► RUNNING ──► SUCCEEDED | FAILED | CANCELLED
      ▲                                      │
      └──────────────── reset() ─────────────┘

- ``init`` resolves the three components by name and builds the chain,
  once per task.
- ``run`` is only legal from IDLE and only for a valid task. Entries are
  pulled one at a time; failures from the input or the processing stage end
  the run as FAILED and are recorded, never re-raised.
- ``cancel`` is cooperative: it is observed before each entry is pulled and
  again before a pulled entry is processed, never in the middle of one.
- ``get_info`` and ``get_status`` read without locking and are safe while a
  run is in progress.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Union

from application.workflow.registry import WorkflowItemKind, WorkflowRegistry
from domain.entities import TaskStatus, WorkflowTaskConfiguration, WorkflowTaskInfo
from domain.exceptions import ConfigurationError, InvalidStateError
from infrastructure.monitoring.metrics import (
    record_entry_processed, record_task_run, track_active_task
)
from interfaces.workflow_interfaces import (
    WorkflowInput, WorkflowItem, WorkflowOutput, WorkflowProcessor
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowChain:
    """The ordered stages of a task, built once by ``WorkflowTask.init``."""
    input: WorkflowInput
    processor: WorkflowProcessor
    output: WorkflowOutput

    def wire(self) -> None:
        """Point each stage at the next one."""
        self.input.set_successor(self.processor)
        self.processor.set_successor(self.output)

    def __iter__(self) -> Iterator[WorkflowItem]:
        return iter((self.input, self.processor, self.output))

    def is_valid(self) -> bool:
        return all(stage.is_valid() for stage in self)


class WorkflowTask:
    """
    Args:
        name: Task name, also the suffix of its storage key
        registry: Registry the component names are resolved against
        context: Platform context, available to subclasses
    """

    PREFIX = "WORKFLOW_TASK_"

    def __init__(self, name: str, registry: WorkflowRegistry, context: Any = None):
        self.name = name
        self.registry = registry
        self.context = context
        self.task_configuration: Optional[WorkflowTaskConfiguration] = None
        self.additional_info: Optional[str] = None
        self._chain: Optional[WorkflowChain] = None
        self._status = TaskStatus.IDLE
        self._cancel_requested = threading.Event()
        self._state_lock = threading.Lock()

    @property
    def storage_key(self) -> str:
        return f"{self.PREFIX}{self.name}"

    @property
    def chain(self) -> Optional[WorkflowChain]:
        return self._chain

    @property
    def configuration(self) -> Mapping[str, Any]:
        if self.task_configuration is None:
            return {}
        return self.task_configuration.configuration

    @property
    def is_sync(self) -> bool:
        return self.task_configuration is None or self.task_configuration.sync

    def init(self, configuration: Union[WorkflowTaskConfiguration, Mapping[str, Any]]) -> None:
        """
        Resolve the configured components and build the chain.

        Raises:
            InvalidStateError: If the task was already initialised
            ConfigurationError: If a component name is missing or unregistered
        """
        if not isinstance(configuration, WorkflowTaskConfiguration):
            configuration = WorkflowTaskConfiguration.from_parameters(configuration)

        with self._state_lock:
            if self._chain is not None:
                raise InvalidStateError(f"Task {self.name} is already initialised")
            chain = WorkflowChain(
                input=self._resolve(WorkflowItemKind.INPUT, configuration.input),
                processor=self._resolve(WorkflowItemKind.PROCESSOR, configuration.processor),
                output=self._resolve(WorkflowItemKind.OUTPUT, configuration.output),
            )
            chain.wire()
            self.task_configuration = configuration
            self._chain = chain
        logger.info(f"Task {self.name} initialised: {configuration.input} -> "
                    f"{configuration.processor} -> {configuration.output}")

    def _resolve(self, kind: WorkflowItemKind, name: Optional[str]) -> WorkflowItem:
        if not name:
            raise ConfigurationError(f"The {kind.value} of task {self.name} is not set")
        item = self.registry.get(kind, name)
        if item is None:
            raise ConfigurationError(f"The {kind.value} {name} of task {self.name} does not exist")
        return item

    def is_valid(self) -> bool:
        """True when the task is initialised and every stage reports itself valid."""
        chain = self._chain
        return chain is not None and chain.is_valid()

    def run(self) -> TaskStatus:
        """
        Drive the chain until the input is exhausted, the task is cancelled
        or a stage fails.

        Returns:
            The terminal status of this run

        Raises:
            InvalidStateError: If the task is not IDLE
            ConfigurationError: If the task is not valid
        """
        with self._state_lock:
            if self._status is not TaskStatus.IDLE:
                raise InvalidStateError(f"Task {self.name} cannot run while {self._status.value}")
            if not self.is_valid():
                raise ConfigurationError(f"Task {self.name} is not valid")
            self._chain.wire()
            self.additional_info = None
            self._status = TaskStatus.RUNNING

        logger.info(f"Task {self.name} started")
        started = time.time()
        final_status = TaskStatus.FAILED
        try:
            with track_active_task():
                final_status = self._drive()
        finally:
            self._status = final_status
        record_task_run(final_status.value, time.time() - started)
        logger.info(f"Task {self.name} finished with status {final_status.value}")
        return final_status

    def _drive(self) -> TaskStatus:
        chain = self._chain
        entries = None
        processed = 0
        try:
            entries = iter(chain.input)
            while True:
                if self._cancel_requested.is_set():
                    return TaskStatus.CANCELLED
                try:
                    entry = next(entries)
                except StopIteration:
                    return TaskStatus.SUCCEEDED
                if self._cancel_requested.is_set():
                    return TaskStatus.CANCELLED
                chain.processor.handle(entry)
                processed += 1
                record_entry_processed()
        except Exception as e:
            logger.exception(f"Task {self.name} failed after {processed} entries")
            self.additional_info = str(e) or type(e).__name__
            return TaskStatus.FAILED
        finally:
            close = getattr(entries, "close", None)
            if close is not None:
                close()

    def cancel(self) -> None:
        """Request cancellation; observed at the next entry boundary."""
        self._cancel_requested.set()
        logger.info(f"Cancellation requested for task {self.name}")

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested.is_set()

    def reset(self) -> None:
        """
        Return a finished task to IDLE and clear its cancellation flag.

        Raises:
            InvalidStateError: If the task is running
        """
        with self._state_lock:
            if self._status is TaskStatus.RUNNING:
                raise InvalidStateError(f"Task {self.name} cannot be reset while RUNNING")
            self._status = TaskStatus.IDLE
            self._cancel_requested.clear()

    def get_status(self) -> TaskStatus:
        return self._status

    def get_info(self) -> WorkflowTaskInfo:
        return WorkflowTaskInfo(
            task_class_name=f"{type(self).__module__}.{type(self).__qualname__}",
            task_name=self.name,
            configuration=dict(self.configuration),
            is_valid=self.is_valid(),
            status=self._status,
            additional_info=self.additional_info,
        )
