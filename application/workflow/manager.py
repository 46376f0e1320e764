# application/workflow/manager.py

"""
Workflow Manager

Named catalog of workflow tasks with their component definitions, on top of
the ``WorkflowRegistry``.

Key Features:
- Components created from ``"module:Class"`` paths and registered by name
- Task and component definitions persisted in the configuration store and
  restored by ``load_tasks``
- Synchronous tasks run on the caller's thread; asynchronous ones on a
  thread pool, returning a ``Future`` of the final status
- Cancel, reset, remove and inspect tasks by name

Author: Graph NLP Platform
Date: 2026
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Union

from application.workflow.registry import WorkflowItemKind, WorkflowRegistry
from application.workflow.task import WorkflowTask
from domain.entities import TaskStatus, WorkflowTaskInfo
from domain.exceptions import ConfigurationError, InvalidStateError
from domain.repositories import ConfigurationStore
from infrastructure.extensions.loader import load_object
from interfaces.workflow_interfaces import WorkflowItem

logger = logging.getLogger(__name__)


class WorkflowManager:
    """
    Args:
        registry: Registry components are registered into
        store: Configuration store for task and component definitions
        context: Platform context handed to components and tasks
        max_workers: Threads available to asynchronous runs
        default_sync: Run mode of tasks whose definition does not say
    """

    def __init__(self, registry: WorkflowRegistry, store: ConfigurationStore,
                 context: Any = None, max_workers: int = 4, default_sync: bool = True):
        self.registry = registry
        self.store = store
        self.context = context
        self.max_workers = max_workers
        self.default_sync = default_sync
        self._tasks: Dict[str, WorkflowTask] = {}
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    # Components

    def create_item(self, kind: WorkflowItemKind, name: str, class_path: str,
                    parameters: Optional[Mapping[str, Any]] = None, persist: bool = True) -> WorkflowItem:
        """
        Instantiate, configure and register a workflow component.

        Raises:
            ConfigurationError: If the class cannot be imported or is not a
                component of the requested kind
        """
        item_class = load_object(class_path)
        if not isinstance(item_class, type) or not issubclass(item_class, kind.item_class):
            raise ConfigurationError(f"{class_path} is not a workflow {kind.value}")
        item = item_class(name, self.context)
        item.init(dict(parameters or {}))
        self.registry.register(item)
        if persist:
            self.store.store_workflow_item(item.storage_key, {
                "class": class_path,
                "parameters": dict(parameters or {}),
            })
        return item

    # Tasks

    def create_task(self, name: str, parameters: Mapping[str, Any], persist: bool = True) -> WorkflowTask:
        """
        Create and initialise a task.

        Raises:
            ConfigurationError: If the name is taken or a component is missing
        """
        definition = dict(parameters)
        definition.setdefault("sync", self.default_sync)
        with self._lock:
            if name in self._tasks:
                raise ConfigurationError(f"Task {name} already exists")
            task = WorkflowTask(name, self.registry, self.context)
            task.init(definition)
            self._tasks[name] = task
        if persist:
            self.store.store_workflow_item(task.storage_key, dict(task.configuration))
        logger.info(f"Created workflow task {name}")
        return task

    def has_task(self, name: str) -> bool:
        return name in self._tasks

    def get_task(self, name: str) -> WorkflowTask:
        task = self._tasks.get(name)
        if task is None:
            raise ConfigurationError(f"Task {name} does not exist")
        return task

    def run_task(self, name: str) -> Union[TaskStatus, "Future[TaskStatus]"]:
        """
        Run a task inline when it is synchronous, otherwise on the pool.

        Returns:
            The final status, or a ``Future`` of it for asynchronous tasks

        Raises:
            ConfigurationError: If the task does not exist or is not valid
            InvalidStateError: If the task is not IDLE
        """
        task = self.get_task(name)
        if task.is_sync:
            return task.run()
        if task.get_status() is not TaskStatus.IDLE:
            raise InvalidStateError(f"Task {name} cannot run while {task.get_status().value}")
        if not task.is_valid():
            raise ConfigurationError(f"Task {name} is not valid")
        return self._get_executor().submit(task.run)

    def cancel_task(self, name: str) -> None:
        self.get_task(name).cancel()

    def reset_task(self, name: str) -> None:
        self.get_task(name).reset()

    def get_task_info(self, name: str) -> WorkflowTaskInfo:
        return self.get_task(name).get_info()

    def list_tasks(self) -> List[WorkflowTaskInfo]:
        return [task.get_info() for task in list(self._tasks.values())]

    def remove_task(self, name: str) -> None:
        """
        Raises:
            InvalidStateError: If the task is running
        """
        with self._lock:
            task = self.get_task(name)
            if task.get_status() is TaskStatus.RUNNING:
                raise InvalidStateError(f"Task {name} cannot be removed while RUNNING")
            del self._tasks[name]
        self.store.remove_workflow_item(task.storage_key)
        logger.info(f"Removed workflow task {name}")

    # Persistence

    def load_tasks(self) -> int:
        """
        Restore stored components, then stored tasks.

        Definitions that no longer resolve are logged and skipped.

        Returns:
            Number of tasks restored
        """
        for kind in WorkflowItemKind:
            prefix = kind.item_class.PREFIX
            for key, definition in self.store.load_workflow_items(prefix).items():
                name = key[len(prefix):]
                try:
                    self.create_item(kind, name, definition["class"],
                                     definition.get("parameters"), persist=False)
                except (ConfigurationError, KeyError) as e:
                    logger.warning(f"Skipping stored workflow {kind.value} {name}: {e}")

        restored = 0
        for key, definition in self.store.load_workflow_items(WorkflowTask.PREFIX).items():
            name = key[len(WorkflowTask.PREFIX):]
            if name in self._tasks:
                continue
            try:
                self.create_task(name, definition, persist=False)
                restored += 1
            except ConfigurationError as e:
                logger.warning(f"Skipping stored workflow task {name}: {e}")
        logger.info(f"Restored {restored} workflow tasks")
        return restored

    # Lifecycle

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                                    thread_name_prefix="workflow-task")
            return self._executor

    def shutdown(self, wait: bool = True) -> None:
        """Cancel running tasks and stop the worker pool."""
        for task in list(self._tasks.values()):
            if task.get_status() is TaskStatus.RUNNING:
                task.cancel()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
        logger.info("Workflow manager shut down")
