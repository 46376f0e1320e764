"""
Repository Interfaces for the Graph NLP Platform

Abstract contracts for the two persistence collaborators of the platform:
the store for annotated texts and the store for dynamic configuration
(pipelines, runtime settings, workflow definitions). Implementations live in
``infrastructure.persistence``.

Key Principles:
- Abstract interfaces define contracts, not implementations
- Lookups return ``None`` for absent entries; failures raise ``RepositoryError``
- Stored values are copies; callers never share mutable state with a store
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from domain.entities import AnnotatedText, PersistedNode, PipelineSpecification


class RepositoryError(Exception):
    """Base exception for repository operations."""
    pass


class EntityNotFoundError(RepositoryError):
    """Raised when a requested entity is not found."""
    pass


class AnnotatedTextPersister(ABC):
    """
    Store for annotated texts.

    A caller id addresses at most one stored annotation: persisting the same
    id again replaces the stored annotation and its version token while
    keeping the handle.
    """

    @abstractmethod
    def persist(self, annotated_text: AnnotatedText, caller_id: Optional[str],
                version_token: Optional[str]) -> PersistedNode:
        """
        Store an annotated text.

        Args:
            annotated_text: Annotation to store
            caller_id: Caller-supplied identifier, may be None
            version_token: Token identifying this write

        Returns:
            Handle of the stored annotation
        """
        pass

    @abstractmethod
    def load(self, node: PersistedNode) -> AnnotatedText:
        """
        Load the annotation behind a handle.

        Raises:
            EntityNotFoundError: If nothing is stored under the handle
        """
        pass

    @abstractmethod
    def find_by_id(self, caller_id: str) -> Optional[PersistedNode]:
        """Find the handle stored for a caller id."""
        pass

    @abstractmethod
    def store_vector(self, node: PersistedNode, property_name: str, vector: Sequence[float]) -> None:
        """Attach a vector to a stored annotation under a property name."""
        pass

    @abstractmethod
    def load_vector(self, node: PersistedNode, property_name: str) -> Optional[List[float]]:
        """Read a vector previously attached with ``store_vector``."""
        pass


class ConfigurationStore(ABC):
    """
    Persisted configuration: pipeline specifications, runtime settings and
    workflow item definitions.
    """

    @abstractmethod
    def load_pipeline(self, name: str) -> Optional[PipelineSpecification]:
        pass

    @abstractmethod
    def store_custom_pipeline(self, specification: PipelineSpecification) -> None:
        pass

    @abstractmethod
    def remove_pipeline(self, name: str, processor: str) -> None:
        """Remove a pipeline, only if it is bound to the given processor."""
        pass

    @abstractmethod
    def load_all_pipelines(self) -> List[PipelineSpecification]:
        pass

    @abstractmethod
    def get_setting(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def update_setting(self, key: str, value: Any) -> None:
        pass

    def has_setting(self, key: str) -> bool:
        return self.get_setting(key) is not None

    @abstractmethod
    def store_workflow_item(self, key: str, definition: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def load_workflow_items(self, prefix: str) -> Dict[str, Dict[str, Any]]:
        """All stored workflow item definitions whose key starts with ``prefix``."""
        pass

    @abstractmethod
    def remove_workflow_item(self, key: str) -> None:
        pass
