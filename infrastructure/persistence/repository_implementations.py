"""
Repository Implementations for the Graph NLP Platform

Concrete implementations of ``AnnotatedTextPersister`` and
``ConfigurationStore``: an in-memory pair used by default and in tests, and
a SQLAlchemy pair for durable storage.

Key Features:
- In-memory stores guarded by a lock, storing and returning copies
- SQLAlchemy stores with one unit of work per operation
- Configuration entries keyed ``PIPELINE_<name>`` and ``SETTING_<key>``;
  workflow definitions keep the key they are stored under
- Engine factory with SQLite in-memory support for tests

Author: Graph NLP Platform
Date: 2026
"""

import copy
import itertools
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config.settings import PersistenceConfig
from domain.entities import AnnotatedText, PersistedNode, PipelineSpecification
from domain.repositories import (
    AnnotatedTextPersister, ConfigurationStore, EntityNotFoundError, RepositoryError
)
from infrastructure.persistence.models import (
    AnnotatedTextModel, AnnotatedTextVectorModel, Base, ConfigurationEntryModel
)
from infrastructure.persistence.uow import unit_of_work_context

logger = logging.getLogger(__name__)

PIPELINE_PREFIX = "PIPELINE_"
SETTING_PREFIX = "SETTING_"


def pipeline_key(name: str) -> str:
    return f"{PIPELINE_PREFIX}{name}"


def setting_key(key: str) -> str:
    return f"{SETTING_PREFIX}{key}"


# In-memory implementations

class InMemoryAnnotatedTextPersister(AnnotatedTextPersister):
    """Process-local annotation store. Handles start at 1."""

    def __init__(self):
        self._lock = threading.Lock()
        self._handles = itertools.count(1)
        self._texts: Dict[int, Tuple[AnnotatedText, PersistedNode]] = {}
        self._by_caller: Dict[str, int] = {}
        self._vectors: Dict[Tuple[int, str], List[float]] = {}

    def persist(self, annotated_text: AnnotatedText, caller_id: Optional[str],
                version_token: Optional[str]) -> PersistedNode:
        with self._lock:
            handle = self._by_caller.get(caller_id) if caller_id is not None else None
            if handle is None:
                handle = next(self._handles)
            node = PersistedNode(handle=handle, caller_id=caller_id, version_token=version_token)
            self._texts[handle] = (copy.deepcopy(annotated_text), node)
            if caller_id is not None:
                self._by_caller[caller_id] = handle
        logger.debug(f"Persisted annotated text {handle} (id={caller_id})")
        return node

    def load(self, node: PersistedNode) -> AnnotatedText:
        with self._lock:
            stored = self._texts.get(node.handle)
        if stored is None:
            raise EntityNotFoundError(f"No annotated text stored under handle {node.handle}")
        return copy.deepcopy(stored[0])

    def find_by_id(self, caller_id: str) -> Optional[PersistedNode]:
        with self._lock:
            handle = self._by_caller.get(caller_id)
            return self._texts[handle][1] if handle is not None else None

    def store_vector(self, node: PersistedNode, property_name: str, vector: Sequence[float]) -> None:
        with self._lock:
            if node.handle not in self._texts:
                raise EntityNotFoundError(f"No annotated text stored under handle {node.handle}")
            self._vectors[(node.handle, property_name)] = [float(v) for v in vector]

    def load_vector(self, node: PersistedNode, property_name: str) -> Optional[List[float]]:
        with self._lock:
            vector = self._vectors.get((node.handle, property_name))
        return list(vector) if vector is not None else None


class InMemoryConfigurationStore(ConfigurationStore):
    """Process-local key/value configuration store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, Any] = {}

    def _get(self, key: str) -> Optional[Any]:
        with self._lock:
            return copy.deepcopy(self._entries.get(key))

    def _put(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = copy.deepcopy(value)

    def _delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def _with_prefix(self, prefix: str) -> Dict[str, Any]:
        with self._lock:
            return {k: copy.deepcopy(v) for k, v in self._entries.items() if k.startswith(prefix)}

    def load_pipeline(self, name: str) -> Optional[PipelineSpecification]:
        data = self._get(pipeline_key(name))
        return PipelineSpecification.from_dict(data) if data is not None else None

    def store_custom_pipeline(self, specification: PipelineSpecification) -> None:
        self._put(pipeline_key(specification.name), specification.to_dict())

    def remove_pipeline(self, name: str, processor: str) -> None:
        with self._lock:
            data = self._entries.get(pipeline_key(name))
            if data is not None and data.get("processor") == processor:
                del self._entries[pipeline_key(name)]

    def load_all_pipelines(self) -> List[PipelineSpecification]:
        return [PipelineSpecification.from_dict(data)
                for data in self._with_prefix(PIPELINE_PREFIX).values()]

    def get_setting(self, key: str) -> Optional[Any]:
        return self._get(setting_key(key))

    def update_setting(self, key: str, value: Any) -> None:
        self._put(setting_key(key), value)

    def store_workflow_item(self, key: str, definition: Dict[str, Any]) -> None:
        self._put(key, definition)

    def load_workflow_items(self, prefix: str) -> Dict[str, Dict[str, Any]]:
        return self._with_prefix(prefix)

    def remove_workflow_item(self, key: str) -> None:
        self._delete(key)


# SQLAlchemy implementations

class SqlAlchemyAnnotatedTextPersister(AnnotatedTextPersister):
    """Annotation store over the ``annotated_texts`` tables."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @staticmethod
    def _to_node(model: AnnotatedTextModel) -> PersistedNode:
        return PersistedNode(handle=model.handle, caller_id=model.caller_id,
                             version_token=model.version_token)

    def _require(self, session: Session, handle: int) -> AnnotatedTextModel:
        model = session.get(AnnotatedTextModel, handle)
        if model is None:
            raise EntityNotFoundError(f"No annotated text stored under handle {handle}")
        return model

    def persist(self, annotated_text: AnnotatedText, caller_id: Optional[str],
                version_token: Optional[str]) -> PersistedNode:
        with unit_of_work_context(self.session_factory) as session:
            model = None
            if caller_id is not None:
                model = session.scalars(
                    select(AnnotatedTextModel).where(AnnotatedTextModel.caller_id == caller_id)
                ).one_or_none()
            if model is None:
                model = AnnotatedTextModel(caller_id=caller_id)
                session.add(model)
            model.version_token = version_token
            model.language = annotated_text.language
            model.text = annotated_text.text
            model.document = annotated_text.to_dict()
            session.flush()
            node = self._to_node(model)
        self.logger.debug(f"Persisted annotated text {node.handle} (id={caller_id})")
        return node

    def load(self, node: PersistedNode) -> AnnotatedText:
        with unit_of_work_context(self.session_factory) as session:
            return AnnotatedText.from_dict(self._require(session, node.handle).document)

    def find_by_id(self, caller_id: str) -> Optional[PersistedNode]:
        with unit_of_work_context(self.session_factory) as session:
            model = session.scalars(
                select(AnnotatedTextModel).where(AnnotatedTextModel.caller_id == caller_id)
            ).one_or_none()
            return self._to_node(model) if model is not None else None

    def store_vector(self, node: PersistedNode, property_name: str, vector: Sequence[float]) -> None:
        with unit_of_work_context(self.session_factory) as session:
            self._require(session, node.handle)
            existing = session.scalars(
                select(AnnotatedTextVectorModel).where(
                    AnnotatedTextVectorModel.handle == node.handle,
                    AnnotatedTextVectorModel.property_name == property_name,
                )
            ).one_or_none()
            values = [float(v) for v in vector]
            if existing is None:
                session.add(AnnotatedTextVectorModel(handle=node.handle, property_name=property_name,
                                                     vector=values))
            else:
                existing.vector = values

    def load_vector(self, node: PersistedNode, property_name: str) -> Optional[List[float]]:
        with unit_of_work_context(self.session_factory) as session:
            model = session.scalars(
                select(AnnotatedTextVectorModel).where(
                    AnnotatedTextVectorModel.handle == node.handle,
                    AnnotatedTextVectorModel.property_name == property_name,
                )
            ).one_or_none()
            return list(model.vector) if model is not None else None


class SqlAlchemyConfigurationStore(ConfigurationStore):
    """Configuration store over the ``configuration_entries`` table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _get(self, key: str) -> Optional[Any]:
        with unit_of_work_context(self.session_factory) as session:
            entry = session.get(ConfigurationEntryModel, key)
            return copy.deepcopy(entry.value) if entry is not None else None

    def _put(self, key: str, value: Any) -> None:
        with unit_of_work_context(self.session_factory) as session:
            entry = session.get(ConfigurationEntryModel, key)
            if entry is None:
                session.add(ConfigurationEntryModel(key=key, value=value))
            else:
                entry.value = value

    def _with_prefix(self, prefix: str) -> Dict[str, Any]:
        with unit_of_work_context(self.session_factory) as session:
            entries = session.scalars(
                select(ConfigurationEntryModel)
                .where(ConfigurationEntryModel.key.startswith(prefix, autoescape=True))
                .order_by(ConfigurationEntryModel.key)
            ).all()
            return {entry.key: copy.deepcopy(entry.value) for entry in entries}

    def load_pipeline(self, name: str) -> Optional[PipelineSpecification]:
        data = self._get(pipeline_key(name))
        return PipelineSpecification.from_dict(data) if data is not None else None

    def store_custom_pipeline(self, specification: PipelineSpecification) -> None:
        self._put(pipeline_key(specification.name), specification.to_dict())

    def remove_pipeline(self, name: str, processor: str) -> None:
        with unit_of_work_context(self.session_factory) as session:
            entry = session.get(ConfigurationEntryModel, pipeline_key(name))
            if entry is not None and (entry.value or {}).get("processor") == processor:
                session.delete(entry)

    def load_all_pipelines(self) -> List[PipelineSpecification]:
        return [PipelineSpecification.from_dict(data)
                for data in self._with_prefix(PIPELINE_PREFIX).values()]

    def get_setting(self, key: str) -> Optional[Any]:
        return self._get(setting_key(key))

    def update_setting(self, key: str, value: Any) -> None:
        self._put(setting_key(key), value)

    def store_workflow_item(self, key: str, definition: Dict[str, Any]) -> None:
        self._put(key, definition)

    def load_workflow_items(self, prefix: str) -> Dict[str, Dict[str, Any]]:
        return self._with_prefix(prefix)

    def remove_workflow_item(self, key: str) -> None:
        with unit_of_work_context(self.session_factory) as session:
            entry = session.get(ConfigurationEntryModel, key)
            if entry is not None:
                session.delete(entry)


# Engine and factory functions

def create_engine_from_url(database_url: str, **kwargs) -> Engine:
    """
    Create a SQLAlchemy engine from a database URL.

    In-memory SQLite URLs get a single shared connection so every thread and
    session sees the same database.

    Args:
        database_url: Database connection URL
        **kwargs: Additional engine arguments

    Returns:
        Configured engine
    """
    default_kwargs: Dict[str, Any] = {'echo': False, 'future': True}
    if database_url.startswith("sqlite"):
        default_kwargs['connect_args'] = {'check_same_thread': False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            default_kwargs['poolclass'] = StaticPool
    else:
        default_kwargs.update({'pool_pre_ping': True, 'pool_recycle': 3600})
    default_kwargs.update(kwargs)
    return create_engine(database_url, **default_kwargs)


def initialize_database_schema(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    try:
        Base.metadata.create_all(engine)
        logger.info("Database schema initialized successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database schema: {e}")
        raise RepositoryError(f"Failed to initialize database schema: {e}")


def create_session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_stores(config: PersistenceConfig) -> Tuple[AnnotatedTextPersister, ConfigurationStore]:
    """
    Build the annotation persister and configuration store for a backend.

    Args:
        config: Persistence configuration

    Returns:
        (persister, configuration store)
    """
    if config.backend == "memory":
        return InMemoryAnnotatedTextPersister(), InMemoryConfigurationStore()

    engine = create_engine_from_url(config.database_url, echo=config.echo)
    initialize_database_schema(engine)
    session_factory = create_session_factory(engine)
    logger.info(f"Using SQLAlchemy persistence at {engine.url.render_as_string(hide_password=True)}")
    return SqlAlchemyAnnotatedTextPersister(session_factory), SqlAlchemyConfigurationStore(session_factory)


# Export all public classes and functions
__all__ = [
    'InMemoryAnnotatedTextPersister',
    'InMemoryConfigurationStore',
    'SqlAlchemyAnnotatedTextPersister',
    'SqlAlchemyConfigurationStore',
    'create_engine_from_url',
    'initialize_database_schema',
    'create_session_factory',
    'create_stores',
]
