# application/services/pipeline_catalog.py

"""
Pipeline Catalog

Named pipeline specifications backed by the configuration store. Reads
return copies, so a specification resolved for one annotation call cannot be
changed under it by a concurrent ``add`` or ``remove``. Writes are
serialised by a lock; reads go straight to the store.
"""

import logging
import threading
from typing import List, Optional

from application.services.dynamic_configuration import DynamicConfiguration
from domain.entities import PipelineSpecification
from domain.exceptions import ConfigurationError
from domain.repositories import ConfigurationStore

logger = logging.getLogger(__name__)


class PipelineCatalog:
    """
    Store-backed catalog of pipeline specifications.

    Args:
        store: Configuration store holding the specifications
        configuration: Runtime settings holding the default pipeline name
    """

    def __init__(self, store: ConfigurationStore, configuration: DynamicConfiguration):
        self.store = store
        self.configuration = configuration
        self._write_lock = threading.Lock()

    def get(self, name: str) -> Optional[PipelineSpecification]:
        """Copy of the named specification, ``None`` when absent."""
        specification = self.store.load_pipeline(name)
        return specification.copy() if specification is not None else None

    def exists(self, name: str) -> bool:
        return self.store.load_pipeline(name) is not None

    def all(self) -> List[PipelineSpecification]:
        return [spec.copy() for spec in self.store.load_all_pipelines()]

    def add(self, specification: PipelineSpecification) -> None:
        """
        Store a new specification.

        Raises:
            ConfigurationError: If a pipeline with the same name exists
        """
        with self._write_lock:
            if self.store.load_pipeline(specification.name) is not None:
                raise ConfigurationError(f"Pipeline with name {specification.name} already exists")
            self.store.store_custom_pipeline(specification.copy())
        logger.info(f"Pipeline {specification.name} added for processor {specification.processor}")

    def remove(self, name: str, processor: str) -> None:
        with self._write_lock:
            self.store.remove_pipeline(name, processor)
        logger.info(f"Pipeline {name} of processor {processor} removed")

    @property
    def default_name(self) -> Optional[str]:
        return self.configuration.default_pipeline

    def set_default(self, name: str) -> None:
        """
        Make a pipeline the process-wide default.

        Raises:
            ConfigurationError: If the pipeline does not exist
        """
        with self._write_lock:
            if self.store.load_pipeline(name) is None:
                raise ConfigurationError(f"No pipeline {name} exist")
            self.configuration.default_pipeline = name

    def resolve_name(self, name: Optional[str]) -> str:
        """
        Effective pipeline name: the one given, else the configured default.

        Raises:
            ConfigurationError: If neither is available
        """
        if name:
            return name
        default = self.default_name
        if not default:
            raise ConfigurationError("No pipeline name given and no default pipeline configured")
        return default

    def resolve(self, name: Optional[str]) -> PipelineSpecification:
        """
        Copy of the effective pipeline specification.

        Raises:
            ConfigurationError: If no pipeline resolves
        """
        effective = self.resolve_name(name)
        specification = self.get(effective)
        if specification is None:
            raise ConfigurationError(f"No pipeline {effective} exist")
        return specification
