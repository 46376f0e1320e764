# infrastructure/extensions/loader.py

"""
Extension Loader

Discovers installed platform components through package entry points and
resolves ``"module:attribute"`` import paths. Used for extensions, text
processors, enrichers and workflow components named in configuration.
"""

import importlib
import logging
from importlib.metadata import entry_points
from typing import Any, Dict

from domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def load_object(path: str) -> Any:
    """
    Import the object named by ``"package.module:Attribute"``.

    Raises:
        ConfigurationError: If the path is malformed or cannot be imported
    """
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigurationError(f"Invalid import path '{path}', expected 'module:attribute'")
    try:
        target = importlib.import_module(module_name)
        for part in attribute.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import '{path}': {e}") from e
    return target


def load_entry_points(group: str) -> Dict[str, Any]:
    """
    Load every entry point of a group.

    Entry points that fail to import are logged and skipped so one broken
    distribution does not keep the platform from starting.

    Returns:
        Mapping of entry-point name to the loaded object
    """
    loaded: Dict[str, Any] = {}
    for entry_point in entry_points(group=group):
        try:
            loaded[entry_point.name] = entry_point.load()
            logger.info(f"Loaded {group} entry point {entry_point.name} ({entry_point.value})")
        except Exception as e:
            logger.error(f"Failed to load {group} entry point {entry_point.name}: {e}")
    return loaded
