"""
Extension Plugin Interfaces

This module defines the contract that platform extensions implement.
Extensions are discovered from the ``nlp_extensions`` entry-point group (or
handed to the context explicitly), notified once the platform context is
ready, and given the chance to subscribe to platform events. The core never
depends on any particular extension.

Example ``setup.py`` registration:

    entry_points={
        "nlp_extensions": [
            "annotation_metrics=plugins.extensions.annotation_metrics:AnnotationMetricsExtension",
        ],
    }
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from infrastructure.events.dispatcher import EventDispatcher


class NLPExtension(ABC):
    """
    Abstract base class for platform extensions.

    Design Principles:
    - Extensions are independent: a failing listener never affects the
      publisher or other listeners
    - Extensions must not assume a registration order relative to others
    """

    @property
    def name(self) -> str:
        """Unique extension name. Defaults to the class name."""
        return type(self).__name__

    def post_loaded(self, context: Any) -> None:
        """
        Called once after the extension is loaded into a context.

        Default implementation does nothing.
        """
        pass

    @abstractmethod
    def register_event_listeners(self, dispatcher: EventDispatcher) -> None:
        """Subscribe this extension's listeners on the dispatcher."""
        pass

    def get_extension_version(self) -> str:
        return "1.0.0"


# Type aliases for clarity
ExtensionRegistry = Dict[str, NLPExtension]
