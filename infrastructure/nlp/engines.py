# infrastructure/nlp/engines.py

"""
NLP Engines Loader

Centralized loading and caching of heavyweight NLP models (spaCy pipelines)
shared by all text processors. Models are loaded lazily on first use and
kept for the life of the process.

Author: Graph NLP Platform
Date: 2026
"""

import logging
import threading
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Singleton container for loaded models
_loaded_spacy_models: Dict[str, Any] = {}
_lock = threading.Lock()

# --------------
# spaCy
# --------------

def get_spacy_model(model_name: str = "en_core_web_sm") -> Any:
    """
    Loads and caches a spaCy model.

    Args:
        model_name: Name of spaCy model (default: "en_core_web_sm")

    Returns:
        Loaded spaCy Language object
    """
    with _lock:
        if model_name not in _loaded_spacy_models:
            try:
                import spacy
                logger.info(f"Loading spaCy model: {model_name}")
                _loaded_spacy_models[model_name] = spacy.load(model_name)
            except Exception as e:
                logger.error(f"Failed to load spaCy model '{model_name}': {e}")
                raise
        return _loaded_spacy_models[model_name]

# --------------
# Utility: Clear all loaded models (for testing/reloading)
# --------------

def clear_all_nlp_engines():
    """Clears all loaded/cached NLP models (for test/dev only)."""
    with _lock:
        _loaded_spacy_models.clear()
    logger.info("Cleared all NLP engine caches.")
