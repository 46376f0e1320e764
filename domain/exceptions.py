"""
Exception Hierarchy for the Graph NLP Platform

Configuration and state errors are raised straight to the caller; processing
failures raised inside a workflow run are recorded on the task instead.
"""

from typing import Optional


class NLPError(Exception):
    """Base exception for all platform errors."""
    pass


class ConfigurationError(NLPError):
    """Raised when a named pipeline, processor or workflow component is missing or invalid."""
    pass


class UnsupportedLanguageError(NLPError):
    """Raised when the detected language is unsupported and strict checking was requested."""

    def __init__(self, language: Optional[str]):
        self.language = language
        super().__init__(f"Unsupported language : {language}")


class InvalidStateError(NLPError):
    """Raised when an operation is attempted from a disallowed task state."""
    pass


class ProcessingFailure(NLPError):
    """Raised by inputs, processors or outputs when an entry cannot be handled."""
    pass
