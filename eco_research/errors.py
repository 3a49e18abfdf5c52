# ABOUTME: Typed generation failures and the classifier that maps backend exceptions onto them.
# ABOUTME: Quota exhaustion is the only kind callers branch on; everything else is an upstream failure.

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

QUOTA_MARKERS = ("429", "RESOURCE_EXHAUSTED")


class GenerationError(Exception):
    """Base class for every failure the orchestrator raises."""


class QuotaExceededError(GenerationError):
    """Backend rejected the call for rate or quota exhaustion."""

    def __init__(self, message: str = "API_QUOTA_EXCEEDED"):
        super().__init__(message)


class UpstreamFailureError(GenerationError):
    """Any other backend-call failure; keeps the original message."""

    def __init__(self, original_message: str):
        super().__init__(original_message)
        self.original_message = original_message


class MalformedResponseError(GenerationError):
    """Response text did not parse (even after one repair) or did not match the task schema."""

    def __init__(self, message: str, raw_text: str | None = None):
        super().__init__(message)
        self.raw_text = raw_text


class ErrorClassifier(ABC):
    """Maps an exception raised by a backend call to a GenerationError. Must never raise."""

    @abstractmethod
    def classify(self, error: BaseException) -> GenerationError:
        ...


class SubstringErrorClassifier(ErrorClassifier):
    """Classifies by substring match on the error message."""

    def __init__(self, quota_markers: tuple[str, ...] = QUOTA_MARKERS):
        self.quota_markers = quota_markers

    def classify(self, error: BaseException) -> GenerationError:
        if isinstance(error, GenerationError):
            return error
        message = str(error)
        if any(marker in message for marker in self.quota_markers):
            return QuotaExceededError()
        logger.error("GenAI request error: %s", message, exc_info=error)
        return UpstreamFailureError(message)


_default_classifier = SubstringErrorClassifier()


def classify(error: BaseException) -> GenerationError:
    """Classify with the default substring rule."""
    return _default_classifier.classify(error)
