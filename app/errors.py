"""
Exception hierarchy for the transcript service.

Every exception carries the HTTP status code it maps to at the transport
boundary. Handlers in ``app.main`` turn them into ``{"error": message}`` JSON
responses.
"""

from typing import Any, Dict, Optional


class TranscriptServiceError(Exception):
    """Base class for all errors raised by the service."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TranscriptServiceError):
    """Missing or malformed request data (bad URL, empty payload)."""

    status_code = 400


class TranscriptError(TranscriptServiceError):
    """Base class for transcript provider failures."""

    status_code = 404


class TranscriptNotFoundError(TranscriptError):
    """The upstream has no captions for the video or requested language."""


class VideoUnavailableError(TranscriptError):
    """The video itself cannot be accessed (private, deleted, age-restricted)."""


class ProviderError(TranscriptError):
    """Any other upstream transcript failure (network, parsing, rate limit)."""


class GenerationError(TranscriptServiceError):
    """The generative-text service failed or is not configured."""

    status_code = 502


class CompositionError(TranscriptServiceError):
    """
    Article composition failed after all attempts.

    ``partial`` holds whatever transcript data was computed before the failure
    so the caller can still return it.
    """

    status_code = 500

    def __init__(self, message: str, partial: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.partial = partial


class InputTooShortError(CompositionError):
    """The transcript has too little text to compose an article from."""

    status_code = 400


class InternalError(TranscriptServiceError):
    """Unexpected failure."""

    status_code = 500
