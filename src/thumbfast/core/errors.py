"""Exception hierarchy for the Thumbfast core.

The API layer maps these onto HTTP responses:

- :class:`InvalidRequestError` → 400
- :class:`GenerationFailedError` → 500
- :class:`HistoryStoreError` → 503 on the history endpoints
- :class:`AccessDeniedError` → 401, raised before the body is validated

:class:`RemoteModelError` never reaches the API directly; the orchestrator
absorbs it per variant.  The generation session logs
:class:`HistoryStoreError` instead of raising it, so losing history never
blocks a generation.
"""

from __future__ import annotations


class ThumbfastError(Exception):
    """Base class for all Thumbfast errors."""


class InvalidRequestError(ThumbfastError):
    """The generation request is missing a prompt or an output mode."""


class GenerationFailedError(ThumbfastError):
    """The batch could not be dispatched, or the remote service was unusable."""


class RemoteModelError(ThumbfastError):
    """A single call to the remote model returned a non-success response.

    Attributes:
        status_code: HTTP status returned by the remote service.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HistoryStoreError(ThumbfastError):
    """The history database could not be written."""


class AccessDeniedError(ThumbfastError):
    """The shared access password is missing or does not match."""
