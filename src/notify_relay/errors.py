"""Relay error taxonomy.

Every error raised on the acquisition or send path is a RelayError. The API
layer renders them as ``{"success": false, "error": ..., "details": ...}``
with the carried HTTP status.
"""


class RelayError(Exception):
    """Base class for errors surfaced to HTTP callers."""

    status_code = 500
    summary = "Relay failure"

    def __init__(self, details: str = "") -> None:
        super().__init__(details or self.summary)
        self.details = details


class InvalidTarget(RelayError):
    """Raised when a phone string contains no digits."""

    status_code = 400
    summary = "Invalid target"


class SessionNotReady(RelayError):
    """Raised when no authenticated WhatsApp connection is live."""

    status_code = 503
    summary = "WhatsApp client not ready"


class DeliveryFailed(RelayError):
    """Raised when the live connection rejects or errors on a send."""

    summary = "Failed to send message"


class MediaError(RelayError):
    """Base class for media acquisition failures."""

    summary = "Failed to acquire image"


class ProbeFailed(MediaError):
    summary = "Content probe failed"


class FetchFailed(MediaError):
    summary = "Image download failed"


class RenderFailed(MediaError):
    summary = "Page render failed"


class EmptyMedia(MediaError):
    summary = "Acquired image is empty"


class MissingParameters(RelayError):
    """Raised when a required query parameter is absent or malformed."""

    status_code = 400
    summary = "Missing or invalid parameters"
