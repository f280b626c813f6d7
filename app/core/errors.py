"""Curation error taxonomy.

Every failure the pipeline surfaces to a caller is one of these. Each
carries the ``ErrorKind`` that ends up in the ``{errorKind, message}``
response body and the HTTP status it is served with.
"""

from ..models import ErrorKind


class CurationError(Exception):
    """Base class for errors surfaced to API callers."""

    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR
    status_code: int = 502
    default_message = "Failed to curate videos"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class QuotaExhaustedError(CurationError):
    """Every configured API key returned quota-exceeded for today."""

    kind = ErrorKind.QUOTA_EXCEEDED_DAILY
    status_code = 429
    default_message = (
        "Daily YouTube quota exhausted on all API keys. "
        "Quota resets at midnight Pacific time, please try again tomorrow."
    )


class InvalidKeyError(CurationError):
    """An API key was rejected as invalid (operator must fix configuration)."""

    kind = ErrorKind.INVALID_KEY
    status_code = 500
    default_message = "YouTube API key is invalid"


class AccessDeniedError(CurationError):
    """The API denied access for a reason other than quota."""

    kind = ErrorKind.ACCESS_DENIED
    status_code = 500
    default_message = "YouTube API access denied"


class NoResultsError(CurationError):
    """No candidates survived deduplication and duration filtering."""

    kind = ErrorKind.NO_RESULTS
    status_code = 404
    default_message = "No videos found for this topic, try rephrasing it"


class NoRelevantResultsError(CurationError):
    """Candidates existed but too few were relevant to build a path."""

    kind = ErrorKind.NO_RELEVANT_RESULTS
    status_code = 404
    default_message = "No sufficiently relevant videos found, try rephrasing the topic"


class InvalidRequestError(CurationError):
    """The request itself is unusable (e.g. an empty topic)."""

    kind = ErrorKind.INVALID_REQUEST
    status_code = 422
    default_message = "Search query is required"


class UpstreamError(CurationError):
    """Generic external-service failure."""

    kind = ErrorKind.UPSTREAM_ERROR
    status_code = 502
    default_message = "YouTube API request failed"
