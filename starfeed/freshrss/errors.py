"""FreshRSS Google Reader API errors."""

from __future__ import annotations

# Body excerpt length kept in error messages
_BODY_PREVIEW_LIMIT = 200


class FreshRSSError(Exception):
    """Base class for every FreshRSS client failure."""


class FreshRSSAPIError(FreshRSSError):
    """Raised when a FreshRSS request fails or returns an error status.

    Attributes
    ----------
    status_code
        HTTP status code of the response, when one was received.

    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> FreshRSSAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(
            f"FreshRSS returned an http error code {status_code}",
            status_code=status_code,
        )

    @classmethod
    def network_error(cls, detail: str) -> FreshRSSAPIError:
        """Return an error for transport failures."""
        return cls(f"FreshRSS request failed: {detail}")


class FreshRSSAuthError(FreshRSSError):
    """Raised when a FreshRSS session cannot be established or is missing."""

    @classmethod
    def missing_token(cls) -> FreshRSSAuthError:
        """Return an error when ClientLogin did not return ``Auth=``."""
        return cls("unable to parse FreshRSS auth response")

    @classmethod
    def not_authenticated(cls) -> FreshRSSAuthError:
        """Return an error for calls made before :meth:`authenticate`."""
        return cls("FreshRSS client is not authenticated")


class FreshRSSResponseShapeError(FreshRSSError):
    """Raised when a FreshRSS response body cannot be decoded."""

    @classmethod
    def undecodable(cls, endpoint: str, body: bytes) -> FreshRSSResponseShapeError:
        """Return an error quoting the start of the offending body."""
        preview = body[:_BODY_PREVIEW_LIMIT].decode("utf-8", errors="replace")
        return cls(f"FreshRSS {endpoint} response could not be decoded: {preview}")
