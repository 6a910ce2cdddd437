"""GitHub starred-repository client errors."""

from __future__ import annotations


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub request fails or returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> GitHubAPIError:
        """Return an error for non-200 HTTP responses."""
        return cls(f"GitHub returned HTTP {status_code}", status_code=status_code)

    @classmethod
    def network_error(cls, detail: str) -> GitHubAPIError:
        """Return an error for transport failures."""
        return cls(f"GitHub request failed: {detail}")


class GitHubResponseShapeError(RuntimeError):
    """Raised when a GitHub response body cannot be decoded."""

    @classmethod
    def undecodable(cls, detail: str) -> GitHubResponseShapeError:
        """Return an error for a starred page that is not a repository list."""
        return cls(f"GitHub starred response could not be decoded: {detail}")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")
