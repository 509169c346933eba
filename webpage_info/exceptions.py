"""
Exceptions raised by webpage_info.

Error philosophy:
  - Extraction never raises for bad markup. A failed pass (one broken JSON-LD
    script, one unresolvable href) is logged and left out of the result.
  - ParseError   → FAIL HARD: no tree builder could produce a document at all.
  - FetchError   → FAIL HARD: every network-path failure surfaces as one of the
                   typed subclasses below. Nothing is retried internally.
  - Hitting a resource limit is never an error; the collection is truncated.
"""

from typing import Optional


class WebpageInfoError(Exception):
    """Base exception for all webpage_info errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> dict:
        """Convert to a JSON-serializable error payload."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details
        }


class ParseError(WebpageInfoError):
    """Raised when the document cannot be tokenized by any tree builder."""
    pass


# --- Network path ---

class FetchError(WebpageInfoError):
    """Base class for every failure on the fetch path."""
    pass


class InvalidUrlError(FetchError):
    """The URL could not be parsed or has no scheme or host."""
    pass


class SsrfBlockedError(FetchError):
    """
    The target (or a redirect destination) uses a scheme other than
    http/https, is an internal host, or resolves to a loopback, private,
    link-local or otherwise reserved address.
    """

    def __init__(
        self,
        message: str,
        host: str,
        address: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.host = host
        self.address = address  # None when the hostname itself was rejected


class BodyTooLargeError(FetchError):
    """The decoded response body grew past FetchOptions.max_body_size."""

    def __init__(self, message: str, limit: int, details: Optional[dict] = None):
        super().__init__(message, details)
        self.limit = limit


class FetchTimeoutError(FetchError):
    """The whole operation (connect, redirects, body) exceeded the timeout."""

    def __init__(self, message: str, timeout: float, details: Optional[dict] = None):
        super().__init__(message, details)
        self.timeout = timeout


class HTTPStatusError(FetchError):
    """The remote answered with a non-success status code."""

    def __init__(self, message: str, status_code: int, url: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.status_code = status_code
        self.url = url


class TooManyRedirectsError(FetchError):
    """The redirect chain was longer than FetchOptions.max_redirects."""

    def __init__(self, message: str, max_redirects: int, details: Optional[dict] = None):
        super().__init__(message, details)
        self.max_redirects = max_redirects


class TransportError(FetchError):
    """DNS, connection or TLS failure from the underlying transport."""
    pass


class InvalidContentTypeError(FetchError):
    """The response is not HTML or XML, so there is nothing to extract."""

    def __init__(self, message: str, content_type: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.content_type = content_type
