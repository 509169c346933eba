"""
webpage_info

Extract metadata from untrusted web pages: title, description, language,
canonical and feed URLs, meta tags, OpenGraph, Schema.org JSON-LD, links and
visible text. Optionally fetch the page first, behind an SSRF guard with
per-hop redirect checks, a body size cap and an overall timeout.

Public API surface:
  Entry points  : parse_html, parse_html_file, fetch_webpage, WebpageParser
  Data models   : HtmlInfo, Opengraph, OpengraphMedia, SchemaOrg, Link,
                  HttpInfo, WebpageInfo
  Configuration : FetchOptions, ResourceLimits
  Error types   : ParseError (parse path), FetchError and subclasses (network path)
"""

# --- Entry points ---
from .main import WebpageParser, parse_html, parse_html_file, fetch_webpage

# --- Pipeline stages (for callers who already hold a parsed document) ---
from .preprocessor import Preprocessor
from .extractor import Extractor
from .fetcher import fetch

# --- Data models ---
from .schemas import (
    HtmlInfo,
    Opengraph,
    OpengraphMedia,
    SchemaOrg,
    Link,
    HttpInfo,
    WebpageInfo,
)

# --- Configuration ---
from .config import FetchOptions
from .limits import ResourceLimits, DEFAULT_LIMITS

# --- Exceptions ---
from .exceptions import (
    WebpageInfoError,
    ParseError,
    FetchError,
    InvalidUrlError,
    SsrfBlockedError,
    BodyTooLargeError,
    FetchTimeoutError,
    HTTPStatusError,
    TooManyRedirectsError,
    TransportError,
    InvalidContentTypeError,
)

__version__ = "1.0.0"
__all__ = [
    "WebpageParser",
    "parse_html",
    "parse_html_file",
    "fetch_webpage",
    "Preprocessor",
    "Extractor",
    "fetch",
    "HtmlInfo",
    "Opengraph",
    "OpengraphMedia",
    "SchemaOrg",
    "Link",
    "HttpInfo",
    "WebpageInfo",
    "FetchOptions",
    "ResourceLimits",
    "DEFAULT_LIMITS",
    "WebpageInfoError",
    "ParseError",
    "FetchError",
    "InvalidUrlError",
    "SsrfBlockedError",
    "BodyTooLargeError",
    "FetchTimeoutError",
    "HTTPStatusError",
    "TooManyRedirectsError",
    "TransportError",
    "InvalidContentTypeError",
]
