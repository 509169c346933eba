"""
Main orchestrator for webpage_info.

Two entry points:
  parse: HTML text (or bytes, or a file) → Preprocessor → Extractor → HtmlInfo
  fetch: URL → SSRF guard + bounded fetch → Preprocessor → Extractor → WebpageInfo

Parsing is synchronous and CPU-bound. Fetching suspends only on network I/O.
"""

from pathlib import Path
from typing import Optional, Union

import httpx

from .preprocessor import Preprocessor
from .extractor import Extractor
from .fetcher import fetch
from .config import FetchOptions
from .schemas import HtmlInfo, WebpageInfo
from .ssrf import Resolver
from .exceptions import InvalidContentTypeError
from .logger import get_module_logger, setup_logger

logger = get_module_logger("main")

# Fetched documents must look like markup; anything else has no metadata to extract
HTML_CONTENT_TYPE_MARKERS = ("html", "xml")


class WebpageParser:
    """
    Main orchestrator.

    Coordinates the pipeline:
    1. (fetch only) SSRF guard + bounded streaming fetch
    2. Preprocessor: decode, sanitize, build the document tree
    3. Extractor: metadata passes
    """

    def __init__(
        self,
        extractor: Optional[Extractor] = None,
        log_level: Optional[int] = None
    ):
        if log_level is not None:
            setup_logger(level=log_level)

        self.preprocessor = Preprocessor()
        self.extractor = extractor or Extractor()

    def parse(self, html: str, base_url: Optional[str] = None) -> HtmlInfo:
        """
        Extract metadata from HTML text.

        Args:
            html: HTML document
            base_url: URL the document came from, used to resolve relative links

        Returns:
            HtmlInfo

        Raises:
            ParseError: Only if no tree builder can parse the document
        """
        soup, warnings = self.preprocessor.parse(html)
        info = self.extractor.extract(soup, base_url)

        # Preprocessing warnings go first: they happened first
        info.warnings[:0] = warnings
        return info

    def parse_bytes(
        self,
        raw_bytes: bytes,
        base_url: Optional[str] = None,
        content_type: Optional[str] = None
    ) -> HtmlInfo:
        """Decode raw bytes (Content-Type charset, then <meta>, then UTF-8) and parse."""
        html, _ = self.preprocessor.decode(raw_bytes, content_type)
        return self.parse(html, base_url)

    def parse_file(self, file_path: Union[str, Path], base_url: Optional[str] = None) -> HtmlInfo:
        """Parse an HTML file, detecting its charset from the bytes."""
        return self.parse_bytes(Path(file_path).read_bytes(), base_url)

    async def fetch(
        self,
        url: str,
        options: Optional[FetchOptions] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        resolver: Optional[Resolver] = None
    ) -> WebpageInfo:
        """
        Fetch url and extract its metadata.

        Relative links resolve against the final URL after redirects.

        Raises:
            FetchError subclasses from the network path, InvalidContentTypeError
            for non-HTML responses, ParseError if the body can't be parsed
        """
        http_info = await fetch(url, options, transport=transport, resolver=resolver)

        content_type = http_info.content_type
        if content_type and not any(marker in content_type for marker in HTML_CONTENT_TYPE_MARKERS):
            raise InvalidContentTypeError(
                f"Expected HTML, got {content_type}",
                content_type=content_type, details={"url": http_info.url}
            )

        html_info = self.parse(http_info.body, base_url=http_info.url)
        logger.info(f"Complete: {http_info.url}")
        return WebpageInfo(http=http_info, html=html_info)


def parse_html(html: str, base_url: Optional[str] = None) -> HtmlInfo:
    """Convenience function to parse HTML text."""
    return WebpageParser().parse(html, base_url)


def parse_html_file(file_path: Union[str, Path], base_url: Optional[str] = None) -> HtmlInfo:
    """Convenience function to parse an HTML file."""
    return WebpageParser().parse_file(file_path, base_url)


async def fetch_webpage(url: str, options: Optional[FetchOptions] = None) -> WebpageInfo:
    """Convenience function to fetch a URL and extract its metadata."""
    return await WebpageParser().fetch(url, options)
