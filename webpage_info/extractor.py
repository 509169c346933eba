"""
Metadata extraction pipeline.

Turns a parsed document into an HtmlInfo: title, description, language,
canonical/feed URLs, meta tags, OpenGraph, Schema.org JSON-LD, links and
visible text.

Each field is produced by its own pass. Passes don't depend on each other, so
when one hits something unexpected it is logged, noted in HtmlInfo.warnings,
and the rest still run. Partial metadata from a hostile or broken page is
more useful than none.

Pipeline position: after the Preprocessor (which owns decoding and DOM build).
Input:  BeautifulSoup document + optional base URL
Output: HtmlInfo
"""

import re
from typing import Callable, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .schemas import HtmlInfo, Link, Opengraph, SchemaOrg
from .selector_cache import SelectorCache, get_selectors
from .limits import ResourceLimits, DEFAULT_LIMITS
from .opengraph import OG_PREFIX, extend_opengraph
from .schema_org import parse_schema_org
from .logger import get_module_logger

logger = get_module_logger("extractor")

# Link types that identify a feed in <link rel="alternate" type="...">
FEED_MIME_TYPES = frozenset([
    'application/atom+xml',
    'application/rss+xml',
    'application/json',
    'application/xml',
    'text/xml',
])

# Subtrees whose text never renders. Checked once per element while walking
# the tree, so it's a frozenset for O(1) membership.
EXCLUDED_TEXT_TAGS = frozenset([
    'script', 'style', 'noscript', 'template', 'svg', 'iframe', 'object', 'head',
])

WHITESPACE_PATTERN = re.compile(r'\s+')


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(' ', text).strip()


def resolve_url(href: str, base_url: Optional[str]) -> str:
    """
    Resolve href against base_url; keep href verbatim if that isn't possible.

    urljoin handles scheme-relative ("//cdn.example.com/x") and path-relative
    ("../x", "/x") references. It raises ValueError on hosts it can't split,
    such as an unterminated IPv6 literal.
    """
    if not base_url:
        return href
    try:
        return urljoin(base_url, href)
    except ValueError:
        logger.debug(f"Could not resolve {href!r} against {base_url!r}")
        return href


def _attr_text(value) -> Optional[str]:
    """Attribute value as a string; multi-valued attributes (rel) are joined."""
    if value is None:
        return None
    if isinstance(value, list):
        return ' '.join(value)
    return str(value)


def _raw_text(elem: Tag) -> str:
    """
    Concatenated string children of elem, whatever their string class.

    get_text() only counts the string class the tree builder registered for
    the tag (Script for <script>). html5lib never applies those classes, so
    a <script> it builds holds plain NavigableStrings and get_text() is ''.
    """
    return ''.join(str(child) for child in elem.contents if isinstance(child, NavigableString))


class Extractor:
    """Extracts HtmlInfo from a parsed document."""

    def __init__(
        self,
        limits: ResourceLimits = DEFAULT_LIMITS,
        selectors: Optional[SelectorCache] = None
    ):
        self.limits = limits
        self.selectors = selectors or get_selectors()

    def extract(self, soup: BeautifulSoup, base_url: Optional[str] = None) -> HtmlInfo:
        """
        Extract metadata from a document.

        Args:
            soup: Parsed document
            base_url: URL the document was served from, for resolving links

        Returns:
            HtmlInfo (never raises for bad markup)
        """
        info = HtmlInfo()

        self._run_pass("title", info, lambda: setattr(info, "title", self._extract_title(soup)))
        self._run_pass("language", info, lambda: setattr(info, "language", self._extract_language(soup)))
        self._run_pass("canonical", info,
                       lambda: setattr(info, "canonical_url", self._extract_canonical(soup, base_url)))
        self._run_pass("feed", info, lambda: setattr(info, "feed_url", self._extract_feed(soup, base_url)))
        self._run_pass("meta", info, lambda: self._extract_meta_tags(soup, info))
        self._run_pass("schema_org", info, lambda: setattr(info, "schema_org", self._extract_schema_org(soup)))
        self._run_pass("links", info, lambda: setattr(info, "links", self._extract_links(soup, base_url)))
        self._run_pass("text", info, lambda: setattr(info, "text_content", self._extract_text_content(soup)))

        logger.info(
            f"Extracted title={info.title!r}, {len(info.meta)} meta tags, "
            f"{len(info.schema_org)} schema.org items, {len(info.links)} links"
        )
        return info

    def _run_pass(self, name: str, info: HtmlInfo, run: Callable[[], None]) -> None:
        """Run one extraction pass; a failure is recorded, not propagated."""
        try:
            run()
        except Exception as e:
            logger.warning(f"{name} extraction failed: {e}")
            info.warnings.append(f"{name} extraction failed: {e}")

    # --- Single-value lookups (first match wins, absence is None) ---

    def _extract_title(self, soup: BeautifulSoup) -> Optional[str]:
        elem = self.selectors.title.select_one(soup)
        if elem is None:
            return None
        return collapse_whitespace(elem.get_text()) or None

    def _extract_language(self, soup: BeautifulSoup) -> Optional[str]:
        elem = self.selectors.html.select_one(soup)
        if elem is None:
            return None
        lang = (_attr_text(elem.get('lang')) or '').strip()
        return lang or None

    def _extract_canonical(self, soup: BeautifulSoup, base_url: Optional[str]) -> Optional[str]:
        elem = self.selectors.canonical.select_one(soup)
        if elem is None:
            return None
        href = (_attr_text(elem.get('href')) or '').strip()
        return resolve_url(href, base_url) if href else None

    def _extract_feed(self, soup: BeautifulSoup, base_url: Optional[str]) -> Optional[str]:
        for elem in self.selectors.feed.iselect(soup):
            link_type = (_attr_text(elem.get('type')) or '').strip().lower()
            if link_type not in FEED_MIME_TYPES:
                continue
            href = (_attr_text(elem.get('href')) or '').strip()
            if href:
                return resolve_url(href, base_url)
        return None

    # --- Meta tags + OpenGraph ---

    def _extract_meta_tags(self, soup: BeautifulSoup, info: HtmlInfo) -> None:
        """
        Record every <meta> with a key and content, feeding og:* to OpenGraph.

        Key priority is property, then name, then http-equiv. Duplicate keys
        overwrite in info.meta, but description keeps its first value.
        """
        og = Opengraph()

        for elem in self.selectors.meta.iselect(soup):
            content = _attr_text(elem.get('content'))
            if content is None:
                charset = _attr_text(elem.get('charset'))
                if charset:
                    info.meta['charset'] = charset.strip()
                continue

            key = elem.get('property') or elem.get('name') or elem.get('http-equiv')
            key = (_attr_text(key) or '').strip()
            if not key:
                continue

            content = content.strip()
            info.meta[key] = content

            if key.startswith(OG_PREFIX):
                extend_opengraph(og, key[len(OG_PREFIX):], content, self.limits.max_media_items)
            elif key.lower() == 'description' and info.description is None:
                info.description = content or None

        info.opengraph = og

    # --- Schema.org ---

    def _extract_schema_org(self, soup: BeautifulSoup) -> list[SchemaOrg]:
        """Parse every JSON-LD script; the item cap is shared across scripts."""
        items: list[SchemaOrg] = []
        cap = self.limits.max_schema_org_items

        for script in self.selectors.schema_org.iselect(soup):
            remaining = cap - len(items)
            if remaining <= 0:
                break
            items.extend(parse_schema_org(_raw_text(script), max_items=remaining))

        return items

    # --- Links ---

    def _extract_links(self, soup: BeautifulSoup, base_url: Optional[str]) -> list[Link]:
        """Every usable <a href> in document order, up to the link cap. No de-duplication."""
        links: list[Link] = []
        cap = self.limits.max_links
        if cap <= 0:
            return links

        for elem in self.selectors.links.iselect(soup):
            href = (_attr_text(elem.get('href')) or '').strip()
            if not href or href.lower().startswith('javascript:'):
                continue

            links.append(Link(
                url=resolve_url(href, base_url),
                text=collapse_whitespace(elem.get_text()),
                rel=_attr_text(elem.get('rel')),
            ))
            if len(links) >= cap:
                logger.debug(f"Link cap of {cap} reached; ignoring remaining anchors")
                break

        return links

    # --- Visible text ---

    def _extract_text_content(self, soup: BeautifulSoup) -> str:
        """
        Concatenate visible text from <body>, depth first in document order.

        Walks with an explicit stack so deeply nested (hostile) documents
        can't hit the recursion limit. Stops at the text cap and returns the
        prefix gathered so far.
        """
        body = self.selectors.body.select_one(soup)
        if body is None:
            return ''

        cap = self.limits.max_text_length
        pieces: list[str] = []
        length = 0

        # Children are pushed reversed so pops come out in document order
        stack = list(reversed(body.contents))
        while stack and length < cap:
            node = stack.pop()

            if isinstance(node, Tag):
                if node.name in EXCLUDED_TEXT_TAGS:
                    continue
                stack.extend(reversed(node.contents))
                continue

            # Comments, doctypes, CDATA etc. are PreformattedString subclasses
            if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
                continue

            text = collapse_whitespace(str(node))
            if not text:
                continue

            if pieces:
                text = ' ' + text
            remaining = cap - length
            if len(text) > remaining:
                text = text[:remaining]
            pieces.append(text)
            length += len(text)

        return ''.join(pieces)


def extract(soup: BeautifulSoup, base_url: Optional[str] = None) -> HtmlInfo:
    """Convenience function to extract metadata from a parsed document."""
    return Extractor().extract(soup, base_url)
