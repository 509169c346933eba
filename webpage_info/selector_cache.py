"""
Pre-compiled CSS selectors shared by every extraction call.

soupsieve compiles a selector string into a matcher object; doing that once
per process instead of once per document keeps repeated extraction cheap.
The cache is built lazily on first use and never mutated afterwards, so any
number of threads can read it without coordination.
"""

import threading
from dataclasses import dataclass
from typing import Optional

import soupsieve
from soupsieve import SoupSieve


@dataclass(frozen=True)
class SelectorCache:
    """Read-only bundle of compiled selectors."""
    title: SoupSieve
    html: SoupSieve
    meta: SoupSieve
    canonical: SoupSieve
    feed: SoupSieve
    body: SoupSieve
    links: SoupSieve
    schema_org: SoupSieve

    @classmethod
    def compile(cls) -> "SelectorCache":
        # rel is a multi-valued attribute in BeautifulSoup, hence ~= rather than =
        return cls(
            title=soupsieve.compile("title"),
            html=soupsieve.compile("html"),
            meta=soupsieve.compile("meta"),
            canonical=soupsieve.compile('link[rel~="canonical"]'),
            feed=soupsieve.compile('link[rel~="alternate"]'),
            body=soupsieve.compile("body"),
            links=soupsieve.compile("a[href]"),
            schema_org=soupsieve.compile('script[type="application/ld+json" i]'),
        )


_selectors: Optional[SelectorCache] = None
_selectors_lock = threading.Lock()


def get_selectors() -> SelectorCache:
    """
    Get or create the process-wide selector cache.

    Double-checked under a lock: after the first call every reader takes the
    lock-free fast path, and concurrent first callers all end up with the
    same instance.
    """
    global _selectors
    if _selectors is None:
        with _selectors_lock:
            if _selectors is None:
                _selectors = SelectorCache.compile()
    return _selectors
