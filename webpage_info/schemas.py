"""
Pydantic schemas for everything webpage_info hands back to callers.

Data flow:
  raw HTML → Extractor → HtmlInfo (title, meta, Opengraph, SchemaOrg, Link ...)
  URL → fetcher → HttpInfo → Extractor → HtmlInfo; both wrapped in WebpageInfo

Every model owns plain Python data (str/int/dict/list). Nothing keeps a
reference to soup nodes or network buffers, so a result outlives the document
and the connection it came from.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


# --- OpenGraph ---

class OpengraphMedia(BaseModel):
    """An og:image, og:video or og:audio entry with its sub-properties."""
    url: str
    secure_url: Optional[str] = None
    mime_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    alt: Optional[str] = None
    properties: dict[str, str] = Field(default_factory=dict)


class Opengraph(BaseModel):
    """OpenGraph protocol data (https://ogp.me/) collected from og:* meta tags."""
    og_type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    site_name: Optional[str] = None
    locale: Optional[str] = None
    locale_alternates: list[str] = Field(default_factory=list)
    images: list[OpengraphMedia] = Field(default_factory=list)
    videos: list[OpengraphMedia] = Field(default_factory=list)
    audios: list[OpengraphMedia] = Field(default_factory=list)
    properties: dict[str, str] = Field(default_factory=dict)  # og:* keys with no dedicated field

    def is_empty(self) -> bool:
        return (
            self.og_type is None
            and self.title is None
            and self.description is None
            and self.url is None
            and not self.images
        )


# --- Schema.org ---

class SchemaOrg(BaseModel):
    """
    One Schema.org item from a JSON-LD script.

    value holds the decoded JSON as-is. The get_* accessors never raise:
    a missing key or a value of the wrong JSON type gives None, which is what
    you want when reading markup written by strangers.
    """
    schema_type: Optional[str] = None
    value: Any = None

    def get(self, key: str) -> Any:
        if isinstance(self.value, dict):
            return self.value.get(key)
        return None

    def get_str(self, key: str) -> Optional[str]:
        found = self.get(key)
        return found if isinstance(found, str) else None

    def get_int(self, key: str) -> Optional[int]:
        found = self.get(key)
        # bool is an int subclass; JSON true/false are not numbers
        if isinstance(found, int) and not isinstance(found, bool):
            return found
        return None

    def get_float(self, key: str) -> Optional[float]:
        found = self.get(key)
        if isinstance(found, (int, float)) and not isinstance(found, bool):
            return float(found)
        return None

    def get_bool(self, key: str) -> Optional[bool]:
        found = self.get(key)
        return found if isinstance(found, bool) else None

    def get_object(self, key: str) -> Optional[dict]:
        found = self.get(key)
        return found if isinstance(found, dict) else None

    def get_array(self, key: str) -> Optional[list]:
        found = self.get(key)
        return found if isinstance(found, list) else None

    def get_text(self, key: str) -> Optional[str]:
        """String value, or a number rendered as text (e.g. "price": 9.99)."""
        found = self.get(key)
        if isinstance(found, str):
            return found
        if isinstance(found, (int, float)) and not isinstance(found, bool):
            return str(found)
        return None


# --- Document ---

class Link(BaseModel):
    """An <a href> found in the document."""
    url: str                    # Resolved against the base URL when possible, else the raw href
    text: str = ""              # Anchor text with whitespace collapsed
    rel: Optional[str] = None


class HtmlInfo(BaseModel):
    """Metadata extracted from one HTML document."""
    title: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None
    canonical_url: Optional[str] = None
    feed_url: Optional[str] = None
    text_content: str = ""
    meta: dict[str, str] = Field(default_factory=dict)
    opengraph: Opengraph = Field(default_factory=Opengraph)
    schema_org: list[SchemaOrg] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)  # Passes that failed and were skipped


# --- Network ---

class HttpInfo(BaseModel):
    """What the fetcher saw on the wire for the final hop."""
    url: str                                  # Final URL after redirects
    status_code: int
    headers: list[tuple[str, str]] = Field(default_factory=list)
    content_type: Optional[str] = None        # Mime type only, parameters stripped
    redirect_count: int = 0
    remote_address: Optional[str] = None      # The validated IP the request was sent to
    body: str = ""


class WebpageInfo(BaseModel):
    """Fetch result: transfer details plus the extracted metadata."""
    http: HttpInfo
    html: HtmlInfo
