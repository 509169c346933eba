"""
Resource limits applied to untrusted documents.

Every bounded collection in the extractor and the streaming reader in the
fetcher consult one of these thresholds. Reaching a limit drops further input;
it never raises and never shortens what was already accepted.
"""

from dataclasses import dataclass

DEFAULT_MAX_LINKS = 10_000
DEFAULT_MAX_SCHEMA_ORG_ITEMS = 100
DEFAULT_MAX_TEXT_LENGTH = 1_000_000      # characters of extracted text
DEFAULT_MAX_MEDIA_ITEMS = 100            # per OpenGraph category (image/video/audio)
DEFAULT_MAX_BODY_SIZE = 10 * 1024 * 1024  # 10 MiB of decoded response body


@dataclass(frozen=True)
class ResourceLimits:
    """Caps for a single extraction or fetch."""
    max_links: int = DEFAULT_MAX_LINKS
    max_schema_org_items: int = DEFAULT_MAX_SCHEMA_ORG_ITEMS
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH
    max_media_items: int = DEFAULT_MAX_MEDIA_ITEMS
    max_body_size: int = DEFAULT_MAX_BODY_SIZE


DEFAULT_LIMITS = ResourceLimits()
