"""
OpenGraph accumulation.

og:* meta tags arrive one at a time in document order. Scalar properties map
straight onto Opengraph fields; media properties follow the ogp.me "structured
property" rule: og:image (or og:image:url) starts a new image, and the
og:image:* tags after it describe that image until the next og:image.
"""

from typing import Optional

from .schemas import Opengraph, OpengraphMedia
from .limits import DEFAULT_MAX_MEDIA_ITEMS

OG_PREFIX = "og:"

SCALAR_FIELDS = {
    "type": "og_type",
    "title": "title",
    "description": "description",
    "url": "url",
    "site_name": "site_name",
    "locale": "locale",
}

MEDIA_KINDS = {
    "image": "images",
    "video": "videos",
    "audio": "audios",
}


def _parse_dimension(content: str) -> Optional[int]:
    try:
        value = int(content.strip())
    except ValueError:
        return None
    return value if value >= 0 else None


def _split_media_property(prop: str) -> Optional[tuple[str, str]]:
    """'image:width' → ('image', 'width'), 'image' → ('image', ''), 'imagery' → None."""
    kind, _, suffix = prop.partition(":")
    if kind not in MEDIA_KINDS:
        return None
    return kind, suffix


def extend_media(
    collection: list[OpengraphMedia],
    suffix: str,
    content: str,
    max_items: int = DEFAULT_MAX_MEDIA_ITEMS
) -> None:
    """Apply one media sub-property (suffix '' or 'url' opens a new item)."""
    if suffix in ("", "url"):
        if len(collection) < max_items:
            collection.append(OpengraphMedia(url=content))
        return

    # Modifiers describe the most recent item; with none open there is
    # nothing to attach to and the tag is dropped.
    if not collection:
        return
    media = collection[-1]

    if suffix == "secure_url":
        media.secure_url = content
    elif suffix == "type":
        media.mime_type = content
    elif suffix == "width":
        media.width = _parse_dimension(content)
    elif suffix == "height":
        media.height = _parse_dimension(content)
    elif suffix == "alt":
        media.alt = content
    else:
        media.properties[suffix] = content


def extend_opengraph(
    og: Opengraph,
    prop: str,
    content: str,
    max_media_items: int = DEFAULT_MAX_MEDIA_ITEMS
) -> None:
    """
    Fold one OpenGraph property into og.

    Args:
        og: The Opengraph being built (mutated in place)
        prop: Property name without the "og:" prefix (e.g. "image:width")
        content: The meta tag's content attribute
        max_media_items: Cap on new items per media category
    """
    if prop in SCALAR_FIELDS:
        setattr(og, SCALAR_FIELDS[prop], content)
        return

    if prop == "locale:alternate":
        og.locale_alternates.append(content)
        return

    media_prop = _split_media_property(prop)
    if media_prop is not None:
        kind, suffix = media_prop
        extend_media(getattr(og, MEDIA_KINDS[kind]), suffix, content, max_media_items)
        return

    og.properties[prop] = content
