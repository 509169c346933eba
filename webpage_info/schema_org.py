"""
Schema.org JSON-LD parsing.

A JSON-LD script can hold a single object, an array of objects, or an object
whose "@graph" key holds an array of objects. All three shapes flatten into a
list of SchemaOrg items. Anything else (scalars, non-object array entries) is
ignored; broken JSON yields no items rather than an error.
"""

import json
from typing import Any, Iterator, Optional

from .schemas import SchemaOrg
from .logger import get_module_logger

logger = get_module_logger("schema_org")


def _schema_type(node: dict) -> Optional[str]:
    declared = node.get("@type")
    if isinstance(declared, str):
        return declared
    if isinstance(declared, list):
        # Multiple types: keep the first string one
        for entry in declared:
            if isinstance(entry, str):
                return entry
    return None


def _candidates(node: Any) -> list:
    """Flatten a decoded JSON-LD document into its candidate item nodes."""
    if isinstance(node, list):
        return node
    if isinstance(node, dict):
        graph = node.get("@graph")
        if isinstance(graph, list):
            return graph
        return [node]
    return []


def iter_items(node: Any) -> Iterator[SchemaOrg]:
    """Yield a SchemaOrg item for every object in a decoded JSON-LD document."""
    for candidate in _candidates(node):
        if not isinstance(candidate, dict):
            continue
        yield SchemaOrg(schema_type=_schema_type(candidate), value=candidate)


def parse_schema_org(content: str, max_items: Optional[int] = None) -> list[SchemaOrg]:
    """
    Parse the text of one JSON-LD script.

    Args:
        content: Raw script text
        max_items: Stop after this many items (None for no cap)

    Returns:
        Items in document order; empty if the JSON is invalid
    """
    if max_items is not None and max_items <= 0:
        return []

    try:
        node = json.loads(content)
    except ValueError as e:
        logger.debug(f"Skipping invalid JSON-LD: {e}")
        return []
    except RecursionError:
        # Pathologically nested arrays/objects exhaust the decoder's stack
        logger.debug("Skipping JSON-LD nested too deeply to decode")
        return []

    items = []
    for item in iter_items(node):
        items.append(item)
        if max_items is not None and len(items) >= max_items:
            break
    return items
