"""Conversion of OpenNebula pool documents into plain dictionaries."""

import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Union

from oneinv.core.exceptions import PoolParseError


def element_to_dict(element: ET.Element) -> Dict[str, Any]:
    """Convert an element's children into a dictionary.

    Leaf children map to their text exactly as written (empty string when
    the element is empty). Repeated tags collapse into a list.
    """
    result: Dict[str, Any] = {}
    for child in element:
        value: Union[str, Dict[str, Any]]
        if len(child):
            value = element_to_dict(child)
        else:
            value = child.text or ""

        if child.tag in result:
            existing = result[child.tag]
            if not isinstance(existing, list):
                result[child.tag] = existing = [existing]
            existing.append(value)
        else:
            result[child.tag] = value
    return result


def parse_pool(text: Union[str, bytes], root_tag: str, item_tag: str) -> List[Dict[str, Any]]:
    """Parse a pool document such as VM_POOL or HOST_POOL.

    Args:
        text: XML document
        root_tag: Expected root element tag
        item_tag: Tag of each pool member

    Returns:
        One dictionary per pool member, in document order

    Raises:
        PoolParseError: If the document is malformed or has the wrong root
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise PoolParseError(f"Malformed {root_tag} document: {e}") from e

    if root.tag != root_tag:
        raise PoolParseError(f"Expected {root_tag} document, got {root.tag}")

    return [element_to_dict(item) for item in root.findall(item_tag)]


def number_text(value: Any) -> str:
    """Text of a numeric leaf without surrounding whitespace, "" if absent."""
    return value.strip() if isinstance(value, str) else ""
