"""Namespace-agnostic element and attribute access over ElementTree."""

# Module responsibilities:
# - Parse small XML parts and report parse failures with the part path attached.
# - Offer local-name lookups so callers read only the attributes they care about.

from __future__ import annotations

from typing import Iterator, Optional
from xml.etree import ElementTree as ET

from .errors import MalformedFragmentError

NS_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"


def parse_fragment(text: str, *, part: str = "<fragment>") -> ET.Element:
    """Parse ``text`` and return its root element.

    Raises:
        MalformedFragmentError: When the text is not well-formed XML.
    """

    try:
        return ET.fromstring(text)
    except ET.ParseError as exc:
        raise MalformedFragmentError(part, str(exc)) from exc


def local_name(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    return tag.split(":", 1)[-1]


def iter_local(root: ET.Element, name: str) -> Iterator[ET.Element]:
    """Yield descendants (and root) whose local tag name is ``name``, in document order."""

    for element in root.iter():
        if isinstance(element.tag, str) and local_name(element.tag) == name:
            yield element


def find_local(element: ET.Element, name: str) -> Optional[ET.Element]:
    """Return the first descendant with local name ``name``, or None."""

    for candidate in iter_local(element, name):
        if candidate is not element:
            return candidate
    return None


def attr(element: ET.Element, name: str, namespace: Optional[str] = None) -> Optional[str]:
    """Read an attribute by local name, optionally namespace-qualified."""

    if namespace:
        return element.get(f"{{{namespace}}}{name}")
    return element.get(name)
