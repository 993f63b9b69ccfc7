"""
Path-based navigation over the loosely-typed trees produced by xmltodict.

xmltodict turns an element into one of three shapes:

- a plain string (or ``None`` for an empty element) when it only has text,
- a dict when it has children or attributes; attributes are stored under
  ``@``-prefixed keys and the text of a mixed element under ``#text``,
- a list when the element occurs more than once in its parent.

Every helper here is total: a missing key, a type mismatch or an index out of
range produces ``None`` / ``""`` / ``[]`` and never an exception.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

GenericNode = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]

TEXT_KEY = "#text"
ATTR_PREFIX = "@"


def dig(tree: GenericNode, path: str) -> Optional[GenericNode]:
    """
    Walk ``tree`` along a dot-separated ``path``.

    Mapping nodes are indexed by key. Sequence nodes accept a purely numeric
    segment as a list index, so ``"ApplicableTradeTax.0.RateApplicablePercent"``
    reaches into the first entry of a repeated element. Any other step
    returns ``None``.
    """
    current: GenericNode = tree
    for key in path.split("."):
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and key.isascii() and key.isdigit():
            index = int(key)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def text(tree: GenericNode, path: str) -> str:
    """
    Resolve ``path`` and return its text content, or ``""`` when absent.

    Elements that carry attributes parse to ``{"#text": ..., "@attr": ...}``;
    for those the ``#text`` entry is returned. Sequences are not flattened.
    """
    value = dig(tree, path)
    if value is None:
        return ""
    if isinstance(value, dict):
        inner = value.get(TEXT_KEY)
        return str(inner) if inner is not None else ""
    if isinstance(value, list):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def as_sequence(value: GenericNode) -> List[GenericNode]:
    """
    Normalize a repeatable element to a list.

    xmltodict only produces a list when an element occurs more than once
    (or is listed in ``force_list``), so every consumer of a repeatable
    element passes it through here.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def attribute(node: GenericNode, name: str) -> Optional[str]:
    """
    Read attribute ``name`` (without the ``@`` prefix) from an element node.
    """
    if not isinstance(node, dict):
        return None
    value = node.get(ATTR_PREFIX + name)
    return str(value) if value is not None else None
