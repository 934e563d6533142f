"""
Typed custom-field lookup on a board item.

A board item carries a heterogeneous list of field values; each node names its
field and fills exactly one typed slot (text, single-select label, number,
date or iteration title). Lookups are by field name, case-insensitive, trying
aliases in order. No coercion happens here.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional

# typed slots, in the order they are read
VALUE_SLOTS = ("text", "name", "number", "date", "title")


def field_nodes(item: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Field value nodes of an item, whether wrapped in a GraphQL connection or not."""
    fv = (item or {}).get("fieldValues") or []
    if isinstance(fv, dict):
        fv = fv.get("nodes") or []
    return [n for n in fv if isinstance(n, dict)]


def field_name(node: Dict[str, Any]) -> Optional[str]:
    field = node.get("field")
    if isinstance(field, dict):
        return field.get("name")
    return node.get("fieldName")


def node_value(node: Dict[str, Any]) -> Any:
    for slot in VALUE_SLOTS:
        val = node.get(slot)
        if val is not None:
            return val
    return node.get("value")


def extract_field(nodes: Iterable[Dict[str, Any]], *aliases: str) -> Any:
    """
    First populated value whose field name matches one of `aliases`.
    Earlier aliases win over later ones regardless of node order; None if absent.
    """
    by_name: Dict[str, Any] = {}
    for node in nodes:
        name = field_name(node)
        if not name:
            continue
        key = name.lower()
        if key in by_name:
            continue
        val = node_value(node)
        if val is not None:
            by_name[key] = val
    for alias in aliases:
        val = by_name.get(alias.lower())
        if val is not None:
            return val
    return None
