"""Reduce a filter expression to the single search term upstream accepts.

The registry listing supports one flat substring ``search`` parameter, while
callers may send either a legacy object ``{"appName", "title", "binder"}`` or
a tree of field comparisons joined by ``and``/``or``/``not``::

    {"operator": "and", "conditions": [
        {"field": ["name"], "operator": "contains", "value": "github"},
        {"operator": "not", "condition": {...}},
    ]}

The first comparison value found depth-first wins. Field names and operators
are ignored and ``not`` is not inverted: the upstream cannot express either.
"""

from __future__ import annotations

import typing as typ

_LEGACY_KEYS: tuple[str, ...] = ("appName", "title")
_GROUP_OPERATORS = frozenset({"and", "or"})
_NOT_OPERATOR = "not"


def _leaf_value(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    return text or None


def extract_search_term(where: object) -> str | None:
    """Return the first usable search term in ``where``, or ``None``.

    Parameters
    ----------
    where
        Legacy filter object, comparison tree, or ``None``.

    Returns
    -------
    str | None
        The value of the first leaf comparison, or the legacy ``appName`` /
        ``title``; ``None`` means an unfiltered listing.

    """
    if not isinstance(where, dict):
        return None
    node = typ.cast("dict[str, typ.Any]", where)

    for key in _LEGACY_KEYS:
        legacy = node.get(key)
        if isinstance(legacy, str) and legacy:
            return legacy

    if "field" in node and "value" in node:
        term = _leaf_value(node["value"])
        if term is not None:
            return term

    operator = node.get("operator")
    if operator in _GROUP_OPERATORS:
        conditions = node.get("conditions")
        if isinstance(conditions, list):
            for condition in conditions:
                term = extract_search_term(condition)
                if term is not None:
                    return term
    elif operator == _NOT_OPERATOR:
        return extract_search_term(node.get("condition"))

    return None
