# storefront/core/attributes.py
"""
Canonical form for attribute selections.

A selection is a JSON-like mapping (`{"size": "M", "color": "red"}`),
possibly nested (`{"print": {"sides": 2, "finish": "matte"}}`). Two
selections describe the same cart line iff their canonical serialized
forms are byte-identical, so `{color, size}` and `{size, color}` merge.
"""

import json
from typing import Any

AttributeMap = dict[str, Any]


def canonicalize(value: Any) -> Any:
    """
    Recursively sort mapping keys at every nesting level.

    Lists keep their element order (order is meaningful there) but their
    elements are canonicalized too. Scalars are returned unchanged.
    """
    if isinstance(value, dict):
        return {str(k): canonicalize(value[k]) for k in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [canonicalize(v) for v in value]
    return value


def attributes_key(selection: AttributeMap | None) -> str:
    """
    Serialized canonical form used for equality and the DB unique key.

    `None` and `{}` are the same (no selection).
    """
    canonical = canonicalize(selection or {})
    return json.dumps(canonical, separators=(",", ":"), ensure_ascii=False)
