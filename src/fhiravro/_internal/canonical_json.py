"""Canonical JSON serialization for emitted schemas.

One function used for every schema write and for schema hashing, so the
same compiled schema always produces the same bytes.
"""

import json
from typing import Any


def canonical_dumps(obj: Any, indent: int | None = None) -> str:
    """
    Canonical JSON serialization.

    Rules:
    - Sorted keys
    - Stable separators (",", ":") when not indented
    - List order preserved (Avro field and union order is significant)
    - UTF-8, no ASCII escaping

    Args:
        obj: JSON-compatible object
        indent: Optional indentation for human-readable output

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        obj,
        sort_keys=True,
        indent=indent,
        separators=(",", ":") if indent is None else (",", ": "),
        ensure_ascii=False,
    )
