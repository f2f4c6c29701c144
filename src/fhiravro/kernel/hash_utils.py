"""Stable hashing of Avro schema JSON.

Key rules:
- Object keys sorted recursively
- Arrays preserve order (field and union branch order is meaningful in Avro)
- Floats BANNED (Avro schema JSON never needs them)
- Strings normalized to NFC
- Non-JSON types forbidden
"""

import hashlib
import unicodedata
from typing import Any

from fhiravro._internal.canonical_json import canonical_dumps


class CanonicalizationError(ValueError):
    """Raised when an object cannot be canonicalized."""
    pass


def _canonicalize_value(obj: Any, path: str = "") -> Any:
    if obj is None or isinstance(obj, bool):
        return obj
    elif isinstance(obj, int):
        return obj
    elif isinstance(obj, float):
        raise CanonicalizationError(f"Floats are not allowed in schemas (at {path})")
    elif isinstance(obj, str):
        return unicodedata.normalize("NFC", obj)
    elif isinstance(obj, dict):
        out = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise CanonicalizationError(
                    f"Dictionary keys must be strings at {path}, got {type(key).__name__}"
                )
            out[unicodedata.normalize("NFC", key)] = _canonicalize_value(value, f"{path}.{key}" if path else key)
        return out
    elif isinstance(obj, list):
        return [_canonicalize_value(item, f"{path}[{i}]") for i, item in enumerate(obj)]
    raise CanonicalizationError(
        f"Non-JSON type at {path or '<root>'}: {type(obj).__name__}. "
        f"Only None, bool, int, str, dict, and list are allowed."
    )


def canonicalize_json(obj: Any) -> str:
    """Canonicalize a JSON-compatible object to a stable string.

    Raises:
        CanonicalizationError: If the object contains floats or non-JSON types
    """
    return canonical_dumps(_canonicalize_value(obj))


def hash_schema(schema: Any) -> str:
    """SHA256 of the canonical schema JSON, prefixed with ``sha256:``."""
    digest = hashlib.sha256(canonicalize_json(schema).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"
