"""Error code constants for fhiravro compilation errors.

These constants prevent stringly-typed error codes and let client code
branch on the kind of failure without parsing messages.
"""

from enum import Enum


class CompileErrorCode(str, Enum):
    """Compilation error codes."""

    # Fatal (abort the compilation session)
    UNRECOGNIZED_STRUCTURE_URL = "UNRECOGNIZED_STRUCTURE_URL"
    RECORD_NAME_COLLISION = "RECORD_NAME_COLLISION"

    # Value-level (raised while converting a single value)
    UNKNOWN_CHOICE_TYPE = "UNKNOWN_CHOICE_TYPE"
    AMBIGUOUS_CHOICE_VALUE = "AMBIGUOUS_CHOICE_VALUE"
    NOT_AN_OBJECT_CONVERTER = "NOT_AN_OBJECT_CONVERTER"
    INVALID_PRIMITIVE_VALUE = "INVALID_PRIMITIVE_VALUE"
