"""Leaf type table: FHIR primitive type name -> shared scalar converter.

The table is immutable and shared by every compilation session. Date and
binary primitives are carried as strings; no locale or unit handling.
"""

from decimal import Context, Decimal, Inexact, InvalidOperation
from types import MappingProxyType
from typing import Any, Mapping, Optional

from fhiravro.codes import CompileErrorCode
from fhiravro.kernel.avro_schema import PrimitiveSchema, decimal_schema
from fhiravro.kernel.converters import Converter, PrimitiveConverter
from fhiravro.kernel.errors import CompilationError

DECIMAL_PRECISION = 12
DECIMAL_SCALE = 4


class PrimitiveValueError(CompilationError, ValueError):
    """Raised when a primitive value does not fit its Avro schema."""

    def __init__(self, message: str):
        super().__init__(CompileErrorCode.INVALID_PRIMITIVE_VALUE, message)


class StringConverter(PrimitiveConverter):
    """Carries any primitive as its string form."""

    def __init__(self, element_type: str = "string"):
        super().__init__(PrimitiveSchema(type="string"), element_type)

    def from_primitive(self, raw: Any) -> str:
        return raw if isinstance(raw, str) else str(raw)


class BooleanConverter(PrimitiveConverter):
    """Passes bools through and parses the FHIR literals ``"true"``/``"false"``."""

    _LITERALS = {"true": True, "false": False}

    def __init__(self):
        super().__init__(PrimitiveSchema(type="boolean"), "boolean")

    def from_primitive(self, raw: Any) -> bool:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw in self._LITERALS:
            return self._LITERALS[raw]
        raise PrimitiveValueError(f"Not a boolean value: {raw!r}")


class IntegerConverter(PrimitiveConverter):

    def __init__(self):
        super().__init__(PrimitiveSchema(type="int"), "integer")

    def from_primitive(self, raw: Any) -> int:
        return int(raw)


class DecimalConverter(PrimitiveConverter):
    """Fixed-precision decimal carried as an Avro bytes decimal.

    Forward values are rescaled to exactly ``scale`` fractional digits.
    Values that would lose digits, or need more than ``precision`` digits,
    are rejected rather than rounded.
    """

    def __init__(self, precision: int = DECIMAL_PRECISION, scale: int = DECIMAL_SCALE):
        super().__init__(decimal_schema(precision, scale), "decimal")
        self.precision = precision
        self.scale = scale
        self._quantum = Decimal(1).scaleb(-scale)
        self._context = Context(prec=precision, traps=[Inexact, InvalidOperation])

    @staticmethod
    def _as_decimal(raw: Any) -> Decimal:
        if isinstance(raw, Decimal):
            return raw
        # str() first so floats keep their shortest repr instead of binary noise
        return Decimal(str(raw))

    def from_primitive(self, raw: Any) -> Decimal:
        value = self._as_decimal(raw)
        if not value.is_finite():
            raise PrimitiveValueError(f"Decimal value {value} is not finite")
        try:
            return value.quantize(self._quantum, context=self._context)
        except (Inexact, InvalidOperation) as e:
            raise PrimitiveValueError(
                f"Decimal value {value} does not fit precision {self.precision}, scale {self.scale}"
            ) from e

    def to_primitive(self, value: Any) -> Decimal:
        return self._as_decimal(value)


STRING_CONVERTER = StringConverter("string")
DATE_CONVERTER = StringConverter("dateTime")
ENUM_CONVERTER = StringConverter("code")
BOOLEAN_CONVERTER = BooleanConverter()
INTEGER_CONVERTER = IntegerConverter()
DECIMAL_CONVERTER = DecimalConverter()

TYPE_TO_CONVERTER: Mapping[str, Converter] = MappingProxyType({
    "id": STRING_CONVERTER,
    "boolean": BOOLEAN_CONVERTER,
    "code": ENUM_CONVERTER,
    "markdown": STRING_CONVERTER,
    "date": DATE_CONVERTER,
    "instant": DATE_CONVERTER,
    "datetime": DATE_CONVERTER,
    "dateTime": DATE_CONVERTER,
    "time": STRING_CONVERTER,
    "string": STRING_CONVERTER,
    "oid": STRING_CONVERTER,
    "xhtml": STRING_CONVERTER,
    "decimal": DECIMAL_CONVERTER,
    "integer": INTEGER_CONVERTER,
    "unsignedInt": INTEGER_CONVERTER,
    "positiveInt": INTEGER_CONVERTER,
    # TODO: carry base64Binary as Avro bytes once a binary leaf converter exists
    "base64Binary": STRING_CONVERTER,
    "uri": STRING_CONVERTER,
})


def converter_for(primitive_type: str) -> Optional[Converter]:
    """Look up the shared converter for a primitive type; ``None`` if unknown."""
    return TYPE_TO_CONVERTER.get(primitive_type)
