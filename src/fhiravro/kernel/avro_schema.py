"""Immutable pydantic models for Avro schemas.

Models render to Avro JSON via ``to_avro()``. A named record is fully
defined the first time it is rendered and referenced by its full name
afterwards, which keeps shared and repeated record types legal Avro.
"""

from typing import Any, Dict, Literal, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field


class AvroSchema(BaseModel):
    """Base class of every schema model."""

    model_config = ConfigDict(frozen=True)

    def to_avro(self, named: Optional[Set[str]] = None) -> Any:
        """Render this schema as Avro JSON.

        Args:
            named: Full names of records already defined in the enclosing
                document. Mutated as records are defined.
        """
        raise NotImplementedError


class PrimitiveSchema(AvroSchema):
    """A primitive Avro type, optionally carrying a logical type."""
    type: Literal["null", "boolean", "int", "long", "float", "double", "bytes", "string"]
    logical_type: Optional[str] = None
    precision: Optional[int] = None
    scale: Optional[int] = None

    def to_avro(self, named: Optional[Set[str]] = None) -> Any:
        if self.logical_type is None:
            return self.type
        out: Dict[str, Any] = {"type": self.type, "logicalType": self.logical_type}
        if self.precision is not None:
            out["precision"] = self.precision
        if self.scale is not None:
            out["scale"] = self.scale
        return out


class UnionSchema(AvroSchema):
    """An Avro union. Branch order is significant."""
    types: Tuple[AvroSchema, ...]

    def to_avro(self, named: Optional[Set[str]] = None) -> Any:
        named = set() if named is None else named
        return [branch.to_avro(named) for branch in self.types]


class ArraySchema(AvroSchema):
    """An Avro array of ``items``."""
    items: AvroSchema

    def to_avro(self, named: Optional[Set[str]] = None) -> Any:
        named = set() if named is None else named
        return {"type": "array", "items": self.items.to_avro(named)}


class RecordField(BaseModel):
    """A single named field of a record."""
    name: str
    type: AvroSchema
    doc: Optional[str] = None
    default: Any = None

    model_config = ConfigDict(frozen=True)

    def to_avro(self, named: Set[str]) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "type": self.type.to_avro(named)}
        if self.doc is not None:
            out["doc"] = self.doc
        out["default"] = self.default
        return out


class RecordSchema(AvroSchema):
    """A named Avro record with ordered fields."""
    name: str
    namespace: Optional[str] = None
    doc: Optional[str] = None
    fields: Tuple[RecordField, ...] = Field(default_factory=tuple)

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def to_avro(self, named: Optional[Set[str]] = None) -> Any:
        named = set() if named is None else named
        if self.full_name in named:
            return self.full_name
        named.add(self.full_name)
        out: Dict[str, Any] = {"type": "record", "name": self.name}
        if self.namespace:
            out["namespace"] = self.namespace
        if self.doc is not None:
            out["doc"] = self.doc
        out["fields"] = [f.to_avro(named) for f in self.fields]
        return out


NULL_SCHEMA = PrimitiveSchema(type="null")


def nullable(schema: AvroSchema) -> UnionSchema:
    """Wrap a schema in a union with null.

    Null is the first branch so that a ``null`` field default is valid Avro.
    """
    return UnionSchema(types=(NULL_SCHEMA, schema))


def is_nullable(schema: AvroSchema) -> bool:
    """True if the schema is a two-branch union of null and one other type."""
    return (
        isinstance(schema, UnionSchema)
        and len(schema.types) == 2
        and sum(1 for branch in schema.types if branch == NULL_SCHEMA) == 1
    )


def decimal_schema(precision: int, scale: int) -> PrimitiveSchema:
    """A bytes-backed decimal logical type."""
    return PrimitiveSchema(type="bytes", logical_type="decimal", precision=precision, scale=scale)
