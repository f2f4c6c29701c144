"""Converters between structured values and Avro records.

A converter pairs an Avro schema (``data_type``) with both directions of the
mapping:

- ``from_hapi(value)`` projects a structured value (see ``model``) into its
  Avro shape: scalars, record dicts keyed by field name, or lists.
- ``to_hapi_converter(*element_definitions)`` returns a ``FieldSetter`` that
  writes an Avro value back onto a parent structured object. Definitions are
  optional; when given they supply type codes for rebuilt values.

Converters are built bottom-up and never form cycles, so building a reverse
setter terminates.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from fhiravro.codes import CompileErrorCode
from fhiravro.kernel.avro_schema import ArraySchema, AvroSchema, PrimitiveSchema, RecordSchema
from fhiravro.kernel.errors import CompilationError
from fhiravro.kernel.model import ChildAccessor, Composite, Extension, Primitive, Tagged
from fhiravro.kernel.naming import capitalize

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChoiceDispatchError(CompilationError, ValueError):
    """Raised when a choice value cannot be matched to exactly one candidate."""
    pass


class ConverterCapabilityError(CompilationError, TypeError):
    """Raised when a converter cannot rebuild standalone objects."""
    pass


@dataclass(frozen=True)
class StructureField(Generic[T]):
    """A compiled child together with its source metadata."""
    property_name: Optional[str]  # source property, e.g. "birthDate"
    field_name: str  # target record field, e.g. "birthDate" or "PatientId"
    extension_url: Optional[str]
    is_extension: bool
    result: T

    def accessor(self) -> ChildAccessor:
        return ChildAccessor(self.property_name, self.extension_url)


class FieldSetter(ABC):
    """Writes an Avro value onto one child of a parent structured object."""

    @abstractmethod
    def set_field(self, parent: Any, field_to_set: ChildAccessor, value: Any) -> None:
        ...


class ObjectConverter(FieldSetter):
    """A setter that can also build the structured value on its own."""

    @abstractmethod
    def to_hapi(self, value: Any) -> Any:
        ...

    def set_field(self, parent: Any, field_to_set: ChildAccessor, value: Any) -> None:
        field_to_set.set_value(parent, self.to_hapi(value))


class NoOpFieldSetter(ObjectConverter):
    """Setter of write-inert fields: builds nothing and mutates nothing."""

    def to_hapi(self, value: Any) -> None:
        return None

    def set_field(self, parent: Any, field_to_set: ChildAccessor, value: Any) -> None:
        return None


NO_OP_SETTER = NoOpFieldSetter()


class Converter(ABC):
    """Compiled schema plus forward and reverse mapping for one element shape."""

    #: False for converters whose reverse mapping is the no-op setter.
    writable: bool = True

    element_type: Optional[str] = None

    @property
    @abstractmethod
    def data_type(self) -> AvroSchema:
        ...

    @abstractmethod
    def from_hapi(self, value: Any) -> Any:
        ...

    @abstractmethod
    def to_hapi_converter(self, *element_definitions: Any) -> FieldSetter:
        ...

    def object_converter(self, *element_definitions: Any) -> ObjectConverter:
        """Like ``to_hapi_converter`` but requires a standalone object builder."""
        setter = self.to_hapi_converter(*element_definitions)
        if not isinstance(setter, ObjectConverter):
            raise ConverterCapabilityError(
                CompileErrorCode.NOT_AN_OBJECT_CONVERTER,
                f"{type(self).__name__} cannot build standalone values",
            )
        return setter

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.data_type.to_avro()!r}>"


def _type_code(element_definitions: Sequence[Any], default: Optional[str]) -> Optional[str]:
    if element_definitions and getattr(element_definitions[0], "type_code", None):
        return element_definitions[0].type_code
    return default


class _PrimitiveSetter(ObjectConverter):

    def __init__(self, converter: "PrimitiveConverter", type_code: Optional[str]):
        self._converter = converter
        self._type_code = type_code

    def to_hapi(self, value: Any) -> Optional[Primitive]:
        if value is None:
            return None
        return Primitive(self._converter.to_primitive(value), self._type_code)


class PrimitiveConverter(Converter):
    """Scalar converter. Subclasses override ``from_primitive``/``to_primitive``."""

    def __init__(self, schema: PrimitiveSchema, element_type: str):
        self._schema = schema
        self.element_type = element_type

    @property
    def data_type(self) -> PrimitiveSchema:
        return self._schema

    def from_primitive(self, raw: Any) -> Any:
        return raw

    def to_primitive(self, value: Any) -> Any:
        return value

    def from_hapi(self, value: Any) -> Any:
        raw = value.value if isinstance(value, Primitive) else value
        return None if raw is None else self.from_primitive(raw)

    def to_hapi_converter(self, *element_definitions: Any) -> ObjectConverter:
        return _PrimitiveSetter(self, _type_code(element_definitions, self.element_type))


class _CompositeSetter(ObjectConverter):

    def __init__(self,
                 type_code: Optional[str],
                 extension_url: Optional[str],
                 setters: List[Tuple[StructureField, FieldSetter]]):
        self._type_code = type_code
        self._extension_url = extension_url
        self._setters = setters

    def to_hapi(self, record: Optional[Mapping[str, Any]]) -> Any:
        if record is None:
            return None
        if self._extension_url is not None:
            target: Any = Extension(url=self._extension_url)
        else:
            target = Composite(type_code=self._type_code)
        for child, setter in self._setters:
            value = record.get(child.field_name)
            if value is None:
                continue
            setter.set_field(target, child.accessor(), value)
        return target


class CompositeConverter(Converter):
    """Record converter over an ordered list of children.

    Parent extensions are composites with ``extension_url`` set: they read
    their children from a source ``Extension`` and rebuild one.
    """

    def __init__(self,
                 element_type: Optional[str],
                 children: Sequence[StructureField[Converter]],
                 schema: RecordSchema,
                 extension_url: Optional[str] = None):
        self.element_type = element_type
        self._children = tuple(children)
        self._schema = schema
        self.extension_url = extension_url

    @property
    def data_type(self) -> RecordSchema:
        return self._schema

    @property
    def children(self) -> Tuple[StructureField[Converter], ...]:
        return self._children

    def from_hapi(self, value: Any) -> Optional[Dict[str, Any]]:
        if value is None:
            return None
        return {child.field_name: self._child_from_hapi(child, value) for child in self._children}

    @staticmethod
    def _child_from_hapi(child: StructureField[Converter], composite: Any) -> Any:
        raw = child.accessor().get(composite)
        converter = child.result
        if isinstance(converter.data_type, ArraySchema):
            if raw is None:
                return None
            items = raw if isinstance(raw, list) else [raw]
            return converter.from_hapi(items) if items else None
        if isinstance(raw, list):
            if len(raw) > 1:
                logger.warning(
                    "single-valued field %s has %d source values; keeping the first",
                    child.field_name, len(raw),
                )
            raw = raw[0] if raw else None
        return None if raw is None else converter.from_hapi(raw)

    def to_hapi_converter(self, *element_definitions: Any) -> ObjectConverter:
        definition = element_definitions[0] if element_definitions else None
        setters = []
        for child in self._children:
            child_definition = None
            if definition is not None:
                child_definition = definition.child_for(child.property_name, child.extension_url)
            child_definitions = child_definition.reverse_definitions() if child_definition else ()
            setters.append((child, child.result.to_hapi_converter(*child_definitions)))
        return _CompositeSetter(
            _type_code(element_definitions, self.element_type),
            self.extension_url,
            setters,
        )


class ReferenceIdConverter(Converter):
    """Write-inert convenience projection of a reference URI.

    Forward yields the id of ``<Type>/<id>`` references to the configured
    type, else ``None``. The reverse setter is ``NO_OP_SETTER``: references are
    restored through the ordinary ``reference`` field only.
    """

    writable = False
    element_type = "string"

    _SCHEMA = PrimitiveSchema(type="string")

    def __init__(self, reference_type: str):
        self.reference_type = reference_type
        self.prefix = reference_type + "/"

    @property
    def data_type(self) -> PrimitiveSchema:
        return self._SCHEMA

    def from_hapi(self, value: Any) -> Optional[str]:
        uri = value.value_as_string() if isinstance(value, Primitive) else value
        if not isinstance(uri, str) or not uri.startswith(self.prefix):
            return None
        return uri[uri.rfind("/") + 1:]

    def to_hapi_converter(self, *element_definitions: Any) -> NoOpFieldSetter:
        return NO_OP_SETTER


class _LeafExtensionSetter(ObjectConverter):

    def __init__(self, extension_url: str, element_setter: ObjectConverter):
        self._extension_url = extension_url
        self._element_setter = element_setter

    def to_hapi(self, value: Any) -> Optional[Extension]:
        if value is None:
            return None
        return Extension(url=self._extension_url, value=self._element_setter.to_hapi(value))


class LeafExtensionConverter(Converter):
    """Single-valued extension: the value's converter tagged with a URL.

    The URL is metadata only; the Avro value is the element's value.
    """

    def __init__(self, extension_url: str, element: Converter):
        self.extension_url = extension_url
        self.element = element
        self.element_type = element.element_type

    @property
    def data_type(self) -> AvroSchema:
        return self.element.data_type

    def from_hapi(self, value: Any) -> Any:
        inner = value.value if isinstance(value, Extension) else None
        return None if inner is None else self.element.from_hapi(inner)

    def to_hapi_converter(self, *element_definitions: Any) -> ObjectConverter:
        value_definitions: Tuple[Any, ...] = ()
        if element_definitions and getattr(element_definitions[0], "value", None) is not None:
            value_definitions = element_definitions[0].value.reverse_definitions()
        return _LeafExtensionSetter(self.extension_url, self.element.object_converter(*value_definitions))


class _ChoiceSetter(ObjectConverter):

    def __init__(self, candidates: List[Tuple[str, str, ObjectConverter]]):
        self._candidates = candidates

    def to_hapi(self, record: Optional[Mapping[str, Any]]) -> Optional[Tagged]:
        if record is None:
            return None
        populated = [c for c in self._candidates if record.get(c[1]) is not None]
        if not populated:
            return None
        if len(populated) > 1:
            raise ChoiceDispatchError(
                CompileErrorCode.AMBIGUOUS_CHOICE_VALUE,
                f"Choice record populates more than one field: {sorted(c[1] for c in populated)}",
            )
        type_name, field_name, setter = populated[0]
        return Tagged(type_name, setter.to_hapi(record[field_name]))


class ChoiceConverter(Converter):
    """Choice converter: an all-optional record with one field per candidate.

    Dispatch is an exhaustive match on ``Tagged.type_name``.
    """

    def __init__(self, choice_types: Mapping[str, Converter], schema: RecordSchema):
        self._choice_types = dict(choice_types)
        self._schema = schema
        self._field_names = dict(zip(self._choice_types, schema.field_names()))

    @property
    def data_type(self) -> RecordSchema:
        return self._schema

    @property
    def choice_types(self) -> Dict[str, Converter]:
        return dict(self._choice_types)

    def _match(self, type_name: str) -> str:
        if type_name in self._choice_types:
            return type_name
        if capitalize(type_name) in self._choice_types:
            return capitalize(type_name)
        raise ChoiceDispatchError(
            CompileErrorCode.UNKNOWN_CHOICE_TYPE,
            f"Type '{type_name}' is not one of {list(self._choice_types)}",
        )

    def from_hapi(self, value: Any) -> Optional[Dict[str, Any]]:
        if value is None:
            return None
        if not isinstance(value, Tagged):
            raise ChoiceDispatchError(
                CompileErrorCode.UNKNOWN_CHOICE_TYPE,
                f"Choice values must be Tagged, got {type(value).__name__}",
            )
        type_name = self._match(value.type_name)
        record: Dict[str, Any] = {name: None for name in self._field_names.values()}
        record[self._field_names[type_name]] = self._choice_types[type_name].from_hapi(value.value)
        return record

    def to_hapi_converter(self, *element_definitions: Any) -> ObjectConverter:
        by_type = {capitalize(d.type_code): d for d in element_definitions if getattr(d, "type_code", None)}
        candidates = []
        for type_name, converter in self._choice_types.items():
            definitions = (by_type[type_name],) if type_name in by_type else ()
            candidates.append((type_name, self._field_names[type_name], converter.object_converter(*definitions)))
        return _ChoiceSetter(candidates)


class _MultiValuedSetter(FieldSetter):

    def __init__(self, element_setter: ObjectConverter):
        self._element_setter = element_setter

    def set_field(self, parent: Any, field_to_set: ChildAccessor, value: Any) -> None:
        for item in value:
            field_to_set.add_value(parent, self._element_setter.to_hapi(item))


class MultiValuedConverter(Converter):
    """Wraps an element converter as an Avro array, preserving item order."""

    def __init__(self, element: Converter):
        self.element = element
        self.element_type = element.element_type
        self._schema = ArraySchema(items=element.data_type)

    @property
    def data_type(self) -> ArraySchema:
        return self._schema

    def from_hapi(self, value: Any) -> Optional[List[Any]]:
        if value is None:
            return None
        return [self.element.from_hapi(item) for item in value]

    def to_hapi_converter(self, *element_definitions: Any) -> FieldSetter:
        return _MultiValuedSetter(self.element.object_converter(*element_definitions))
