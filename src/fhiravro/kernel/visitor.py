"""Visitor compiling FHIR element definitions into Avro converters.

The walker (see ``walker``) drives a ``DefinitionVisitor`` bottom-up, one call
per element, passing already compiled children. ``AvroConverterVisitor``
answers each call with a ``Converter``:

- composites, references and parent extensions are records cached by full
  name in the ``CompilationSession``, so every occurrence of a type shares
  one converter and one schema instance
- choices are uncached records with one optional field per candidate
- multi-valued elements wrap their element converter as an array
- primitives come from the shared leaf type table

Every record field is nullable with a null default.
"""

import logging
from abc import ABC, abstractmethod
from typing import Generic, List, Mapping, Optional, Sequence, TypeVar

from fhiravro.kernel.avro_schema import RecordField, RecordSchema, nullable
from fhiravro.kernel.converters import (
    ChoiceConverter,
    CompositeConverter,
    Converter,
    LeafExtensionConverter,
    MultiValuedConverter,
    ReferenceIdConverter,
    StructureField,
)
from fhiravro.kernel.leaf_types import converter_for
from fhiravro.kernel.naming import (
    choice_record_name,
    extension_record_name,
    local_part,
    lower_camel,
    namespace_for,
    record_name_for,
    reference_record_name,
)
from fhiravro.kernel.session import CompilationSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DefinitionVisitor(ABC, Generic[T]):
    """Callbacks the walker invokes, one per element shape.

    Operations that may return ``None`` signal an element with no
    representable content; the walker omits it from its parent.
    """

    @abstractmethod
    def visit_primitive(self, element_name: str, primitive_type: str) -> Optional[T]:
        ...

    @abstractmethod
    def visit_composite(self,
                        element_name: str,
                        element_path: str,
                        base_type: str,
                        element_type_url: str,
                        children: Sequence[StructureField[T]]) -> Optional[T]:
        ...

    @abstractmethod
    def visit_reference(self,
                        element_name: str,
                        reference_types: Sequence[str],
                        children: Sequence[StructureField[T]]) -> Optional[T]:
        ...

    @abstractmethod
    def visit_parent_extension(self,
                               element_name: str,
                               extension_url: str,
                               children: Sequence[StructureField[T]]) -> Optional[T]:
        ...

    @abstractmethod
    def visit_leaf_extension(self, element_name: str, extension_url: str, element: T) -> T:
        ...

    @abstractmethod
    def visit_multi_valued(self, element_name: str, element: T) -> T:
        ...

    @abstractmethod
    def visit_choice(self, element_name: str, choice_types: Mapping[str, T]) -> Optional[T]:
        ...

    @abstractmethod
    def max_depth(self, element_type_url: Optional[str], path: str) -> int:
        """How many times a recursive element may repeat on one branch."""
        ...


def _field_doc(field: StructureField[Converter]) -> str:
    if field.extension_url is not None:
        return f"Extension field for {field.extension_url}"
    return f"Field for FHIR property {field.property_name}"


def _record_fields(children: Sequence[StructureField[Converter]]) -> List[RecordField]:
    return [
        RecordField(
            name=child.field_name,
            type=nullable(child.result.data_type),
            doc=_field_doc(child),
            default=None,
        )
        for child in children
    ]


class AvroConverterVisitor(DefinitionVisitor[Converter]):
    """Builds Avro schemas and converters, memoized in a ``CompilationSession``."""

    def __init__(self, session: Optional[CompilationSession] = None):
        self.session = session if session is not None else CompilationSession()

    @property
    def root_namespace(self) -> str:
        return self.session.settings.root_namespace

    def _compile_record(self,
                        record_name: str,
                        namespace: str,
                        doc: str,
                        source: str,
                        element_type: Optional[str],
                        children: Sequence[StructureField[Converter]],
                        extension_url: Optional[str] = None) -> Converter:
        full_name = f"{namespace}.{record_name}"

        def build() -> Converter:
            schema = RecordSchema(
                name=record_name,
                namespace=namespace,
                doc=doc,
                fields=tuple(_record_fields(children)),
            )
            return CompositeConverter(element_type, children, schema, extension_url)

        return self.session.get_or_compile(full_name, source, build)

    def visit_primitive(self, element_name: str, primitive_type: str) -> Optional[Converter]:
        return converter_for(primitive_type)

    def visit_composite(self,
                        element_name: str,
                        element_path: str,
                        base_type: str,
                        element_type_url: str,
                        children: Sequence[StructureField[Converter]]) -> Converter:
        record_name = record_name_for(element_path)
        namespace = namespace_for(element_type_url, self.root_namespace)
        return self._compile_record(
            record_name,
            namespace,
            f"Structure for FHIR type {base_type}",
            element_path,
            base_type,
            children,
        )

    def visit_reference(self,
                        element_name: str,
                        reference_types: Sequence[str],
                        children: Sequence[StructureField[Converter]]) -> Converter:
        # Targets may be given as profile URLs; only the type name matters here
        type_names = [local_part(t) for t in reference_types]
        record_name = reference_record_name(type_names)

        synthesized: List[StructureField[Converter]] = [
            StructureField(
                property_name="reference",
                field_name=f"{type_name}Id",
                extension_url=None,
                is_extension=False,
                result=ReferenceIdConverter(type_name),
            )
            for type_name in type_names
        ]

        return self._compile_record(
            record_name,
            self.root_namespace,
            f"Structure for FHIR type {record_name}",
            "reference:" + "|".join(type_names),
            "Reference",
            synthesized + list(children),
        )

    def visit_parent_extension(self,
                               element_name: str,
                               extension_url: str,
                               children: Sequence[StructureField[Converter]]) -> Optional[Converter]:
        if not children:
            logger.debug("dropping extension %s without declared content", extension_url)
            return None

        namespace = namespace_for(extension_url, self.root_namespace)
        return self._compile_record(
            extension_record_name(extension_url),
            namespace,
            f"Structure for FHIR extension {extension_url}",
            extension_url,
            "Extension",
            children,
            extension_url=extension_url,
        )

    def visit_leaf_extension(self, element_name: str, extension_url: str, element: Converter) -> Converter:
        return LeafExtensionConverter(extension_url, element)

    def visit_multi_valued(self, element_name: str, element: Converter) -> Converter:
        return MultiValuedConverter(element)

    def visit_choice(self, element_name: str, choice_types: Mapping[str, Converter]) -> Optional[Converter]:
        if not choice_types:
            return None

        fields = tuple(
            RecordField(
                name=lower_camel(type_name),
                type=nullable(converter.data_type),
                doc="Choice field",
                default=None,
            )
            for type_name, converter in choice_types.items()
        )
        schema = RecordSchema(
            name=choice_record_name(choice_types),
            namespace=self.root_namespace,
            doc="Structure for FHIR choice type",
            fields=fields,
        )
        return ChoiceConverter(choice_types, schema)

    def max_depth(self, element_type_url: Optional[str], path: str) -> int:
        return self.session.settings.max_depth
