"""Public API for fhiravro.

High-level functions that load an element definition tree, compile it into
an Avro schema plus converter, and convert values in both directions.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

from fhiravro.kernel.avro_schema import RecordSchema
from fhiravro.kernel.converters import Converter
from fhiravro.kernel.definition import ElementDefinition
from fhiravro.kernel.hash_utils import hash_schema
from fhiravro.kernel.session import CompilationSession, CompilerSettings
from fhiravro.kernel.visitor import AvroConverterVisitor
from fhiravro.kernel.walker import compile_element, expand_content_references

DefinitionSource = Union[str, os.PathLike, Path, Dict[str, Any], ElementDefinition]


class CompileResult(BaseModel):
    """Result of compiling one root element."""
    full_name: Optional[str]  # None when the root is not a record
    avro_schema: Any  # Avro JSON, ready for json.dumps
    schema_hash: str  # "sha256:..." of the canonical schema JSON
    converter: Converter
    definition: ElementDefinition  # expanded tree, used for reverse conversion

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


def load_definition(source: DefinitionSource) -> ElementDefinition:
    """Load an element definition tree from a JSON file, a dict, or a model."""
    if isinstance(source, ElementDefinition):
        return source
    if isinstance(source, dict):
        return ElementDefinition(**source)
    with open(Path(source), 'r', encoding='utf-8') as f:
        data = json.load(f)
    return ElementDefinition(**data)


def compile_definition(definition: DefinitionSource,
                       session: Optional[CompilationSession] = None,
                       settings: Optional[CompilerSettings] = None) -> CompileResult:
    """Compile a root element into an Avro schema and converter.

    Pass the same ``session`` to several calls to share record types between
    them; otherwise each call gets a fresh session.

    Raises:
        NamespaceError: A type URL is not a canonical StructureDefinition URL.
        RecordNameCollisionError: Two distinct sources derive one record name.
        ValueError: The root element has no representable content, or
            ``settings`` conflicts with the session's settings.
    """
    element = load_definition(definition)
    if session is None:
        session = CompilationSession(settings)
    elif settings is not None and settings != session.settings:
        raise ValueError("settings differ from the settings of the supplied session")

    # A failed compilation leaves no records behind in a shared session
    with session.transaction():
        visitor = AvroConverterVisitor(session)
        expanded = expand_content_references(element, visitor.max_depth)
        converter = compile_element(expanded, visitor)
        if converter is None:
            raise ValueError(f"Element {element.path} has no representable content")

    avro_schema = converter.data_type.to_avro()
    data_type = converter.data_type
    return CompileResult(
        full_name=data_type.full_name if isinstance(data_type, RecordSchema) else None,
        avro_schema=avro_schema,
        schema_hash=hash_schema(avro_schema),
        converter=converter,
        definition=expanded,
    )


def to_avro_record(result: CompileResult, value: Any) -> Any:
    """Project a structured value into the compiled Avro shape."""
    return result.converter.from_hapi(value)


def from_avro_record(result: CompileResult, record: Any) -> Any:
    """Rebuild a structured value from an Avro record."""
    setter = result.converter.object_converter(*result.definition.reverse_definitions())
    return setter.to_hapi(record)
