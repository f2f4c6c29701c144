"""Walk an element definition tree bottom-up, driving a DefinitionVisitor.

Children are always compiled before their parent. Content references are
expanded first: an element repeating an ancestor (``Questionnaire.item.item``)
is replaced by a copy of that ancestor with paths rebased onto the repeating
element, until the ancestor occurs ``visitor.max_depth(...)`` times on one
branch; deeper repetitions are omitted.
"""

import logging
from typing import Callable, List, Optional, TypeVar

from fhiravro.kernel.converters import StructureField
from fhiravro.kernel.definition import ElementDefinition
from fhiravro.kernel.naming import capitalize
from fhiravro.kernel.visitor import DefinitionVisitor

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Composite types named after their element path rather than their type code
BACKBONE_TYPES = frozenset({"BackboneElement", "Element"})

MaxDepth = Callable[[Optional[str], str], int]


def _rebase(path: str, old_prefix: str, new_prefix: str) -> str:
    if path.startswith(old_prefix + "."):
        return new_prefix + path[len(old_prefix):]
    return path


def _expand(node: ElementDefinition,
            path: str,
            stack: List[ElementDefinition],
            max_depth: MaxDepth) -> Optional[ElementDefinition]:
    source = node
    if node.content_reference is not None:
        target = next((n for n in reversed(stack) if n.path == node.content_reference), None)
        if target is None:
            logger.warning(
                "content reference %s at %s does not name an ancestor; element omitted",
                node.content_reference, node.path,
            )
            return None
        repeats = sum(1 for n in stack if n.path == target.path)
        if repeats >= max_depth(target.type_url, target.path):
            logger.debug("max depth reached for %s at %s", target.path, path)
            return None
        source = target

    stack.append(source)
    try:
        children = []
        for child in source.children:
            expanded = _expand(child, _rebase(child.path, source.path, path), stack, max_depth)
            if expanded is not None:
                children.append(expanded)
    finally:
        stack.pop()

    # A repeated element keeps its own name and cardinality
    return source.model_copy(update={
        "name": node.name,
        "path": path,
        "max": node.max,
        "children": children,
        "content_reference": None,
    })


def expand_content_references(definition: ElementDefinition, max_depth: MaxDepth) -> ElementDefinition:
    """Return a copy of the tree with every content reference resolved or omitted."""
    expanded = _expand(definition, definition.path, [], max_depth)
    if expanded is None:
        raise ValueError(f"Root element {definition.path} cannot be a content reference")
    return expanded


def _structure_fields(node: ElementDefinition,
                      visitor: DefinitionVisitor[T],
                      type_url: Optional[str]) -> List[StructureField[T]]:
    fields: List[StructureField[T]] = []
    for child in node.children:
        result = _visit_element(child, visitor, type_url)
        if result is None:
            continue
        is_extension = child.kind == "extension"
        fields.append(StructureField(
            property_name=child.property_name,
            field_name=child.property_name,
            extension_url=child.extension_url if is_extension else None,
            is_extension=is_extension,
            result=result,
        ))
    return fields


def _visit_single(node: ElementDefinition,
                  visitor: DefinitionVisitor[T],
                  type_url: Optional[str]) -> Optional[T]:
    if node.kind == "primitive":
        result = visitor.visit_primitive(node.name, node.type_code or "")
        if result is None:
            logger.warning("unknown primitive type %r at %s; element omitted", node.type_code, node.path)
        return result

    if node.kind == "composite":
        composite_url = node.type_url or type_url
        is_backbone = node.type_code is None or node.type_code in BACKBONE_TYPES
        record_path = node.path if is_backbone else node.type_code
        children = _structure_fields(node, visitor, composite_url)
        return visitor.visit_composite(
            node.name, record_path, node.type_code or node.path, composite_url, children
        )

    if node.kind == "reference":
        children = _structure_fields(node, visitor, type_url)
        return visitor.visit_reference(node.name, node.target_types, children)

    if node.kind == "choice":
        choice_types = {}
        for candidate in node.choices:
            result = _visit_single(candidate, visitor, type_url)
            if result is not None:
                choice_types[capitalize(candidate.type_code or candidate.name)] = result
        return visitor.visit_choice(node.name, choice_types)

    # extension
    if node.is_leaf_extension:
        element = _visit_single(node.value, visitor, type_url)
        if element is None:
            return None
        return visitor.visit_leaf_extension(node.name, node.extension_url, element)
    children = _structure_fields(node, visitor, type_url)
    return visitor.visit_parent_extension(node.name, node.extension_url, children)


def _visit_element(node: ElementDefinition,
                   visitor: DefinitionVisitor[T],
                   type_url: Optional[str]) -> Optional[T]:
    element = _visit_single(node, visitor, type_url)
    if element is None or not node.is_multi_valued:
        return element
    return visitor.visit_multi_valued(node.name, element)


def compile_element(definition: ElementDefinition, visitor: DefinitionVisitor[T]) -> Optional[T]:
    """Compile an already expanded tree."""
    return _visit_element(definition, visitor, definition.type_url)


def walk(definition: ElementDefinition, visitor: DefinitionVisitor[T]) -> Optional[T]:
    """Expand content references, then compile the tree bottom-up."""
    return compile_element(expand_content_references(definition, visitor.max_depth), visitor)
