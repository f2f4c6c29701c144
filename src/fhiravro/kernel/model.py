"""In-memory structured value model.

Values are plain mutable objects that converters read from and rebuild:

- ``Primitive``: a scalar together with its FHIR type code
- ``Composite``: a typed bag of named properties plus extensions
- ``Extension``: a URL-identified entry holding a value or nested extensions
- ``Tagged``: the explicit variant stored in choice (``value[x]``) properties

``ChildAccessor`` is the mutation contract converters use to read and write
one child of a parent object.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class Primitive:
    """A primitive value, e.g. ``Primitive("1970-01-01", "date")``."""
    value: Any
    type_code: Optional[str] = None

    def value_as_string(self) -> Optional[str]:
        return None if self.value is None else str(self.value)


@dataclass
class Extension:
    """An extension entry. Leaf extensions set ``value``; complex ones nest ``extensions``."""
    url: str
    value: Any = None
    extensions: List["Extension"] = field(default_factory=list)


@dataclass
class Composite:
    """A composite value: resource, datatype or backbone element.

    Repeated properties hold lists, single properties hold one value.
    """
    type_code: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    extensions: List[Extension] = field(default_factory=list)

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)


@dataclass(frozen=True)
class Tagged:
    """A choice value: ``type_name`` names which candidate ``value`` holds.

    ``type_name`` uses the candidate spelling of the choice, e.g. ``"Quantity"``
    or ``"String"``.
    """
    type_name: str
    value: Any


HasChildren = Union[Composite, Extension]


@dataclass(frozen=True)
class ChildAccessor:
    """Reads and writes one child of a parent value.

    Extension children are matched on URL against ``parent.extensions``;
    property children live in ``parent.properties``.
    """
    property_name: Optional[str]
    extension_url: Optional[str] = None

    def get(self, parent: HasChildren) -> Any:
        if self.extension_url is not None:
            return [e for e in parent.extensions if e.url == self.extension_url]
        return parent.properties.get(self.property_name)

    def set_value(self, parent: HasChildren, value: Any) -> None:
        if value is None:
            return
        if self.extension_url is not None:
            parent.extensions.append(value)
        else:
            parent.properties[self.property_name] = value

    def add_value(self, parent: HasChildren, value: Any) -> None:
        if value is None:
            return
        if self.extension_url is not None:
            parent.extensions.append(value)
        else:
            parent.properties.setdefault(self.property_name, []).append(value)
