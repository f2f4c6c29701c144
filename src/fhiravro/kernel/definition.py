"""Pydantic models for the element tree the walker consumes."""

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class ElementDefinition(BaseModel):
    """One element of a structure definition tree.

    The root element of a resource or datatype is a ``composite`` whose
    ``type_url`` is the StructureDefinition URL. Composite children of a
    datatype type (e.g. ``HumanName``) are listed inline under ``children``.
    """
    name: str  # property name, e.g. "birthDate" or "value[x]"
    path: str  # element path, e.g. "Patient.contact.name"
    kind: Literal["primitive", "composite", "reference", "choice", "extension"]
    type_code: Optional[str] = None  # e.g. "date", "HumanName", "BackboneElement"
    type_url: Optional[str] = None  # StructureDefinition URL of the type
    max: str = "1"  # "1" or "*"
    extension_url: Optional[str] = None
    target_types: List[str] = Field(default_factory=list, description="Reference targets (type names or URLs)")
    choices: List["ElementDefinition"] = Field(default_factory=list, description="Choice candidates, in order")
    children: List["ElementDefinition"] = Field(default_factory=list)
    value: Optional["ElementDefinition"] = Field(None, description="Value element of a leaf extension")
    content_reference: Optional[str] = Field(
        None,
        description="Path of an ancestor element whose children this element repeats (FHIR contentReference)"
    )

    model_config = {"extra": "forbid"}

    @field_validator("content_reference")
    @classmethod
    def strip_fragment_marker(cls, v: Optional[str]) -> Optional[str]:
        """Accept both ``"#Questionnaire.item"`` and ``"Questionnaire.item"``."""
        if v is None:
            return v
        return v[1:] if v.startswith("#") else v

    @model_validator(mode="after")
    def extension_children_are_extensions(self) -> "ElementDefinition":
        """Extension values only nest further extensions."""
        if self.kind == "extension":
            stray = [c.path for c in self.children if c.kind != "extension"]
            if stray:
                raise ValueError(f"Extension {self.path} has non-extension children: {stray}")
        return self

    @property
    def property_name(self) -> str:
        return self.name.replace("[x]", "")

    @property
    def is_multi_valued(self) -> bool:
        return self.max not in ("0", "1")

    @property
    def is_leaf_extension(self) -> bool:
        return self.kind == "extension" and self.value is not None and not self.children

    def child_for(self, property_name: Optional[str], extension_url: Optional[str] = None) -> Optional["ElementDefinition"]:
        """Find the child matching a structure field's property name or extension URL."""
        for child in self.children:
            if extension_url is not None:
                if child.extension_url == extension_url:
                    return child
            elif child.property_name == property_name and child.kind != "extension":
                return child
        return None

    def reverse_definitions(self) -> Tuple["ElementDefinition", ...]:
        """Definitions handed to a converter's ``to_hapi_converter``.

        A choice element hands over its candidates; any other element hands
        over itself.
        """
        if self.kind == "choice":
            return tuple(self.choices)
        return (self,)


ElementDefinition.model_rebuild()
