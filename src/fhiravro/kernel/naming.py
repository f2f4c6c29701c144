"""Record name and namespace derivation.

Pure functions turning element paths and StructureDefinition URLs into Avro
record names and namespaces.

Canonical URL shape::

    http://hl7.org/fhir[/<profile>]/StructureDefinition/<name>

The optional profile segment becomes a sub-namespace of the root namespace.
Any other URL is rejected: there is no fallback namespace.
"""

import re
from typing import Iterable

from fhiravro.codes import CompileErrorCode
from fhiravro.kernel.errors import CompilationError

ROOT_NAMESPACE = "fhiravro.avro"

STRUCTURE_URL_PATTERN = re.compile(
    r"^http://hl7\.org/fhir(/.*)?/StructureDefinition/([^/]*)$"
)

# Separators between words of an extension's local name, e.g. "us-core-race"
_EXTENSION_WORD_SEPARATORS = re.compile(r"[-|_]")


class NamespaceError(CompilationError, ValueError):
    """Raised when a StructureDefinition URL does not have the canonical shape."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(
            CompileErrorCode.UNRECOGNIZED_STRUCTURE_URL,
            f"Unrecognized structure definition URL: {url}",
        )


def record_name_for(element_path: str) -> str:
    """Concatenate path segments: ``"Patient.contact"`` -> ``"Patientcontact"``."""
    return element_path.replace(".", "")


def namespace_for(structure_url: str, root_namespace: str = ROOT_NAMESPACE) -> str:
    """Derive the namespace for a StructureDefinition URL.

    Raises:
        NamespaceError: If the URL does not match ``STRUCTURE_URL_PATTERN``.
    """
    match = STRUCTURE_URL_PATTERN.match(structure_url or "")
    if match is None:
        raise NamespaceError(structure_url)

    profile = match.group(1)
    if profile:
        return root_namespace + profile.replace("/", ".")
    return root_namespace


def local_part(url: str) -> str:
    """Last path segment of a URL or relative reference."""
    return url[url.rfind("/") + 1:]


def capitalize(name: str) -> str:
    """Upper-case the first character only: ``"dateTime"`` -> ``"DateTime"``."""
    return name[:1].upper() + name[1:]


def lower_camel(name: str) -> str:
    """Lower-case the first character only: ``"DateTime"`` -> ``"dateTime"``."""
    return name[:1].lower() + name[1:]


def extension_record_name(extension_url: str) -> str:
    """Camel-style record name from an extension URL's last segment.

    ``".../StructureDefinition/us-core-race"`` -> ``"UsCoreRace"``.
    """
    parts = _EXTENSION_WORD_SEPARATORS.split(local_part(extension_url))
    return "".join(capitalize(part) for part in parts if part)


def reference_record_name(reference_types: Iterable[str]) -> str:
    """``["Patient", "Group"]`` -> ``"PatientGroupReference"``."""
    return "".join(reference_types) + "Reference"


def choice_record_name(choice_types: Iterable[str]) -> str:
    """``["Quantity", "String"]`` -> ``"ChoiceQuantityString"``."""
    return "Choice" + "".join(choice_types)
