"""Pytest configuration and shared fixtures.

No sys.path hacks - tests import from the installed fhiravro package.
"""

import copy

import pytest

from fhiravro.kernel.model import Composite, Extension, Primitive, Tagged
from fhiravro.kernel.session import CompilationSession
from fhiravro.kernel.visitor import AvroConverterVisitor

PATIENT_URL = "http://hl7.org/fhir/StructureDefinition/Patient"
HUMAN_NAME_URL = "http://hl7.org/fhir/StructureDefinition/HumanName"
BIRTHSEX_URL = "http://hl7.org/fhir/us/core/StructureDefinition/us-core-birthsex"
RACE_URL = "http://hl7.org/fhir/us/core/StructureDefinition/us-core-race"
EMPTY_EXTENSION_URL = "http://hl7.org/fhir/StructureDefinition/patient-placeholder"


def _primitive(name, path, type_code, max="1"):
    return {"name": name, "path": path, "kind": "primitive", "type_code": type_code, "max": max}


def _human_name(name, path, max="1"):
    return {
        "name": name,
        "path": path,
        "kind": "composite",
        "type_code": "HumanName",
        "type_url": HUMAN_NAME_URL,
        "max": max,
        "children": [
            _primitive("family", "HumanName.family", "string"),
            _primitive("given", "HumanName.given", "string", max="*"),
        ],
    }


PATIENT_DEFINITION = {
    "name": "Patient",
    "path": "Patient",
    "kind": "composite",
    "type_code": "Patient",
    "type_url": PATIENT_URL,
    "children": [
        _primitive("id", "Patient.id", "id"),
        _primitive("active", "Patient.active", "boolean"),
        _primitive("birthDate", "Patient.birthDate", "date"),
        _human_name("name", "Patient.name", max="*"),
        {
            "name": "deceased[x]",
            "path": "Patient.deceased[x]",
            "kind": "choice",
            "choices": [
                _primitive("deceasedBoolean", "Patient.deceasedBoolean", "boolean"),
                _primitive("deceasedDateTime", "Patient.deceasedDateTime", "dateTime"),
            ],
        },
        {
            "name": "contact",
            "path": "Patient.contact",
            "kind": "composite",
            "type_code": "BackboneElement",
            "max": "*",
            "children": [
                _primitive("gender", "Patient.contact.gender", "code"),
                _human_name("name", "Patient.contact.name"),
            ],
        },
        {
            "name": "managingOrganization",
            "path": "Patient.managingOrganization",
            "kind": "reference",
            "type_code": "Reference",
            "target_types": ["http://hl7.org/fhir/StructureDefinition/Organization"],
            "children": [
                _primitive("reference", "Reference.reference", "string"),
                _primitive("display", "Reference.display", "string"),
            ],
        },
        {
            "name": "birthsex",
            "path": "Patient.extension",
            "kind": "extension",
            "extension_url": BIRTHSEX_URL,
            "value": _primitive("valueCode", "Extension.valueCode", "code"),
        },
        {
            "name": "race",
            "path": "Patient.extension",
            "kind": "extension",
            "extension_url": RACE_URL,
            "children": [
                {
                    "name": "text",
                    "path": "Extension.extension",
                    "kind": "extension",
                    "extension_url": "text",
                    "value": _primitive("valueString", "Extension.valueString", "string"),
                },
                {
                    "name": "detailed",
                    "path": "Extension.extension",
                    "kind": "extension",
                    "extension_url": "detailed",
                    "max": "*",
                    "value": _primitive("valueCode", "Extension.valueCode", "code"),
                },
            ],
        },
        {
            "name": "placeholder",
            "path": "Patient.extension",
            "kind": "extension",
            "extension_url": EMPTY_EXTENSION_URL,
        },
    ],
}


QUESTIONNAIRE_DEFINITION = {
    "name": "Questionnaire",
    "path": "Questionnaire",
    "kind": "composite",
    "type_code": "Questionnaire",
    "type_url": "http://hl7.org/fhir/StructureDefinition/Questionnaire",
    "children": [
        {
            "name": "item",
            "path": "Questionnaire.item",
            "kind": "composite",
            "type_code": "BackboneElement",
            "max": "*",
            "children": [
                _primitive("linkId", "Questionnaire.item.linkId", "string"),
                {
                    "name": "item",
                    "path": "Questionnaire.item.item",
                    "kind": "composite",
                    "max": "*",
                    "content_reference": "#Questionnaire.item",
                },
            ],
        },
    ],
}


def _human_name_value(family, *given):
    return Composite(
        type_code="HumanName",
        properties={
            "family": Primitive(family, "string"),
            "given": [Primitive(g, "string") for g in given],
        },
    )


@pytest.fixture
def patient_definition():
    """Element definition tree covering every element shape."""
    return copy.deepcopy(PATIENT_DEFINITION)


@pytest.fixture
def questionnaire_definition():
    """Definition with a recursive (content reference) element."""
    return copy.deepcopy(QUESTIONNAIRE_DEFINITION)


@pytest.fixture
def patient_value():
    """A Patient populating every field of ``patient_definition``."""
    return Composite(
        type_code="Patient",
        properties={
            "id": Primitive("example", "id"),
            "active": Primitive(False, "boolean"),
            "birthDate": Primitive("1974-12-25", "date"),
            "name": [_human_name_value("Chalmers", "Peter", "James")],
            "deceased": Tagged("DateTime", Primitive("2015-02-14T13:42:00+10:00", "dateTime")),
            "contact": [
                Composite(
                    type_code="BackboneElement",
                    properties={
                        "gender": Primitive("female", "code"),
                        "name": _human_name_value("du Marché", "Bénédicte"),
                    },
                ),
            ],
            "managingOrganization": Composite(
                type_code="Reference",
                properties={
                    "reference": Primitive("Organization/1", "string"),
                    "display": Primitive("Gastroenterology", "string"),
                },
            ),
        },
        extensions=[
            Extension(url=BIRTHSEX_URL, value=Primitive("M", "code")),
            Extension(
                url=RACE_URL,
                extensions=[
                    Extension(url="text", value=Primitive("Mixed", "string")),
                    Extension(url="detailed", value=Primitive("2106-3", "code")),
                    Extension(url="detailed", value=Primitive("2054-5", "code")),
                ],
            ),
        ],
    )


@pytest.fixture
def session():
    return CompilationSession()


@pytest.fixture
def visitor(session):
    return AvroConverterVisitor(session)
