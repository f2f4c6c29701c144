"""Test public API surface - ensure imports work correctly and no side effects.

This test verifies:
- fhiravro.api exposes compile_definition and the converters' entry points
- The package root re-exports the API without shadowing submodules
- Kernel modules import without touching the filesystem or CLI
"""

import types


def test_api_exports_core_functions():
    """Test that fhiravro.api exports its entry points as functions."""
    from fhiravro.api import compile_definition, from_avro_record, load_definition, to_avro_record

    for fn in (compile_definition, from_avro_record, load_definition, to_avro_record):
        assert isinstance(fn, types.FunctionType)


def test_root_all_matches_namespace():
    import fhiravro

    for name in fhiravro.__all__:
        assert hasattr(fhiravro, name), name
    assert "api" not in fhiravro.__all__
    assert "cli" not in fhiravro.__all__


def test_no_module_shadowing():
    """Importing fhiravro.api as a module must not replace the exported functions."""
    import fhiravro
    import fhiravro.api as api_module

    assert isinstance(api_module, types.ModuleType)
    assert fhiravro.compile_definition is api_module.compile_definition


def test_error_codes_are_stable_strings():
    from fhiravro import CompileErrorCode

    assert CompileErrorCode.UNRECOGNIZED_STRUCTURE_URL == "UNRECOGNIZED_STRUCTURE_URL"
    assert {code.value for code in CompileErrorCode} == {
        "UNRECOGNIZED_STRUCTURE_URL",
        "RECORD_NAME_COLLISION",
        "UNKNOWN_CHOICE_TYPE",
        "AMBIGUOUS_CHOICE_VALUE",
        "NOT_AN_OBJECT_CONVERTER",
        "INVALID_PRIMITIVE_VALUE",
    }


def test_compilation_errors_share_a_base():
    from fhiravro import CompilationError
    from fhiravro.kernel.converters import ChoiceDispatchError, ConverterCapabilityError
    from fhiravro.kernel.naming import NamespaceError
    from fhiravro.kernel.session import RecordNameCollisionError

    for cls in (ChoiceDispatchError, ConverterCapabilityError, NamespaceError, RecordNameCollisionError):
        assert issubclass(cls, CompilationError)
