"""fhiravro: compile FHIR structure definitions into Avro schemas and converters."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("fhiravro")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from fhiravro.api import (
    CompileResult,
    compile_definition,
    from_avro_record,
    load_definition,
    to_avro_record,
)
from fhiravro.codes import CompileErrorCode
from fhiravro.kernel.errors import CompilationError
from fhiravro.kernel.session import CompilationSession, CompilerSettings

__all__ = [
    "__version__",
    "CompileResult",
    "compile_definition",
    "from_avro_record",
    "load_definition",
    "to_avro_record",
    "CompileErrorCode",
    "CompilationError",
    "CompilationSession",
    "CompilerSettings",
]
