"""Base exception for compilation errors."""

from fhiravro.codes import CompileErrorCode


class CompilationError(Exception):
    """Base exception for schema compilation errors.

    Every subclass carries a stable ``code`` so callers can react to the
    failure kind without inspecting the message.
    """

    def __init__(self, code: CompileErrorCode, message: str):
        self.code = code
        super().__init__(message)
