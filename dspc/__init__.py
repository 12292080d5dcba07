"""Compiler for the AICA (Dreamcast sound chip) DSP effect language."""
from .compiler import CompileResult, compile, compile_source
from .errors import CompilationError, DspError
from .preprocessor import preprocess

__all__ = [
    "CompileResult",
    "CompilationError",
    "DspError",
    "compile",
    "compile_source",
    "preprocess",
]
