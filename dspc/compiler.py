import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping

from .ast import MacroDefinition
from .codegen import CodeGen
from .errors import CompilationError
from .formatter import format_program
from .optimizer import optimize
from .preprocessor import preprocess


logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """Assembly text plus what a host tool may want to keep around.

    macros is the #define table of this compilation, for hover lookups.
    """
    assembly: str
    macros: Mapping[str, MacroDefinition]
    steps: List[int] = field(default_factory=list)
    coefs: List[int] = field(default_factory=list)
    madrs: List[str] = field(default_factory=list)


def compile_source(source: str) -> CompileResult:
    """Compile DSP source text.

    Raises CompilationError carrying every diagnostic, preprocessor ones
    first, if any line could not be compiled.
    """
    pre = preprocess(source)
    macros = MappingProxyType(dict(pre.macros))

    program = CodeGen().gen(pre.output.split("\n"))
    diagnostics = pre.errors + program.errors
    if diagnostics:
        logger.debug("compilation failed with %d diagnostics", len(diagnostics))
        raise CompilationError(diagnostics, macros=macros)

    steps, coefs = optimize(program.steps, program.coefs)
    return CompileResult(
        assembly=format_program(steps, coefs, program.madrs),
        macros=macros,
        steps=steps,
        coefs=coefs,
        madrs=program.madrs,
    )


def compile(source: str) -> str:
    """Compile DSP source text to assembly text."""
    return compile_source(source).assembly
