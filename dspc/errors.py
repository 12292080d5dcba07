"""Exceptions raised by the DSP compiler."""


class DspError(Exception):
    """Base class for compiler errors."""
    pass


class InstructionError(DspError):
    """A single source line could not be compiled.

    Raised by the line parser and the directive handlers; the code generator
    turns it into a Diagnostic and moves on to the next line.
    """
    label = "Bad instruction"

    def __init__(self, text):
        self.text = text
        super().__init__(f"{self.label}: {text}")


class UnhandledInstruction(InstructionError):
    """The line matches no known directive."""
    label = "Unhandled instruction"


class InvalidInstruction(InstructionError):
    """The directive is known but an operand is out of range."""
    label = "Invalid instruction"


class CompilationError(DspError):
    """Compilation failed; carries every diagnostic found."""

    def __init__(self, diagnostics, macros=None):
        self.diagnostics = list(diagnostics)
        self.macros = dict(macros) if macros else {}
        super().__init__("\n".join(str(d) for d in self.diagnostics))
