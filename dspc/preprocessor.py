"""C-style preprocessing: comments and #define macros.

Line count is preserved throughout so diagnostics raised later still point
at the lines they came from.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List

from .ast import Diagnostic, MacroDefinition


logger = logging.getLogger(__name__)

MAX_EXPANSION_ROUNDS = 100

_block_comment = re.compile(r"/\*.*?\*/", re.S)
_define = re.compile(r"^#define\s+([A-Za-z_]\w*)\s+(.+)$")


@dataclass
class PreprocessResult:
    output: str
    macros: Dict[str, MacroDefinition] = field(default_factory=dict)
    errors: List[Diagnostic] = field(default_factory=list)


def strip_block_comments(source: str) -> str:
    """Replace each /* ... */ by the newlines it spanned."""
    return _block_comment.sub(lambda m: "\n" * m.group(0).count("\n"), source)


def expand_line(line, macros):
    """Substitute macros into a line until nothing changes.

    Returns (expanded_line, complete). complete is False when the round cap
    was hit, which usually means a macro refers to itself.
    """
    patterns = [(re.compile(rf"\b{re.escape(name)}\b"), m.value) for name, m in macros.items()]
    for _ in range(MAX_EXPANSION_ROUNDS):
        changed = False
        for pattern, value in patterns:
            # Callable replacement so backslashes in the value stay literal
            new_line = pattern.sub(lambda _m, v=value: v, line)
            if new_line != line:
                line = new_line
                changed = True
        if not changed:
            return line, True
    return line, False


def preprocess(source: str) -> PreprocessResult:
    text = strip_block_comments(source)
    result = PreprocessResult(output="")
    out_lines = []

    for lineno, line in enumerate(text.split("\n"), start=1):
        comment = line.find("//")
        if comment != -1:
            line = line[:comment]
        line = line.strip()

        if not line:
            out_lines.append("")
            continue

        m = _define.match(line)
        if m:
            name, value = m.group(1), m.group(2).strip()
            previous = result.macros.get(name)
            if previous is not None:
                result.errors.append(Diagnostic(
                    lineno,
                    f"Macro '{name}' redefined (previously defined on line {previous.line})",
                ))
            else:
                result.macros[name] = MacroDefinition(name=name, value=value, line=lineno)
                logger.debug("line %d: #define %s %s", lineno, name, value)
            out_lines.append(f"// {line}")
            continue

        if line.startswith("//") or line.startswith("#"):
            out_lines.append(line)
            continue

        expanded, complete = expand_line(line, result.macros)
        if not complete:
            result.errors.append(Diagnostic(
                lineno,
                "Macro expansion exceeded maximum iterations (possible circular definition)",
            ))
        out_lines.append(expanded)

    result.output = "\n".join(out_lines)
    return result
