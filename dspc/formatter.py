"""Render compiled steps as AICA DSP assembly text."""
from .fields import FIELD_ORDER


def format_step(word: int) -> str:
    """Field list of one step: FIELD for value 1, FIELD:n otherwise, zeros omitted."""
    parts = []
    for field in FIELD_ORDER:
        value = field.get(word)
        if value == 1:
            parts.append(field.name)
        elif value:
            parts.append(f"{field.name}:{value}")
    return " ".join(parts)


def format_program(steps, coefs, madrs) -> str:
    lines = list(madrs)
    for idx, word in enumerate(steps):
        if idx < len(coefs) and coefs[idx]:
            lines.append(f"COEF[{idx}] = {coefs[idx]}")
        fields = format_step(word)
        lines.append(f"MPRO[{idx}] = {fields}" if fields else f"MPRO[{idx}] =")
    return "\n".join(lines)
