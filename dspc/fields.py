"""Bit layout of an AICA DSP microcode word.

Each MPRO step is a 64-bit word split into 24 fields. The enumeration
order below is the order fields are rendered in assembly text.
"""
from enum import Enum


WORD_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1


class Field(Enum):
    # name = (width, offset)
    TRA = (7, 57)
    TWT = (1, 56)
    TWA = (7, 49)
    XSEL = (1, 47)
    YSEL = (2, 45)
    IRA = (6, 39)
    IWT = (1, 38)
    IWA = (5, 33)
    TABLE = (1, 31)
    MWT = (1, 30)
    MRD = (1, 29)
    EWT = (1, 28)
    EWA = (4, 24)
    ADRL = (1, 23)
    FRCL = (1, 22)
    SHIFT = (2, 20)
    YRL = (1, 19)
    NEGB = (1, 18)
    ZERO = (1, 17)
    BSEL = (1, 16)
    NOFL = (1, 15)
    MASA = (6, 9)
    ADREB = (1, 8)
    NXADR = (1, 7)

    def __init__(self, width, offset):
        self.width = width
        self.offset = offset
        self.mask = ((1 << width) - 1) << offset

    def get(self, word: int) -> int:
        """Extract this field's value from a word."""
        return (word & self.mask) >> self.offset

    def prep(self, value: int) -> int:
        """Shift a value into this field's position, dropping excess bits."""
        return (value << self.offset) & self.mask


FIELD_ORDER = tuple(Field)


def _check_layout():
    used = 0
    for field in Field:
        if used & field.mask:
            raise ValueError(f"Field {field.name} overlaps another field")
        if field.offset + field.width > WORD_BITS:
            raise ValueError(f"Field {field.name} does not fit in a {WORD_BITS}-bit word")
        used |= field.mask
    return used


# Union of all field masks; no other bit of a word may ever be set
FIELDS_MASK = _check_layout()

# acc = x * 0 + acc: the no-op filler step
DUMMY_ACC = Field.YSEL.prep(1) | Field.BSEL.mask


def decode(word: int) -> dict:
    """Return every field value of a word, keyed by field name."""
    return {field.name: field.get(word) for field in FIELD_ORDER}


def clear(word: int, *fields: Field) -> int:
    """Return the word with the given fields zeroed."""
    mask = 0
    for field in fields:
        mask |= field.mask
    return word & ~mask & WORD_MASK
