from dataclasses import dataclass
from typing import Optional


# Input kind -> (number of registers, base offset into IRA)
INPUT_KINDS = {
    'mems': (32, 0),
    'mixer': (16, 32),
    'cdda': (2, 48),
}

SHIFT_MODES = {
    'sat': 0,
    'sat2': 1,
    'trim2': 2,
    'trim': 3,
}

TEMP_COUNT = 128
MADRS_COUNT = 64
MEMS_COUNT = 32
MIXER_COUNT = 16


@dataclass(frozen=True)
class Diagnostic:
    """A problem found at a given (1-based) source line."""
    line: int
    message: str

    def __str__(self):
        return f"Line {self.line}: {self.message}"


@dataclass(frozen=True)
class MacroDefinition:
    name: str
    value: str
    line: int


@dataclass
class Madrs:
    """MADRS[n] = value, passed through verbatim."""
    index: int
    value: str


@dataclass
class Input:
    kind: str  # 'mems', 'mixer' or 'cdda'
    index: int


@dataclass
class OutputYreg:
    pass


@dataclass
class OutputAdrs:
    scaled: bool = False  # OUTPUT adrs/s


@dataclass
class OutputMixer:
    index: int


@dataclass
class Factor:
    """Second MAC operand.

    kind is 'shifted', 'yreg' or 'coef'. For 'shifted' and 'yreg' the half
    is 'lo' or 'hi'; for 'coef' value holds the literal.
    """
    kind: str
    half: Optional[str] = None
    value: int = 0


@dataclass
class Accumulate:
    """Optional third MAC operand: [-]acc or [-][temp:n]."""
    negate: bool = False
    temp: Optional[int] = None  # None means the accumulator


@dataclass
class Mac:
    temp: Optional[int]  # None when the source is the current input
    factor: Factor
    accumulate: Optional[Accumulate] = None


@dataclass
class Smode:
    mode: str


@dataclass
class StoreTemp:
    index: int


@dataclass
class MemAddr:
    """madrs:n operand of ST/LD, bracketed or bare."""
    index: int
    bracketed: bool = False
    balanced: bool = True
    increment: bool = False  # trailing '+'
    scaled: bool = False     # trailing '/s'


@dataclass
class Store:
    addr: MemAddr
    raw: bool = False  # STF: no float conversion


@dataclass
class Load:
    addr: MemAddr
    mems: int
    raw: bool = False  # LDF
