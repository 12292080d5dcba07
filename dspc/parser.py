from functools import lru_cache

from lark import Lark, Transformer
from lark.exceptions import LarkError

from . import ast
from .errors import UnhandledInstruction


# One directive per line; keywords are case-insensitive.
GRAMMAR = r"""
?start: madrs | input | output | mac | smode | store_temp | store | store_raw | load | load_raw

madrs: "madrs"i "[" INT "]" "=" MADRS_VALUE

input: "input"i input_kind ":" INT
!input_kind: "mixer"i | "mems"i | "cdda"i

?output: "output"i "yreg"i              -> output_yreg
       | "output"i "adrs"i [SCALE]      -> output_adrs
       | "output"i "mixer"i ":" INT     -> output_mixer

mac: "mac"i mac_source "," factor ["," accumulate]
?mac_source: "input"i                   -> input_source
           | temp_ref
factor: "shifted"i ":" half             -> shifted
      | "yreg"i ":" half                -> yreg
      | COEF                            -> coef
!half: "lo"i | "hi"i
accumulate: [NEG] "acc"i                -> acc_target
          | [NEG] temp_ref              -> temp_target

smode: "smode"i smode_name
!smode_name: "sat"i | "sat2"i | "trim"i | "trim2"i

store_temp: "st"i temp_ref
store: "st"i mem_addr
store_raw: "stf"i mem_addr
load: "ld"i mem_addr "," "mems"i ":" INT
load_raw: "ldf"i mem_addr "," "mems"i ":" INT

temp_ref: "[" "temp"i ":" INT "]"

mem_addr: "[" mem_body "]"              -> table_addr
        | "[" mem_body                  -> unbalanced_addr
        | mem_body "]"                  -> unbalanced_addr
        | mem_body                      -> ring_addr
mem_body: "madrs"i ":" INT [INCR] [SCALE]

NEG: "-"
INCR: "+"
SCALE: "/s"
COEF: /#(0[xX][0-9a-fA-F]+|-?\d+)/
MADRS_VALUE: /0[xX][0-9a-fA-F]+|-?\d+/

%import common.INT
%import common.WS_INLINE
%ignore WS_INLINE
"""


def parse_number(text) -> int:
    """Parse a decimal (optionally negative) or 0x-prefixed hex literal."""
    text = str(text).strip()
    sign = 1
    if text.startswith('-'):
        sign = -1
        text = text[1:]
    if text.startswith('0x') or text.startswith('0X'):
        return sign * int(text[2:], 16)
    # Leading zeros are plain decimal, unlike int(text, 0)
    return sign * int(text, 10)


class LineBuilder(Transformer):
    """Turns a directive parse tree into an ast node."""

    def _val(self, item):
        # Token objects have .value; strings are already str
        try:
            return item.value
        except AttributeError:
            return str(item)

    def madrs(self, items):
        return ast.Madrs(index=int(items[0]), value=self._val(items[1]))

    def input(self, items):
        return ast.Input(kind=items[0], index=int(items[1]))

    def input_kind(self, items):
        return self._val(items[0]).lower()

    def output_yreg(self, items):
        return ast.OutputYreg()

    def output_adrs(self, items):
        return ast.OutputAdrs(scaled=items[0] is not None)

    def output_mixer(self, items):
        return ast.OutputMixer(index=int(items[0]))

    def mac(self, items):
        source, factor, accumulate = items
        return ast.Mac(temp=source, factor=factor, accumulate=accumulate)

    def input_source(self, items):
        return None

    def shifted(self, items):
        return ast.Factor(kind='shifted', half=items[0])

    def yreg(self, items):
        return ast.Factor(kind='yreg', half=items[0])

    def coef(self, items):
        return ast.Factor(kind='coef', value=parse_number(self._val(items[0])[1:]))

    def half(self, items):
        return self._val(items[0]).lower()

    def acc_target(self, items):
        return ast.Accumulate(negate=items[0] is not None)

    def temp_target(self, items):
        return ast.Accumulate(negate=items[0] is not None, temp=items[1])

    def smode(self, items):
        return ast.Smode(mode=items[0])

    def smode_name(self, items):
        return self._val(items[0]).lower()

    def store_temp(self, items):
        return ast.StoreTemp(index=items[0])

    def store(self, items):
        return ast.Store(addr=items[0])

    def store_raw(self, items):
        return ast.Store(addr=items[0], raw=True)

    def load(self, items):
        return ast.Load(addr=items[0], mems=int(items[1]))

    def load_raw(self, items):
        return ast.Load(addr=items[0], mems=int(items[1]), raw=True)

    def temp_ref(self, items):
        return int(items[0])

    def table_addr(self, items):
        addr = items[0]
        addr.bracketed = True
        return addr

    def unbalanced_addr(self, items):
        addr = items[0]
        addr.balanced = False
        return addr

    def ring_addr(self, items):
        return items[0]

    def mem_body(self, items):
        index, incr, scale = items
        return ast.MemAddr(index=int(index), increment=incr is not None, scaled=scale is not None)


@lru_cache(maxsize=None)
def _parser():
    return Lark(GRAMMAR, parser="lalr", transformer=LineBuilder(), maybe_placeholders=True)


def parse_line(text: str):
    """Classify one preprocessed source line into an ast node.

    Raises UnhandledInstruction when the line is not a known directive.
    """
    try:
        return _parser().parse(text.strip())
    except LarkError as e:
        raise UnhandledInstruction(text.strip()) from e
