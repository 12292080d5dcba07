import logging
from dataclasses import dataclass, field
from typing import Dict, List

from . import ast
from .ast import Diagnostic
from .errors import InstructionError, InvalidInstruction
from .fields import DUMMY_ACC, Field
from .parser import parse_line


logger = logging.getLogger(__name__)


@dataclass
class Program:
    """Generator output: steps plus the tables that go with them."""
    steps: List[int] = field(default_factory=list)
    coefs: List[int] = field(default_factory=list)
    madrs: List[str] = field(default_factory=list)
    errors: List[Diagnostic] = field(default_factory=list)


def is_comment(line: str) -> bool:
    return line.startswith("//") or line.startswith("#")


class CodeGen:
    """Translates preprocessed directive lines into MPRO steps.

    input_selector and shift_mode are set by INPUT and SMODE and read by
    the directives that follow them; they are the only state carried from
    one line to the next.
    """

    def __init__(self):
        self.steps = []
        self.coefs = {}  # step index -> coefficient, sparse
        self.madrs = []
        self.errors = []
        self.input_selector = 0
        self.shift_mode = 0
        self.handlers = {
            ast.Madrs: self._gen_madrs,
            ast.Input: self._gen_input,
            ast.OutputYreg: self._gen_output_yreg,
            ast.OutputAdrs: self._gen_output_adrs,
            ast.OutputMixer: self._gen_output_mixer,
            ast.Mac: self._gen_mac,
            ast.Smode: self._gen_smode,
            ast.StoreTemp: self._gen_store_temp,
            ast.Store: self._gen_store,
            ast.Load: self._gen_load,
        }

    def emit(self, word):
        self.steps.append(word)

    def _align_odd(self):
        """Memory accesses only happen on odd steps; pad with a no-op."""
        if len(self.steps) % 2 == 0:
            self.emit(DUMMY_ACC)

    def gen_line(self, text: str):
        """Compile one line. Raises InstructionError if it is rejected."""
        node = parse_line(text)
        self.handlers[type(node)](node, text)

    def gen(self, lines) -> Program:
        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line or is_comment(line):
                continue
            try:
                self.gen_line(line)
            except InstructionError as e:
                self.errors.append(Diagnostic(lineno, str(e)))

        coefs = [self.coefs.get(idx, 0) for idx in range(len(self.steps))]
        logger.debug("generated %d steps, %d errors", len(self.steps), len(self.errors))
        return Program(steps=list(self.steps), coefs=coefs, madrs=list(self.madrs), errors=list(self.errors))

    # Directive handlers. Operands are checked before anything is emitted,
    # so a rejected line leaves no steps behind.

    def _gen_madrs(self, node: ast.Madrs, text):
        self.madrs.append(text)

    def _gen_input(self, node: ast.Input, text):
        count, base = ast.INPUT_KINDS[node.kind]
        if node.index >= count:
            raise InvalidInstruction(text)
        self.input_selector = base + node.index

    def _gen_output_yreg(self, node, text):
        self.emit(DUMMY_ACC | Field.IRA.prep(self.input_selector) | Field.YRL.mask)

    def _gen_output_adrs(self, node: ast.OutputAdrs, text):
        ira = Field.IRA.prep(self.input_selector)
        if node.scaled:
            self.emit(DUMMY_ACC | ira | Field.ADRL.mask | Field.SHIFT.prep(3))
        elif self.shift_mode == 3:
            self.emit(DUMMY_ACC | Field.SHIFT.prep(self.shift_mode) | Field.ADRL.mask)
            self.emit(DUMMY_ACC | ira | Field.ADRL.mask)
        else:
            self.emit(DUMMY_ACC | ira | Field.SHIFT.prep(self.shift_mode) | Field.ADRL.mask)

    def _gen_output_mixer(self, node: ast.OutputMixer, text):
        if node.index >= ast.MIXER_COUNT:
            raise InvalidInstruction(text)
        self.emit(DUMMY_ACC | Field.EWT.mask | Field.EWA.prep(node.index)
                  | Field.SHIFT.prep(self.shift_mode))

    def _gen_mac(self, node: ast.Mac, text):
        acc = node.accumulate
        temps = [t for t in (node.temp, acc.temp if acc else None) if t is not None]
        if any(t >= ast.TEMP_COUNT for t in temps):
            raise InvalidInstruction(text)
        # Both operands address TEMP through the same TRA field
        if node.temp is not None and acc is not None and acc.temp is not None and acc.temp != node.temp:
            raise InvalidInstruction(text)

        if node.temp is None:
            word = Field.XSEL.mask | Field.IRA.prep(self.input_selector)
        else:
            word = Field.TRA.prep(node.temp)

        factor = node.factor
        if factor.kind == 'yreg':
            word |= Field.YSEL.prep(3 if factor.half == 'lo' else 2)
        elif factor.kind == 'shifted':
            # Latch the shifted value into the Y register first
            latch = DUMMY_ACC | Field.FRCL.mask
            if factor.half == 'lo':
                latch |= Field.SHIFT.prep(3)
            self.emit(latch)
        else:
            word |= Field.YSEL.prep(1)
            self.coefs[len(self.steps)] = factor.value << 3

        if acc is None:
            word |= Field.ZERO.mask
        else:
            if acc.negate:
                word |= Field.NEGB.mask
            if acc.temp is None:
                word |= Field.BSEL.mask
            else:
                word = (word & ~Field.TRA.mask) | Field.TRA.prep(acc.temp)

        self.emit(word)

    def _gen_smode(self, node: ast.Smode, text):
        self.shift_mode = ast.SHIFT_MODES[node.mode]

    def _gen_store_temp(self, node: ast.StoreTemp, text):
        if node.index >= ast.TEMP_COUNT:
            raise InvalidInstruction(text)
        self.emit(DUMMY_ACC | Field.SHIFT.prep(self.shift_mode) | Field.TWT.mask
                  | Field.TWA.prep(node.index))

    def _mem_control(self, addr: ast.MemAddr, raw: bool) -> int:
        word = Field.MASA.prep(addr.index)
        if not addr.bracketed:
            word |= Field.TABLE.mask
        if addr.scaled:
            word |= Field.ADREB.mask
        if addr.increment:
            word |= Field.NXADR.mask
        if not raw:
            word |= Field.NOFL.mask
        return word

    def _check_addr(self, addr: ast.MemAddr, text):
        if addr.index >= ast.MADRS_COUNT or not addr.balanced:
            raise InvalidInstruction(text)

    def _gen_store(self, node: ast.Store, text):
        self._check_addr(node.addr, text)
        self._align_odd()
        self.emit(DUMMY_ACC | Field.SHIFT.prep(self.shift_mode) | Field.MWT.mask
                  | self._mem_control(node.addr, node.raw))

    def _gen_load(self, node: ast.Load, text):
        self._check_addr(node.addr, text)
        if node.mems >= ast.MEMS_COUNT:
            raise InvalidInstruction(text)
        self._align_odd()
        # Read, wait one step, then write the result into MEMS
        self.emit(DUMMY_ACC | Field.MRD.mask | self._mem_control(node.addr, node.raw))
        self.emit(DUMMY_ACC)
        self.emit(DUMMY_ACC | Field.IWT.mask | Field.IWA.prep(node.mems))
