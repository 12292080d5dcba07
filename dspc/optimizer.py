import logging

from .fields import DUMMY_ACC, Field, clear


logger = logging.getLogger(__name__)

# Bits that travel with a memory read when it is hoisted
_READ_FIELDS = (Field.MRD, Field.TABLE, Field.ADREB, Field.NXADR, Field.MASA, Field.NOFL)
_READ_MASK = sum(f.mask for f in _READ_FIELDS)

# Any of these means the step consumes the INPUTS register selected by IRA
_INPUT_READERS = Field.ADRL.mask | Field.YRL.mask | Field.XSEL.mask

_MEMORY_OPS = Field.MWT.mask | Field.MRD.mask | Field.IWT.mask


def optimize(steps, coefs):
    """Run every pass in order. Returns the new (steps, coefs) lists."""
    steps = list(steps)
    coefs = list(coefs)
    count = len(steps)
    opt_loads(steps)
    trickle_down(steps, coefs)
    steps, coefs = drop_nops(steps, coefs)
    logger.debug("optimizer: %d -> %d steps", count, len(steps))
    return steps, coefs


def is_nop(steps, coefs, idx) -> bool:
    return steps[idx] == DUMMY_ACC and coefs[idx] == 0


def opt_loads(steps):
    """Issue memory reads as early as the data dependencies allow.

    A load is three steps: MRD, a bubble, then IWT writing MEMS[iwa]. The
    read moves back past every step that does not consume MEMS[iwa] as an
    input (and past no earlier MEMS write), lands on an odd step that is
    not already storing to memory, and the IWT follows it two steps later.
    """
    for idx in range(3, len(steps)):
        step = steps[idx]
        if not Field.MRD.get(step) or Field.IWT.get(step):
            continue

        iwa = Field.IWA.get(steps[idx + 2])
        old_idx = idx

        while old_idx > 2 and not step & Field.IWT.mask:
            old_idx -= 1
            step = steps[old_idx]
            if step & _INPUT_READERS and Field.IRA.get(step) == iwa:
                break

        # Round up to odd
        old_idx += (old_idx & 1) ^ 1

        # Only one memory access per step
        while old_idx < idx and steps[old_idx] & Field.MWT.mask:
            old_idx += 2

        if old_idx < idx:
            steps[old_idx] |= steps[idx] & _READ_MASK
            steps[old_idx + 2] |= Field.IWT.mask | Field.IWA.prep(iwa)
            steps[idx] = clear(steps[idx], *_READ_FIELDS)
            steps[idx + 2] = clear(steps[idx + 2], Field.IWT, Field.IWA)
            logger.debug("hoisted load of MEMS[%d] from step %d to %d", iwa, idx, old_idx)

    return steps


def trickle_down(steps, coefs):
    """Move work toward the start of the program, past no-op steps.

    Steps touching memory keep their slot; everything else swaps with a
    no-op just before it. Every swap moves a no-op one index later, so the
    loop ends after at most len(steps) sweeps that change anything.
    """
    max_sweeps = len(steps) + 1
    for _ in range(max_sweeps):
        found = False
        for idx in range(len(steps) - 1, 0, -1):
            step = steps[idx]
            if step == DUMMY_ACC or step & _MEMORY_OPS:
                continue
            if is_nop(steps, coefs, idx - 1):
                steps[idx - 1], steps[idx] = step, DUMMY_ACC
                coefs[idx - 1], coefs[idx] = coefs[idx], 0
                found = True
        if not found:
            break


def drop_nops(steps, coefs):
    """Delete pairs of adjacent no-op steps, keeping step parity."""
    was_nop = False
    for idx in range(len(steps) - 1, -1, -1):
        if is_nop(steps, coefs, idx):
            if was_nop:
                del steps[idx:idx + 2]
                del coefs[idx:idx + 2]
                was_nop = False
            else:
                was_nop = True
            continue
        was_nop = False
    return steps, coefs
