from dspc.codegen import CodeGen
from dspc.fields import DUMMY_ACC, Field
from dspc.optimizer import drop_nops, opt_loads, optimize, trickle_down


D = DUMMY_ACC
OUT = DUMMY_ACC | Field.EWT.mask
STORE = DUMMY_ACC | Field.MWT.mask


def gen(src):
    return CodeGen().gen(src.split("\n"))


def test_drop_nops_removes_adjacent_pairs_only():
    steps, coefs = drop_nops([D, D, OUT], [0, 0, 0])
    assert steps == [OUT]
    assert coefs == [0]

    steps, coefs = drop_nops([D, OUT, D], [0, 0, 0])
    assert steps == [D, OUT, D]

    steps, coefs = drop_nops([D, D, D], [0, 0, 0])
    assert steps == [D]


def test_drop_nops_keeps_dummy_with_coefficient():
    steps, coefs = drop_nops([D, D], [0, 5])
    assert steps == [D, D]
    assert coefs == [0, 5]


def test_trickle_down_moves_work_before_nops():
    steps, coefs = [D, D, OUT], [0, 0, 7]
    trickle_down(steps, coefs)
    assert steps == [OUT, D, D]
    assert coefs == [7, 0, 0]


def test_trickle_down_keeps_relative_order():
    a = OUT | Field.EWA.prep(1)
    b = OUT | Field.EWA.prep(2)
    steps, coefs = [a, D, D, b, D, a], [0] * 6
    trickle_down(steps, coefs)
    assert steps == [a, b, a, D, D, D]


def test_trickle_down_leaves_memory_steps_in_place():
    steps, coefs = [D, STORE, D, OUT], [0] * 4
    trickle_down(steps, coefs)
    assert steps == [D, STORE, OUT, D]


def test_trickle_down_stops_at_dummy_with_coefficient():
    steps, coefs = [D, OUT], [3, 0]
    trickle_down(steps, coefs)
    assert steps == [D, OUT]


def test_opt_loads_hoists_read():
    prog = gen("\n".join(["OUTPUT mixer:0"] * 4 + ["LD [madrs:1], mems:3"]))
    # 4 outputs, alignment dummy, read, bubble, write
    assert len(prog.steps) == 8
    steps = opt_loads(list(prog.steps))
    assert Field.MRD.get(steps[3]) == 1
    assert Field.MASA.get(steps[3]) == 1
    assert Field.NOFL.get(steps[3]) == 1
    assert Field.IWT.get(steps[5]) == 1
    assert Field.IWA.get(steps[5]) == 3
    assert Field.MRD.get(steps[5]) == 0
    assert steps[7] == D


def test_opt_loads_respects_reader_of_target_register():
    src = ["OUTPUT mixer:0"] * 4 + ["INPUT mems:3", "OUTPUT yreg", "LD [madrs:1], mems:3"]
    prog = gen("\n".join(src))
    assert len(prog.steps) == 8
    steps = opt_loads(list(prog.steps))
    assert steps == prog.steps


def test_opt_loads_skips_steps_writing_memory():
    prog = gen("OUTPUT mixer:0\nOUTPUT mixer:0\nST [madrs:0]\nLD [madrs:1], mems:3")
    # out, out, dummy, store, read, bubble, write: store sits on step 3
    assert Field.MWT.get(prog.steps[3]) == 1
    steps = opt_loads(list(prog.steps))
    assert Field.MRD.get(steps[3]) == 0
    assert steps == prog.steps


def test_optimize_pipeline():
    prog = gen("\n".join(["OUTPUT mixer:0"] * 4 + ["LD [madrs:1], mems:3"]))
    steps, coefs = optimize(prog.steps, prog.coefs)
    assert len(steps) == 6
    assert len(coefs) == 6
    assert Field.MRD.get(steps[3]) == 1
    assert Field.IWT.get(steps[5]) == 1
    # inputs are not modified
    assert len(prog.steps) == 8


def test_optimize_keeps_step_parity():
    for src in ["OUTPUT mixer:0", "ST [madrs:0]\nOUTPUT mixer:1", "LD [madrs:0], mems:0\nOUTPUT yreg"]:
        prog = gen(src)
        steps, _ = optimize(prog.steps, prog.coefs)
        assert len(steps) % 2 == len(prog.steps) % 2
