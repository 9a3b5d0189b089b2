import pytest

from shape import LOGO_CODE
from spu import Spu, SpuState
from tmam import set_log_callback


@pytest.mark.parametrize("prog", ["ICLCRS1LSCXIC1XSO", "IICR2CLSSC2SUOF"])
def test_logo_programs(prog):
    spu = Spu()
    spu.set_input([0xF, 0xF])
    outputs = spu.run(prog)
    assert [shape.code for shape in outputs] == [LOGO_CODE]


def test_underflow_is_logged():
    lines = []
    set_log_callback(lines.append)
    try:
        spu = Spu()
        assert spu.run("S") == []
        assert spu.state == []
        assert spu.run("I") == []
        assert spu.run("?") == []
    finally:
        set_log_callback(None)
    errors = [line for line in lines if line.startswith("ERROR:")]
    assert errors == [
        "ERROR: Stack requires 2 entries.",
        "ERROR: Input is empty.",
        "ERROR: Unknown operation: ?",
    ]


def test_move():
    spu = Spu()
    spu.set_input([0x1, 0x2, 0x4])
    spu.run("III2")
    assert [shape.code for shape in spu.state] == [0x2, 0x4, 0x1]


def test_search():
    spu = Spu()
    programs = spu.search([0xF], 4)
    assert programs[0xF] == "IO"
    assert programs[0x3] == "ICO"
    assert spu.stats["loops"] >= 1
    assert "ICO" in spu.unique_programs()[0x3]
    summary = spu.summary([0xF], 4)
    assert summary[0] == "Input data:       [000f]"
    assert summary[1] == "Number of pieces: 4"


def test_state_copy():
    state = SpuState("I", [], ["[]"])
    other = state.copy()
    other.history.append("x")
    other.prog += "O"
    assert state.history == ["[]"]
    assert state.prog == "I"
