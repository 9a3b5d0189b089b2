import pytest

from shape import LOGO_CODE, FULL_LAYER, CODE_MASK, stack_code
from tmam import (
    ORDERS, stack_order, place_parts, try_build, DeconstructionResult, StackOrderError,
    LOGOS_STRICT, LOGOS_LOOSE, set_log_callback, uses_fifth_layer
)
from peel_tracer import PeelTracer
from logo_tracer import LogoTracer, find_all_logos, arrange_parts
from quad_tracer import QuadTracer, Rule
from tmam_solver import TmamSolver, Strategy, candidate_codes, solve_shape
from shape_catalog import ShapeCatalog


@pytest.fixture
def log_lines():
    lines = []
    set_log_callback(lines.append)
    yield lines
    set_log_callback(None)


def test_orders_table():
    assert ORDERS[2] == ["01+"]
    assert ORDERS[5] == ["01234++++", "012++34++", "01+234+++"]
    for n, orders in ORDERS.items():
        for order in orders:
            assert order.count("+") == n - 1


def test_stack_order_pops_top_first():
    assert stack_order([0x3, 0x48], "01+") == LOGO_CODE
    assert stack_order([0xF, 0xF, 0xF], "012++") == 0xFFF
    assert stack_order([0x1, 0x2, 0x4], "01+2+") == stack_code(0x4, stack_code(0x2, 0x1))


def test_stack_order_errors():
    with pytest.raises(StackOrderError):
        stack_order([0x1], "0+")
    with pytest.raises(StackOrderError):
        stack_order([0x1, 0x2], "01")
    with pytest.raises(StackOrderError):
        stack_order([0x1, 0x2], "02+")


def test_place_parts():
    assert place_parts([0x3, 0x48], "01+") == [0, 0]
    assert place_parts([0xF, 0xF], "01+") == [0, 1]
    assert place_parts([0xF, 0xF, 0xF], "012++") == [0, 1, 2]


def test_try_build():
    assert try_build(LOGO_CODE, [0x3, 0x48]) == "01+"
    assert try_build(LOGO_CODE, [0xB, 0x4]) is None
    assert try_build(0xF, []) is None
    assert try_build(0xF, [0x1] * 6) is None


def test_result_line_format():
    result = DeconstructionResult(LOGO_CODE, [0x3, 0x48], "01+")
    assert result.to_line() == "004b [0003,0048] 01+"
    assert result.verify()
    assert DeconstructionResult.from_line(result.to_line()) == result
    assert DeconstructionResult.from_line("004b 0003 01+") is None
    assert DeconstructionResult.from_line("zz [0003] 0") is None
    assert not DeconstructionResult(LOGO_CODE, [0xB, 0x4], "01+").verify()


def test_logo_tables():
    assert LOGOS_STRICT[0][2] == [(0x21, 0x33), (0x12, 0x33)]
    assert LOGOS_LOOSE[0][2] == [(0x21, 0x23), (0x12, 0x13)]
    assert LOGOS_LOOSE[0][3] == [(0x121, 0x133), (0x212, 0x233)]
    assert LOGOS_LOOSE[0][4] == [(0x2121, 0x2333), (0x1212, 0x1333)]
    # 위치 1 은 한 칸 회전
    assert LOGOS_STRICT[1][2][0] == (0x42, 0x66)


def test_quad_tracer_logo():
    result = QuadTracer().trace(LOGO_CODE)
    assert result is not None
    assert result.parts == [0x3, 0x48]
    assert result.order == "01+"
    assert result.verify()
    assert not result.extra


def test_quad_tracer_split():
    tracer = QuadTracer()
    assert tracer.split(LOGO_CODE, (Rule.FLAT, Rule.FLAT, Rule.FLAT)) == [0xB, 0x4]
    assert tracer.split(LOGO_CODE, (Rule.LEFT, Rule.FLAT, Rule.FLAT)) == [0x3, 0x48]
    # 위층에 받침이 없으면 그냥 내보냄
    assert tracer.split(0x1F, (Rule.STACK, Rule.FLAT, Rule.FLAT)) == [0xE, 0x11]


def test_logo_tracer_logo():
    assert find_all_logos(LOGO_CODE) == {2: [0x42, 0x48], 3: [], 4: []}
    assert arrange_parts(LOGO_CODE, (0x42,)) == [0x9, 0x42]
    tracer = LogoTracer()
    result = tracer.trace(LOGO_CODE)
    assert result is not None
    assert result.parts == [0x9, 0x42]
    assert result.order == "01+"
    stats = tracer.stats[LOGO_CODE]
    assert stats["candidates"] == 2
    assert stats["logos"] == 1
    assert stats["found"]
    assert stats["iterations"] == 2


def test_peel_tracer_logo():
    tracer = PeelTracer()
    assert tracer.find_logos(LOGO_CODE, loose=True) == [0x42, 0x48]
    result = tracer.trace(LOGO_CODE)
    assert result is not None
    assert result.parts == [0x42, 0x9]
    assert result.verify()


def test_tracer_rejects_bad_target(log_lines):
    assert PeelTracer().trace(0) is None
    assert QuadTracer().trace(0x10000) is None
    assert any(line.startswith("WARNING:") for line in log_lines)


def test_iteration_cap_returns_not_found():
    tracer = LogoTracer(max_iterations=1)
    assert tracer.trace(LOGO_CODE) is None
    assert tracer.stats[LOGO_CODE]["found"] is False


def test_solver_default_order():
    solver = TmamSolver()
    result = solver.solve(LOGO_CODE)
    assert result.strategy == "quad"
    assert solver.stats["by_strategy"]["quad"] == 1
    assert [t.NAME for t in solver.tracers] == ["quad", "logo", "peel"]


@pytest.mark.parametrize("strategy", list(Strategy))
def test_each_strategy_solves_logo(strategy):
    result = TmamSolver([strategy]).solve(LOGO_CODE)
    assert result is not None
    assert result.strategy == strategy.value
    assert stack_order(result.parts, result.order) == LOGO_CODE


def test_solver_invalid_targets():
    solver = TmamSolver()
    assert solver.solve(0) is None
    assert solver.solve(0x10) is None
    assert solver.solve(0x10000) is None


def test_solve_all():
    known, unknown = TmamSolver().solve_all([LOGO_CODE, 0xF, 0x10])
    assert sorted(known) == [0xF, LOGO_CODE]
    assert unknown == [0x10]
    assert known[0xF].parts == [0xF]


@pytest.mark.parametrize("code", [0x1E, 0x1F, 0xFF, 0x121, 0x1212, LOGO_CODE])
def test_results_always_replay(code):
    result = solve_shape(code)
    assert result is not None
    _check_partition(result, code)


def test_candidate_codes():
    catalog = ShapeCatalog.from_lines(["000f 000f", "001e 004b"])
    assert candidate_codes(catalog) == [0xF, 0x1E]
    assert candidate_codes(ShapeCatalog()) is None
    assert candidate_codes(None) is None
    codes = candidate_codes(None, allow_empty=True)
    assert 0x1 in codes and 0x2 not in codes and 0x10 not in codes


def _check_partition(result, target):
    """쌓은 결과가 target 이고, 놓인 조각끼리 겹치지 않으며 합이 target 인지 확인"""
    assert result.code == target
    assert result.verify()
    placed = [part << (4 * off) for part, off in zip(result.parts, result.offsets())]
    union = 0
    for piece in placed:
        assert (union & piece) & CODE_MASK == 0
        union |= piece
    assert union & CODE_MASK == target
    # 5번째 층 보조 레이어는 4층 위로 올라간 조각이 있을 때만
    assert result.extra == (union > CODE_MASK)
    assert DeconstructionResult.from_line(result.to_line()).extra == result.extra


# 로고 3개, 5층 보조, 의자 모양 이음, 특이한 쌓기 순서가 필요한 도형들
HARD_SHAPES = [
    0x1634, 0x3422, 0x0178, 0x0361, 0x3343, 0x334a, 0x334b,
    0x1625, 0x1629, 0x162c, 0x162d,
    0x3425, 0x342c, 0x342d, 0x343c, 0x34a5, 0x35a1,
    0x1361, 0x1b61, 0x36c2, 0x17a4, 0x37a4, 0x4da1, 0x8e52,
    0x167a, 0x0163, 0x03c6, 0x1163, 0x1165,
]


@pytest.mark.parametrize("strategy", list(Strategy))
@pytest.mark.parametrize("code", HARD_SHAPES)
def test_hard_shapes(strategy, code):
    result = TmamSolver([strategy]).solve(code)
    assert result is not None
    assert result.strategy == strategy.value
    _check_partition(result, code)


def test_fifth_layer_flag():
    parts = [0x1111, 0x2, FULL_LAYER]
    assert stack_order(parts, "012++") == 0x3111
    assert place_parts(parts, "012++") == [0, 3, 4]
    assert uses_fifth_layer(parts, "012++")
    assert not uses_fifth_layer([0x1, 0x1, 0x1, 0x3], "0123+++")
    assert not uses_fifth_layer([0x1], "0+")

    tracer = QuadTracer()
    result = tracer._try(0x3111, parts)
    assert result.extra
    assert result.order == "012++"
    assert not tracer._try(0x3111, [0x1, 0x1, 0x1, 0x3]).extra
    assert DeconstructionResult.from_line("3111 [1111,0002,000f] 012++").extra


@pytest.mark.parametrize("code, parts", [
    (0x1111, [0x1, 0x1, 0x1, 0x1]),
    (0x1112, [0x12, 0x1, 0x1]),
])
def test_peel_four_layers_without_scaffold(code, parts):
    result = PeelTracer().trace(code)
    assert result is not None
    assert result.parts == parts
    assert result.extra is False
    _check_partition(result, code)


class _RecordingWorker:
    is_cancelled = False

    def __init__(self):
        self.lines = []

    def log(self, message, verbose=False):
        self.lines.append(message)


def test_peel_round_order():
    assert PeelTracer.CONFIGS == [
        {"loose": True, "reverse": False},
        {"loose": True, "reverse": True},
        {"loose": False, "reverse": False},
        {"loose": False, "reverse": True},
    ]
    worker = _RecordingWorker()
    # 0x10 은 풀리지 않으므로 네 라운드를 모두 돈다
    assert PeelTracer(worker=worker).trace(0x10) is None
    rounds = [line.split("] ", 1)[1] for line in worker.lines if "ROUND" in line]
    assert rounds == [
        "ROUND 1 (loose=True, reverse=False)",
        "ROUND 2 (loose=True, reverse=True)",
        "ROUND 3 (loose=False, reverse=False)",
        "ROUND 4 (loose=False, reverse=True)",
    ]


def test_peel_reverse_picks_last_logo():
    tracer = PeelTracer()
    reverse = {"loose": True, "reverse": True}
    result = tracer._peel(LOGO_CODE, LOGO_CODE, reverse)
    assert result is not None
    assert result.parts[0] == 0x48
    _check_partition(result, LOGO_CODE)


def test_logo_tracer_queues_round_robin():
    tracer = LogoTracer()
    tracer.trace(LOGO_CODE)
    # 세 큐가 빈 조합을 한 번씩 내고, 첫 큐의 두 번째 조합에서 찾음
    assert tracer.stats[LOGO_CODE]["max_queue_iterations"] == 2
    assert list(LogoTracer.SIZE_PAIRS) == [(2, 3), (2, 4), (3, 4)]


def test_logo_tracer_scaffold_result():
    tracer = LogoTracer()
    result = tracer._result(0x3111, [0x1111, 0x2, FULL_LAYER])
    assert result is not None and result.extra
    assert tracer._result(0x3111, [0x1111, 0x2]) is None


def test_logo_stats_bounded():
    tracer = LogoTracer(max_stats=2)
    for code in (0xF, 0x1E, LOGO_CODE):
        tracer.trace(code)
    assert list(tracer.stats) == [0x1E, LOGO_CODE]
    tracer.clear_stats()
    assert tracer.stats == {}

    solver = TmamSolver([Strategy.LOGO])
    solver.solve(LOGO_CODE)
    assert LOGO_CODE in solver.logo_stats
    solver.clear_stats()
    assert solver.logo_stats == {}
    assert solver.stats["solved"] == 0
