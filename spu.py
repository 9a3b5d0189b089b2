"""
SPU - 도형 처리 장치 (스택 머신)

명령어
    F      스택 비우기
    I      입력에서 도형 하나를 스택에 올림
    O      스택 맨 위 도형을 출력
    0-9a-f 위에서 n 번째 도형을 맨 위로 이동
    L U R  맨 위 도형 회전 (반시계 90, 180, 시계 90)
    C      맨 위 도형 절단 (왼쪽, 오른쪽 순으로 올림. 빈 반쪽은 버림)
    S      위 도형을 아래 도형 위에 쌓기
    X      맨 위 도형 버리기

search 는 길이 제한 안의 모든 프로그램을 깊이 우선으로 탐색하며
각 도형을 만드는 가장 짧은 프로그램을 기록합니다.
"""

from __future__ import annotations
from typing import Dict, List, Optional

from shape import Shape, key_code, count_pieces, pp
from tmam import SearchInterrupted, _log

ROTATE_OPS = "LUR"
MOVE_OPS = "0123456789abcdef"
BASE_OPS = {
    "F": "flush",
    "I": "input",
    "O": "output",
    "L": "left",
    "U": "uturn",
    "R": "right",
    "C": "cut",
    "S": "stack",
    "X": "trash",
}


class SpuState:
    """탐색 중인 상태: 지금까지의 프로그램, 스택, 지나온 스택 기록"""

    def __init__(self, prog: str = "", stack: Optional[List[Shape]] = None, history: Optional[List[str]] = None):
        self.prog = prog
        self.stack = stack if stack is not None else []
        self.history = history if history is not None else []

    def __repr__(self) -> str:
        return f"{self.prog} {pp(self.stack)}"

    def copy(self) -> SpuState:
        return SpuState(self.prog, list(self.stack), list(self.history))


class Spu:
    CANCEL_CHECK_INTERVAL = 10000

    def __init__(self, worker=None):
        self.inputs: List[int] = []
        self.outputs: List[Shape] = []
        self.state: List[Shape] = []
        self.worker = worker
        # 검색 결과: 도형 코드 -> 가장 짧은 프로그램
        self.programs: Dict[int, str] = {}
        self.stats = {"nodes": 0, "builds": 0, "loops": 0, "prunes": 0}
        self._ops = {
            "F": self.flush,
            "I": self.input,
            "O": self.output,
            "L": self.left,
            "U": self.uturn,
            "R": self.right,
            "C": self.cut,
            "S": self.stack,
            "X": self.trash,
        }

    def set_input(self, data: List[int]):
        self.inputs = list(reversed(data))

    # --- 명령어 ---
    def flush(self, stack: List[Shape]):
        stack.clear()

    def input(self, stack: List[Shape]):
        if not self.inputs:
            _log("ERROR: Input is empty.")
            return
        stack.append(Shape(self.inputs.pop()))

    def output(self, stack: List[Shape]):
        if len(stack) < 1:
            _log("ERROR: Output requires 1 entry.")
            return
        self.outputs.append(stack.pop())

    def move(self, stack: List[Shape], index: int):
        if len(stack) <= index:
            _log(f"ERROR: Move requires {index + 1} entries.")
            return
        stack.append(stack.pop(len(stack) - 1 - index))

    def left(self, stack: List[Shape]):
        if len(stack) < 1:
            _log("ERROR: Left requires 1 entry.")
            return
        stack[-1] = stack[-1].left()

    def uturn(self, stack: List[Shape]):
        if len(stack) < 1:
            _log("ERROR: Uturn requires 1 entry.")
            return
        stack[-1] = stack[-1].uturn()

    def right(self, stack: List[Shape]):
        if len(stack) < 1:
            _log("ERROR: Right requires 1 entry.")
            return
        stack[-1] = stack[-1].right()

    def cut(self, stack: List[Shape]):
        if len(stack) < 1:
            _log("ERROR: Cut requires 1 entry.")
            return
        left, right = stack.pop().cut()
        if left.code:
            stack.append(left)
        if right.code:
            stack.append(right)

    def stack(self, stack: List[Shape]):
        if len(stack) < 2:
            _log("ERROR: Stack requires 2 entries.")
            return
        top = stack.pop()
        bottom = stack.pop()
        stack.append(bottom.stack(top))

    def trash(self, stack: List[Shape]):
        if len(stack) < 1:
            _log("ERROR: Trash requires 1 entry.")
            return
        stack.pop()

    def run_step(self, op: str, stack: List[Shape]) -> Optional[str]:
        """명령어 하나를 실행하고 그 이름을 반환합니다. 모르는 명령어면 None."""
        func = self._ops.get(op)
        if func is not None:
            func(stack)
            return BASE_OPS[op]
        index = MOVE_OPS.find(op)
        if index >= 0:
            self.move(stack, index)
            return "move"
        _log(f"ERROR: Unknown operation: {op}")
        return None

    def run(self, prog: str) -> List[Shape]:
        """프로그램을 실행하고 출력된 도형 목록을 반환합니다."""
        _log(f"DEBUG: Program: {prog}")
        _log(f"DEBUG: Input: {pp(list(reversed(self.inputs)))}")
        for op in prog:
            name = self.run_step(op, self.state)
            _log(f"DEBUG: {op} {(name or '?'):<8} {pp(self.state)}")
        return self.outputs

    # --- 탐색 ---
    def search(self, data: List[int], max_length: int) -> Dict[int, str]:
        """
        입력 도형을 모두 올린 상태에서 출발하여 max_length 이하의 모든 프로그램을 탐색합니다.

        Args:
            data: 입력 도형 코드 목록
            max_length: 프로그램 최대 길이 (출력 명령 포함)

        Returns:
            Dict[int, str]: 도형 코드 -> 그 도형을 출력하는 가장 짧은 프로그램
        """
        self.programs = {}
        self.stats = {"nodes": 0, "builds": 0, "loops": 0, "prunes": 0}
        self.set_input(data)
        state = SpuState()
        for _ in data:
            state.prog += "I"
            self.input(state.stack)
        self._search(state, max_length)
        _log(f"INFO: SPU search {pp(data)} len={max_length} shapes={len(self.programs)} "
             f"nodes={self.stats['nodes']} loops={self.stats['loops']}")
        return self.programs

    def _search(self, state: SpuState, max_length: int):
        stack_len = len(state.stack)
        if stack_len == 0:
            return
        self.stats["nodes"] += 1
        if self.worker and self.stats["nodes"] % self.CANCEL_CHECK_INTERVAL == 0 and self.worker.is_cancelled:
            raise SearchInterrupted()

        stack_str = pp(state.stack)
        if stack_str in state.history:
            self.stats["loops"] += 1
            return
        state.history.append(stack_str)

        prog = state.prog + "O"
        code = state.stack[-1].code
        old = self.programs.get(code)
        if old is None or len(prog) < len(old):
            self.programs[code] = prog
        self.stats["builds"] += 1

        if len(state.prog) + 1 >= max_length:
            self.stats["prunes"] += 1
            return

        last_op = state.prog[-1:]
        prev_op = state.prog[-2:-1]
        ops = []
        # 회전은 연속 1번까지
        if not (last_op and last_op in ROTATE_OPS):
            ops.extend(ROTATE_OPS)
        ops.append("C")
        if stack_len >= 2:
            ops.append("S")
            ops.append("X")
        # 이동은 연속 2번까지
        if len(state.prog) > 1 and not (last_op in MOVE_OPS and prev_op in MOVE_OPS):
            ops.extend(MOVE_OPS[i] for i in range(1, min(stack_len, len(MOVE_OPS))))

        for op in ops:
            new_state = state.copy()
            self.run_step(op, new_state.stack)
            new_state.prog += op
            self._search(new_state, max_length)

    def unique_programs(self) -> Dict[int, List[str]]:
        """대표 도형(key) 별로 찾은 프로그램 목록"""
        unique: Dict[int, List[str]] = {}
        for code, prog in self.programs.items():
            unique.setdefault(key_code(code), []).append(prog)
        return dict(sorted(unique.items()))

    def summary(self, data: List[int], max_length: int) -> List[str]:
        return [
            f"Input data:       {pp(data)}",
            f"Number of pieces: {sum(count_pieces(c) for c in data)}",
            f"Max steps:        {max_length - len(data) - 1}",
            f"Shapes found:     {len(self.programs)}",
            f"Unique shapes:    {len(self.unique_programs())}",
        ]
