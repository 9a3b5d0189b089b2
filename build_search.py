"""
건설 탐색 (도형 데이터베이스 생성)

원시 도형에서 출발하여 회전/절단(입력 1개)과 쌓기(입력 2개)를 반복 적용하면서
만들 수 있는 모든 도형과 그 도형을 만드는 가장 싼 방법을 기록합니다.
비용이 낮은 것부터 꺼내므로 처음 기록된 방법이 곧 최소 비용입니다.
"""

from __future__ import annotations
import struct
from collections import deque
from enum import IntEnum
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple

from shape import (
    left_code, uturn_code, right_code, cut_left_code, cut_right_code, stack_code,
    key_code, code_to_hex, FLATS, LOGOS, CODE_MASK
)
from tmam import SearchInterrupted, _log


class BuildOp(IntEnum):
    """데이터베이스 파일에 기록되는 연산 번호"""
    NONE = 0
    PRIM = 1
    STACK = 2
    CUT_LEFT = 3
    CUT_RIGHT = 4
    RIGHT = 5
    UTURN = 6
    LEFT = 7


OP_CODE = {
    BuildOp.NONE: "--",
    BuildOp.PRIM: "P ",
    BuildOp.LEFT: "RL",
    BuildOp.UTURN: "R2",
    BuildOp.RIGHT: "RR",
    BuildOp.CUT_LEFT: "CL",
    BuildOp.CUT_RIGHT: "CR",
    BuildOp.STACK: "ST",
}

OP_COST = {
    BuildOp.PRIM: 0,
    BuildOp.LEFT: 1,
    BuildOp.UTURN: 1,
    BuildOp.RIGHT: 1,
    BuildOp.CUT_LEFT: 1,
    BuildOp.CUT_RIGHT: 1,
    BuildOp.STACK: 1,
}

ONE_INPUT_OPS: Dict[BuildOp, Callable[[int], int]] = {
    BuildOp.LEFT: left_code,
    BuildOp.UTURN: uturn_code,
    BuildOp.RIGHT: right_code,
    BuildOp.CUT_LEFT: cut_left_code,
    BuildOp.CUT_RIGHT: cut_right_code,
}

# 평판을 비용 0 으로 먼저 (반복 제한 500), 그 다음 하프 로고를 비용 10 으로
PRESETS = [
    {"seeds": FLATS, "cost": 0, "max_iterations": 500},
    {"seeds": LOGOS, "cost": 10, "max_iterations": None},
]

DB_ENTRY = struct.Struct("<HHB")
DB_SIZE = DB_ENTRY.size * (CODE_MASK + 1)


class BuildRecord:
    """도형 하나를 만드는 방법. STACK 이면 code1 이 위, code2 가 아래."""
    __slots__ = ("code", "op", "cost", "code1", "code2", "alt")

    def __init__(self, code: int, op: BuildOp, cost: int, code1: int = 0, code2: int = 0):
        self.code = code
        self.op = op
        self.cost = cost
        self.code1 = code1
        self.code2 = code2
        self.alt = 1

    def __repr__(self) -> str:
        return f"BuildRecord({self.to_line()})"

    def to_line(self) -> str:
        code1 = code_to_hex(self.code1) if self.code1 else "    "
        code2 = code_to_hex(self.code2) if self.code2 else "    "
        return f"{code_to_hex(self.code)} {OP_CODE[self.op]} {code1} {code2} ({self.cost},{self.alt})"


class BuildSearch:
    CANCEL_CHECK_INTERVAL = 200
    PROGRESS_INTERVAL = 1000

    def __init__(self, worker=None):
        self.worker = worker
        self.all_shapes: Dict[int, BuildRecord] = {}
        self.new_shapes: Dict[int, Deque[BuildRecord]] = {}
        # 쌓기 상대로 쓸 이미 처리된 도형 (비용별)
        self._partners: Dict[int, List[BuildRecord]] = {}
        self.stats = {"iterations": 0, "lower_cost": 0, "same_cost": 0, "runs": 0}

    def __len__(self) -> int:
        return len(self.all_shapes)

    def __contains__(self, code: int) -> bool:
        return code in self.all_shapes

    def get(self, code: int) -> Optional[BuildRecord]:
        return self.all_shapes.get(code)

    # ------------------------------------------------------------------
    # 탐색
    # ------------------------------------------------------------------
    def run(self, seeds: Sequence[int], seed_cost: int = 0, max_iterations: Optional[int] = None,
            max_cost: Optional[int] = None,
            progress: Optional[Callable[[int, int, int, int], None]] = None) -> int:
        """
        원시 도형 목록에서 탐색을 시작합니다. 이전 실행에서 찾은 도형은 쌓기 상대로 계속 사용합니다.

        Args:
            seeds: 원시 도형 코드 목록
            seed_cost: 원시 도형의 비용
            max_iterations: 처리할 도형 수 제한 (None 이면 큐가 빌 때까지)
            max_cost: 이보다 비싼 도형은 버리고, 이 비용의 도형은 더 확장하지 않음
            progress: progress(iterations, level, todo, total) 콜백

        Returns:
            int: 이번 실행에서 처리한 도형 수

        Raises:
            SearchInterrupted: 작업 스레드에서 취소 요청이 들어왔을 때
        """
        self.stats["runs"] += 1
        self.new_shapes.clear()
        self._partners = {}
        for record in self.all_shapes.values():
            self._partners.setdefault(record.cost, []).append(record)

        for code in seeds:
            self.update_all_shapes(BuildRecord(code, BuildOp.PRIM, seed_cost))

        _log(f"DEBUG: {'Iters':>8}{'Level':>8}{'ToDo':>8}{'Total':>8}")
        iterations = 0
        while True:
            levels = [cost for cost, queue in self.new_shapes.items() if queue]
            if not levels:
                break
            level = min(levels)
            queue = self.new_shapes[level]

            if max_iterations is not None and iterations >= max_iterations:
                _log(f"DEBUG: 반복 제한 {max_iterations} 도달")
                break
            iterations += 1
            self.stats["iterations"] += 1

            if self.worker and iterations % self.CANCEL_CHECK_INTERVAL == 0 and self.worker.is_cancelled:
                raise SearchInterrupted()
            if iterations % self.PROGRESS_INTERVAL == 0:
                _log(f"DEBUG: {iterations:>8}{level:>8}{len(queue):>8}{len(self.all_shapes):>8}")
                if progress:
                    progress(iterations, level, len(queue), len(self.all_shapes))

            record = queue.popleft()
            if max_cost is not None and record.cost >= max_cost:
                continue
            self._expand(record, max_cost)

        remaining = sum(len(queue) for queue in self.new_shapes.values())
        _log(f"INFO: 처리 {iterations}, 남은 도형 {remaining}, 전체 {len(self.all_shapes)}")
        return iterations

    def run_presets(self, presets: Optional[List[dict]] = None,
                    progress: Optional[Callable[[int, int, int, int], None]] = None) -> int:
        """평판 -> 하프 로고 순서의 기본 탐색 설정을 차례로 실행"""
        total = 0
        for preset in presets if presets is not None else PRESETS:
            total += self.run(preset["seeds"], preset.get("cost", 0),
                              max_iterations=preset.get("max_iterations"),
                              max_cost=preset.get("max_cost"), progress=progress)
        return total

    def _expand(self, record: BuildRecord, max_cost: Optional[int]):
        code1 = record.code
        for op, func in ONE_INPUT_OPS.items():
            code = func(code1)
            if code != code1:
                self._offer(code, op, record.cost + OP_COST[op], code1, 0, max_cost)

        self._partners.setdefault(record.cost, []).append(record)
        for cost, partners in self._partners.items():
            new_cost = record.cost + cost + OP_COST[BuildOp.STACK]
            if max_cost is not None and new_cost > max_cost:
                continue
            for other in partners:
                code2 = other.code
                self._offer_stack(code1, code2, new_cost)
                if code2 != code1:
                    self._offer_stack(code2, code1, new_cost)

    def _offer_stack(self, top: int, bottom: int, cost: int):
        code = stack_code(top, bottom)
        if code != top and code != bottom:
            self._offer(code, BuildOp.STACK, cost, top, bottom, None)

    def _offer(self, code: int, op: BuildOp, cost: int, code1: int, code2: int, max_cost: Optional[int]):
        """이미 같거나 더 싼 방법이 있으면 기록을 만들지 않고 동률 횟수만 셉니다."""
        if code == 0 or (max_cost is not None and cost > max_cost):
            return
        old = self.all_shapes.get(code)
        if old is None or cost < old.cost:
            self.update_all_shapes(BuildRecord(code, op, cost, code1, code2))
        elif cost == old.cost:
            old.alt += 1
            self.stats["same_cost"] += 1

    def update_all_shapes(self, record: BuildRecord) -> bool:
        """
        새로 찾은 방법을 도형 표에 반영합니다.

        Returns:
            bool: 표에 새로 들어갔거나 더 싼 방법으로 바뀌었으면 True
        """
        code = record.code
        if code == 0:
            return False
        old = self.all_shapes.get(code)
        if old is None:
            self.all_shapes[code] = record
            self.new_shapes.setdefault(record.cost, deque()).append(record)
            return True

        if record.cost < old.cost:
            # 비용 순서대로 처리하면 일어나지 않아야 함
            _log(f"WARNING: 더 낮은 비용 발견 {code_to_hex(code)} {old.cost} -> {record.cost}")
            self.stats["lower_cost"] += 1
            self.all_shapes[code] = record
            queue = self.new_shapes.get(old.cost)
            if queue is not None:
                try:
                    queue.remove(old)
                except ValueError:
                    pass
            self.new_shapes.setdefault(record.cost, deque()).append(record)
            return True

        if record.cost == old.cost:
            old.alt += 1
            self.stats["same_cost"] += 1
        return False

    # ------------------------------------------------------------------
    # 결과 조회
    # ------------------------------------------------------------------
    def get_build_str(self, code: int) -> str:
        """중첩된 빌드 식. 예: 004b ST(0048 CL(...) 0003 ST(...))"""
        record = self.all_shapes.get(code)
        if record is None:
            return ""
        if record.op is BuildOp.PRIM:
            return code_to_hex(code)
        inner = self.get_build_str(record.code1) if record.code1 else ""
        if record.code2:
            inner += " " + self.get_build_str(record.code2)
        return f"{code_to_hex(code)} {OP_CODE[record.op]}({inner})"

    def build_tree_lines(self, code: int, depth: int = 0) -> List[str]:
        record = self.all_shapes.get(code)
        if record is None:
            return ["  " * depth + f"Shape not found: {code_to_hex(code)}"]
        lines = ["  " * depth + record.to_line()]
        if record.op is BuildOp.PRIM:
            return lines
        if record.code1:
            lines.extend(self.build_tree_lines(record.code1, depth + 1))
        if record.code2:
            lines.extend(self.build_tree_lines(record.code2, depth + 1))
        return lines

    def replay(self, code: int) -> Optional[int]:
        """빌드 트리를 따라 도형을 다시 계산합니다. 트리가 끊겨 있으면 None."""
        record = self.all_shapes.get(code)
        if record is None:
            return None
        if record.op is BuildOp.PRIM:
            return record.code
        if record.op is BuildOp.STACK:
            top = self.replay(record.code1)
            bottom = self.replay(record.code2)
            if top is None or bottom is None:
                return None
            return stack_code(top, bottom)
        source = self.replay(record.code1)
        if source is None:
            return None
        return ONE_INPUT_OPS[record.op](source)

    def key_builds(self) -> Dict[int, str]:
        """찾은 도형 중 대표 도형(key) 각각의 빌드 식"""
        return {code: self.get_build_str(code)
                for code in sorted(self.all_shapes) if code == key_code(code)}

    def to_lines(self) -> List[str]:
        return [self.all_shapes[code].to_line() for code in sorted(self.all_shapes)]

    # ------------------------------------------------------------------
    # 데이터베이스 파일 (코드당 5 바이트)
    # ------------------------------------------------------------------
    def to_db_bytes(self) -> bytes:
        data = bytearray(DB_SIZE)
        for code, record in self.all_shapes.items():
            if code > CODE_MASK:
                continue
            # 뷰어는 쌓기의 두 입력을 (아래, 위) 순서로 읽음
            if record.op is BuildOp.STACK:
                code1, code2 = record.code2, record.code1
            else:
                code1, code2 = record.code1, record.code2
            DB_ENTRY.pack_into(data, DB_ENTRY.size * code, code1, code2, int(record.op))
        return bytes(data)

    @staticmethod
    def parse_db(data: bytes) -> Optional[Dict[int, Tuple[BuildOp, int, int]]]:
        """
        데이터베이스 바이트를 읽어 code -> (op, code1, code2) 사전으로 만듭니다.
        code1/code2 는 파일에 기록된 순서 그대로입니다. 크기가 맞지 않으면 None.
        """
        if len(data) != DB_SIZE:
            _log(f"ERROR: 데이터베이스 크기 오류 {len(data)} (기대값 {DB_SIZE})")
            return None
        result = {}
        for code, (code1, code2, op) in enumerate(DB_ENTRY.iter_unpack(data)):
            if op == BuildOp.NONE:
                continue
            try:
                result[code] = (BuildOp(op), code1, code2)
            except ValueError:
                _log(f"WARNING: 알 수 없는 연산 번호 {op} ({code_to_hex(code)})")
        return result


def db_to_text(data: bytes) -> List[str]:
    """데이터베이스 바이트를 사람이 읽을 수 있는 줄 목록으로 변환"""
    entries = BuildSearch.parse_db(data)
    if entries is None:
        return []
    return [f"{code_to_hex(code)} {OP_CODE[op]} {code_to_hex(code1)} {code_to_hex(code2)}"
            for code, (op, code1, code2) in sorted(entries.items())]
