"""
TMAM (역추적) 공통 모듈

목표 도형을 서로 겹치지 않는 조각들로 나누고, 그 조각들을 다시 쌓아
원래 도형이 나오는 쌓기 순서를 찾는 데 필요한 공통 도구를 모아둡니다.
- 로그 콜백
- 쌓기 순서 표 (ORDERS) 와 검증 (try_build)
- 하프 로고 / 마스크 상수
- 각 트레이서(전략)의 기반 클래스
"""

from __future__ import annotations
from typing import List, Optional, Callable, Dict, Tuple

from shape import stack_code, rotate_code, code_to_hex, pp, layer_count, CODE_MASK

# --- 로깅 시스템 ---
_log_callback: Optional[Callable[[str], None]] = None


def _log(message: str):
    """로그 메시지를 출력합니다. 콜백이 설정되어 있으면 콜백으로 전송합니다."""
    if _log_callback is not None:
        _log_callback(message)


def set_log_callback(callback: Optional[Callable[[str], None]]):
    global _log_callback
    _log_callback = callback


# --- 예외 ---
class StackOrderError(Exception):
    """쌓기 순서 문자열과 조각 수가 맞지 않을 때 (내부 오류)"""
    pass


class IterationLimitReached(Exception):
    """도형 하나에 허용된 반복 횟수를 넘겼을 때"""
    pass


class SearchInterrupted(Exception):
    """작업 스레드에서 취소 요청이 들어왔을 때"""
    pass


# --- 쌓기 순서 ---
# 숫자는 조각 번호, '+' 는 두 개를 꺼내 (위, 아래 순) 쌓습니다.
ORDERS: Dict[int, List[str]] = {
    1: ["0"],
    2: ["01+"],
    3: ["012++", "01+2+"],
    4: ["0123+++", "012++3+", "01+23++"],
    5: ["01234++++", "012++34++", "01+234+++"],
}
MAX_PARTS = max(ORDERS)


def _stack_offset(top: int, bottom: int) -> int:
    """stack_code 에서 top 이 놓이는 층 오프셋 (충돌이 없으면 0)"""
    for offset in range(4, 0, -1):
        if ((top << (4 * (offset - 1))) & bottom) != 0:
            return offset
    return 0


def stack_order(parts: List[int], order: str) -> int:
    """
    주어진 순서대로 조각을 쌓은 결과를 반환합니다.

    Args:
        parts: 조각 코드 목록 (각 조각은 0층 기준)
        order: 쌓기 순서 문자열 (예: "012++")

    Returns:
        int: 최종 도형 코드

    Raises:
        StackOrderError: 순서 문자열이 잘못되었거나 피연산자가 모자랄 때
    """
    stack: List[int] = []
    for token in order:
        if token == "+":
            if len(stack) < 2:
                raise StackOrderError(f"피연산자 부족: {order} {pp(parts)}")
            top = stack.pop()
            bottom = stack.pop()
            stack.append(stack_code(top, bottom))
        else:
            index = int(token, 16)
            if index >= len(parts):
                raise StackOrderError(f"조각 번호 범위 초과: {order} {pp(parts)}")
            stack.append(parts[index])
    if len(stack) != 1:
        raise StackOrderError(f"남은 피연산자 {len(stack)}개: {order} {pp(parts)}")
    return stack[0]


def place_parts(parts: List[int], order: str) -> List[int]:
    """쌓기 순서를 재생하면서 각 조각이 최종적으로 놓이는 층 번호를 계산합니다."""
    stack: List[Tuple[int, List[Tuple[int, int]]]] = []
    for token in order:
        if token == "+":
            if len(stack) < 2:
                raise StackOrderError(f"피연산자 부족: {order} {pp(parts)}")
            top, top_places = stack.pop()
            bottom, bottom_places = stack.pop()
            offset = _stack_offset(top, bottom)
            places = bottom_places + [(i, off + offset) for i, off in top_places]
            stack.append((stack_code(top, bottom), places))
        else:
            index = int(token, 16)
            if index >= len(parts):
                raise StackOrderError(f"조각 번호 범위 초과: {order} {pp(parts)}")
            stack.append((parts[index], [(index, 0)]))
    if len(stack) != 1:
        raise StackOrderError(f"남은 피연산자 {len(stack)}개: {order} {pp(parts)}")
    offsets = [0] * len(parts)
    for index, offset in stack[0][1]:
        offsets[index] = offset
    return offsets


def try_build(target: int, parts: List[int]) -> Optional[str]:
    """
    조각 수에 맞는 모든 쌓기 순서를 시도하여 target 이 나오는 첫 순서를 반환합니다.
    찾지 못하면 None.
    """
    orders = ORDERS.get(len(parts))
    if not orders:
        return None
    for order in orders:
        try:
            code = stack_order(parts, order)
        except StackOrderError as e:
            _log(f"ERROR: {e}")
            return None
        if code == target:
            return order
    return None


class DeconstructionResult:
    """역추적 결과: 조각 목록, 쌓기 순서, 5층 보조 레이어 사용 여부"""

    def __init__(self, code: int, parts: List[int], order: str, extra: bool = False, strategy: str = ""):
        self.code = code
        self.parts = list(parts)
        self.order = order
        self.extra = extra
        self.strategy = strategy

    def __repr__(self) -> str:
        return f"DeconstructionResult({self.to_line()})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, DeconstructionResult):
            return NotImplemented
        return (self.code, self.parts, self.order) == (other.code, other.parts, other.order)

    def verify(self) -> bool:
        try:
            return stack_order(self.parts, self.order) == self.code
        except StackOrderError:
            return False

    def offsets(self) -> List[int]:
        return place_parts(self.parts, self.order)

    def to_line(self) -> str:
        """알려진 빌드 파일 한 줄: <hex> [<hex>,...] <order>"""
        return f"{code_to_hex(self.code)} {pp(self.parts)} {self.order}"

    @classmethod
    def from_line(cls, line: str) -> Optional[DeconstructionResult]:
        fields = line.split()
        if len(fields) != 3:
            return None
        code_str, parts_str, order = fields
        if not (parts_str.startswith("[") and parts_str.endswith("]")):
            return None
        try:
            code = int(code_str, 16)
            parts = [int(p, 16) for p in parts_str[1:-1].split(",") if p]
        except ValueError:
            return None
        return cls(code, parts, order, uses_fifth_layer(parts, order))


def uses_fifth_layer(parts: List[int], order: str) -> bool:
    """쌓았을 때 4층(0부터 셈) 위로 올라가 잘려나가는 조각이 있는지"""
    try:
        offsets = place_parts(parts, order)
    except StackOrderError:
        return False
    return any(layer_count(p) + off > 4 for p, off in zip(parts, offsets))


# --- 하프 로고 상수 ---
# 위치 P (0=E, 1=N, 2=W, 3=S) 의 로고는 기본 로고를 P 만큼 회전한 것
LOGO_BASE = {2: 0x21, 3: 0x121, 4: 0x2121}
LOGO_MIRROR = {2: 0x12, 3: 0x212, 4: 0x1212}
STRICT_MASK = {2: 0x33, 3: 0x333, 4: 0x3333}
LOGO_SIZES = (2, 3, 4)
POSITIONS = (0, 1, 2, 3)


def _loose_mask(logo: int, size: int) -> int:
    """엄격 마스크에서 맨 위층만 로고 자신의 비트로 줄인 마스크 (위쪽은 알 수 없음 허용)"""
    top_shift = 4 * (size - 1)
    below = STRICT_MASK[size] & ~(0xF << top_shift)
    return below | (logo & (0xF << top_shift))


def make_logo_codes(loose: bool) -> List[Dict[int, List[Tuple[int, int]]]]:
    """위치별, 크기별 (로고, 마스크) 쌍 목록. [pos][size] -> [(logo, mask), (mirror, mask)]"""
    codes = []
    for pos in POSITIONS:
        sizes = {}
        for size in LOGO_SIZES:
            values = []
            for logo in (LOGO_BASE[size], LOGO_MIRROR[size]):
                mask = _loose_mask(logo, size) if loose else STRICT_MASK[size]
                values.append((rotate_code(logo, pos), rotate_code(mask, pos)))
            sizes[size] = values
        codes.append(sizes)
    return codes


LOGOS_STRICT = make_logo_codes(loose=False)
LOGOS_LOOSE = make_logo_codes(loose=True)


# ==============================================================================
#  트레이서 기반 클래스
# ==============================================================================
class TracerBase:
    """각 역추적 전략의 공통 부분: 반복 횟수 제한, 취소 확인, 검증"""
    NAME = ""
    MAX_ITERATIONS: Optional[int] = None
    CANCEL_CHECK_INTERVAL = 200

    def __init__(self, max_iterations: Optional[int] = None, worker=None):
        self.max_iterations = max_iterations if max_iterations is not None else self.MAX_ITERATIONS
        self.worker = worker
        self.iterations = 0

    def trace(self, target: int) -> Optional[DeconstructionResult]:
        """target 을 역추적합니다. 실패하거나 반복 제한에 걸리면 None."""
        self.iterations = 0
        if target <= 0 or target > CODE_MASK:
            _log(f"WARNING: [{self.NAME}] 잘못된 목표 도형 {code_to_hex(target)}")
            return None
        try:
            return self._trace(target)
        except IterationLimitReached:
            _log(f"DEBUG: [{self.NAME}] {code_to_hex(target)} 반복 제한 {self.max_iterations} 도달")
            return None

    def _trace(self, target: int) -> Optional[DeconstructionResult]:
        raise NotImplementedError

    def _count(self):
        self.iterations += 1
        if self.max_iterations is not None and self.iterations > self.max_iterations:
            raise IterationLimitReached()
        if self.worker and self.iterations % self.CANCEL_CHECK_INTERVAL == 0 and self.worker.is_cancelled:
            raise SearchInterrupted()

    def _try(self, target: int, parts: List[int]) -> Optional[DeconstructionResult]:
        """반복 1회로 세고, 조각 목록으로 target 을 만들 수 있으면 결과를 반환합니다."""
        self._count()
        return self._result(target, parts)

    def _result(self, target: int, parts: List[int]) -> Optional[DeconstructionResult]:
        order = try_build(target, parts)
        if order is None:
            return None
        # 보조 레이어는 실제로 4층에 놓였을 때만 표시
        return DeconstructionResult(target, parts, order, uses_fifth_layer(parts, order), self.NAME)

    def _vlog(self, message: str):
        if self.worker and hasattr(self.worker, 'log'):
            self.worker.log(f"  -> [{self.NAME}] {message}", verbose=True)
