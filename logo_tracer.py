"""
로고 조합 트레이서 (전략 B)

목표 도형 안에 들어있는 모든 하프 로고 후보를 찾은 뒤,
로고 조합을 적은 개수부터 차례로 빼보고 남은 부분을 층별 평판으로 나눠 쌓아봅니다.
크기 쌍마다 하나씩 만든 세 개의 조합 큐를 번갈아 한 번씩 시도하므로
어느 큐에 답이 있든 비슷한 시간 안에 찾습니다.
"""

from __future__ import annotations
import itertools
from typing import Dict, Iterator, List, Optional, Tuple

from shape import bottom_layer_num, drop_layers, layer_count, pp, code_to_hex, FULL_LAYER
from tmam import (
    TracerBase, DeconstructionResult, LOGOS_STRICT, LOGO_SIZES, POSITIONS, _log
)


def find_all_logos(shape: int) -> Dict[int, List[int]]:
    """
    모든 위치, 모든 크기, 모든 높이에서 도형에 포함된 하프 로고를 찾습니다.
    두 열 줄이 가득 찬 자리는 로고로 보지 않습니다.

    Returns:
        Dict[int, List[int]]: 크기별 로고 목록 {2: [...], 3: [...], 4: [...]}
    """
    result: Dict[int, List[int]] = {size: [] for size in LOGO_SIZES}
    for pos in POSITIONS:
        for size in (4, 3, 2):
            for off in range(4 - size, -1, -1):
                for logo, mask in LOGOS_STRICT[pos][size]:
                    mask <<= 4 * off
                    if (shape & mask) == mask:
                        break
                    logo <<= 4 * off
                    if (shape & logo) == logo:
                        result[size].append(logo)
    return result


def arrange_parts(target: int, logos: Tuple[int, ...]) -> List[int]:
    """
    로고를 뺀 나머지를 층별 평판으로 나누고, 아래층부터 (평판, 그 층에서 시작하는 로고) 순으로 배열합니다.
    모든 조각은 0층 기준으로 내려서 반환합니다.
    """
    residue = target
    for logo in logos:
        residue &= ~logo
    parts = []
    for layer in range(4):
        flat = (residue >> (4 * layer)) & 0xF
        if flat:
            parts.append(flat)
        for logo in logos:
            num = bottom_layer_num(logo)
            if num == layer:
                parts.append(drop_layers(logo, num))
    return parts


def _subsets_by_weight(logos: List[int]) -> Iterator[Tuple[int, ...]]:
    """원소 수가 적은 조합부터 (0개, 1개, 2개, ...) 차례로 생성"""
    for weight in range(len(logos) + 1):
        yield from itertools.combinations(logos, weight)


class LogoTracer(TracerBase):
    NAME = "logo"
    MAX_ITERATIONS = 20000
    SIZE_PAIRS = ((2, 3), (2, 4), (3, 4))
    MAX_STATS = 1000

    def __init__(self, max_iterations: Optional[int] = None, worker=None,
                 max_stats: Optional[int] = None):
        super().__init__(max_iterations, worker)
        # 최근 도형별 통계: candidates, iterations, logos, max_queue_iterations, found
        self.stats: Dict[int, dict] = {}
        self.max_stats = max_stats if max_stats is not None else self.MAX_STATS

    def clear_stats(self):
        self.stats.clear()

    def _keep_stats(self, target: int, stats: dict):
        self.stats.pop(target, None)
        self.stats[target] = stats
        # 넣은 순서대로 오래된 것부터 버림
        while len(self.stats) > self.max_stats:
            del self.stats[next(iter(self.stats))]

    def _trace(self, target: int) -> Optional[DeconstructionResult]:
        all_logos = find_all_logos(target)
        num_candidates = sum(len(v) for v in all_logos.values())
        self._vlog(f"LOGOS {pp([l for s in LOGO_SIZES for l in all_logos[s]])}")

        stats = {
            "candidates": num_candidates,
            "iterations": 0,
            "logos": 0,
            "max_queue_iterations": 0,
            "found": False,
        }
        self._keep_stats(target, stats)

        queues = [_subsets_by_weight(all_logos[a] + all_logos[b]) for a, b in self.SIZE_PAIRS]
        queue_iterations = [0] * len(queues)
        tried = set()
        active = list(range(len(queues)))
        result = None
        try:
            while active and result is None:
                for index in list(active):
                    try:
                        logos = next(queues[index])
                    except StopIteration:
                        active.remove(index)
                        continue
                    queue_iterations[index] += 1
                    key = frozenset(logos)
                    if key in tried:
                        continue
                    tried.add(key)
                    result = self._attempt(target, logos)
                    if result is not None:
                        stats["logos"] = len(logos)
                        break
        finally:
            stats["iterations"] = self.iterations
            stats["max_queue_iterations"] = max(queue_iterations)
            stats["found"] = result is not None
        if result is not None:
            _log(f"DEBUG: [logo] {code_to_hex(target)} {pp(result.parts)} {result.order} "
                 f"(후보 {num_candidates}, 반복 {self.iterations})")
        return result

    def _attempt(self, target: int, logos: Tuple[int, ...]) -> Optional[DeconstructionResult]:
        self._count()
        used = 0
        for logo in logos:
            if used & logo:
                return None
            used |= logo
        parts = arrange_parts(target, logos)
        result = self._result(target, parts)
        if result is None and layer_count(target) == 4:
            result = self._result(target, parts + [FULL_LAYER])
        return result
