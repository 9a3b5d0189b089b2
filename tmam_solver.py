"""
역추적 통합 솔버

여러 전략(트레이서)을 정해진 순서대로 시도하여 처음 성공한 결과를 돌려주는 진입점입니다.
GUI 와 run_analysis 는 이 모듈만 사용합니다.
"""

from __future__ import annotations
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from shape import is_invalid, key_code, code_to_hex, CODE_MASK
from tmam import DeconstructionResult, TracerBase, _log
from quad_tracer import QuadTracer
from logo_tracer import LogoTracer
from peel_tracer import PeelTracer


class Strategy(Enum):
    QUAD = "quad"
    LOGO = "logo"
    PEEL = "peel"


STRATEGY_TRACERS = {
    Strategy.QUAD: QuadTracer,
    Strategy.LOGO: LogoTracer,
    Strategy.PEEL: PeelTracer,
}
DEFAULT_STRATEGIES = (Strategy.QUAD, Strategy.LOGO, Strategy.PEEL)


class TmamSolver:
    """
    목표 도형을 조각 + 쌓기 순서로 분해합니다.

    Args:
        strategies: 시도할 전략 순서
        max_iterations: 전략별 도형 하나당 반복 제한 (None 이면 전략 기본값)
        max_logo_size: PEEL 전략이 찾을 최대 로고 크기 (2~4)
        worker: 취소 확인과 로그 전송에 쓰는 작업 스레드 (선택)
    """

    def __init__(self, strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
                 max_iterations: Optional[int] = None, max_logo_size: int = 4, worker=None):
        self.strategies = list(strategies)
        self.worker = worker
        self.tracers: List[TracerBase] = []
        for strategy in self.strategies:
            kwargs = {"max_iterations": max_iterations, "worker": worker}
            if strategy is Strategy.PEEL:
                kwargs["max_logo_size"] = max_logo_size
            self.tracers.append(STRATEGY_TRACERS[strategy](**kwargs))
        self.clear_stats()

    @property
    def logo_stats(self) -> Dict[int, dict]:
        for tracer in self.tracers:
            if isinstance(tracer, LogoTracer):
                return tracer.stats
        return {}

    def clear_stats(self):
        self.stats = {"solved": 0, "unsolved": 0, "by_strategy": {s.value: 0 for s in self.strategies}}
        for tracer in self.tracers:
            if isinstance(tracer, LogoTracer):
                tracer.clear_stats()

    def solve(self, target: int) -> Optional[DeconstructionResult]:
        """전략을 차례로 시도하여 처음 찾은 분해 결과를 반환합니다. 모두 실패하면 None."""
        if target > CODE_MASK or is_invalid(target):
            _log(f"WARNING: 분해할 수 없는 도형 {code_to_hex(target)}")
            return None
        for tracer in self.tracers:
            result = tracer.trace(target)
            if result is not None:
                self.stats["solved"] += 1
                self.stats["by_strategy"][tracer.NAME] += 1
                return result
        _log(f"DEBUG: 분해 실패 {code_to_hex(target)}")
        self.stats["unsolved"] += 1
        return None

    def solve_all(self, codes: Sequence[int],
                  progress: Optional[Callable[[int, int], None]] = None
                  ) -> Tuple[Dict[int, DeconstructionResult], List[int]]:
        """
        여러 도형을 한 번에 분해합니다.

        Returns:
            (known, unknown): 성공한 도형 -> 결과 사전, 실패한 도형 목록
        """
        known: Dict[int, DeconstructionResult] = {}
        unknown: List[int] = []
        total = len(codes)
        for i, code in enumerate(codes):
            if self.worker and self.worker.is_cancelled:
                break
            result = self.solve(code)
            if result is not None:
                known[code] = result
            else:
                unknown.append(code)
            if progress:
                progress(i + 1, total)
        _log(f"DEBUG: 분해 완료 {len(known)}/{total} (실패 {len(unknown)})")
        return known, unknown


def candidate_codes(catalog, allow_empty: bool = False) -> Optional[List[int]]:
    """
    카탈로그에서 분해 대상 (대표 도형) 목록을 만듭니다.

    빈 카탈로그는 allow_empty 가 True 이면 모든 유효한 대표 도형을 대상으로 하고,
    아니면 None 을 반환합니다 (호출한 쪽에서 알림).
    """
    if catalog is not None and not catalog.is_empty():
        return catalog.key_shapes()
    if not allow_empty:
        return None
    _log("WARNING: 카탈로그가 비어있어 모든 유효한 도형을 대상으로 합니다")
    return [code for code in range(1, CODE_MASK + 1)
            if key_code(code) == code and not is_invalid(code)]


def solve_shape(target: int, strategies: Sequence[Strategy] = DEFAULT_STRATEGIES) -> Optional[DeconstructionResult]:
    """편의 함수: 기본 설정으로 도형 하나를 분해"""
    return TmamSolver(strategies).solve(target)
