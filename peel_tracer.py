"""
층/로고 벗겨내기 트레이서 (전략 A)

아래층부터 한 층씩 벗겨내면서, 바로 위층을 받치지 못하는 층을 만나면
그 자리에서 시작하는 하프 로고를 찾아 떼어냅니다.
조각을 하나 떼어낼 때마다 지금까지의 조각으로 목표 도형을 쌓을 수 있는지 확인합니다.
"""

from __future__ import annotations
from typing import List, Optional

from shape import (
    add_5th, can_stack_bottom, delete_part, drop_bottom, get_bottom, pp, code_to_hex
)
from tmam import (
    TracerBase, DeconstructionResult, LOGOS_LOOSE, LOGOS_STRICT, POSITIONS, _log
)


class PeelTracer(TracerBase):
    NAME = "peel"
    MAX_LOGO_SIZE = 4

    # (느슨한 마스크, 역순 선택) 조합을 차례로 시도
    CONFIGS = [
        {"loose": True, "reverse": False},
        {"loose": True, "reverse": True},
        {"loose": False, "reverse": False},
        {"loose": False, "reverse": True},
    ]

    def __init__(self, max_logo_size: Optional[int] = None, max_iterations: Optional[int] = None, worker=None):
        super().__init__(max_iterations, worker)
        size = max_logo_size if max_logo_size is not None else self.MAX_LOGO_SIZE
        self.max_logo_size = min(max(size, 2), 4)

    def find_logos(self, shape: int, loose: bool) -> List[int]:
        """
        맨 아래층에서 시작하는 하프 로고를 위치별로 하나씩 찾습니다.

        위치마다 가장 큰 로고만 돌려줍니다. 위치 순서는 E, N, W, S.

        Args:
            shape (int): 작업 중인 도형 (맨 아래층이 비어있지 않아야 함)
            loose (bool): True 이면 로고 맨 위층 옆자리를 검사하지 않음

        Returns:
            List[int]: 찾은 로고 코드 목록
        """
        table = LOGOS_LOOSE if loose else LOGOS_STRICT
        result = []
        for pos in POSITIONS:
            found = None
            for size in range(self.max_logo_size, 1, -1):
                for logo, mask in table[pos][size]:
                    if (shape & mask) == logo:
                        found = logo
                        break
                if found is not None:
                    break
            if found is not None:
                result.append(found)
        return result

    def _trace(self, target: int) -> Optional[DeconstructionResult]:
        # 4층 도형은 맨 위에 가득 찬 5번째 층을 붙여 벗겨냄 (그 조각이 쓰였는지는 결과에서 판단)
        start = add_5th(target)
        for num, config in enumerate(self.CONFIGS, 1):
            self._vlog(f"ROUND {num} (loose={config['loose']}, reverse={config['reverse']})")
            result = self._peel(target, start, config)
            if result is not None:
                return result
        return None

    def _peel(self, target: int, shape: int, config: dict) -> Optional[DeconstructionResult]:
        parts: List[int] = []
        while shape:
            if get_bottom(shape) == 0:
                shape = drop_bottom(shape)
                continue
            if shape < 0x10 or can_stack_bottom(shape):
                part = get_bottom(shape)
                kind = "LAYER"
            else:
                logos = self.find_logos(shape, config["loose"])
                if logos:
                    part = logos[-1] if config["reverse"] else logos[0]
                    kind = "LOGO "
                else:
                    part = get_bottom(shape)
                    kind = "EXTRA"
            self._vlog(f"{kind} {code_to_hex(shape)} {pp([part])}")
            parts.append(part)
            result = self._try(target, parts)
            if result is not None:
                _log(f"DEBUG: [peel] {code_to_hex(target)} {pp(parts)} {result.order}")
                return result
            shape = delete_part(shape, part)
        return None
