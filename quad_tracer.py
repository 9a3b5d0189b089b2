"""
사분면 전달 트레이서 (전략 C)

층마다 규칙(Rule) 하나를 정해두고, 아래층부터 사분면 하나씩 보면서
그 사분면 조각을 바로 위(STACK)나 대각선 위(LEFT/RIGHT)로 넘겨 조각을 키우거나,
거기서 끝내고 내보냅니다(EJECT). 내보낸 조각들과 층별 평판을 모아 쌓기를 시도합니다.
층별 규칙의 모든 조합(8^3)을 차례로 시도합니다.
"""

from __future__ import annotations
import itertools
from enum import Enum
from typing import Dict, List, Optional, Tuple

from shape import bottom_layer_num, drop_layers, layer_count, pp, code_to_hex, FULL_LAYER
from tmam import TracerBase, DeconstructionResult, _log


class Rule(Enum):
    FLAT = "flat"                # 항상 내보냄
    STACK = "stack"              # 바로 위 사분면으로
    LEFT = "left"                # 위층 q-1 사분면으로
    RIGHT = "right"              # 위층 q+1 사분면으로
    LEFT_PRUNE = "left_prune"    # LEFT 와 같지만 받침이 없는 곳으로만
    RIGHT_PRUNE = "right_prune"
    LEFT_2 = "left_2"            # 2층 이하 조각만 LEFT
    RIGHT_2 = "right_2"


class QuadOp(Enum):
    EJECT = 0
    STACK = 1
    LEFT = 2
    RIGHT = 3


QUAD_ORDER = (3, 0, 1, 2)
RULE_CONFIGS: List[Tuple[Rule, Rule, Rule]] = list(itertools.product(list(Rule), repeat=3))

_RULE_DIRECTION = {
    Rule.LEFT: QuadOp.LEFT,
    Rule.LEFT_PRUNE: QuadOp.LEFT,
    Rule.LEFT_2: QuadOp.LEFT,
    Rule.RIGHT: QuadOp.RIGHT,
    Rule.RIGHT_PRUNE: QuadOp.RIGHT,
    Rule.RIGHT_2: QuadOp.RIGHT,
}
_RULE_MAX_SIZE = {Rule.LEFT_2: 2, Rule.RIGHT_2: 2}
_PRUNE_RULES = (Rule.LEFT_PRUNE, Rule.RIGHT_PRUNE)

# (layer, quad) -> (전달된 조각, 전달 방식)
Passed = Dict[Tuple[int, int], Tuple[int, QuadOp]]


def _bit(layer: int, quad: int) -> int:
    return 1 << (4 * layer + quad)


def _dest_quad(quad: int, op: QuadOp) -> int:
    if op is QuadOp.RIGHT:
        return (quad + 1) % 4
    if op is QuadOp.LEFT:
        return (quad + 3) % 4
    return quad


def _part_size(part: int) -> int:
    return layer_count(part) - bottom_layer_num(part)


class QuadTracer(TracerBase):
    NAME = "quad"

    def __init__(self, rule_configs: Optional[List[Tuple[Rule, Rule, Rule]]] = None,
                 max_iterations: Optional[int] = None, worker=None):
        super().__init__(max_iterations, worker)
        self.rule_configs = rule_configs if rule_configs is not None else RULE_CONFIGS

    def _trace(self, target: int) -> Optional[DeconstructionResult]:
        tried = set()
        scaffold = layer_count(target) == 4
        for rules in self.rule_configs:
            parts = self.split(target, rules)
            key = tuple(parts)
            if key in tried:
                continue
            tried.add(key)
            self._vlog(f"{'/'.join(r.value for r in rules)} {pp(parts)}")
            result = self._try(target, parts)
            if result is None and scaffold:
                result = self._try(target, parts + [FULL_LAYER])
            if result is not None:
                _log(f"DEBUG: [quad] {code_to_hex(target)} {pp(result.parts)} {result.order} "
                     f"({'/'.join(r.value for r in rules)})")
                return result
        return None

    def split(self, target: int, rules: Tuple[Rule, Rule, Rule]) -> List[int]:
        """
        층별 규칙에 따라 target 을 조각들로 나눕니다.

        Args:
            target (int): 목표 도형
            rules: 0->1, 1->2, 2->3 층 사이에 적용할 규칙

        Returns:
            List[int]: 아래층부터 (층 평판, 그 층에서 시작하는 조각...) 순서의 조각 목록.
                       모든 조각은 0층 기준으로 내려져 있습니다.
        """
        passed: Passed = {}
        flats = [0] * 4
        ejected: List[List[int]] = [[] for _ in range(4)]

        for layer in range(layer_count(target)):
            rule = rules[layer] if layer < 3 else Rule.FLAT
            for quad in QUAD_ORDER:
                bit = _bit(layer, quad)
                if not target & bit:
                    continue
                incoming = passed.get((layer, quad))
                part = (incoming[0] if incoming else 0) | bit
                op = self._choose_op(target, passed, layer, quad, rule, incoming, part)
                if op is QuadOp.EJECT:
                    if incoming:
                        ejected[bottom_layer_num(part)].append(part)
                    else:
                        flats[layer] |= 1 << quad
                else:
                    passed[(layer + 1, _dest_quad(quad, op))] = (part, op)

        parts = []
        for layer in range(4):
            if flats[layer]:
                parts.append(flats[layer])
            for part in ejected[layer]:
                parts.append(drop_layers(part, layer))
        return parts

    def _choose_op(self, target: int, passed: Passed, layer: int, quad: int, rule: Rule,
                   incoming: Optional[Tuple[int, QuadOp]], part: int) -> QuadOp:
        if layer >= 3 or rule is Rule.FLAT:
            return QuadOp.EJECT
        if rule is Rule.STACK:
            return QuadOp.STACK if self._can_stack(target, passed, layer, quad, incoming) else QuadOp.EJECT
        direction = _RULE_DIRECTION[rule]
        if self._can_float(target, passed, layer, quad, rule, direction, part):
            return direction
        return QuadOp.EJECT

    @staticmethod
    def _can_stack(target: int, passed: Passed, layer: int, quad: int,
                   incoming: Optional[Tuple[int, QuadOp]]) -> bool:
        """바로 위 사분면에 재료가 있고, 아직 받은 조각이 없고, 지금 조각이 수직으로만 자라왔는지"""
        if not target & _bit(layer + 1, quad):
            return False
        if (layer + 1, quad) in passed:
            return False
        return incoming is None or incoming[1] is QuadOp.STACK

    @staticmethod
    def _can_float(target: int, passed: Passed, layer: int, quad: int, rule: Rule,
                   direction: QuadOp, part: int) -> bool:
        """대각선 위 사분면으로 넘길 수 있는지"""
        dest = _dest_quad(quad, direction)
        if not target & _bit(layer + 1, dest):
            return False
        if (layer + 1, dest) in passed:
            return False
        if _part_size(part) + 1 > _RULE_MAX_SIZE.get(rule, 5):
            return False
        if rule in _PRUNE_RULES and target & _bit(layer, dest):
            return False
        return True
