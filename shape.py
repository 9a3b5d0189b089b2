from __future__ import annotations
from typing import List, Tuple, Optional, Union

# ==============================================================================
#  1. 도형 코드 (Shapez 1) 비트 연산
# ==============================================================================
# 도형 코드: 16비트 (5층 보조 레이어 사용 시 20비트)
# - 비트 4*L + Q : L층 Q사분면 (0=E, 1=N, 2=W, 3=S)
# - 0층이 가장 아래층
# - 16..19 비트는 역추적(TMAM) 중에만 쓰는 5층 보조 레이어

MAX_LAYERS = 4
FULL_LAYER = 0xF
CODE_MASK = 0xFFFF
CODE_MASK_5 = 0xFFFFF
FIFTH_LAYER = 0xF0000

LEFT_HALF_MASK = 0xCCCC
RIGHT_HALF_MASK = 0x3333

FLAT_1 = [0x1, 0x2, 0x4, 0x8]
FLAT_2 = [0x3, 0x5, 0x6, 0x9, 0xA, 0xC]
FLAT_3 = [0x7, 0xB, 0xD, 0xE]
FLAT_4 = [0xF]
FLATS = FLAT_1 + FLAT_2 + FLAT_3 + FLAT_4

LOGO_2 = [0x12, 0x24, 0x48, 0x81, 0x18, 0x21, 0x42, 0x84]
LOGO_3 = [0x121, 0x242, 0x484, 0x818, 0x181, 0x212, 0x424, 0x848]
LOGO_4 = [0x1212, 0x2424, 0x4848, 0x8181, 0x1818, 0x2121, 0x4242, 0x8484]
LOGOS = LOGO_2 + LOGO_3 + LOGO_4

LOGO_CODE = 0x004B      # RuCw--Cw:----Ru--
ROCKET_CODE = 0xFE1F    # CbCuCbCu:Sr------:--CrSrCr:CwCwCwCw


def rotate_code(code: int, steps: int) -> int:
    """각 층을 steps 사분면만큼 회전합니다. 비트 4L+q 는 4L+((q+steps) mod 4) 로 이동."""
    l_shift = steps & 0x3
    r_shift = 4 - l_shift
    mask = (0xF >> r_shift) * 0x11111
    return ((code >> r_shift) & mask) | ((code << l_shift) & ~mask & CODE_MASK_5)


def right_code(code: int) -> int:
    return rotate_code(code, 1)


def uturn_code(code: int) -> int:
    return rotate_code(code, 2)


def left_code(code: int) -> int:
    return rotate_code(code, 3)


def mirror_code(code: int) -> int:
    """각 층의 4비트 묶음을 뒤집습니다 (q <-> 3-q)."""
    result = 0
    for _ in range(4):
        result = (result << 1) | (code & 0x11111)
        code >>= 1
    return result


def key_code(code: int) -> int:
    """회전 4가지 x 미러 2가지 중 가장 작은 코드 (대표 코드)"""
    mirrored = mirror_code(code)
    result = min(code, mirrored)
    for steps in range(1, 4):
        result = min(result, rotate_code(code, steps), rotate_code(mirrored, steps))
    return result


def collapse_code(code: int) -> int:
    """빈 층을 제거하고 남은 층을 아래로 모읍니다 (상대 순서 유지)."""
    result = 0
    shift = 0
    while code:
        layer = code & 0xF
        if layer:
            result |= layer << shift
            shift += 4
        code >>= 4
    return result


def cut_left_code(code: int) -> int:
    return collapse_code(code & LEFT_HALF_MASK)


def cut_right_code(code: int) -> int:
    return collapse_code(code & RIGHT_HALF_MASK)


def cut_code(code: int) -> Tuple[int, int]:
    """(왼쪽 절반, 오른쪽 절반)"""
    return cut_left_code(code), cut_right_code(code)


def stack_code(top: int, bottom: int) -> int:
    """
    top 을 bottom 위로 떨어뜨립니다.

    top 은 하나의 단단한 조각으로 취급되어 처음 닿는 위치의 한 층 위에 멈춥니다.
    4층을 넘는 부분은 잘려 나갑니다 (trash).

    Args:
        top (int): 위에 올릴 도형
        bottom (int): 아래 도형

    Returns:
        int: 쌓은 결과 (16비트)
    """
    for offset in range(4, 0, -1):
        if ((top << (4 * (offset - 1))) & bottom) != 0:
            return ((top << (4 * offset)) | bottom) & CODE_MASK
    return top | bottom


def stack_trash(top: int, bottom: int) -> int:
    """쌓기로 버려지는 조각 수"""
    result = stack_code(top, bottom)
    return count_pieces(top) + count_pieces(bottom) - count_pieces(result)


def unstack_code(code: int) -> Tuple[int, int]:
    """가장 위 층을 떼어냅니다. (아래 나머지, 0층으로 내린 최상층)"""
    if code == 0:
        return 0, 0
    num = layer_count(code) - 1
    mask = 0xF << (4 * num)
    return code & ~mask, code >> (4 * num)


def flip_code(code: int) -> int:
    """미러 후 층 순서를 뒤집습니다."""
    code = mirror_code(code)
    result = 0
    for _ in range(5):
        if code == 0:
            break
        result = (result << 4) | (code & 0xF)
        code >>= 4
    return result


def screw_left_code(code: int) -> int:
    """층마다 위층보다 한 칸 더 왼쪽으로 회전 (맨 위층 90도)"""
    result = 0
    while code > 0:
        code = left_code(code)
        bottom, top = unstack_code(code)
        result = (result << 4) | top
        code = bottom
    return result


def screw_right_code(code: int) -> int:
    result = 0
    while code > 0:
        code = right_code(code)
        bottom, top = unstack_code(code)
        result = (result << 4) | top
        code = bottom
    return result


def layer_count(code: int) -> int:
    """가장 높은 비어있지 않은 층 번호 + 1 (5층까지)"""
    mask = 0xF0000
    for num in range(5, 0, -1):
        if code & mask:
            return num
        mask >>= 4
    return 0


def count_pieces(code: int) -> int:
    return bin(code).count("1")


def to_layers(code: int) -> List[int]:
    """아래층부터 위층까지의 층 값 목록 (중간의 빈 층은 0으로 유지)"""
    result = []
    for _ in range(5):
        if code == 0:
            break
        result.append(code & 0xF)
        code >>= 4
    return result


def bottom_layer_num(code: int) -> int:
    """가장 아래의 비어있지 않은 층 번호"""
    if code == 0:
        return 0
    num = 0
    while num < 4 and (code & 0xF) == 0:
        code >>= 4
        num += 1
    return num


def get_bottom(code: int) -> int:
    return code & 0xF


def drop_bottom(code: int) -> int:
    return code >> 4


def drop_layers(code: int, num: int) -> int:
    return code >> (4 * num)


def delete_part(code: int, part: int) -> int:
    return code & ~part


def add_5th(code: int) -> int:
    """4층을 사용하는 도형이면 5층 보조 레이어를 가득 채웁니다."""
    if code > 0x0FFF:
        code |= FIFTH_LAYER
    return code


def is_invalid(code: int) -> bool:
    """빈 도형이거나 중간(또는 맨 아래)에 빈 층이 있으면 True"""
    if code == 0:
        return True
    while code > 0:
        if (code & 0xF) == 0:
            return True
        code >>= 4
    return False


def can_stack_all(code: int) -> bool:
    """모든 층을 한 층씩 아래부터 쌓아서 같은 도형이 나오는지"""
    if code == 0:
        return False
    layers = to_layers(code)
    result = layers[0]
    for top in layers[1:]:
        result = stack_code(top, result)
    return result == code


def can_stack_some(code: int) -> bool:
    """위쪽 몇 층을 한 덩어리로 떼어 다시 쌓았을 때 같은 도형이 나오는지"""
    if code == 0:
        return False
    num_layers = layer_count(code)
    if num_layers == 1:
        return True
    top = 0
    bottom = code
    for _ in range(1, num_layers):
        bottom, layer = unstack_code(bottom)
        top = (top << 4) | layer
        if stack_code(top, bottom) == code:
            return True
    return False


def can_stack_bottom(code: int) -> bool:
    """1층짜리이거나 맨 아래층이 바로 위층을 받치고 있으면 True"""
    if code == 0:
        return False
    above = (code >> 4) & 0xF
    if above == 0:
        return True
    return (above & code & 0xF) != 0


def can_stack_layer(code: int, layer: int) -> bool:
    """layer 층이 아래층의 받침을 받고 있는지"""
    if code == 0:
        return False
    if layer <= 0:
        return True
    mask = 0xF << (4 * layer)
    above = code & mask
    if above == 0:
        return True
    below = (code << 4) & mask
    return (above & below) != 0


def can_cut(code: int) -> bool:
    """세로로 자른 뒤 다시 쌓아 원래 도형이 나오는지 (90도 돌려서도 시도)"""
    if code == 0:
        return False
    left, right = cut_code(code)
    if stack_code(left, right) == code:
        return True
    code = right_code(code)
    left, right = cut_code(code)
    return stack_code(left, right) == code


# ==============================================================================
#  2. 출력 도우미
# ==============================================================================
_LAYER_COLORS = ["r", "g", "b", "w"]


def code_to_hex(code: int) -> str:
    return format(code, "04x")


def pp(value) -> str:
    """정수, Shape, 리스트를 보기 좋게 출력합니다."""
    if isinstance(value, Shape):
        return code_to_hex(value.code)
    if isinstance(value, int):
        return code_to_hex(value)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(pp(v) for v in value) + "]"
    return repr(value)


def to_shape(code: int) -> str:
    """도형 코드를 shapez 상수 문자열로 변환합니다. 층마다 다른 색을 씁니다."""
    layers = []
    for layer in range(MAX_LAYERS):
        color = _LAYER_COLORS[layer]
        value = (code >> (4 * layer)) & 0xF
        layers.append("".join(f"R{color}" if (value >> q) & 1 else "--" for q in range(4)))
    return ":".join(layers)


def from_shape(text: str) -> Optional[int]:
    """shapez 상수 문자열 (예: RuCw--Cw:----Ru--) 을 도형 코드로 변환합니다."""
    text = text.strip()
    if not text:
        return None
    code = 0
    layers = text.split(":")
    if len(layers) > MAX_LAYERS:
        return None
    for layer_num, layer in enumerate(layers):
        if len(layer) != 8:
            return None
        for q in range(4):
            if layer[2 * q] != "-":
                code |= 1 << (4 * layer_num + q)
    return code


def parse_code(text: str) -> Optional[int]:
    """16진수 코드 또는 shapez 문자열을 받아 도형 코드로 변환합니다. 실패 시 None."""
    text = text.strip()
    if ":" in text or (len(text) == 8 and not _is_hex(text)):
        return from_shape(text)
    if text.lower().startswith("0x"):
        text = text[2:]
    if not text or len(text) > 5 or not _is_hex(text):
        return None
    return int(text, 16)


def _is_hex(text: str) -> bool:
    return all(c in "0123456789abcdefABCDEF" for c in text)


def graph(code: int) -> str:
    """5행 4열 그림. 맨 위 (5층)부터 출력합니다."""
    rows = []
    for layer in range(4, -1, -1):
        value = (code >> (4 * layer)) & 0xF
        rows.append("".join("X " if (value >> q) & 1 else "- " for q in range(4)))
    return "\n".join(rows) + "\n"


def graph_parts(parts: List[int], offsets: List[int]) -> str:
    """각 칸을 그 칸을 차지한 조각의 문자(A, B, ...)로 표시합니다."""
    chars = "ABCDEFGHIJ"
    cells = [["-"] * 4 for _ in range(5)]
    for i, (part, offset) in enumerate(zip(parts, offsets)):
        placed = (part << (4 * offset)) & CODE_MASK_5
        for layer in range(5):
            for q in range(4):
                if (placed >> (4 * layer + q)) & 1:
                    cells[layer][q] = chars[i % len(chars)]
    rows = []
    for layer in range(4, -1, -1):
        rows.append("".join(c + " " for c in cells[layer]))
    return "\n".join(rows) + "\n"


def chart(codes: List[int], graphs: Optional[List[str]] = None, per_row: int = 8) -> str:
    """
    여러 도형을 한 줄에 최대 per_row 개씩 그립니다.

    Args:
        codes: 도형 코드 목록
        graphs: 미리 그린 그림 (없으면 graph() 사용)
        per_row: 한 줄에 그릴 도형 수

    Returns:
        str: 줄 사이에 빈 줄이 들어간 차트 문자열
    """
    sep = "  "
    if graphs is None:
        graphs = [graph(code) for code in codes]
    result = ""
    for pos in range(0, len(graphs), per_row):
        block = [g.split("\n") for g in graphs[pos:pos + per_row]]
        for row in range(5):
            result += sep.join(g[row] for g in block) + "\n"
        result += "\n"
    return result


# ==============================================================================
#  3. Shape 값 객체
# ==============================================================================
class Shape:
    """도형 코드를 감싸는 불변 값 객체. 연산 메서드는 새 Shape 를 반환합니다."""
    __slots__ = ("_code",)

    def __init__(self, code: Union[int, str]):
        if isinstance(code, str):
            parsed = parse_code(code)
            if parsed is None:
                raise ValueError(f"도형 코드를 해석할 수 없습니다: {code}")
            code = parsed
        object.__setattr__(self, "_code", code & CODE_MASK_5)

    def __setattr__(self, name, value):
        raise AttributeError("Shape 는 변경할 수 없습니다")

    @property
    def code(self) -> int:
        return self._code

    def __repr__(self) -> str:
        return to_shape(self._code)

    def __eq__(self, other) -> bool:
        if isinstance(other, Shape):
            return self._code == other._code
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._code)

    def hex(self) -> str:
        return code_to_hex(self._code)

    def key(self) -> Shape:
        return Shape(key_code(self._code))

    def right(self) -> Shape: return Shape(right_code(self._code))
    def uturn(self) -> Shape: return Shape(uturn_code(self._code))
    def left(self) -> Shape: return Shape(left_code(self._code))
    def mirror(self) -> Shape: return Shape(mirror_code(self._code))
    def flip(self) -> Shape: return Shape(flip_code(self._code))
    def screw_left(self) -> Shape: return Shape(screw_left_code(self._code))
    def screw_right(self) -> Shape: return Shape(screw_right_code(self._code))

    def cut(self) -> Tuple[Shape, Shape]:
        left, right = cut_code(self._code)
        return Shape(left), Shape(right)

    def stack(self, top: Shape) -> Shape:
        """self 를 아래에 두고 top 을 위에 쌓습니다."""
        return Shape(stack_code(top.code, self._code))

    def unstack(self) -> Tuple[Shape, Shape]:
        bottom, top = unstack_code(self._code)
        return Shape(bottom), Shape(top)

    def layer_count(self) -> int:
        return layer_count(self._code)
