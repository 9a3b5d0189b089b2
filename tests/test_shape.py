import pytest

from shape import (
    rotate_code, right_code, left_code, uturn_code, mirror_code, key_code, cut_code,
    cut_left_code, cut_right_code, stack_code, stack_trash, unstack_code, flip_code,
    screw_left_code, screw_right_code, layer_count, count_pieces, to_layers,
    bottom_layer_num, add_5th, is_invalid, can_stack_all, can_stack_some,
    can_stack_bottom, can_stack_layer, can_cut, to_shape, from_shape, parse_code,
    code_to_hex, pp, graph, graph_parts, chart, Shape, LOGO_CODE
)

SAMPLE = list(range(0, 0x10000, 97)) + [0x4B, 0xFE1F, 0xFFFF, 0x1248]


def test_rotate():
    assert rotate_code(0x0001, 1) == 0x0002
    assert rotate_code(0x1248, 3) == 0x8124
    assert right_code(0x8) == 0x1
    assert uturn_code(0x3) == 0xC
    assert left_code(0xC) == 0x6


def test_mirror_and_key():
    assert mirror_code(0x1234) == 0x84C2
    assert key_code(0x4321) == 0x1624
    assert key_code(LOGO_CODE) == 0x1E


def test_cut():
    assert cut_code(0x5AFF) == (0x48CC, 0x1233)
    assert cut_code(0x936C) == (0x084C, 0x0132)
    assert cut_left_code(0x6A) == 0x48
    assert cut_right_code(0x6A) == 0x22


def test_stack():
    assert stack_code(0x000F, 0x000F) == 0x00FF
    assert stack_code(0xFFFA, 0x5111) == 0xF111
    # 충돌이 없으면 그대로 합쳐짐
    assert stack_code(0x48, 0x3) == 0x4B
    assert stack_code(0x6, 0xA) == 0x6A


def test_stack_trash():
    assert stack_trash(0xF, 0xF) == 0
    assert stack_trash(0xFFFA, 0x5111) == count_pieces(0xFFFA) + count_pieces(0x5111) - count_pieces(0xF111)


def test_unstack_flip_screw():
    assert unstack_code(0x0234) == (0x0034, 0x0002)
    assert flip_code(0x1234) == 0x2C48
    assert screw_left_code(0x1111) == 0x8421
    assert screw_right_code(0x1111) == 0x2481


def test_layers():
    assert to_layers(0x0120) == [0, 2, 1]
    assert layer_count(0x0120) == 3
    assert layer_count(0) == 0
    assert layer_count(0xF0000) == 5
    assert bottom_layer_num(0x0120) == 1
    assert add_5th(0x0FFF) == 0x0FFF
    assert add_5th(0x1000) == 0xF1000


def test_predicates():
    assert is_invalid(0)
    assert is_invalid(0x10)
    assert is_invalid(0x1001)
    assert not is_invalid(LOGO_CODE)
    assert not can_stack_all(0x12)
    assert not can_stack_all(0xFA5F)
    assert can_stack_all(0x1F)
    assert can_stack_some(0xFA5F)
    assert not can_stack_layer(0xFFA5, 1)
    assert can_stack_layer(0xFFA5, 0)
    assert can_stack_bottom(0xF)
    assert not can_stack_bottom(LOGO_CODE)
    assert can_cut(0x12)
    assert not can_cut(0xF1)
    assert can_cut(0xFF)


def test_logo_build_sequence():
    full = Shape(0xF)
    left, right = full.cut()
    assert (left.code, right.code) == (0xC, 0x3)
    a, b = right.left().cut()
    half = a.stack(b.right())
    assert half.code == 0xA
    top = half.stack(left.left())
    assert top.code == 0x6A
    logo_half, _rest = top.cut()
    _left, corner = Shape(0xF).cut()
    logo = logo_half.stack(corner)
    assert logo.code == LOGO_CODE
    assert repr(logo) == "RrRr--Rr:----Rg--:--------:--------"


def test_shape_strings():
    assert to_shape(LOGO_CODE) == "RrRr--Rr:----Rg--:--------:--------"
    assert from_shape("RuCw--Cw:----Ru--") == LOGO_CODE
    assert from_shape("RuCw--Cw:----Ru") is None
    assert parse_code("004b") == LOGO_CODE
    assert parse_code("0x4B") == LOGO_CODE
    assert parse_code("RrRr--Rr:----Rg--") == LOGO_CODE
    assert parse_code("xyz") is None
    assert code_to_hex(0x4B) == "004b"
    assert pp([0x3, Shape(0x48)]) == "[0003,0048]"


def test_shape_value_type():
    shape = Shape("004b")
    assert shape == Shape(0x4B)
    assert len({shape, Shape(0x4B)}) == 1
    assert shape.key().code == 0x1E
    assert shape.hex() == "004b"
    with pytest.raises(AttributeError):
        shape.foo = 1
    with pytest.raises(ValueError):
        Shape("not a shape")


def test_graph_and_chart():
    expected = "- - - - \n- - - - \n- - - - \n- - X - \nX X - X \n"
    assert graph(LOGO_CODE) == expected
    assert chart([LOGO_CODE]) == expected + "\n"
    labelled = graph_parts([0x3, 0x48], [0, 0])
    assert labelled.split("\n")[3:5] == ["- - B - ", "A A - B "]
    # 9개면 두 블록
    assert chart([0xF] * 9).count("\n\n") == 2


@pytest.mark.parametrize("code", SAMPLE)
def test_rotation_properties(code):
    for i in range(4):
        for j in range(4):
            assert rotate_code(rotate_code(code, i), j) == rotate_code(code, (i + j) % 4)
    assert mirror_code(mirror_code(code)) == code
    key = key_code(code)
    for k in range(4):
        assert key_code(rotate_code(code, k)) == key
    assert key_code(mirror_code(code)) == key


@pytest.mark.parametrize("code", SAMPLE)
def test_stack_and_cut_properties(code):
    assert layer_count(stack_code(code, code)) <= 4
    assert layer_count(stack_code(0xF, code)) <= 4
    if code and stack_code(cut_left_code(code), cut_right_code(code)) == code:
        assert can_cut(code)
    if can_stack_all(code):
        result = 0
        for layer in to_layers(code):
            result = stack_code(layer, result) if result else layer
        assert result == code
