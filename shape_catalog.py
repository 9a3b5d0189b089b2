"""
도형 카탈로그

실제로 만들 수 있는 도형 목록입니다. 파일 한 줄은 대표 도형(key)과
그 key 에 속하는 도형 코드들로 이루어집니다.

    <keyHex> <codeHex>,<codeHex>,...

잘못된 16진수 항목은 건너뛰고 bad_count 로 셉니다.
"""

from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, Optional

from shape import key_code, code_to_hex, _is_hex

MAX_HEX_DIGITS = 5


def _parse_hex(token: str) -> Optional[int]:
    token = token.strip()
    if not token or len(token) > MAX_HEX_DIGITS or not _is_hex(token):
        return None
    return int(token, 16)


class ShapeCatalog:
    def __init__(self):
        # key -> 정렬된 도형 코드 목록
        self.groups: Dict[int, List[int]] = {}
        self.codes = set()
        self.good_count = 0
        self.bad_count = 0

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> ShapeCatalog:
        """
        카탈로그 텍스트를 읽습니다. 빈 줄은 건너뜁니다.

        key 자리가 잘못된 줄은 그 줄 전체를 하나의 오류로 셉니다.
        도형 목록의 잘못된 항목은 항목마다 하나씩 셉니다.
        """
        catalog = cls()
        for line in lines:
            line = line.strip()
            if not line:
                continue
            fields = line.split(None, 1)
            key = _parse_hex(fields[0])
            if key is None:
                catalog.bad_count += 1
                continue
            group = catalog.groups.setdefault(key, [])
            if len(fields) < 2:
                continue
            for token in fields[1].split(","):
                code = _parse_hex(token)
                if code is None:
                    catalog.bad_count += 1
                    continue
                catalog.good_count += 1
                if code not in catalog.codes:
                    catalog.codes.add(code)
                    group.append(code)
        for key in catalog.groups:
            catalog.groups[key].sort()
        return catalog

    @classmethod
    def from_codes(cls, codes: Iterable[int]) -> ShapeCatalog:
        """임의의 도형 코드 모음으로 카탈로그를 만듭니다 (key 는 key_code 로 계산)."""
        catalog = cls()
        for code in codes:
            if code in catalog.codes or code == 0:
                continue
            catalog.codes.add(code)
            catalog.good_count += 1
            catalog.groups.setdefault(key_code(code), []).append(code)
        for key in catalog.groups:
            catalog.groups[key].sort()
        return catalog

    def to_lines(self) -> List[str]:
        lines = []
        for key in sorted(self.groups):
            codes = self.groups[key]
            if codes:
                lines.append(f"{code_to_hex(key)} {','.join(code_to_hex(c) for c in codes)}")
            else:
                lines.append(f"{code_to_hex(key)} xxxx")
        return lines

    def is_possible(self, code: int) -> bool:
        return code in self.codes

    def is_empty(self) -> bool:
        return not self.codes

    def key_shapes(self) -> List[int]:
        """도형이 하나라도 있는 대표 도형 목록 (오름차순)"""
        return sorted(key for key, codes in self.groups.items() if codes)

    def counts(self) -> Dict[str, int]:
        return {
            "keys": len(self.key_shapes()),
            "shapes": len(self.codes),
            "good": self.good_count,
            "bad": self.bad_count,
        }

    def __contains__(self, code: int) -> bool:
        return code in self.codes

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self.codes))

    def __len__(self) -> int:
        return len(self.codes)
