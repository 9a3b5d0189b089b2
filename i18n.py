"""
다국어 문자열

locales/<언어>.json 파일을 읽어 키로 문자열을 찾습니다.
현재 언어에 없으면 영어, 영어에도 없으면 키 자체를 그대로 씁니다.
"""

import json
import locale
import os
from typing import Any, Dict, Optional

FALLBACK_LANG = "en"

_language: Optional[str] = None
_tables: Dict[str, Dict[str, str]] = {}

# 화면에 그대로 적힌 한국어 문구 -> 번역 키
_ALIASES: Dict[str, str] = {
    "목표 도형": "ui.groups.target",
    "전략": "ui.groups.strategies",
    "결과": "ui.groups.result",
    "파일 선택": "ui.groups.file_select",
    "탐색 설정": "ui.groups.search_settings",
    "역추적": "ui.tabs.deconstruct",
    "대량처리": "ui.tabs.batch",
    "건설 탐색": "ui.tabs.search",
    "선택된 파일 없음": "ui.file.selected_none",
    "파일:": "ui.file.file",
    "찾아보기": "ui.file.browse",
    "분해": "ui.btn.deconstruct",
    "실행": "ui.btn.run",
    "취소": "ui.btn.cancel",
    "저장": "ui.btn.save",
    "<b>로그</b>": "ui.log.header.html",
    "상세 로그 보기": "ui.log.show_verbose",
    "지우기": "ui.log.clear",
}


def _system_language() -> str:
    name = locale.getlocale()[0]
    return name.split("_")[0].lower() if name else FALLBACK_LANG


def set_language(lang: Optional[str]):
    """None 이면 시스템 언어를 따릅니다."""
    global _language
    _language = lang


def get_language() -> str:
    return _language or _system_language()


def available_languages():
    return sorted(_tables)


def load_locales(locales_dir: str):
    """폴더 안의 *.json 을 모두 읽습니다. 읽지 못한 파일은 빈 표로 둡니다."""
    _tables.clear()
    for name in sorted(os.listdir(locales_dir)):
        lang, ext = os.path.splitext(name)
        if ext != ".json":
            continue
        try:
            with open(os.path.join(locales_dir, name), "r", encoding="utf-8") as f:
                _tables[lang] = json.load(f)
        except (OSError, ValueError):
            _tables[lang] = {}


def _lookup(key: str) -> Optional[str]:
    for lang in (get_language(), FALLBACK_LANG):
        text = _tables.get(lang, {}).get(key)
        if text is not None:
            return text
    return None


def translate(key: str, **values: Any) -> str:
    text = _lookup(_ALIASES.get(key, key))
    if text is None:
        text = key
    try:
        return text.format(**values)
    except (KeyError, IndexError, ValueError):
        # 자리표시자 값이 빠졌으면 채우지 않은 문자열
        return text


_ = translate
t = translate
