"""
데이터 파일 입출력 함수들을 모아놓은 모듈
카탈로그, 알려진 빌드, 차트, 건설 데이터베이스 파일을 읽고 씁니다.
실패하면 로그를 남기고 None 또는 False 를 반환합니다.
"""

import os
import sys
from typing import Dict, Iterable, List, Optional

from i18n import t
from shape import chart, graph_parts, parse_code
from shape_catalog import ShapeCatalog
from tmam import DeconstructionResult, _log
from build_search import BuildSearch, DB_SIZE

CATALOG_FILE = "shapes.txt"
KNOWN_FILE = "known.txt"
UNKNOWN_FILE = "unknown.txt"
CHART_FILE = "chart.txt"
DB_FILE = "db.bin"
OPS_FILE = "ops.txt"
BUILDS_FILE = "builds.txt"


def get_data_directory(filename=None):
    """사용자 데이터 저장 디렉토리 경로를 반환하는 함수

    Args:
        filename (str, optional): 파일명이 주어지면 전체 파일 경로를 반환

    Returns:
        str: 디렉토리 경로 또는 전체 파일 경로
    """
    if hasattr(sys, '_MEIPASS'):
        # --onefile 빌드의 경우 사용자 홈 디렉토리에 data 폴더 생성
        base_dir = os.path.join(os.path.expanduser("~"), "ShapezTmam", "data")
    elif hasattr(sys, 'frozen'):
        # --onedir 빌드의 경우 exe 위치 기준으로 data 폴더 생성
        exe_dir = os.path.dirname(sys.executable)
        base_dir = os.path.join(exe_dir, "data")
    else:
        # 일반 실행의 경우 현재 디렉토리의 data 폴더 사용
        base_dir = "data"

    if filename:
        return os.path.join(base_dir, filename)
    return base_dir


def _ensure_parent(path: str):
    parent = os.path.dirname(path)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)


def read_lines(path: str) -> Optional[List[str]]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read().splitlines()
    except FileNotFoundError:
        _log(f"ERROR: {t('data.error.file_not_found', path=path)}")
    except (OSError, UnicodeDecodeError) as e:
        _log(f"ERROR: {t('data.error.read', path=path, error=str(e))}")
    return None


def write_lines(path: str, lines: Iterable[str]) -> bool:
    try:
        _ensure_parent(path)
        with open(path, 'w', encoding='utf-8') as f:
            for line in lines:
                f.write(line + '\n')
        return True
    except OSError as e:
        _log(f"ERROR: {t('data.error.write', path=path, error=str(e))}")
        return False


def parse_shape_or_none(text: str) -> Optional[int]:
    """입력창 문자열 (16진수 또는 shapez 문자열) 을 도형 코드로. 실패하면 None."""
    if not text:
        return None
    return parse_code(text)


# --- 카탈로그 ---
def load_catalog(path: str) -> Optional[ShapeCatalog]:
    lines = read_lines(path)
    if lines is None:
        return None
    catalog = ShapeCatalog.from_lines(lines)
    counts = catalog.counts()
    _log(f"DEBUG: {t('data.catalog.loaded', path=path, **counts)}")
    if catalog.bad_count:
        _log(f"WARNING: {t('data.catalog.bad_entries', count=catalog.bad_count)}")
    return catalog


def save_catalog(catalog: ShapeCatalog, path: str) -> bool:
    return write_lines(path, catalog.to_lines())


# --- 알려진 빌드 ---
def save_known_builds(results, path: str) -> bool:
    """
    분해 결과를 한 줄씩 저장합니다. `<hex> [<hex>,...] <order>`

    Args:
        results: DeconstructionResult 목록 또는 code -> DeconstructionResult 사전
        path: 저장할 파일 경로
    """
    if isinstance(results, dict):
        results = [results[code] for code in sorted(results)]
    return write_lines(path, (r.to_line() for r in results))


def load_known_builds(path: str) -> Optional[Dict[int, DeconstructionResult]]:
    lines = read_lines(path)
    if lines is None:
        return None
    known = {}
    for line_num, line in enumerate(lines, 1):
        if not line.strip():
            continue
        result = DeconstructionResult.from_line(line)
        if result is None:
            _log(f"WARNING: {t('data.known.bad_line', line_num=line_num, line=line)}")
            continue
        known[result.code] = result
    return known


def save_unknown(codes: Iterable[int], path: str) -> bool:
    return write_lines(path, (format(code, "04x") for code in codes))


# --- 차트 ---
def deconstruction_chart(results: List[DeconstructionResult], per_row: int = 8) -> str:
    """분해 결과를 조각 문자(A, B, ...)로 표시한 차트"""
    graphs = [graph_parts(r.parts, r.offsets()) for r in results]
    return chart([r.code for r in results], graphs, per_row)


def save_chart(codes: List[int], path: str, graphs: Optional[List[str]] = None) -> bool:
    try:
        _ensure_parent(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(chart(codes, graphs))
        return True
    except OSError as e:
        _log(f"ERROR: {t('data.error.write', path=path, error=str(e))}")
        return False


# --- 건설 데이터베이스 ---
def save_build_db(search: BuildSearch, path: str) -> bool:
    try:
        _ensure_parent(path)
        with open(path, 'wb') as f:
            f.write(search.to_db_bytes())
        return True
    except OSError as e:
        _log(f"ERROR: {t('data.error.write', path=path, error=str(e))}")
        return False


def load_build_db(path: str) -> Optional[bytes]:
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        _log(f"ERROR: {t('data.error.read', path=path, error=str(e))}")
        return None
    if len(data) != DB_SIZE:
        _log(f"ERROR: {t('data.db.bad_size', path=path, size=len(data), expected=DB_SIZE)}")
        return None
    return data


def save_search_results(search: BuildSearch, data_dir: str) -> bool:
    """탐색 결과 파일 일괄 저장: ops.txt, builds.txt, db.bin"""
    ok = write_lines(os.path.join(data_dir, OPS_FILE), search.to_lines())
    ok = write_lines(os.path.join(data_dir, BUILDS_FILE), search.key_builds().values()) and ok
    ok = save_build_db(search, os.path.join(data_dir, DB_FILE)) and ok
    return ok
