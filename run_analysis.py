#!/usr/bin/env python3
"""
역추적 / 건설 탐색을 명령행에서 실행하는 스크립트

    python run_analysis.py solve <catalog> [out_dir] [--allow-empty]
    python run_analysis.py search [out_dir] [max_cost]

solve 는 카탈로그의 대표 도형을 모두 분해하여 known.txt, unknown.txt, chart.txt 를 저장하고,
search 는 건설 탐색 결과를 ops.txt, builds.txt, db.bin 으로 저장합니다.
"""

import os
import sys

import tmam
from tmam import _log
from tmam_solver import TmamSolver, candidate_codes
from build_search import BuildSearch
from data_operations import (
    get_data_directory, load_catalog, save_known_builds, save_unknown, save_chart,
    save_search_results, deconstruction_chart, KNOWN_FILE, UNKNOWN_FILE, CHART_FILE
)
from i18n import _, load_locales

LOCALES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "locales")


def solve_catalog(catalog_path: str, out_dir: str, allow_empty: bool = False) -> int:
    """
    카탈로그의 모든 대표 도형을 분해하고 결과 파일을 저장합니다.

    Returns:
        int: 종료 코드 (0 성공, 1 실패)
    """
    _log(f"DEBUG: {_('run_analysis.start', input_filepath=catalog_path)}")
    catalog = load_catalog(catalog_path)
    if catalog is None:
        return 1
    codes = candidate_codes(catalog, allow_empty)
    if codes is None:
        _log(f"ERROR: {_('run_analysis.error.catalog_empty', input_filepath=catalog_path)}")
        return 1

    solver = TmamSolver()
    known, unknown = solver.solve_all(codes)
    _log(f"DEBUG: {_('run_analysis.summary', total_shapes=len(codes), known=len(known), unknown=len(unknown))}")
    for name, count in solver.stats["by_strategy"].items():
        _log(f"DEBUG: {_('run_analysis.strategy_count', strategy=name, count=count)}")

    results = [known[code] for code in sorted(known)]
    ok = save_known_builds(results, os.path.join(out_dir, KNOWN_FILE))
    ok = save_unknown(unknown, os.path.join(out_dir, UNKNOWN_FILE)) and ok
    chart_path = os.path.join(out_dir, CHART_FILE)
    try:
        with open(chart_path, 'w', encoding='utf-8') as f:
            f.write(deconstruction_chart(results))
    except OSError as e:
        _log(f"ERROR: {_('run_analysis.error.write', output_filepath=chart_path, error=str(e))}")
        ok = False
    if unknown:
        ok = save_chart(unknown, os.path.join(out_dir, "unknown_chart.txt")) and ok
    if ok:
        _log(f"DEBUG: {_('run_analysis.success.write', output_filepath=out_dir)}")
    return 0 if ok else 1


def search_all(out_dir: str, max_cost=None) -> int:
    search = BuildSearch()
    if max_cost is None:
        search.run_presets()
    else:
        search.run([0x1, 0x2, 0x4, 0x8], max_cost=max_cost)
    _log(f"DEBUG: {_('run_analysis.search_summary', total=len(search), lower_cost=search.stats['lower_cost'])}")
    for code in (0x004B, 0xFE1F):
        build = search.get_build_str(code)
        _log(f"DEBUG: {format(code, '04x')}: {build or _('run_analysis.not_found')}")
    if not save_search_results(search, out_dir):
        return 1
    _log(f"DEBUG: {_('run_analysis.success.write', output_filepath=out_dir)}")
    return 0


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        load_locales(LOCALES_DIR)
    except OSError:
        pass
    allow_empty = "--allow-empty" in argv
    args = [a for a in argv if not a.startswith("--")]
    if not args or args[0] not in ("solve", "search"):
        print(_("run_analysis.usage"))
        return 2

    mode = args[0]
    tmam.set_log_callback(print)
    try:
        if mode == "solve":
            if len(args) < 2:
                print(_("run_analysis.usage"))
                return 2
            catalog_path = args[1]
            if not os.path.exists(catalog_path):
                print(_("run_analysis.error.file_not_found", input_filepath=catalog_path))
                return 1
            out_dir = args[2] if len(args) >= 3 else get_data_directory()
            return solve_catalog(catalog_path, out_dir, allow_empty)

        out_dir = args[1] if len(args) >= 2 else get_data_directory()
        max_cost = int(args[2]) if len(args) >= 3 and args[2].isdigit() else None
        return search_all(out_dir, max_cost)
    except KeyboardInterrupt:
        print(_("run_analysis.canceled"))
        return 1
    finally:
        tmam.set_log_callback(None)


if __name__ == "__main__":
    sys.exit(main())
