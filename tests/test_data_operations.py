import os

import data_operations
from data_operations import (
    load_catalog, save_catalog, save_known_builds, load_known_builds, save_unknown,
    deconstruction_chart, save_chart, save_build_db, load_build_db, save_search_results,
    parse_shape_or_none, get_data_directory, read_lines
)
from build_search import BuildSearch, DB_SIZE
from shape import LOGO_CODE
from shape_catalog import ShapeCatalog
from tmam import DeconstructionResult, set_log_callback


def test_data_directory():
    assert get_data_directory() == "data"
    assert get_data_directory("known.txt") == os.path.join("data", "known.txt")


def test_catalog_round_trip(tmp_path):
    path = str(tmp_path / "sub" / "shapes.txt")
    catalog = ShapeCatalog.from_lines(["004b 004b,00b4", "000f 000f"])
    assert save_catalog(catalog, path)
    loaded = load_catalog(path)
    assert loaded.codes == catalog.codes
    assert loaded.key_shapes() == [0xF, 0x4B]


def test_missing_file_is_logged(tmp_path):
    lines = []
    set_log_callback(lines.append)
    try:
        assert load_catalog(str(tmp_path / "nope.txt")) is None
        assert load_build_db(str(tmp_path / "nope.bin")) is None
    finally:
        set_log_callback(None)
    assert len(lines) == 2
    assert all(line.startswith("ERROR:") for line in lines)


def test_known_builds(tmp_path):
    path = str(tmp_path / "known.txt")
    results = {
        LOGO_CODE: DeconstructionResult(LOGO_CODE, [0x3, 0x48], "01+"),
        0xF: DeconstructionResult(0xF, [0xF], "0"),
    }
    assert save_known_builds(results, path)
    assert read_lines(path) == ["000f [000f] 0", "004b [0003,0048] 01+"]
    with open(path, "a", encoding="utf-8") as f:
        f.write("\nbroken line\n")
    loaded = load_known_builds(path)
    assert sorted(loaded) == [0xF, LOGO_CODE]
    assert loaded[LOGO_CODE] == results[LOGO_CODE]


def test_unknown_and_chart(tmp_path):
    path = str(tmp_path / "unknown.txt")
    assert save_unknown([0x10, 0x1234], path)
    assert read_lines(path) == ["0010", "1234"]

    chart_path = str(tmp_path / "chart.txt")
    assert save_chart([LOGO_CODE], chart_path)
    with open(chart_path, encoding="utf-8") as f:
        assert f.read() == "- - - - \n- - - - \n- - - - \n- - X - \nX X - X \n\n"

    text = deconstruction_chart([DeconstructionResult(LOGO_CODE, [0x3, 0x48], "01+")])
    assert "A A - B " in text.split("\n")


def test_build_db(tmp_path):
    search = BuildSearch()
    search.run([0xF], max_iterations=10)
    path = str(tmp_path / "db.bin")
    assert save_build_db(search, path)
    data = load_build_db(path)
    assert len(data) == DB_SIZE
    assert BuildSearch.parse_db(data)[0xF][1:] == (0, 0)

    bad = tmp_path / "bad.bin"
    bad.write_bytes(b"\0" * 10)
    assert load_build_db(str(bad)) is None


def test_save_search_results(tmp_path):
    search = BuildSearch()
    search.run([0xF], max_iterations=5)
    assert save_search_results(search, str(tmp_path))
    for name in (data_operations.OPS_FILE, data_operations.BUILDS_FILE, data_operations.DB_FILE):
        assert (tmp_path / name).exists()
    assert len(read_lines(str(tmp_path / data_operations.OPS_FILE))) == len(search)


def test_parse_shape_or_none():
    assert parse_shape_or_none("") is None
    assert parse_shape_or_none("004b") == LOGO_CODE
    assert parse_shape_or_none("RrRr--Rr:----Rg--") == LOGO_CODE
    assert parse_shape_or_none("hello") is None
