import pytest

from shape import stack_code, LOGO_CODE
from build_search import BuildSearch, BuildRecord, BuildOp, DB_ENTRY, DB_SIZE, db_to_text
from tmam import SearchInterrupted


@pytest.fixture(scope="module")
def search():
    search = BuildSearch()
    search.run([0x1, 0x2, 0x4, 0x8], max_cost=6)
    return search


def test_finds_logo(search):
    record = search.get(LOGO_CODE)
    assert record is not None
    assert record.cost <= 6
    assert search.replay(LOGO_CODE) == LOGO_CODE
    assert search.get_build_str(LOGO_CODE).startswith("004b ")


def test_costs_and_records(search):
    assert search.get(0x1).op is BuildOp.PRIM
    assert search.get(0x1).cost == 0
    assert search.get(0x3).cost == 1
    for code, record in search.all_shapes.items():
        assert record.cost <= 6
        if record.op is BuildOp.STACK:
            assert stack_code(record.code1, record.code2) == code


def test_replay_all(search):
    for code in list(search.all_shapes)[:500]:
        assert search.replay(code) == code


def test_tree_and_lines(search):
    lines = search.build_tree_lines(LOGO_CODE)
    assert lines[0].startswith("004b ")
    assert search.build_tree_lines(0xFFFF) == ["Shape not found: ffff"]
    assert len(search.to_lines()) == len(search)
    assert 0x1 in search.key_builds()


def test_record_line():
    record = BuildRecord(LOGO_CODE, BuildOp.STACK, 6, 0x48, 0x3)
    assert record.to_line() == "004b ST 0048 0003 (6,1)"
    assert BuildRecord(0x1, BuildOp.PRIM, 0).to_line() == "0001 P " + " " * 11 + "(0,1)"


def test_db_bytes(search):
    data = search.to_db_bytes()
    assert len(data) == DB_SIZE == 5 * 65536
    record = search.get(LOGO_CODE)
    code1, code2, op = DB_ENTRY.unpack_from(data, DB_ENTRY.size * LOGO_CODE)
    assert op == int(record.op)
    if record.op is BuildOp.STACK:
        # 아래, 위 순서로 기록
        assert (code1, code2) == (record.code2, record.code1)
    entries = BuildSearch.parse_db(data)
    assert len(entries) == len(search)
    assert entries[0x1] == (BuildOp.PRIM, 0, 0)
    assert BuildSearch.parse_db(b"123") is None
    assert len(db_to_text(data)) == len(search)
    assert db_to_text(b"") == []


def test_lower_cost_replaces_record():
    search = BuildSearch()
    search.update_all_shapes(BuildRecord(0x3, BuildOp.STACK, 5, 0x2, 0x1))
    assert search.update_all_shapes(BuildRecord(0x3, BuildOp.STACK, 1, 0x2, 0x1))
    assert search.get(0x3).cost == 1
    assert search.stats["lower_cost"] == 1
    assert not search.update_all_shapes(BuildRecord(0x3, BuildOp.STACK, 1, 0x2, 0x1))
    assert search.get(0x3).alt == 2
    assert not search.update_all_shapes(BuildRecord(0, BuildOp.PRIM, 0))


def test_iteration_limit_and_presets():
    search = BuildSearch()
    assert search.run([0xF], max_iterations=3) == 3
    presets = [
        {"seeds": [0xF], "cost": 0, "max_iterations": 20},
        {"seeds": [0x21], "cost": 10, "max_iterations": 5},
    ]
    search = BuildSearch()
    total = search.run_presets(presets)
    assert total <= 25
    assert search.stats["runs"] == 2
    assert 0x21 in search


class _CancelledWorker:
    is_cancelled = True


def test_cancel():
    search = BuildSearch(worker=_CancelledWorker())
    with pytest.raises(SearchInterrupted):
        search.run([0x1, 0x2, 0x4, 0x8])


def test_records_only_for_new_or_cheaper(monkeypatch):
    import build_search

    created = []

    class CountingRecord(BuildRecord):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            created.append(self.code)

    monkeypatch.setattr(build_search, "BuildRecord", CountingRecord)
    search = BuildSearch()
    search.run([0x1, 0x2, 0x4, 0x8], max_cost=4)
    # 동률이나 더 비싼 후보는 기록을 만들지 않음
    assert len(created) == len(search) + search.stats["lower_cost"]
    assert search.stats["same_cost"] > 0
    assert sum(r.alt - 1 for r in search.all_shapes.values()) <= search.stats["same_cost"]
    assert search.get(0x3).alt > 1
