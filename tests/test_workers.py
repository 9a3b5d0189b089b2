import pytest

QtCore = pytest.importorskip("PyQt6.QtCore")

from shape import LOGO_CODE  # noqa: E402
from tmam_solver import Strategy  # noqa: E402
from gui.utils import TmamWorkerThread, BatchSolveThread, BuildSearchThread  # noqa: E402


@pytest.fixture(scope="module")
def app():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


def test_tmam_worker(app):
    worker = TmamWorkerThread(LOGO_CODE, [Strategy.LOGO, Strategy.PEEL], log_enabled=True)
    results, progress, logs = [], [], []
    worker.finished_with_result.connect(results.append)
    worker.progress.connect(lambda step, total, name: progress.append((step, total, name)))
    worker.log_message.connect(logs.append)
    worker.run()
    assert len(results) == 1
    assert results[0].parts == [0x9, 0x42]
    assert progress == [(1, 2, "logo")]
    assert logs


def test_tmam_worker_cancel(app):
    worker = TmamWorkerThread(LOGO_CODE)
    results = []
    worker.finished_with_result.connect(results.append)
    worker.cancel()
    worker.run()
    assert results == [None]


def test_batch_worker(app):
    worker = BatchSolveThread([LOGO_CODE, 0xF, 0x10])
    results = []
    worker.finished_with_results.connect(lambda known, unknown, canceled: results.append((known, unknown, canceled)))
    worker.run()
    known, unknown, canceled = results[0]
    assert sorted(known) == [0xF, LOGO_CODE]
    assert unknown == [0x10]
    assert canceled is False


def test_build_search_worker(app):
    worker = BuildSearchThread(seeds=[0x1, 0x2, 0x4, 0x8], max_cost=3)
    results = []
    worker.finished_with_results.connect(lambda search, canceled: results.append((search, canceled)))
    worker.run()
    search, canceled = results[0]
    assert not canceled
    assert 0x3 in search
