from PyQt6.QtCore import QThread, pyqtSignal
from typing import Optional, List, Sequence

from i18n import _
from shape import code_to_hex
from tmam import SearchInterrupted
from tmam_solver import TmamSolver, Strategy, DEFAULT_STRATEGIES
from build_search import BuildSearch


class _LogBufferMixin:
    """작업 스레드의 로그를 모아 두었다가 한 번에 메인 윈도우로 보냅니다."""
    LOG_BUFFER_SIZE = 50

    def _init_log(self, log_enabled: bool):
        self.log_enabled = log_enabled
        self.log_buffer = []

    def log(self, msg: str, verbose=False):
        if self.log_enabled:
            # 로그 레벨에 따라 메시지에 마킹 추가
            if verbose:
                msg = f"[VERBOSE] {msg}"
            self.log_buffer.append(msg)
            if len(self.log_buffer) >= self.LOG_BUFFER_SIZE:
                self._flush_log_buffer()

    def log_verbose(self, msg: str):
        self.log(msg, verbose=True)

    def _flush_log_buffer(self):
        if self.log_buffer:
            self.log_message.emit("\n".join(self.log_buffer))
            self.log_buffer.clear()


class TmamWorkerThread(_LogBufferMixin, QThread):
    """도형 하나의 역추적을 백그라운드에서 수행하는 스레드"""
    progress = pyqtSignal(int, int, str)
    finished_with_result = pyqtSignal(object)  # Optional[DeconstructionResult]
    log_message = pyqtSignal(str)

    def __init__(self, target: int, strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
                 max_iterations: Optional[int] = None, max_logo_size: int = 4, log_enabled=False):
        super().__init__()
        self.target = target
        self.strategies = list(strategies)
        self.max_iterations = max_iterations
        self.max_logo_size = max_logo_size
        self.is_cancelled = False
        self._init_log(log_enabled)

    def run(self):
        result = None
        try:
            total = len(self.strategies)
            for step, strategy in enumerate(self.strategies, start=1):
                if self.is_cancelled:
                    raise SearchInterrupted()
                self.progress.emit(step, total, strategy.value)
                self.log(_("log.tmam.strategy", strategy=strategy.value, target=code_to_hex(self.target)))
                solver = TmamSolver([strategy], self.max_iterations, self.max_logo_size, worker=self)
                result = solver.solve(self.target)
                if result is not None:
                    break
        except SearchInterrupted:
            self.log(_("log.tmam.canceled"))
            result = None
        finally:
            self._flush_log_buffer()
        self.finished_with_result.emit(result)

    def cancel(self):
        self.is_cancelled = True


class BatchSolveThread(_LogBufferMixin, QThread):
    """카탈로그의 대표 도형들을 차례로 역추적하는 스레드"""
    progress = pyqtSignal(int, int)  # current, total
    # known (code -> DeconstructionResult), unknown, canceled
    finished_with_results = pyqtSignal(object, object, bool)
    log_message = pyqtSignal(str)

    def __init__(self, codes: List[int], strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
                 max_iterations: Optional[int] = None, max_logo_size: int = 4, log_enabled=False):
        super().__init__()
        self._codes = list(codes)
        self._strategies = list(strategies)
        self._max_iterations = max_iterations
        self._max_logo_size = max_logo_size
        self._cancel_requested = False
        self._init_log(log_enabled)

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_requested

    def cancel(self):
        self._cancel_requested = True

    def run(self):
        solver = TmamSolver(self._strategies, self._max_iterations, self._max_logo_size, worker=self)
        known = {}
        unknown = []
        total = len(self._codes)
        try:
            for pos, code in enumerate(self._codes, start=1):
                if self._cancel_requested:
                    self.progress.emit(pos, total)
                    break
                result = solver.solve(code)
                if result is not None:
                    known[code] = result
                else:
                    unknown.append(code)
                    self.log(_("log.batch.unsolved", code=code_to_hex(code)))
                if pos % 50 == 0 or pos == total:
                    self.progress.emit(pos, total)
        except SearchInterrupted:
            self.log(_("log.batch.canceled"))
        finally:
            self._flush_log_buffer()
        self.finished_with_results.emit(known, unknown, self._cancel_requested)


class BuildSearchThread(_LogBufferMixin, QThread):
    """건설 탐색을 백그라운드에서 수행하는 스레드"""
    progress = pyqtSignal(int, int)  # iterations, total shapes
    finished_with_results = pyqtSignal(object, bool)  # BuildSearch, canceled
    log_message = pyqtSignal(str)

    def __init__(self, seeds: Optional[List[int]] = None, seed_cost: int = 0,
                 max_iterations: Optional[int] = None, max_cost: Optional[int] = None, log_enabled=False):
        super().__init__()
        # seeds 가 None 이면 기본 설정 (평판 -> 하프 로고) 으로 탐색
        self.seeds = seeds
        self.seed_cost = seed_cost
        self.max_iterations = max_iterations
        self.max_cost = max_cost
        self.is_cancelled = False
        self._init_log(log_enabled)

    def _on_progress(self, iterations, level, todo, total):
        self.progress.emit(iterations, total)
        self.log(_("log.search.progress", iterations=iterations, level=level, todo=todo, total=total),
                 verbose=True)

    def run(self):
        search = BuildSearch(worker=self)
        canceled = False
        try:
            if self.seeds is None:
                search.run_presets(progress=self._on_progress)
            else:
                search.run(self.seeds, self.seed_cost, self.max_iterations, self.max_cost,
                           progress=self._on_progress)
            self.log(_("log.search.done", total=len(search)))
        except SearchInterrupted:
            canceled = True
            self.log(_("log.search.canceled"))
        finally:
            self._flush_log_buffer()
        self.progress.emit(search.stats["iterations"], len(search))
        self.finished_with_results.emit(search, canceled)

    def cancel(self):
        self.is_cancelled = True
