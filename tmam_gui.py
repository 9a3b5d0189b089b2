import os
import sys
import html
from typing import List, Optional

from PyQt6.QtWidgets import (
    QApplication, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel, QTextEdit,
    QCheckBox, QComboBox, QTabWidget, QMainWindow, QFileDialog, QMessageBox, QSplitter
)
from PyQt6.QtCore import Qt, QSettings, pyqtSignal

from i18n import load_locales, _, set_language, get_language, available_languages
from shape import to_shape, graph, graph_parts, code_to_hex, chart
from shape_catalog import ShapeCatalog
from tmam import set_log_callback
from tmam_solver import Strategy, candidate_codes
from data_operations import (
    get_data_directory, load_catalog, save_known_builds, save_unknown, save_search_results,
    deconstruction_chart, parse_shape_or_none, KNOWN_FILE, UNKNOWN_FILE
)
from gui.utils import TmamWorkerThread, BatchSolveThread, BuildSearchThread
from gui.deconstruct_tab import build_deconstruct_tab, selected_strategies
from gui.batch_tab import build_batch_tab
from gui.search_tab import build_search_tab


def get_resource_path(relative_path):
    """PyInstaller 빌드 후에도 리소스 파일을 찾을 수 있도록 하는 함수"""
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller로 빌드된 경우
        return os.path.join(sys._MEIPASS, relative_path)
    else:
        # 일반 실행의 경우
        return os.path.join(os.path.dirname(__file__), relative_path)


LOCALES_DIR = get_resource_path("locales")
try:
    load_locales(LOCALES_DIR)
except OSError:
    pass


def _parse_int(text: str) -> Optional[int]:
    text = text.strip()
    return int(text) if text.isdigit() else None


# ==============================================================================
#  GUI 프론트엔드
# ==============================================================================
class TmamGUI(QMainWindow):
    # 작업 스레드에서 나온 코어 로그를 메인 스레드로 옮기는 신호
    core_log = pyqtSignal(str)

    def __init__(self):
        super().__init__()

        # QSettings 초기화 및 저장된 언어 로드
        self.settings = QSettings("ShapezTmam", "TmamGUI")
        saved_lang = self.settings.value("lang", None)
        if saved_lang:
            set_language(str(saved_lang))

        self.setWindowTitle(_("app.title"))
        self.setGeometry(100, 100, 1200, 800)

        self.log_entries = []  # [(message, is_verbose), ...]
        self.catalog: Optional[ShapeCatalog] = None
        self.catalog_path = ""
        self.known = {}
        self.unknown: List[int] = []
        self.search = None

        self.tmam_thread = None
        self.batch_thread = None
        self.search_thread = None

        self.core_log.connect(self.handle_worker_log)
        set_log_callback(self.core_log.emit)

        self.initUI()
        self.load_settings()

    def initUI(self):
        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)

        # 언어 선택
        top_layout = QHBoxLayout()
        top_layout.addStretch(1)
        top_layout.addWidget(QLabel(_("ui.language")))
        self.lang_combo = QComboBox()
        self.lang_combo.addItems(available_languages() or ["en"])
        self.lang_combo.setCurrentText(get_language())
        self.lang_combo.currentTextChanged.connect(self.on_language_changed)
        top_layout.addWidget(self.lang_combo)
        main_layout.addLayout(top_layout)

        splitter = QSplitter(Qt.Orientation.Vertical)
        self.main_tabs = QTabWidget()
        self.main_tabs.addTab(build_deconstruct_tab(self), _("역추적"))
        self.main_tabs.addTab(build_batch_tab(self), _("대량처리"))
        self.main_tabs.addTab(build_search_tab(self), _("건설 탐색"))
        splitter.addWidget(self.main_tabs)

        # 로그 영역
        log_widget = QWidget()
        log_layout = QVBoxLayout(log_widget)
        log_header = QHBoxLayout()
        log_header.addWidget(QLabel(_("<b>로그</b>")))
        log_header.addStretch(1)
        self.log_checkbox = QCheckBox(_("상세 로그 보기"))
        self.log_checkbox.toggled.connect(self.on_log_level_changed)
        log_header.addWidget(self.log_checkbox)
        clear_button = QPushButton(_("지우기"))
        clear_button.clicked.connect(self.clear_log)
        log_header.addWidget(clear_button)
        log_layout.addLayout(log_header)
        self.log_output = QTextEdit()
        self.log_output.setReadOnly(True)
        log_layout.addWidget(self.log_output)
        splitter.addWidget(log_widget)
        splitter.setSizes([550, 250])
        main_layout.addWidget(splitter)

    # ------------------------------------------------------------------
    # 설정
    # ------------------------------------------------------------------
    def load_settings(self):
        self.log_checkbox.setChecked(self.settings.value("verbose_log", False, type=bool))
        self.max_iterations_edit.setText(str(self.settings.value("max_iterations", "")))
        self.max_logo_size_combo.setCurrentText(str(self.settings.value("max_logo_size", "4")))
        enabled = self.settings.value("strategies", None)
        if enabled:
            names = set(str(enabled).split(","))
            for strategy, checkbox in self.strategy_checkboxes.items():
                checkbox.setChecked(strategy.value in names)
        self.max_cost_edit.setText(str(self.settings.value("max_cost", "6")))
        self.presets_checkbox.setChecked(self.settings.value("use_presets", False, type=bool))
        path = self.settings.value("catalog_path", "")
        if path and os.path.exists(str(path)):
            self.set_catalog_path(str(path))

    def save_settings(self):
        self.settings.setValue("lang", get_language())
        self.settings.setValue("verbose_log", self.log_checkbox.isChecked())
        self.settings.setValue("max_iterations", self.max_iterations_edit.text())
        self.settings.setValue("max_logo_size", self.max_logo_size_combo.currentText())
        self.settings.setValue("strategies", ",".join(s.value for s in selected_strategies(self)))
        self.settings.setValue("max_cost", self.max_cost_edit.text())
        self.settings.setValue("use_presets", self.presets_checkbox.isChecked())
        self.settings.setValue("catalog_path", self.catalog_path)

    def on_language_changed(self, lang: str):
        set_language(lang)
        self.settings.setValue("lang", lang)
        self.log(_("log.language.restart"))

    def closeEvent(self, event):
        self.save_settings()
        for thread in (self.tmam_thread, self.batch_thread, self.search_thread):
            if thread and thread.isRunning():
                thread.cancel()
                thread.wait()
        set_log_callback(None)
        event.accept()

    # ------------------------------------------------------------------
    # 로그
    # ------------------------------------------------------------------
    def log(self, message, verbose=False):
        """로그 메시지를 출력합니다.

        Args:
            message: 출력할 메시지
            verbose: 상세 로그 여부 (기본값: False)
        """
        self.log_entries.append((message, verbose))
        if verbose and not self.log_checkbox.isChecked():
            return
        if verbose:
            escaped_message = html.escape(message)
            self.log_output.append(f'<span style="color: #666666;">{escaped_message}</span>')
        else:
            self.log_output.append(html.escape(message))

    def log_verbose(self, message):
        self.log(message, verbose=True)

    def handle_worker_log(self, message):
        """작업 스레드나 코어 모듈에서 받은 로그 메시지를 처리합니다."""
        for line in message.split('\n'):
            if line.startswith('[VERBOSE]'):
                self.log_verbose(line[9:].strip())
            elif line.startswith('DEBUG:'):
                self.log_verbose(line)
            else:
                self.log(line)

    def on_log_level_changed(self):
        self.log_output.clear()
        show_verbose = self.log_checkbox.isChecked()
        for message, verbose in self.log_entries:
            if verbose and not show_verbose:
                continue
            if verbose:
                self.log_output.append(f'<span style="color: #666666;">{html.escape(message)}</span>')
            else:
                self.log_output.append(html.escape(message))

    def clear_log(self):
        self.log_entries.clear()
        self.log_output.clear()

    # ------------------------------------------------------------------
    # 역추적 탭
    # ------------------------------------------------------------------
    def on_deconstruct(self):
        if self.tmam_thread and self.tmam_thread.isRunning():
            return
        target = parse_shape_or_none(self.target_edit.text())
        if target is None or target == 0:
            QMessageBox.warning(self, _("app.title"), _("ui.error.bad_shape", text=self.target_edit.text()))
            return
        strategies = selected_strategies(self)
        if not strategies:
            QMessageBox.warning(self, _("app.title"), _("ui.error.no_strategy"))
            return

        self.deconstruct_output.clear()
        self.deconstruct_output.append(f"{code_to_hex(target)}  {to_shape(target)}")
        self.deconstruct_output.append(graph(target))
        self.deconstruct_progress.setRange(0, len(strategies))
        self.deconstruct_progress.setValue(0)
        self.deconstruct_button.setEnabled(False)
        self.deconstruct_cancel_button.setEnabled(True)

        self.tmam_thread = TmamWorkerThread(
            target, strategies, _parse_int(self.max_iterations_edit.text()),
            int(self.max_logo_size_combo.currentText()), log_enabled=True)
        self.tmam_thread.progress.connect(self.on_deconstruct_progress)
        self.tmam_thread.log_message.connect(self.handle_worker_log)
        self.tmam_thread.finished_with_result.connect(self.on_deconstruct_finished)
        self.tmam_thread.start()

    def on_deconstruct_progress(self, step, total, name):
        self.deconstruct_progress.setRange(0, total)
        self.deconstruct_progress.setValue(step)
        self.deconstruct_progress.setFormat(f"{name}  %v / %m")

    def on_cancel_deconstruct(self):
        if self.tmam_thread and self.tmam_thread.isRunning():
            self.tmam_thread.cancel()

    def on_deconstruct_finished(self, result):
        self.deconstruct_button.setEnabled(True)
        self.deconstruct_cancel_button.setEnabled(False)
        if result is None:
            self.deconstruct_output.append(_("ui.result.not_found"))
            return
        offsets = result.offsets()
        self.deconstruct_output.append(_("ui.result.found", strategy=result.strategy))
        self.deconstruct_output.append(result.to_line())
        self.deconstruct_output.append(_("ui.result.offsets", offsets=offsets))
        if result.extra:
            self.deconstruct_output.append(_("ui.result.extra"))
        self.deconstruct_output.append(chart(result.parts + [result.code],
                                             [graph(p) for p in result.parts]
                                             + [graph_parts(result.parts, offsets)]))

    # ------------------------------------------------------------------
    # 대량처리 탭
    # ------------------------------------------------------------------
    def set_catalog_path(self, path: str):
        self.catalog_path = path
        self.file_path_label.setText(path)
        self.file_path_label.setStyleSheet("")
        self.catalog = load_catalog(path)
        if self.catalog is not None:
            self.batch_summary_label.setText(_("ui.batch.catalog_summary", **self.catalog.counts()))

    def on_browse_file(self):
        path, _filter = QFileDialog.getOpenFileName(
            self, _("찾아보기"), self.catalog_path or get_data_directory(), "Text (*.txt);;All (*)")
        if path:
            self.set_catalog_path(path)

    def on_batch_run(self):
        if self.batch_thread and self.batch_thread.isRunning():
            return
        codes = candidate_codes(self.catalog, self.allow_empty_checkbox.isChecked())
        if codes is None:
            QMessageBox.warning(self, _("app.title"), _("ui.error.catalog_empty"))
            return
        strategies = selected_strategies(self) or list(Strategy)

        self.batch_output.clear()
        self.batch_progress.setRange(0, len(codes))
        self.batch_progress.setValue(0)
        self.batch_run_button.setEnabled(False)
        self.batch_cancel_button.setEnabled(True)
        self.batch_save_button.setEnabled(False)

        self.batch_thread = BatchSolveThread(
            codes, strategies, _parse_int(self.max_iterations_edit.text()),
            int(self.max_logo_size_combo.currentText()), log_enabled=True)
        self.batch_thread.progress.connect(self.on_batch_progress)
        self.batch_thread.log_message.connect(self.handle_worker_log)
        self.batch_thread.finished_with_results.connect(self.on_batch_finished)
        self.batch_thread.start()

    def on_batch_progress(self, current, total):
        self.batch_progress.setRange(0, total)
        self.batch_progress.setValue(current)

    def on_batch_cancel(self):
        if self.batch_thread and self.batch_thread.isRunning():
            self.batch_thread.cancel()

    def on_batch_finished(self, known, unknown, canceled):
        self.batch_run_button.setEnabled(True)
        self.batch_cancel_button.setEnabled(False)
        self.batch_save_button.setEnabled(bool(known or unknown))
        self.known = known
        self.unknown = unknown
        summary = _("ui.batch.summary", known=len(known), unknown=len(unknown))
        if canceled:
            summary += " " + _("ui.batch.canceled")
        self.batch_summary_label.setText(summary)
        self.log(summary)
        results = [known[code] for code in sorted(known)]
        self.batch_output.setPlainText("\n".join(r.to_line() for r in results))
        if results:
            self.batch_output.append("")
            self.batch_output.append(deconstruction_chart(results[:64]))

    def on_batch_save(self):
        directory = QFileDialog.getExistingDirectory(self, _("저장"), get_data_directory())
        if not directory:
            return
        ok = save_known_builds(self.known, os.path.join(directory, KNOWN_FILE))
        ok = save_unknown(self.unknown, os.path.join(directory, UNKNOWN_FILE)) and ok
        self.log(_("log.saved", path=directory) if ok else _("log.save_failed", path=directory))

    # ------------------------------------------------------------------
    # 건설 탐색 탭
    # ------------------------------------------------------------------
    def on_presets_toggled(self, checked):
        self.seeds_edit.setEnabled(not checked)
        self.max_cost_edit.setEnabled(not checked)

    def on_search_run(self):
        if self.search_thread and self.search_thread.isRunning():
            return
        seeds = None
        if not self.presets_checkbox.isChecked():
            seeds = [parse_shape_or_none(s) for s in self.seeds_edit.text().split(",") if s.strip()]
            if not seeds or any(s is None for s in seeds):
                QMessageBox.warning(self, _("app.title"), _("ui.error.bad_shape", text=self.seeds_edit.text()))
                return

        self.search_output.clear()
        self.search_run_button.setEnabled(False)
        self.search_cancel_button.setEnabled(True)
        self.search_save_button.setEnabled(False)
        self.lookup_button.setEnabled(False)

        self.search_thread = BuildSearchThread(
            seeds, 0, _parse_int(self.search_iterations_edit.text()),
            _parse_int(self.max_cost_edit.text()), log_enabled=True)
        self.search_thread.progress.connect(self.on_search_progress)
        self.search_thread.log_message.connect(self.handle_worker_log)
        self.search_thread.finished_with_results.connect(self.on_search_finished)
        self.search_thread.start()

    def on_search_progress(self, iterations, total):
        self.search_status_label.setText(_("ui.search.status", iterations=iterations, total=total))

    def on_search_cancel(self):
        if self.search_thread and self.search_thread.isRunning():
            self.search_thread.cancel()

    def on_search_finished(self, search, canceled):
        self.search_run_button.setEnabled(True)
        self.search_cancel_button.setEnabled(False)
        self.search_save_button.setEnabled(True)
        self.lookup_button.setEnabled(True)
        self.search = search
        status = _("ui.search.status", iterations=search.stats["iterations"], total=len(search))
        if canceled:
            status += " " + _("ui.batch.canceled")
        self.search_status_label.setText(status)
        self.on_show_build()

    def on_show_build(self):
        if self.search is None:
            return
        code = parse_shape_or_none(self.lookup_edit.text())
        if code is None:
            return
        self.search_output.clear()
        if code not in self.search:
            self.search_output.append(_("ui.result.not_found"))
            return
        self.search_output.append(self.search.get_build_str(code))
        self.search_output.append("")
        self.search_output.append("\n".join(self.search.build_tree_lines(code)))

    def on_search_save(self):
        if self.search is None:
            return
        directory = QFileDialog.getExistingDirectory(self, _("저장"), get_data_directory())
        if not directory:
            return
        ok = save_search_results(self.search, directory)
        self.log(_("log.saved", path=directory) if ok else _("log.save_failed", path=directory))


def main():
    app = QApplication(sys.argv)
    window = TmamGUI()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
