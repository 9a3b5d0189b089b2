from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QGroupBox, QHBoxLayout, QLabel, QPushButton, QCheckBox,
    QProgressBar, QTextEdit
)
from PyQt6.QtGui import QFont
from i18n import _


def build_batch_tab(main_window) -> QWidget:
    """
    대량처리 탭 UI를 구성하고, main_window에 필요한 위젯 레퍼런스를 설정합니다.
    반환값: 탭으로 추가할 QWidget
    """
    batch_tab_widget = QWidget()
    batch_layout = QVBoxLayout(batch_tab_widget)

    # 파일 선택 그룹
    file_group = QGroupBox(_("파일 선택"))
    file_layout = QVBoxLayout(file_group)

    # 파일 선택 행
    file_select_layout = QHBoxLayout()
    main_window.file_path_label = QLabel(_("선택된 파일 없음"))
    main_window.file_path_label.setStyleSheet("color: #666; font-style: italic;")
    file_select_layout.addWidget(QLabel(_("파일:")))
    file_select_layout.addWidget(main_window.file_path_label, 1)

    main_window.browse_button = QPushButton(_("찾아보기"))
    main_window.browse_button.clicked.connect(main_window.on_browse_file)
    file_select_layout.addWidget(main_window.browse_button)
    file_layout.addLayout(file_select_layout)

    main_window.allow_empty_checkbox = QCheckBox(_("ui.batch.allow_empty"))
    file_layout.addWidget(main_window.allow_empty_checkbox)
    batch_layout.addWidget(file_group)

    # 실행 행
    run_layout = QHBoxLayout()
    main_window.batch_run_button = QPushButton(_("실행"))
    main_window.batch_run_button.clicked.connect(main_window.on_batch_run)
    run_layout.addWidget(main_window.batch_run_button)

    main_window.batch_cancel_button = QPushButton(_("취소"))
    main_window.batch_cancel_button.setEnabled(False)
    main_window.batch_cancel_button.clicked.connect(main_window.on_batch_cancel)
    run_layout.addWidget(main_window.batch_cancel_button)

    main_window.batch_save_button = QPushButton(_("저장"))
    main_window.batch_save_button.setEnabled(False)
    main_window.batch_save_button.clicked.connect(main_window.on_batch_save)
    run_layout.addWidget(main_window.batch_save_button)

    main_window.batch_progress = QProgressBar()
    run_layout.addWidget(main_window.batch_progress, 1)
    batch_layout.addLayout(run_layout)

    main_window.batch_summary_label = QLabel("")
    batch_layout.addWidget(main_window.batch_summary_label)

    main_window.batch_output = QTextEdit()
    main_window.batch_output.setReadOnly(True)
    main_window.batch_output.setFont(QFont("Consolas", 10))
    batch_layout.addWidget(main_window.batch_output, 1)

    return batch_tab_widget
