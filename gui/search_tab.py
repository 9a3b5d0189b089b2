from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QGroupBox, QHBoxLayout, QLabel, QPushButton, QLineEdit,
    QCheckBox, QTextEdit
)
from PyQt6.QtGui import QFont, QIntValidator
from i18n import _


def build_search_tab(main_window) -> QWidget:
    """
    건설 탐색 탭 UI를 구성하고, main_window에 필요한 위젯 레퍼런스를 설정합니다.
    반환값: 탭으로 추가할 QWidget
    """
    tab_widget = QWidget()
    layout = QVBoxLayout(tab_widget)

    settings_group = QGroupBox(_("탐색 설정"))
    settings_layout = QHBoxLayout(settings_group)

    main_window.presets_checkbox = QCheckBox(_("ui.search.presets"))
    main_window.presets_checkbox.toggled.connect(main_window.on_presets_toggled)
    settings_layout.addWidget(main_window.presets_checkbox)

    settings_layout.addWidget(QLabel(_("ui.search.seeds")))
    main_window.seeds_edit = QLineEdit("1,2,4,8")
    settings_layout.addWidget(main_window.seeds_edit, 1)

    settings_layout.addWidget(QLabel(_("ui.search.max_cost")))
    main_window.max_cost_edit = QLineEdit("6")
    main_window.max_cost_edit.setValidator(QIntValidator(0, 1000))
    main_window.max_cost_edit.setFixedWidth(50)
    settings_layout.addWidget(main_window.max_cost_edit)

    settings_layout.addWidget(QLabel(_("ui.max_iterations")))
    main_window.search_iterations_edit = QLineEdit()
    main_window.search_iterations_edit.setValidator(QIntValidator(1, 10_000_000))
    main_window.search_iterations_edit.setFixedWidth(90)
    settings_layout.addWidget(main_window.search_iterations_edit)
    layout.addWidget(settings_group)

    run_layout = QHBoxLayout()
    main_window.search_run_button = QPushButton(_("실행"))
    main_window.search_run_button.clicked.connect(main_window.on_search_run)
    run_layout.addWidget(main_window.search_run_button)

    main_window.search_cancel_button = QPushButton(_("취소"))
    main_window.search_cancel_button.setEnabled(False)
    main_window.search_cancel_button.clicked.connect(main_window.on_search_cancel)
    run_layout.addWidget(main_window.search_cancel_button)

    main_window.search_save_button = QPushButton(_("저장"))
    main_window.search_save_button.setEnabled(False)
    main_window.search_save_button.clicked.connect(main_window.on_search_save)
    run_layout.addWidget(main_window.search_save_button)

    main_window.search_status_label = QLabel("")
    run_layout.addWidget(main_window.search_status_label, 1)
    layout.addLayout(run_layout)

    # 빌드 트리 조회
    lookup_layout = QHBoxLayout()
    lookup_layout.addWidget(QLabel(_("목표 도형")))
    main_window.lookup_edit = QLineEdit("004b")
    main_window.lookup_edit.returnPressed.connect(main_window.on_show_build)
    lookup_layout.addWidget(main_window.lookup_edit, 1)
    main_window.lookup_button = QPushButton(_("ui.btn.show_build"))
    main_window.lookup_button.setEnabled(False)
    main_window.lookup_button.clicked.connect(main_window.on_show_build)
    lookup_layout.addWidget(main_window.lookup_button)
    layout.addLayout(lookup_layout)

    main_window.search_output = QTextEdit()
    main_window.search_output.setReadOnly(True)
    main_window.search_output.setFont(QFont("Consolas", 10))
    layout.addWidget(main_window.search_output, 1)

    return tab_widget
