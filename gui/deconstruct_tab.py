from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QGroupBox, QHBoxLayout, QLabel, QPushButton, QLineEdit,
    QCheckBox, QComboBox, QTextEdit, QProgressBar
)
from PyQt6.QtGui import QFont, QIntValidator
from i18n import _
from tmam_solver import Strategy, DEFAULT_STRATEGIES


def build_deconstruct_tab(main_window) -> QWidget:
    """
    역추적 탭 UI를 구성하고, main_window에 필요한 위젯 레퍼런스를 설정합니다.
    반환값: 탭으로 추가할 QWidget
    """
    tab_widget = QWidget()
    layout = QVBoxLayout(tab_widget)

    # 목표 도형 그룹
    target_group = QGroupBox(_("목표 도형"))
    target_layout = QHBoxLayout(target_group)
    main_window.target_edit = QLineEdit()
    main_window.target_edit.setPlaceholderText("004b / RuCw--Cw:----Ru--")
    main_window.target_edit.returnPressed.connect(main_window.on_deconstruct)
    target_layout.addWidget(main_window.target_edit, 1)

    main_window.deconstruct_button = QPushButton(_("분해"))
    main_window.deconstruct_button.clicked.connect(main_window.on_deconstruct)
    target_layout.addWidget(main_window.deconstruct_button)

    main_window.deconstruct_cancel_button = QPushButton(_("취소"))
    main_window.deconstruct_cancel_button.setEnabled(False)
    main_window.deconstruct_cancel_button.clicked.connect(main_window.on_cancel_deconstruct)
    target_layout.addWidget(main_window.deconstruct_cancel_button)
    layout.addWidget(target_group)

    # 전략 그룹
    strategy_group = QGroupBox(_("전략"))
    strategy_layout = QHBoxLayout(strategy_group)
    main_window.strategy_checkboxes = {}
    for strategy in DEFAULT_STRATEGIES:
        checkbox = QCheckBox(_(f"ui.strategy.{strategy.value}"))
        checkbox.setChecked(True)
        main_window.strategy_checkboxes[strategy] = checkbox
        strategy_layout.addWidget(checkbox)

    strategy_layout.addWidget(QLabel(_("ui.max_iterations")))
    main_window.max_iterations_edit = QLineEdit()
    main_window.max_iterations_edit.setValidator(QIntValidator(1, 10_000_000))
    main_window.max_iterations_edit.setFixedWidth(90)
    strategy_layout.addWidget(main_window.max_iterations_edit)

    strategy_layout.addWidget(QLabel(_("ui.max_logo_size")))
    main_window.max_logo_size_combo = QComboBox()
    main_window.max_logo_size_combo.addItems(["2", "3", "4"])
    main_window.max_logo_size_combo.setCurrentText("4")
    strategy_layout.addWidget(main_window.max_logo_size_combo)
    strategy_layout.addStretch(1)
    layout.addWidget(strategy_group)

    main_window.deconstruct_progress = QProgressBar()
    main_window.deconstruct_progress.setFormat("%v / %m  %p%")
    layout.addWidget(main_window.deconstruct_progress)

    # 결과
    result_group = QGroupBox(_("결과"))
    result_layout = QVBoxLayout(result_group)
    main_window.deconstruct_output = QTextEdit()
    main_window.deconstruct_output.setReadOnly(True)
    main_window.deconstruct_output.setFont(QFont("Consolas", 10))
    result_layout.addWidget(main_window.deconstruct_output)
    layout.addWidget(result_group, 1)

    return tab_widget


def selected_strategies(main_window):
    return [s for s in Strategy if main_window.strategy_checkboxes[s].isChecked()]
