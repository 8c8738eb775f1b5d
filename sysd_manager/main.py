#!/usr/bin/env python3
"""
SysD Manager

A small Qt window to list, filter and control systemd services.
- Config file: ~/.config/sysd-manager/settings.yaml
- Dependencies: PySide6, PyYAML

Privileged actions go through pkexec first and fall back to sudo with a
password prompt.
"""
from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from pathlib import Path
from typing import Dict, List, Optional

from PySide6 import QtCore, QtWidgets

from .config import Settings, load_settings
from .controller import NO_SELECTION, READY
from .password_dialog import prompt_for_password
from .systemd_backend import SystemdBackend
from .unit_models import UnitTableModel
from .units import ActionKind, ActionRequest, View

APP_NAME = "SysD Manager"
APP_VERSION = "1.0.0"
FILTER_PLACEHOLDER = "type substring to match service name, description, pid or state"

logger = logging.getLogger(__name__)


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, settings: Settings):
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.resize(900, 550)

        self.backend = SystemdBackend(partial(prompt_for_password, self), settings, parent=self)
        self.backend.datasetsChanged.connect(self.reload_models)
        self.backend.statusChanged.connect(self.show_status)
        self.backend.busyChanged.connect(self.on_busy_changed)

        self._build_menu()

        central = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(central)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(6)
        self.setCentralWidget(central)

        # Filter row ----------------------------------------------------------
        filter_row = QtWidgets.QHBoxLayout()
        filter_row.addWidget(QtWidgets.QLabel("Filter:"))
        self.filter_edit = QtWidgets.QLineEdit()
        self.filter_edit.setPlaceholderText(FILTER_PLACEHOLDER)
        self.filter_edit.textChanged.connect(self.backend.set_filter)
        filter_row.addWidget(self.filter_edit, 1)
        layout.addLayout(filter_row)

        # One tab per view ----------------------------------------------------
        self.tabs = QtWidgets.QTabWidget()
        self.models: Dict[View, UnitTableModel] = {}
        self.tables: List[QtWidgets.QTableView] = []
        for view in View:
            model = UnitTableModel(self)
            table = self._make_table(model)
            self.models[view] = model
            self.tables.append(table)
            self.tabs.addTab(table, view.title)
        self.tabs.currentChanged.connect(self.on_tab_changed)
        layout.addWidget(self.tabs, 1)

        # Controls ------------------------------------------------------------
        controls = QtWidgets.QHBoxLayout()
        self.action_buttons: List[QtWidgets.QAbstractButton] = []
        for label, kind in (
            ("Start", ActionKind.START),
            ("Stop", ActionKind.STOP),
            ("Restart", ActionKind.RESTART),
        ):
            button = QtWidgets.QPushButton(label)
            button.clicked.connect(lambda checked=False, k=kind: self.request_action(k))
            controls.addWidget(button)
            self.action_buttons.append(button)

        self.enable_toggle = QtWidgets.QPushButton("Enable at boot")
        self.enable_toggle.setCheckable(True)
        self.enable_toggle.toggled.connect(self.on_enable_toggled)
        controls.addWidget(self.enable_toggle)
        self.action_buttons.append(self.enable_toggle)

        controls.addStretch(1)
        reload_button = QtWidgets.QPushButton("Reload")
        reload_button.setToolTip("Reload the selected unit, or the systemd daemon when nothing is selected")
        reload_button.clicked.connect(lambda checked=False: self.request_action(ActionKind.RELOAD))
        controls.addWidget(reload_button)
        self.action_buttons.append(reload_button)
        layout.addLayout(controls)

        self.statusBar().showMessage(READY)

    # UI wiring -------------------------------------------------------------
    def _build_menu(self) -> None:
        file_menu = self.menuBar().addMenu("File")
        file_menu.addAction("Refresh").triggered.connect(self.backend.refresh_all)
        file_menu.addSeparator()
        file_menu.addAction("Quit").triggered.connect(self.close)

        help_menu = self.menuBar().addMenu("Help")
        help_menu.addAction("About").triggered.connect(self.show_about)

    def _make_table(self, model: UnitTableModel) -> QtWidgets.QTableView:
        table = QtWidgets.QTableView()
        table.setModel(model)
        table.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        table.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        table.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        table.verticalHeader().setVisible(False)
        header = table.horizontalHeader()
        header.setSectionResizeMode(0, QtWidgets.QHeaderView.Stretch)
        header.setSectionResizeMode(1, QtWidgets.QHeaderView.Fixed)
        header.setSectionResizeMode(2, QtWidgets.QHeaderView.Fixed)
        header.setSectionResizeMode(3, QtWidgets.QHeaderView.Stretch)
        header.resizeSection(1, 120)
        header.resizeSection(2, 80)
        return table

    def current_view(self) -> View:
        return list(View)[self.tabs.currentIndex()]

    def selected_unit(self) -> Optional[str]:
        view = self.current_view()
        table = self.tables[self.tabs.currentIndex()]
        rows = table.selectionModel().selectedRows()
        if not rows:
            return None
        record = self.models[view].unit_at(rows[0].row())
        return record.name if record else None

    # Backend callbacks -----------------------------------------------------
    def reload_models(self) -> None:
        for view, model in self.models.items():
            model.set_records(self.backend.visible_records(view))

    def show_status(self, message: str) -> None:
        self.statusBar().showMessage(message)

    def on_busy_changed(self, busy: bool) -> None:
        for button in self.action_buttons:
            button.setEnabled(not busy)
        if busy:
            QtWidgets.QApplication.setOverrideCursor(QtCore.Qt.BusyCursor)
        else:
            QtWidgets.QApplication.restoreOverrideCursor()

    # Actions ---------------------------------------------------------------
    def request_action(self, kind: ActionKind) -> None:
        unit = self.selected_unit()
        if kind.needs_unit and not unit:
            self.show_status(NO_SELECTION)
            return
        self.backend.perform(ActionRequest(kind, unit))

    def on_enable_toggled(self, checked: bool) -> None:
        if not self.selected_unit():
            self.show_status(NO_SELECTION)
            self.enable_toggle.blockSignals(True)
            self.enable_toggle.setChecked(not checked)
            self.enable_toggle.blockSignals(False)
            return
        self.request_action(ActionKind.ENABLE if checked else ActionKind.DISABLE)

    def on_tab_changed(self, index: int) -> None:
        view = list(View)[index]
        self.show_status(view.status_text)
        self.backend.refresh_view(view)

    def show_about(self) -> None:
        QtWidgets.QMessageBox.about(
            self,
            f"About {APP_NAME}",
            f"{APP_NAME} {APP_VERSION}\n\nList, filter and control systemd services.",
        )

    def closeEvent(self, event) -> None:
        self.backend.shutdown()
        super().closeEvent(event)


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="sysd-manager", description=APP_NAME)
    parser.add_argument("--config", type=Path, default=None, help="settings file (YAML)")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    args, _ = parser.parse_known_args(argv)
    return args


def main() -> None:
    args = parse_args(sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    settings = load_settings(args.config)
    logger.info("Starting %s with settings from %s", APP_NAME, settings.source)

    app = QtWidgets.QApplication(sys.argv)
    window = MainWindow(settings)
    window.show()
    window.backend.refresh_all()
    sys.exit(app.exec())


if __name__ == "__main__":
    if sys.platform != "linux":
        print("This app is intended for Linux systems running systemd.")
    main()
