from __future__ import annotations

from typing import List, Optional

from PySide6 import QtCore, QtGui

from .units import UnitRecord

COLUMNS = ("Name", "State", "PID", "Description")


def state_color(state: Optional[str]) -> str:
    normalized = (state or "").strip().lower()
    mapping = {
        "active": "#4caf50",
        "enabled": "#4caf50",
        "activating": "#2196f3",
        "reloading": "#2196f3",
        "deactivating": "#ff9800",
        "inactive": "#9e9e9e",
        "failed": "#f44336",
    }
    return mapping.get(normalized, "#9e9e9e")


class UnitTableModel(QtCore.QAbstractTableModel):
    def __init__(self, parent: Optional[QtCore.QObject] = None):
        super().__init__(parent)
        self._records: List[UnitRecord] = []

    def set_records(self, records: List[UnitRecord]) -> None:
        self.beginResetModel()
        self._records = list(records)
        self.endResetModel()

    def unit_at(self, row: int) -> Optional[UnitRecord]:
        if 0 <= row < len(self._records):
            return self._records[row]
        return None

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._records)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(COLUMNS)

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole):
        record = self.unit_at(index.row()) if index.isValid() else None
        if record is None:
            return None
        column = index.column()
        if role == QtCore.Qt.DisplayRole:
            return (record.name, record.state, record.pid, record.description)[column]
        if role == QtCore.Qt.ForegroundRole and column == 1:
            return QtGui.QColor(state_color(record.state))
        if role == QtCore.Qt.ToolTipRole and column == 0 and record.description:
            return f"{record.name}\n{record.description}"
        return None

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation, role: int = QtCore.Qt.DisplayRole):
        if role == QtCore.Qt.DisplayRole and orientation == QtCore.Qt.Horizontal:
            return COLUMNS[section]
        return None
