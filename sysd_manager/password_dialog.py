from __future__ import annotations

from typing import Optional

from PySide6 import QtWidgets


class PasswordDialog(QtWidgets.QDialog):
    def __init__(self, command: str, parent: Optional[QtWidgets.QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("Authentication required")
        self.setModal(True)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(6)

        label = QtWidgets.QLabel("Enter sudo password:")
        layout.addWidget(label)

        if command:
            command_label = QtWidgets.QLabel(command)
            command_label.setEnabled(False)
            command_label.setWordWrap(True)
            layout.addWidget(command_label)

        self.entry = QtWidgets.QLineEdit()
        self.entry.setEchoMode(QtWidgets.QLineEdit.Password)
        layout.addWidget(self.entry)

        buttons = QtWidgets.QDialogButtonBox(QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)
        self.entry.setFocus()

    def password(self) -> str:
        return self.entry.text()


def prompt_for_password(parent: Optional[QtWidgets.QWidget], command: str = "") -> Optional[str]:
    """Return the entered password, or None if the dialog was cancelled or left empty."""
    dialog = PasswordDialog(command, parent)
    try:
        if dialog.exec() != QtWidgets.QDialog.Accepted:
            return None
        return dialog.password() or None
    finally:
        dialog.entry.clear()
        dialog.deleteLater()
