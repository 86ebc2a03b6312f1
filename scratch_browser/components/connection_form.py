import logging
from typing import Any, Callable, Dict

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QCheckBox,
    QDoubleSpinBox,
    QFormLayout,
    QLineEdit,
    QPushButton,
    QWidget,
)

from scratch_browser.services import settings

logger = logging.getLogger(__name__)


class ConnectionForm(QWidget):
    connected: Signal = Signal(dict)

    def __init__(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        super().__init__()
        self.callback = callback
        self.init_ui()
        self.load_config()

    def init_ui(self) -> None:
        self.server_input = QLineEdit()
        self.server_input.setPlaceholderText("http://127.0.0.1:7878")
        self.timeout_input = QDoubleSpinBox()
        self.timeout_input.setRange(1.0, 600.0)
        self.timeout_input.setSuffix(" s")
        self.verify_input = QCheckBox("Verify TLS certificates")
        self.connect_btn = QPushButton("Connect")

        layout = QFormLayout()
        layout.addRow("Server", self.server_input)
        layout.addRow("Timeout", self.timeout_input)
        layout.addRow(self.verify_input)
        layout.addWidget(self.connect_btn)

        self.connect_btn.clicked.connect(self.on_connect)
        self.setLayout(layout)

    def load_config(self) -> None:
        data = settings.read_settings()
        self.server_input.setText(str(data.get("server", "")))
        try:
            self.timeout_input.setValue(float(data.get("timeout", 10.0)))
        except (TypeError, ValueError):
            self.timeout_input.setValue(settings.DEFAULTS["timeout"])
        self.verify_input.setChecked(bool(data.get("verify", True)))

    def on_connect(self) -> None:
        info = {
            "server": self.server_input.text().strip(),
            "timeout": self.timeout_input.value(),
            "verify": self.verify_input.isChecked(),
        }
        settings.save_settings(info)
        self.connected.emit(info)
        self.callback(info)
