from typing import Optional

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QLineEdit,
    QProgressBar,
    QPushButton,
    QWidget,
)


class UploadForm(QWidget):
    """File picker, submit button and a percentage bar for one upload."""

    # Carries the selected local path ("" when nothing is selected)
    submitted = Signal(str)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QHBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)

        self.file_input = QLineEdit()
        self.file_input.setReadOnly(True)
        self.file_input.setPlaceholderText("No file selected")
        self.browse_btn = QPushButton("Browse…")
        self.upload_btn = QPushButton("Upload")

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setFormat("%p%")
        self.progress_bar.setVisible(False)

        layout.addWidget(self.file_input, 1)
        layout.addWidget(self.browse_btn)
        layout.addWidget(self.upload_btn)
        layout.addWidget(self.progress_bar)
        self.setLayout(layout)

        self.browse_btn.clicked.connect(self.on_browse)
        self.upload_btn.clicked.connect(self.on_submit)

    @property
    def selected_file(self) -> str:
        return self.file_input.text().strip()

    def on_browse(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Select File to Upload")
        if file_path:
            self.file_input.setText(file_path)

    def on_submit(self) -> None:
        self.submitted.emit(self.selected_file)

    def show_progress(self, percent: int) -> None:
        self.progress_bar.setVisible(True)
        self.progress_bar.setValue(percent)

    def set_busy(self, busy: bool) -> None:
        self.browse_btn.setEnabled(not busy)
        self.upload_btn.setEnabled(not busy)

    def reset(self) -> None:
        self.file_input.clear()
        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(False)
        self.set_busy(False)
