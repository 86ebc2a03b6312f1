from typing import List, Optional, Sequence

from PySide6.QtCore import Signal
from PySide6.QtWidgets import QHBoxLayout, QLabel, QToolButton, QWidget

from scratch_browser.components.theme import breadcrumb_style
from scratch_browser.services.path_model import PathSegment


class BreadcrumbBar(QWidget):
    """Row of clickable path segments, root first."""

    # Carries the clicked PathSegment
    segment_clicked = Signal(object)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._layout = QHBoxLayout()
        self._layout.setContentsMargins(0, 0, 0, 0)
        self._layout.setSpacing(0)
        self.setLayout(self._layout)
        self.setStyleSheet(breadcrumb_style())
        self.buttons: List[QToolButton] = []
        self._segments: Sequence[PathSegment] = ()

    def _clear(self) -> None:
        while self._layout.count():
            item = self._layout.takeAt(0)
            w = item.widget()
            if w is not None:
                w.deleteLater()
        self.buttons = []

    def set_segments(
        self, segments: Sequence[PathSegment], current: Optional[PathSegment] = None
    ) -> None:
        self._clear()
        self._segments = tuple(segments)
        for idx, seg in enumerate(self._segments):
            if idx > 0:
                self._layout.addWidget(QLabel("/"))
            btn = QToolButton()
            btn.setText(seg.display_name)
            btn.setToolTip(seg.full_path)
            btn.setCheckable(True)
            btn.setAutoRaise(True)
            btn.clicked.connect(lambda _checked=False, s=seg: self._on_clicked(s))
            self._layout.addWidget(btn)
            self.buttons.append(btn)
        self._layout.addStretch(1)
        self.set_current(current)

    def set_current(self, current: Optional[PathSegment]) -> None:
        """Check exactly one button: the one for `current` (the leaf by default)."""
        target = len(self.buttons) - 1
        if current is not None:
            for i, seg in enumerate(self._segments):
                if seg.full_path == current.full_path:
                    target = i
                    break
        for i, btn in enumerate(self.buttons):
            btn.setChecked(i == target)

    def current_index(self) -> int:
        for i, btn in enumerate(self.buttons):
            if btn.isChecked():
                return i
        return -1

    def labels(self) -> List[str]:
        return [b.text() for b in self.buttons]

    def _on_clicked(self, segment: PathSegment) -> None:
        # Highlight immediately; the controller confirms once resolved
        self.set_current(segment)
        self.segment_clicked.emit(segment)
