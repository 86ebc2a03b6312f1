from datetime import datetime
from typing import Any, Optional, Sequence

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QHeaderView,
    QLabel,
    QProgressBar,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from scratch_browser.services.directory_client import DirectoryEntry

# Format used by the scratch server for last_modified
SERVER_TIME_FORMAT = "%d/%m/%Y %H:%M:%S"


def format_modified(val: Any) -> str:
    try:
        if val is None or val == "":
            return ""
        # If numeric (epoch seconds or ms)
        if isinstance(val, (int, float)):
            ts = float(val)
            # Heuristic: if ts is likely in ms, convert to seconds
            if ts > 10_000_000_000:
                ts = ts / 1000.0
            return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")
        s = str(val).strip()
        if s.isdigit():
            return format_modified(int(s))
        try:
            return datetime.strptime(s, SERVER_TIME_FORMAT).strftime("%Y-%m-%d %H:%M")
        except ValueError:
            pass
        try:
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
            # Normalize to local time for display
            if dt.tzinfo is not None:
                dt = dt.astimezone().replace(tzinfo=None)
            return dt.strftime("%Y-%m-%d %H:%M")
        except ValueError:
            return s
    except (OverflowError, OSError, ValueError):
        return str(val)


def format_size(size: Any) -> str:
    """Human-readable size; strings already formatted by the server pass through."""
    s = str(size).strip()
    if not s.isdigit():
        return s
    sz_int = int(s)
    if sz_int >= 1024 * 1024:
        return f"{sz_int / (1024 * 1024):.1f} MB"
    if sz_int >= 1024:
        return f"{sz_int / 1024:.1f} KB"
    return f"{sz_int} B"


class FileTreeViewer(QWidget):
    """Listing table for one directory plus a status line."""

    directory_activated = Signal(object)
    file_activated = Signal(object)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.entries: tuple[DirectoryEntry, ...] = ()
        self.init_ui()

    def init_ui(self) -> None:
        self.main_layout = QVBoxLayout()
        # Remove outer padding/margins around the tree widget area
        self.main_layout.setContentsMargins(0, 0, 0, 0)
        self.main_layout.setSpacing(0)

        self.status_label = QLabel("Not connected")

        # Indeterminate bar shown while a navigation is pending
        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 0)
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setFixedHeight(4)
        self.progress_bar.setVisible(False)

        self.file_tree = QTreeWidget()
        self.file_tree.setHeaderLabels(["Name", "Date modified", "Size"])
        self.file_tree.setRootIsDecorated(False)
        self.file_tree.setSortingEnabled(True)
        # Rendering optimization for large lists
        self.file_tree.setUniformRowHeights(True)
        self.file_tree.setStyleSheet(
            "QTreeWidget { margin: 0; padding: 0; } QTreeWidget::item { padding: 4.5px; }"
        )

        header = self.file_tree.header()
        header.setStretchLastSection(False)
        header.setSectionResizeMode(QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)

        self.file_tree.itemDoubleClicked.connect(self.on_item_double_clicked)

        self.main_layout.addWidget(self.file_tree)
        self.main_layout.addWidget(self.progress_bar)
        self.main_layout.addWidget(self.status_label)
        self.setLayout(self.main_layout)

    def show_loading(self, on: bool) -> None:
        if on:
            self.status_label.setText("Loading…")
        self.progress_bar.setVisible(on)
        if not on:
            self._update_status()

    def _update_status(self) -> None:
        count = self.file_tree.topLevelItemCount()
        if count == 0:
            self.status_label.setText("No files to display")
        else:
            self.status_label.setText(f"{count} item{'' if count == 1 else 's'}")

    def populate(self, entries: Sequence[DirectoryEntry]) -> None:
        """Replace all rows with `entries`."""
        self.entries = tuple(entries)
        # Speed: batch insert and suspend sorting/updates during populate
        prev_sort = self.file_tree.isSortingEnabled()
        self.file_tree.setSortingEnabled(False)
        self.file_tree.setUpdatesEnabled(False)
        self.file_tree.clear()

        items_buf: list[QTreeWidgetItem] = []
        for entry in self.entries:
            if entry.is_dir:
                name = f"{entry.name}/"
                size = ""
            else:
                name = entry.name
                size = format_size(entry.size)
            item = QTreeWidgetItem([name, format_modified(entry.last_modified), size])
            item.setToolTip(0, entry.full_path)
            # Store the entry for activation handlers
            item.setData(0, Qt.ItemDataRole.UserRole, entry)
            items_buf.append(item)
        if items_buf:
            self.file_tree.addTopLevelItems(items_buf)

        self.file_tree.setSortingEnabled(prev_sort)
        self.file_tree.setUpdatesEnabled(True)
        self._update_status()

    def row_texts(self) -> list[tuple[str, str, str]]:
        rows = []
        for i in range(self.file_tree.topLevelItemCount()):
            it = self.file_tree.topLevelItem(i)
            rows.append((it.text(0), it.text(1), it.text(2)))
        return rows

    def on_item_double_clicked(self, item, _column=None) -> None:
        entry = item.data(0, Qt.ItemDataRole.UserRole)
        if not isinstance(entry, DirectoryEntry):
            return
        if entry.is_dir:
            self.directory_activated.emit(entry)
        else:
            self.file_activated.emit(entry)
