from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional, Tuple

from PySide6.QtCore import QObject, QThread, QUrl, Signal
from PySide6.QtGui import QDesktopServices
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QHBoxLayout,
    QMessageBox,
    QPushButton,
    QStyle,
    QVBoxLayout,
    QWidget,
)

from scratch_browser.components.breadcrumbs import BreadcrumbBar
from scratch_browser.components.connection_form import ConnectionForm
from scratch_browser.components.file_tree_viewer import FileTreeViewer
from scratch_browser.components.upload_form import UploadForm
from scratch_browser.components.workers import (
    LoaderWorker,
    UploadWorker,
    start_in_thread,
)
from scratch_browser.services import settings
from scratch_browser.services.api.client import ScratchApiClient
from scratch_browser.services.directory_client import (
    DirectoryClient,
    DirectoryEntry,
    Resolution,
)
from scratch_browser.services.errors import (
    BrowserError,
    NetworkError,
)
from scratch_browser.services.navigation import (
    NavigationController,
    NavigationRequest,
    NavState,
)
from scratch_browser.services.path_model import PathSegment
from scratch_browser.services.upload import UploadController

logger = logging.getLogger(__name__)


class Browser(QWidget):
    """Remote directory browser: breadcrumbs, listing and a single-file upload.

    Top bar elements:
    - Up button (enabled iff the path is deeper than root)
    - Breadcrumb bar (one button per segment, current one checked)
    - Refresh button
    - Settings button (opens ConnectionForm in a dialog)

    All controller transitions run on the GUI thread; network calls run on
    worker threads unless `async_load` is False.
    """

    # Emitted whenever a resolution is applied; carries the leaf's full path
    path_changed = Signal(str)

    def __init__(
        self,
        api: Optional[ScratchApiClient] = None,
        *,
        async_load: bool = True,
        auto_connect: bool = True,
    ) -> None:
        super().__init__()
        self._use_async = bool(async_load)
        self.api: Optional[ScratchApiClient] = None
        self.directory_client: Optional[DirectoryClient] = None
        self.navigation: Optional[NavigationController] = None
        self.uploads: Optional[UploadController] = None
        # ticket -> (controller that issued it, request)
        self._inflight: Dict[int, Tuple[NavigationController, NavigationRequest]] = {}
        # ticket -> upload controller that started it
        self._upload_owners: Dict[int, UploadController] = {}
        self._tickets = itertools.count(1)
        self._workers: List[Tuple[QThread, QObject]] = []
        self.init_ui()

        if api is not None:
            self.connect_api(api)
        elif auto_connect:
            self.refresh_from_saved()

    def init_ui(self) -> None:
        self.top_bar = QHBoxLayout()

        self.up_btn = QPushButton()
        self.up_btn.setIcon(
            self.style().standardIcon(QStyle.StandardPixmap.SP_FileDialogToParent)
        )
        self.up_btn.setToolTip("Up")
        self.up_btn.setEnabled(False)
        self.top_bar.addWidget(self.up_btn)

        self.breadcrumbs = BreadcrumbBar()
        self.top_bar.addWidget(self.breadcrumbs, 1)

        self.refresh_btn = QPushButton()
        self.refresh_btn.setIcon(
            self.style().standardIcon(QStyle.StandardPixmap.SP_BrowserReload)
        )
        self.refresh_btn.setToolTip("Refresh")
        self.top_bar.addWidget(self.refresh_btn)

        self.config_btn = QPushButton("Settings")
        self.top_bar.addWidget(self.config_btn)

        self.file_view = FileTreeViewer()
        self.upload_form = UploadForm()

        self.up_btn.clicked.connect(self.on_up_clicked)
        self.refresh_btn.clicked.connect(self.on_refresh_clicked)
        self.config_btn.clicked.connect(self.open_config_dialog)
        self.breadcrumbs.segment_clicked.connect(self.on_breadcrumb_clicked)
        self.file_view.directory_activated.connect(self.on_directory_activated)
        self.file_view.file_activated.connect(self.on_file_activated)
        self.upload_form.submitted.connect(self.on_upload_submitted)

        layout = QVBoxLayout()
        layout.addLayout(self.top_bar)
        layout.addWidget(self.file_view)
        layout.addWidget(self.upload_form)
        self.setLayout(layout)

    # ---- Data wiring ----
    def refresh_from_saved(self) -> None:
        """Build a client from saved settings and load the start directory."""
        s = settings.load_settings()
        server = str(s.get("server") or "").strip()
        if not server:
            self.file_view.status_label.setText("Not connected")
            return
        self.connect_api(
            ScratchApiClient(
                server, verify=bool(s.get("verify", True)), timeout=float(s["timeout"])
            )
        )

    def connect_api(self, api: ScratchApiClient) -> bool:
        """Start a fresh navigation session against `api`.

        Refused (False) while an upload is running: only one upload session
        may exist and it stays bound to the connection that started it.
        """
        if self.uploads is not None and self.uploads.in_progress:
            QMessageBox.warning(
                self, "Settings", "Wait for the current upload to finish first."
            )
            return False
        self.api = api
        self.directory_client = DirectoryClient(api)
        self.navigation = NavigationController(self.directory_client)
        self.uploads = UploadController(self.navigation)
        self.breadcrumbs.set_segments(())
        self.file_view.populate(())
        self.up_btn.setEnabled(False)
        self.upload_form.reset()
        self._dispatch(self.navigation.on_initial_load())
        return True

    def _dispatch(self, request: Optional[NavigationRequest]) -> None:
        """Execute a navigation effect: resolve its target and feed the result back."""
        if request is None or self.navigation is None or self.directory_client is None:
            return
        ticket = next(self._tickets)
        self._inflight[ticket] = (self.navigation, request)
        client = self.directory_client
        target = request.target_path
        self.file_view.show_loading(True)

        def fetch() -> Resolution:
            return client.resolve(target)

        if not self._use_async:
            try:
                result = fetch()
            except Exception as e:  # noqa: BLE001
                self._on_nav_error(ticket, e)
                return
            self._on_nav_finished(ticket, result)
            return

        worker = LoaderWorker(ticket, fetch)
        # Receiver is self (GUI thread), so slots are queued onto the GUI thread
        worker.finished.connect(self._on_nav_finished)
        worker.error.connect(self._on_nav_error)
        self._start_worker(worker)

    def _start_worker(self, worker: QObject) -> None:
        thread = start_in_thread(self, worker)
        thread.finished.connect(self._reap_workers)
        self._workers.append((thread, worker))

    def _reap_workers(self) -> None:
        alive = []
        for thread, worker in self._workers:
            if thread.isFinished():
                thread.deleteLater()
            else:
                alive.append((thread, worker))
        self._workers = alive

    def shutdown(self, timeout_ms: int = 3000) -> None:
        """Wait for in-flight workers; results arriving afterwards are ignored."""
        self._inflight.clear()
        self._upload_owners.clear()
        for thread, _ in self._workers:
            thread.quit()
            thread.wait(timeout_ms)
        self._reap_workers()

    def closeEvent(self, event) -> None:  # noqa: N802
        self.shutdown()
        super().closeEvent(event)

    def _take(self, ticket: int) -> Optional[NavigationRequest]:
        owner, request = self._inflight.pop(ticket, (None, None))
        if owner is None or owner is not self.navigation:
            # Issued before a reconnect
            return None
        return request

    def _on_nav_finished(self, ticket: int, resolution: Resolution) -> None:
        request = self._take(ticket)
        if request is None or self.navigation is None:
            return
        if self.navigation.on_resolved(request.request_id, resolution):
            self._render()
        self._sync_loading()

    def _on_nav_error(self, ticket: int, error: Exception) -> None:
        request = self._take(ticket)
        if request is None or self.navigation is None:
            return
        if self.navigation.on_failed(request.request_id, error):
            self.breadcrumbs.set_current(self.navigation.model.current)
            self._sync_loading()
            if not len(self.navigation.model):
                self.file_view.status_label.setText("Failed to load files")
            self._handle_load_error(error)
            return
        self._sync_loading()

    def _sync_loading(self) -> None:
        busy = self.navigation is not None and self.navigation.state is NavState.NAVIGATING
        self.file_view.show_loading(busy)

    def _render(self) -> None:
        nav = self.navigation
        if nav is None:
            return
        self.breadcrumbs.set_segments(nav.model.segments, nav.model.current)
        self.file_view.populate(nav.entries)
        self.up_btn.setEnabled(nav.up_enabled)
        self.path_changed.emit(nav.model.current_leaf().full_path)

    def _handle_load_error(self, error: Exception) -> None:
        msg = str(error) or error.__class__.__name__
        if isinstance(error, NetworkError):
            msg += "\n\nTip: Double-check the server URL in Settings."
        QMessageBox.critical(self, "Error", msg)

    # ---- UI handlers ----
    def on_breadcrumb_clicked(self, segment: PathSegment) -> None:
        if self.navigation is None:
            return
        self._dispatch(self.navigation.on_breadcrumb_click(segment))

    def on_up_clicked(self) -> None:
        if self.navigation is None:
            return
        self._dispatch(self.navigation.on_up_click())

    def on_refresh_clicked(self) -> None:
        if self.navigation is None or not len(self.navigation.model):
            self.refresh_from_saved()
            return
        self._dispatch(self.navigation.reload())

    def on_directory_activated(self, entry: DirectoryEntry) -> None:
        if self.navigation is None:
            return
        self._dispatch(self.navigation.on_directory_open(entry))

    def on_file_activated(self, entry: DirectoryEntry) -> None:
        if self.api is None:
            return
        QDesktopServices.openUrl(QUrl(self.api.file_url(entry.full_path)))

    # ---- Upload ----
    def on_upload_submitted(self, file_path: str) -> None:
        uploads = self.uploads
        api = self.api
        if uploads is None or api is None:
            QMessageBox.warning(self, "Upload", "Not connected")
            return
        try:
            session = uploads.start(file_path or None)
        except BrowserError as e:
            QMessageBox.warning(self, "Upload", str(e))
            return
        ticket = next(self._tickets)
        self._upload_owners[ticket] = uploads
        self.upload_form.set_busy(True)
        self.upload_form.show_progress(session.percent_complete)

        def do_upload(report) -> Any:
            return api.upload(session.file, session.target_path, on_progress=report)

        if not self._use_async:
            try:
                result = do_upload(
                    lambda sent, total: self._on_upload_progress(ticket, sent, total)
                )
            except Exception as e:  # noqa: BLE001
                self._on_upload_error(ticket, e)
                return
            self._on_upload_finished(ticket, result)
            return

        worker = UploadWorker(ticket, do_upload)
        worker.progress.connect(self._on_upload_progress)
        worker.finished.connect(self._on_upload_finished)
        worker.error.connect(self._on_upload_error)
        self._start_worker(worker)

    def _upload_owner(self, ticket: int, *, done: bool = False) -> Optional[UploadController]:
        owner = (
            self._upload_owners.pop(ticket, None)
            if done
            else self._upload_owners.get(ticket)
        )
        if owner is None or owner is not self.uploads or not owner.in_progress:
            # Started under a previous connection, or already settled
            return None
        return owner

    def _on_upload_progress(self, ticket: int, sent: int, total: int) -> None:
        uploads = self._upload_owner(ticket)
        if uploads is None:
            return
        self.upload_form.show_progress(uploads.on_progress(sent, total))

    def _on_upload_finished(self, ticket: int, _result: Any) -> None:
        uploads = self._upload_owner(ticket, done=True)
        if uploads is None:
            return
        refresh = uploads.on_succeeded()
        uploads.reset()
        self.upload_form.reset()
        self._dispatch(refresh)
        QMessageBox.information(self, "Upload", "File uploaded successfully.")

    def _on_upload_error(self, ticket: int, error: Exception) -> None:
        uploads = self._upload_owner(ticket, done=True)
        if uploads is None:
            return
        uploads.on_failed(error)
        # Keep the selected file so the user can retry
        self.upload_form.set_busy(False)
        QMessageBox.critical(
            self, "Upload", f"An error occurred while uploading the file.\n\n{error}"
        )

    # ---- Settings ----
    def open_config_dialog(self) -> None:
        dlg = QDialog(self)
        dlg.setWindowTitle("Connection Settings")
        v = QVBoxLayout(dlg)

        def on_connected(info: Dict[str, Any]) -> None:
            try:
                self.connect_api(
                    ScratchApiClient(
                        info["server"],
                        verify=bool(info.get("verify", True)),
                        timeout=float(info.get("timeout", 10.0)),
                    )
                )
            finally:
                dlg.accept()

        form = ConnectionForm(callback=on_connected)
        v.addWidget(form)
        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        buttons.rejected.connect(dlg.reject)
        v.addWidget(buttons)

        dlg.setModal(True)
        dlg.resize(420, 200)
        dlg.exec()
