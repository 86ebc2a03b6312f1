from typing import Any, Callable

from PySide6.QtCore import QObject, QThread, Signal


class LoaderWorker(QObject):
    """Runs a blocking fetch off the GUI thread; results are tagged with an id."""

    finished = Signal(int, object)
    error = Signal(int, object)

    def __init__(self, tag: int, fetch_fn: Callable[[], Any]):
        super().__init__()
        self._tag = tag
        self._fetch_fn = fetch_fn

    def run(self):
        try:
            result = self._fetch_fn()
        except Exception as e:  # noqa: BLE001
            self.error.emit(self._tag, e)
            return
        self.finished.emit(self._tag, result)


class UploadWorker(QObject):
    """Runs one upload off the GUI thread; every signal carries the tag."""

    # Byte counts travel as object; files over 2 GiB overflow a Qt int
    progress = Signal(int, object, object)
    finished = Signal(int, object)
    error = Signal(int, object)

    def __init__(self, tag: int, upload_fn: Callable[[Callable[[int, int], None]], Any]):
        super().__init__()
        self._tag = tag
        self._upload_fn = upload_fn

    def _report(self, sent: int, total: int) -> None:
        self.progress.emit(self._tag, sent, total)

    def run(self):
        try:
            result = self._upload_fn(self._report)
        except Exception as e:  # noqa: BLE001
            self.error.emit(self._tag, e)
            return
        self.finished.emit(self._tag, result)


def start_in_thread(parent: QObject, worker: QObject) -> QThread:
    """Move worker to a new QThread, start it and return the thread.

    The worker must expose `run`, `finished` and `error`; the thread quits
    when either fires. Slots connected by the caller on a GUI-thread
    receiver run on the GUI thread.
    """
    thread = QThread(parent)
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    # Ensure the worker thread exits after finishing or erroring
    worker.finished.connect(thread.quit)
    worker.error.connect(thread.quit)
    thread.finished.connect(worker.deleteLater)
    thread.start()
    return thread
