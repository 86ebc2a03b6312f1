import argparse
import logging
import sys

from PySide6.QtGui import QFont
from PySide6.QtWidgets import QApplication, QMainWindow

from scratch_browser.components.browser import Browser
from scratch_browser.services import settings
from scratch_browser.services.api.client import ScratchApiClient


class MainWindow(QMainWindow):
    def __init__(self, app: QApplication, browser: Browser) -> None:
        super().__init__()
        self.setWindowTitle("Scratch Browser")

        font = QFont()
        font.setPixelSize(13)
        app.setFont(font)

        self.browser = browser
        self.setCentralWidget(browser)
        self.resize(900, 600)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Browse and upload files on a scratch server.")
    parser.add_argument("--url", help="Server URL (e.g., http://127.0.0.1:7878)")
    parser.add_argument(
        "--timeout", type=float, default=None, help="Request timeout in seconds"
    )
    parser.add_argument(
        "--insecure", action="store_true", help="Do not verify TLS certificates"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_api(args) -> ScratchApiClient | None:
    """Client from CLI flags layered over saved settings; None if no server is known."""
    s = settings.load_settings()
    url = args.url or s.get("server")
    if not url:
        return None
    timeout = args.timeout if args.timeout is not None else float(s["timeout"])
    verify = False if args.insecure else bool(s.get("verify", True))
    return ScratchApiClient(url, verify=verify, timeout=timeout)


def run(argv=None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    app = QApplication(sys.argv[:1])
    browser = Browser(build_api(args), auto_connect=False)
    window = MainWindow(app, browser)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
