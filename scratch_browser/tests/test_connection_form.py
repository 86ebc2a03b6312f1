import json
from typing import Any, Dict

from scratch_browser.components.connection_form import ConnectionForm


def test_connection_form_load_config(monkeypatch, qtbot, tmp_path):
    path = tmp_path / "settings.json"
    monkeypatch.setattr("scratch_browser.services.settings.SETTINGS_PATH", str(path))
    path.write_text(json.dumps({"server": "http://srv:7878", "timeout": 4, "verify": False}))

    form = ConnectionForm(lambda info: None)
    qtbot.addWidget(form)

    assert form.server_input.text() == "http://srv:7878"
    assert form.timeout_input.value() == 4.0
    assert not form.verify_input.isChecked()


def test_connection_form_on_connect_and_save(monkeypatch, qtbot, tmp_path):
    path = tmp_path / "settings.json"
    monkeypatch.setattr("scratch_browser.services.settings.SETTINGS_PATH", str(path))

    captured: Dict[str, Any] = {}
    form = ConnectionForm(lambda info: captured.update(info))
    qtbot.addWidget(form)

    form.server_input.setText(" http://a:1 ")
    form.timeout_input.setValue(7.0)
    form.verify_input.setChecked(True)
    with qtbot.waitSignal(form.connected, timeout=1000):
        form.on_connect()

    assert captured == {"server": "http://a:1", "timeout": 7.0, "verify": True}
    written = json.loads(path.read_text())
    assert written["server"] == "http://a:1"
    assert written["timeout"] == 7.0


def test_connection_form_missing_config(monkeypatch, qtbot, tmp_path):
    monkeypatch.setattr(
        "scratch_browser.services.settings.SETTINGS_PATH", str(tmp_path / "none.json")
    )
    form = ConnectionForm(lambda _: None)
    qtbot.addWidget(form)

    assert form.server_input.text() == ""
    assert form.timeout_input.value() == 10.0
    assert form.verify_input.isChecked()
