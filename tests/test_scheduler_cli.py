import json

from app.workers import scheduler_cli


def test_once_prints_scan_summary(monkeypatch, capsys, app_config):
    monkeypatch.setattr(scheduler_cli, "load_config", lambda: app_config)
    monkeypatch.setattr(scheduler_cli, "setup_logging", lambda **kwargs: None)

    exit_code = scheduler_cli.main(["--once"])

    assert exit_code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["ok"] is True
    assert summary["scanned"] == 0
