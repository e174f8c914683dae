"""replay_track.py command-line handling."""
from __future__ import annotations

import json

import pytest

import replay_track


def _run(monkeypatch, *args):
    monkeypatch.setattr("sys.argv", ["replay_track.py", *args])
    replay_track.main()


def test_missing_arguments_print_usage(monkeypatch, capsys):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, "track.ndjson")
    assert exc.value.code == 1
    assert "Usage:" in capsys.readouterr().out


def test_bad_interval_prints_usage(monkeypatch, capsys):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, "track.ndjson", "0.0", "1.0", "fast")
    assert exc.value.code == 1
    out = capsys.readouterr().out
    assert "interval_seconds must be a number" in out
    assert "Usage:" in out


def test_replays_track(monkeypatch, capsys, tmp_path):
    track = tmp_path / "track.ndjson"
    track.write_text(
        "\n".join(
            json.dumps(s)
            for s in (
                {"type": "position", "latitude": 0.0, "longitude": 0.0},
                {"type": "heading", "trueHeading": 0.0},
            )
        )
        + "\n",
        encoding="utf-8",
    )
    _run(monkeypatch, str(track), "0.0", "1.0")
    out = capsys.readouterr().out
    assert "Direction: 90°" in out
    assert "Processed 3 events" in out
