from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from rinkai.cli import main
from rinkai.engine.events import EventLog
from rinkai.engine.scoring import ScoreRecord
from rinkai.services.highscore import HIGHSCORE_KEY, HighScoreService, JsonKeyValueStore
from rinkai.services.share import decode_score_query, encode_score_query, score_from_url, share_url
from rinkai.services.telemetry import TelemetryService


def _record(points: int) -> ScoreRecord:
    return ScoreRecord(
        points=points,
        withdrawal=1,
        mobilization=11,
        enrollment_diff=9,
        experience=11,
        enrollment=10,
        satisfaction=15,
        accounting=14,
    )


def test_high_score_saved_only_when_better(tmp_path: Path) -> None:
    svc = HighScoreService(JsonKeyValueStore(tmp_path / "hs.json"))
    assert svc.get_high_score() is None

    when = datetime(2026, 1, 2, tzinfo=timezone.utc)
    assert svc.save_high_score(_record(5), now=when)
    saved = svc.get_high_score()
    assert saved is not None
    assert saved["points"] == 5
    assert saved["date"] == when.isoformat()
    assert saved["enrollmentDiff"] == 9
    assert set(saved) == {
        "points",
        "date",
        "withdrawal",
        "mobilization",
        "enrollmentDiff",
        "experience",
        "enrollment",
        "satisfaction",
        "accounting",
    }

    assert not svc.save_high_score(_record(5))
    assert not svc.save_high_score(_record(2))
    assert svc.save_high_score(_record(6))
    assert svc.get_high_score()["points"] == 6  # type: ignore[index]


def test_high_score_store_keeps_other_keys(tmp_path: Path) -> None:
    path = tmp_path / "kv.json"
    store = JsonKeyValueStore(path)
    store.set("other", {"x": 1})
    HighScoreService(store).save_high_score(_record(3))
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["other"] == {"x": 1}
    assert raw[HIGHSCORE_KEY]["points"] == 3


def test_corrupt_high_score_file_reads_as_absent(tmp_path: Path) -> None:
    path = tmp_path / "hs.json"
    path.write_text("{oops", encoding="utf-8")
    log = EventLog()
    svc = HighScoreService(JsonKeyValueStore(path), sink=log)
    assert svc.get_high_score() is None
    assert log.of_type("HIGHSCORE_READ_FAILED")
    assert svc.save_high_score(_record(1))
    assert svc.get_high_score() is not None


def test_unreadable_high_score_store_does_not_crash(tmp_path: Path) -> None:
    store_dir = tmp_path / "store"
    store_dir.mkdir()
    log = EventLog()
    svc = HighScoreService(JsonKeyValueStore(store_dir), sink=log)
    assert svc.get_high_score() is None
    assert log.of_type("HIGHSCORE_READ_FAILED")
    assert not svc.save_high_score(_record(5))
    assert log.of_type("HIGHSCORE_WRITE_FAILED")


def test_share_url_round_trip() -> None:
    rec = _record(4)
    assert encode_score_query(rec) == "p=4&w=1&m=11&d=9&exp=11&enr=10&sat=15&acc=14"
    url = share_url("https://example.com/game/", rec)
    assert url.startswith("https://example.com/game/?score=p%3D4%26w%3D1")
    assert score_from_url(url) == rec


def test_share_decoding_never_fails() -> None:
    decoded = decode_score_query("p=abc&w=&exp=7&junk=1")
    assert decoded.points == 0
    assert decoded.withdrawal == 0
    assert decoded.experience == 7
    assert decoded.accounting == 0
    assert score_from_url("https://example.com/") is None
    assert score_from_url("http://[bad/?score=p%3D4") is None


def test_share_decoding_reads_leading_integers() -> None:
    decoded = decode_score_query("p=3.5&w=7pts&m=-2&d=+4")
    assert decoded.points == 3
    assert decoded.withdrawal == 7
    assert decoded.mobilization == -2
    assert decoded.enrollment_diff == 4


def test_share_decoding_accepts_unescaped_links() -> None:
    url = "https://example.com/?score=p=3&w=2&m=10&d=8&exp=10&enr=10&sat=14&acc=14"
    decoded = score_from_url(url)
    assert decoded is not None
    assert decoded.points == 3
    assert decoded.withdrawal == 2
    assert decoded.accounting == 14


def test_telemetry_writes_json_lines(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "telemetry.jsonl"
    telemetry = TelemetryService(path)
    log = EventLog(forward=telemetry)
    log.emit({"type": "EFFECT_APPLIED", "level": "action", "card": "ビラ配り"})
    telemetry.log("CUSTOM", {"n": 1})
    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["type"] for r in lines] == ["EFFECT_APPLIED", "CUSTOM"]
    assert lines[0]["payload"] == {"level": "action", "card": "ビラ配り"}
    assert "ts" in lines[0]
    assert len(log.records) == 1


def test_cli_plays_a_game(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    hs = tmp_path / "hs.json"
    tel = tmp_path / "tel.jsonl"
    rc = main(["--seed", "3", "--highscore", str(hs), "--telemetry", str(tel)])
    assert rc == 0
    out = capsys.readouterr().out
    assert "目標ポイント" in out
    assert "共有URL" in out
    assert hs.exists()
    assert tel.read_text(encoding="utf-8").strip()


def test_cli_decodes_shared_score(capsys: pytest.CaptureFixture[str]) -> None:
    url = share_url("https://example.com/", _record(4))
    assert main(["--shared", url]) == 0
    assert "目標ポイント: 4" in capsys.readouterr().out
    assert main(["--shared", "https://example.com/"]) == 1
    assert main(["--shared", "http://[bad/?score=p%3D4"]) == 1


def test_cli_reports_missing_content(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--cards", str(tmp_path / "missing.csv"), "--highscore", str(tmp_path / "hs.json")])
    assert rc == 1
    assert "Failed to load game content" in capsys.readouterr().err
