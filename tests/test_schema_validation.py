from __future__ import annotations

import json
from pathlib import Path

import pytest

from rinkai.engine.events import EventLog
from rinkai.paths import get_paths
from rinkai.services.content import ContentError, ContentService, split_csv


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


def test_content_schemas_validate() -> None:
    _content().validate_all()


def test_shipped_content_is_playable() -> None:
    content = _content()
    catalog = content.load_card_catalog()
    turns = content.load_turn_configs()
    assert len(turns) >= 8
    assert catalog.deck_size("N") > 0
    assert catalog.deck_size("R") >= 4
    assert all(t.training in catalog.decks for t in turns)


def test_split_csv_drops_header_and_blank_lines() -> None:
    text = "category,rarity,cardName,effect\n\n集客,N,ビラ配り,体験+1\n  \n事務,N,請求処理,経理+1\n"
    assert split_csv(text) == [["集客", "N", "ビラ配り", "体験+1"], ["事務", "N", "請求処理", "経理+1"]]
    assert split_csv("") == []


def test_malformed_card_rows_are_skipped(tmp_path: Path) -> None:
    csv_path = tmp_path / "cards.csv"
    csv_path.write_text(
        "category,rarity,cardName,effect\n集客,N,ビラ配り,体験+1\n壊れた行\n面談,R,保護者面談,【室長】入塾+2\n",
        encoding="utf-8",
    )
    log = EventLog()
    catalog = _content().load_card_catalog(csv_path, sink=log)
    assert [c.card_name for c in catalog.all_cards] == ["ビラ配り", "保護者面談"]
    assert len(log.of_type("ROW_SKIPPED")) == 1


def test_missing_card_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ContentError):
        _content().load_card_catalog(tmp_path / "nope.csv")


def test_card_file_with_only_header_is_fatal(tmp_path: Path) -> None:
    csv_path = tmp_path / "cards.csv"
    csv_path.write_text("category,rarity,cardName,effect\n", encoding="utf-8")
    with pytest.raises(ContentError):
        _content().load_card_catalog(csv_path)


def test_invalid_turn_table_is_rejected(tmp_path: Path) -> None:
    bad = tmp_path / "turns.json"
    bad.write_text(json.dumps({"turns": [{"name": "4月", "training": "UR", "delete": -1}]}), encoding="utf-8")
    with pytest.raises(ContentError) as exc:
        _content().load_turn_configs(bad)
    assert "Schema validation failed" in str(exc.value)

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ContentError):
        _content().load_turn_configs(broken)


def test_turn_config_fields() -> None:
    turns = _content().load_turn_configs()
    assert turns[0].training == "R"
    assert turns[0].delete == 0
    assert turns[2].recommended is None
    assert turns[1].recommended
