"""Tests for the command-line interface."""

import pandas as pd
import pytest

from worship_scheduler import cli
from worship_scheduler.cli import main
from worship_scheduler.config import DB_URL_ENV


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    monkeypatch.delenv(DB_URL_ENV, raising=False)
    return f"sqlite:///{tmp_path / 'cli.db'}"


@pytest.fixture
def loaded_db(db_url, tmp_path, capsys):
    """Initialized database with two leaders and three events."""
    participants = tmp_path / "participants.csv"
    participants.write_text("id,name,roles\n1,Ava,lead\n2,Ben,lead\n3,Cal,vocals\n")
    events = tmp_path / "events.csv"
    events.write_text("id,category_id,event_date\n1,sunday,2025-09-07\n2,sunday,2025-09-14\n3,sunday,2025-09-21\n")
    rotation = tmp_path / "rotation.csv"
    rotation.write_text("role_category_id,participant_id,rotation_order\nlead,1,1\nlead,2,2\n")

    assert main(["--db", db_url, "init-db"]) == 0
    assert main([
        "--db", db_url, "import-csv",
        "--participants", str(participants),
        "--events", str(events),
        "--rotation", str(rotation),
    ]) == 0
    capsys.readouterr()
    return db_url


def test_init_and_import(loaded_db, capsys):
    assert main(["--db", loaded_db, "suggest-leader", "--role", "lead"]) == 0
    out = capsys.readouterr().out
    assert "[OK] Next for 'lead': participant 1" in out


def test_suggest_for_empty_rotation(loaded_db, capsys):
    assert main(["--db", loaded_db, "suggest-leader", "--role", "drums"]) == 0
    assert "No rotation list" in capsys.readouterr().out


def test_confirm_then_forecast(loaded_db, capsys):
    assert main(["--db", loaded_db, "confirm-leader", "--event", "1", "--role", "lead", "--participant", "1"]) == 0
    assert "[OK] Participant 1 confirmed as 'lead' for event 1" in capsys.readouterr().out

    assert main(["--db", loaded_db, "forecast", "--role", "lead", "--events", "3", "2"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines == [
        "2025-09-14  event 2: 2",
        "2025-09-21  event 3: 1",
    ]


def test_engine_errors_exit_nonzero(loaded_db, capsys):
    code = main(["--db", loaded_db, "confirm-leader", "--event", "1", "--role", "lead", "--participant", "3"])
    assert code == 1
    assert "[ERROR] NotEligible" in capsys.readouterr().out


def test_slots_listing_for_contributor_without_slots(loaded_db, capsys):
    assert main(["--db", loaded_db, "slots", "--contributor", "3"]) == 0
    assert "[OK] 0 slots for participant 3" in capsys.readouterr().out


def test_export_set_and_history(loaded_db, tmp_path, capsys):
    main(["--db", loaded_db, "confirm-leader", "--event", "2", "--role", "lead", "--participant", "2"])

    set_out = tmp_path / "set.csv"
    assert main(["--db", loaded_db, "export-set", "--content-set", "2", "--out", str(set_out)]) == 0
    assert pd.read_csv(set_out).empty

    history_out = tmp_path / "history.csv"
    assert main(["--db", loaded_db, "export-history", "--role", "lead", "--out", str(history_out)]) == 0
    df = pd.read_csv(history_out)
    assert list(df["event_id"]) == [2]
    assert "[OK] Exported 1 fulfillment records" in capsys.readouterr().out


def test_config_file_is_applied(db_url, tmp_path, capsys):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text(f"db_url: {db_url}\nlog_level: WARNING\n")
    assert main(["--config", str(cfg), "init-db"]) == 0
    assert db_url in capsys.readouterr().out


def test_import_and_export_use_configured_busy_timeout(loaded_db, tmp_path, monkeypatch):
    timeouts = []
    real_create = cli.create_db_engine

    def recording_create(db_url, **kwargs):
        timeouts.append(kwargs.get("busy_timeout"))
        return real_create(db_url, **kwargs)

    monkeypatch.setattr(cli, "create_db_engine", recording_create)
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text(f"db_url: {loaded_db}\nsqlite_busy_timeout: 7.5\n")
    events = tmp_path / "more_events.csv"
    events.write_text("id,category_id,event_date\n4,sunday,2025-09-28\n")

    assert main(["--config", str(cfg), "import-csv", "--events", str(events)]) == 0
    assert main(["--config", str(cfg), "export-history", "--role", "lead", "--out", str(tmp_path / "h.csv")]) == 0

    assert timeouts == [7.5, 7.5]
