from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from contact_book.cli import app
from contact_book.model import ContactInput
from contact_book.store import ContactStore

runner = CliRunner()


def _seed(base: Path) -> ContactStore:
    store = ContactStore(base / "data" / "contacts.db")
    store.init()
    store.create(ContactInput(name="Ana Souza", age=30, phones=["(11) 98765-4321"]))
    store.create(ContactInput(name="Ana Souza", age=None, phones=["11987654321"]))
    store.create(ContactInput(name="Bruno", age=None, phones=["1144445555"]))
    return store


def test_init_creates_workspace(tmp_path: Path):
    result = runner.invoke(app, ["init", "--dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "data" / "contacts.db").exists()
    assert (tmp_path / "local" / "contact-book.conf").exists()


def test_export_json(tmp_path: Path):
    _seed(tmp_path)
    out = tmp_path / "out" / "book.json"
    result = runner.invoke(app, ["export", "--format", "json", "--output", str(out), "--dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert [c["name"] for c in data] == ["Ana Souza", "Ana Souza", "Bruno"]


def test_export_unknown_format(tmp_path: Path):
    result = runner.invoke(app, ["export", "--format", "xml", "--dir", str(tmp_path)])
    assert result.exit_code == 2


def test_dupes_lists_cluster(tmp_path: Path):
    _seed(tmp_path)
    result = runner.invoke(app, ["dupes", "--dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "1 group" in result.output
    assert "Bruno" not in result.output


def test_deletions_empty(tmp_path: Path):
    result = runner.invoke(app, ["deletions", "--dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "No deletions recorded" in result.output
