from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from contact_book.config import ensure_workspace
from contact_book.model import ContactInput
from contact_book.server import make_server, serve_in_thread
from contact_book.store import ContactStore


@pytest.fixture
def store(tmp_path: Path) -> ContactStore:
    s = ContactStore(tmp_path / "data" / "contacts.db")
    s.init()
    return s


@pytest.fixture
def add(store: ContactStore):
    """Create a contact straight through the store, returning its id."""
    def _add(name: str, *phones: str, age: int | None = None) -> int:
        return store.create(ContactInput(name=name, age=age, phones=list(phones)))
    return _add


@pytest.fixture
def live(tmp_path: Path, monkeypatch):
    """Real server on an ephemeral port; yields (client, paths)."""
    monkeypatch.delenv("PORT", raising=False)
    paths, settings = ensure_workspace(tmp_path)
    server = make_server(paths, settings, host="127.0.0.1", port=0)
    serve_in_thread(server)
    port = server.server_address[1]
    try:
        with httpx.Client(base_url=f"http://127.0.0.1:{port}", timeout=5.0) as client:
            yield client, paths
    finally:
        server.shutdown()
        server.server_close()
