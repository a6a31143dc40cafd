"""audit.py — append-only record of deleted contacts.

One line per deletion:

    [2026-01-31T12:00:00+00:00] ID: 7 | NAME: Ana | PHONES: (11) 98765-4321, 1134567890
"""
from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from .model import Contact

logger = logging.getLogger(__name__)


def format_deletion(contact: Contact, when: datetime | None = None) -> str:
    ts = (when or datetime.now(UTC)).isoformat()
    return f"[{ts}] ID: {contact.id} | NAME: {contact.name} | PHONES: {', '.join(contact.phones)}\n"


def record_deletion(path: Path, contact: Contact) -> bool:
    """Append a deletion line. Returns False (and logs) if the write failed."""
    line = format_deletion(contact)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write(line)
    except OSError as exc:
        logger.error("Could not write audit line for contact %s: %s", contact.id, exc)
        return False
    return True


def read_deletions(path: Path) -> list[str]:
    if not path.exists():
        return []
    return [ln for ln in path.read_text(encoding="utf-8").splitlines() if ln.strip()]
