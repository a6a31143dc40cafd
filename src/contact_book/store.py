"""store.py — every SQL statement the application runs.

One ContactStore call opens one connection and, for writes, one
transaction. A Contact row is always inserted before its phones inside the
same transaction, and phones are never deleted by hand on contact removal:
the ON DELETE CASCADE in the schema does that.
"""
from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import closing, contextmanager
from pathlib import Path

from .db import connect, init_db
from .errors import NotFoundError, StorageError
from .model import Contact, ContactInput, Phone
from .phones import normalize_number

logger = logging.getLogger(__name__)

# SQLite INTEGER range; larger ids cannot name a row.
_MAX_ROWID = 2**63 - 1


def _check_id(contact_id: int) -> None:
    if not -_MAX_ROWID - 1 <= contact_id <= _MAX_ROWID:
        raise NotFoundError(contact_id)


class ContactStore:

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(connect(self.db_path)) as conn:
                yield conn
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc

    def init(self) -> None:
        with self._connection() as conn:
            init_db(conn)

    # ── Reads ──────────────────────────────────────────────────────────────────

    def _attach_phones(self, conn: sqlite3.Connection, rows: list[sqlite3.Row]) -> list[Contact]:
        contacts = [Contact(id=r["id"], name=r["name"], age=r["age"]) for r in rows]
        if not contacts:
            return contacts
        by_id = {c.id: c for c in contacts}
        placeholders = ",".join("?" * len(by_id))
        phone_rows = conn.execute(
            f"SELECT contact_id, number FROM phone "
            f"WHERE contact_id IN ({placeholders}) ORDER BY id",
            list(by_id),
        ).fetchall()
        for pr in phone_rows:
            by_id[pr["contact_id"]].phones.append(pr["number"])
        return contacts

    def list_contacts(self) -> list[Contact]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT id, name, age FROM contact ORDER BY name, id"
            ).fetchall()
            return self._attach_phones(conn, rows)

    def get(self, contact_id: int) -> Contact:
        with self._connection() as conn:
            return self._get(conn, contact_id)

    def _get(self, conn: sqlite3.Connection, contact_id: int) -> Contact:
        _check_id(contact_id)
        row = conn.execute(
            "SELECT id, name, age FROM contact WHERE id = ?", (contact_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(contact_id)
        return self._attach_phones(conn, [row])[0]

    def search(self, term: str) -> list[Contact]:
        """Contacts whose name contains *term* or who own a phone containing its digits."""
        term = (term or "").strip()
        if not term:
            return []
        digits = normalize_number(term)
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT DISTINCT c.id, c.name, c.age
                FROM contact c
                LEFT JOIN phone p ON p.contact_id = c.id
                WHERE icontains(c.name, ?)
                   OR (? <> '' AND instr(normalize_number(p.number), ?) > 0)
                ORDER BY c.name, c.id
                """,
                (term, digits, digits),
            ).fetchall()
            return self._attach_phones(conn, rows)

    def find_by_phones(self, phones: list[str] | None) -> list[Contact]:
        """Contacts owning a phone whose digits equal any of *phones*' digits."""
        if not phones:
            return []
        wanted = sorted({n for n in (normalize_number(p) for p in phones) if n})
        if not wanted:
            return []
        placeholders = ",".join("?" * len(wanted))
        with self._connection() as conn:
            rows = conn.execute(
                f"""
                SELECT DISTINCT c.id, c.name, c.age
                FROM contact c
                JOIN phone p ON p.contact_id = c.id
                WHERE normalize_number(p.number) IN ({placeholders})
                ORDER BY c.id
                """,
                wanted,
            ).fetchall()
            return self._attach_phones(conn, rows)

    def phone_records(self, contact_id: int) -> list[Phone]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT id, contact_id, number FROM phone WHERE contact_id = ? ORDER BY id",
                (contact_id,),
            ).fetchall()
        return [Phone(id=r["id"], contact_id=r["contact_id"], number=r["number"]) for r in rows]

    def count_phones(self, contact_id: int | None = None) -> int:
        with self._connection() as conn:
            if contact_id is None:
                return conn.execute("SELECT COUNT(*) FROM phone").fetchone()[0]
            return conn.execute(
                "SELECT COUNT(*) FROM phone WHERE contact_id = ?", (contact_id,)
            ).fetchone()[0]

    # ── Writes ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _insert_phones(conn: sqlite3.Connection, contact_id: int, phones: list[str]) -> None:
        conn.executemany(
            "INSERT INTO phone (contact_id, number) VALUES (?, ?)",
            [(contact_id, p) for p in phones],
        )

    def create(self, data: ContactInput) -> int:
        with self._connection() as conn:
            with conn:
                cur = conn.execute(
                    "INSERT INTO contact (name, age) VALUES (?, ?)",
                    (data.name, data.age),
                )
                contact_id = cur.lastrowid
                self._insert_phones(conn, contact_id, data.phones)
        logger.info("Created contact %d with %d phone(s)", contact_id, len(data.phones))
        return contact_id

    def update(self, contact_id: int, data: ContactInput) -> None:
        """Overwrite name/age and replace the whole phone set."""
        _check_id(contact_id)
        with self._connection() as conn:
            with conn:
                cur = conn.execute(
                    "UPDATE contact SET name = ?, age = ? WHERE id = ?",
                    (data.name, data.age, contact_id),
                )
                if cur.rowcount == 0:
                    raise NotFoundError(contact_id)
                conn.execute("DELETE FROM phone WHERE contact_id = ?", (contact_id,))
                self._insert_phones(conn, contact_id, data.phones)
        logger.info("Updated contact %d (%d phone(s))", contact_id, len(data.phones))

    def delete(
        self, contact_id: int, before_delete: Callable[[Contact], object] | None = None,
    ) -> Contact:
        """Remove a contact and return what it looked like beforehand.

        *before_delete* sees the snapshot after the lookup and before the row
        goes; the server uses it to write the audit line.
        """
        with self._connection() as conn:
            snapshot = self._get(conn, contact_id)
            if before_delete is not None:
                before_delete(snapshot)
            with conn:
                conn.execute("DELETE FROM contact WHERE id = ?", (contact_id,))
        logger.info("Deleted contact %d", contact_id)
        return snapshot
