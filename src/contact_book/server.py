"""server.py — local HTTP server for the contact book.

Uses only Python stdlib (http.server, json, threading) for the transport.
Routes:

    GET    /api/contacts                  list, ordered by name
    GET    /api/contacts/search?term=     name / phone-digits search
    GET    /api/contacts/<id>             one contact
    POST   /api/contacts                  create -> {"id": n}, 201
    PUT    /api/contacts/<id>             replace name, age and phone set
    DELETE /api/contacts/<id>             delete (audit line written first)
    POST   /api/phones/check-duplicates   advisory duplicate lookup
    GET    /export-db                     raw SQLite file
    GET    /export?format=csv|txt|json|vcf
    GET    /, /static/*                   browser UI
"""
from __future__ import annotations

import json
import logging
import mimetypes
import re
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

from .audit import record_deletion
from .config import Paths, Settings
from .errors import NotFoundError, ValidationError
from .exporter import DB_EXPORT_NAME, Export, render_export
from .store import ContactStore
from .validation import parse_contact_payload

logger = logging.getLogger(__name__)

_HERE = Path(__file__).resolve().parent
_STATIC = _HERE / "static"    # HTML/JS lives here

_CONTACT_PATH = re.compile(r"^/api/contacts/(\d+)/?$")


@dataclass
class AppContext:
    store: ContactStore
    paths: Paths
    settings: Settings


# ── API handlers ───────────────────────────────────────────────────────────────
#
# Each returns (status, payload). Failures are raised and mapped to a status
# code by ContactHandler._dispatch.

def _api_list(ctx: AppContext) -> tuple[int, Any]:
    return 200, [c.to_dict() for c in ctx.store.list_contacts()]


def _api_get(ctx: AppContext, contact_id: int) -> tuple[int, Any]:
    return 200, ctx.store.get(contact_id).to_dict()


def _api_search(ctx: AppContext, params: dict) -> tuple[int, Any]:
    term = params.get("term", [""])[0]
    return 200, [c.to_dict() for c in ctx.store.search(term)]


def _api_create(ctx: AppContext, body: dict) -> tuple[int, Any]:
    data = parse_contact_payload(body)
    return 201, {"id": ctx.store.create(data)}


def _api_update(ctx: AppContext, contact_id: int, body: dict) -> tuple[int, Any]:
    data = parse_contact_payload(body)
    ctx.store.update(contact_id, data)
    return 200, {"message": "Contact updated"}


def _api_delete(ctx: AppContext, contact_id: int) -> tuple[int, Any]:
    ctx.store.delete(
        contact_id,
        before_delete=lambda snapshot: record_deletion(ctx.paths.audit_file, snapshot),
    )
    return 200, {"message": "Contact deleted"}


def _api_check_duplicates(ctx: AppContext, body: dict) -> tuple[int, Any]:
    phones = body.get("phones") if isinstance(body, dict) else None
    if not isinstance(phones, list):
        return 200, {"duplicates": []}
    found = ctx.store.find_by_phones([p for p in phones if isinstance(p, str)])
    return 200, {"duplicates": [c.to_dict() for c in found]}


def _api_export(ctx: AppContext, params: dict) -> Export:
    fmt = params.get("format", ["csv"])[0]
    return render_export(ctx.store.list_contacts(), fmt, ctx.settings.default_region)


def _api_export_db(ctx: AppContext) -> Export:
    db_file = ctx.store.db_path
    if not db_file.exists():
        raise NotFoundError(db_file, what="Database")
    return Export(db_file.read_bytes(), "application/octet-stream", DB_EXPORT_NAME)


# ── Request handler ────────────────────────────────────────────────────────────

class ContactHandler(BaseHTTPRequestHandler):
    ctx: AppContext  # set by make_server

    def log_message(self, fmt, *args):
        # Access log goes to debug, not stderr
        logger.debug("%s - %s", self.address_string(), fmt % args)

    def _send_json(self, data: Any, status: int = 200):
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_download(self, export: Export):
        self.send_response(200)
        self.send_header("Content-Type", export.content_type)
        self.send_header("Content-Disposition", f'attachment; filename="{export.filename}"')
        self.send_header("Content-Length", str(len(export.body)))
        self.end_headers()
        self.wfile.write(export.body)

    def _send_file(self, path: Path):
        try:
            resolved = path.resolve()
            if _STATIC.resolve() not in resolved.parents:
                raise FileNotFoundError(path)
            data = resolved.read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            self._send_json({"error": "Not found"}, 404)
            return
        mime, _ = mimetypes.guess_type(str(path))
        self.send_response(200)
        self.send_header("Content-Type", mime or "application/octet-stream")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _read_body(self) -> Any:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError as exc:
            raise ValidationError("body", "Content-Length must be a number") from exc
        if length < 0:
            raise ValidationError("body", "Content-Length must not be negative")
        raw = self.rfile.read(length) if length else b""
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValidationError("body", f"Malformed JSON body: {exc}") from exc

    def _dispatch(self, route):
        try:
            result = route()
        except ValidationError as exc:
            self._send_json({"error": exc.message, "field": exc.field}, 400)
        except NotFoundError as exc:
            self._send_json({"error": f"{exc.what} not found"}, 404)
        except Exception:
            logger.exception("Request failed: %s %s", self.command, self.path)
            self._send_json({"error": "Internal server error"}, 500)
        else:
            if isinstance(result, Export):
                self._send_download(result)
            else:
                status, data = result
                self._send_json(data, status)

    def _not_found(self):
        return 404, {"error": "Not found"}

    def do_GET(self):
        parsed = urlparse(self.path)
        path = parsed.path
        params = parse_qs(parsed.query)
        ctx = self.ctx
        m = _CONTACT_PATH.match(path)

        if path == "/" or path == "/index.html":
            self._send_file(_STATIC / "index.html")
        elif path.startswith("/static/"):
            self._send_file(_STATIC / path[len("/static/"):])
        elif path in ("/api/contacts", "/api/contacts/"):
            self._dispatch(lambda: _api_list(ctx))
        elif path == "/api/contacts/search":
            self._dispatch(lambda: _api_search(ctx, params))
        elif m:
            self._dispatch(lambda: _api_get(ctx, int(m.group(1))))
        elif path == "/export-db":
            self._dispatch(lambda: _api_export_db(ctx))
        elif path == "/export":
            self._dispatch(lambda: _api_export(ctx, params))
        else:
            self._dispatch(self._not_found)

    def do_POST(self):
        path = urlparse(self.path).path
        ctx = self.ctx
        if path in ("/api/contacts", "/api/contacts/"):
            self._dispatch(lambda: _api_create(ctx, self._read_body()))
        elif path == "/api/phones/check-duplicates":
            self._dispatch(lambda: _api_check_duplicates(ctx, self._read_body()))
        else:
            self._dispatch(self._not_found)

    def do_PUT(self):
        path = urlparse(self.path).path
        ctx = self.ctx
        m = _CONTACT_PATH.match(path)
        if m:
            self._dispatch(lambda: _api_update(ctx, int(m.group(1)), self._read_body()))
        else:
            self._dispatch(self._not_found)

    def do_DELETE(self):
        path = urlparse(self.path).path
        ctx = self.ctx
        m = _CONTACT_PATH.match(path)
        if m:
            self._dispatch(lambda: _api_delete(ctx, int(m.group(1))))
        else:
            self._dispatch(self._not_found)


# ── Entry points ───────────────────────────────────────────────────────────────

class _Server(ThreadingHTTPServer):
    allow_reuse_address = True
    daemon_threads = True


def make_server(paths: Paths, settings: Settings, host: str | None = None,
                port: int | None = None) -> ThreadingHTTPServer:
    """Build (but do not start) a server bound to host:port; port 0 picks a free one."""
    store = ContactStore(paths.db_file)
    store.init()
    handler = type("BoundContactHandler", (ContactHandler,), {
        "ctx": AppContext(store=store, paths=paths, settings=settings),
    })
    return _Server(
        (host or settings.host, settings.port if port is None else port), handler,
    )


def serve_in_thread(server: ThreadingHTTPServer) -> threading.Thread:
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    return t


def serve(paths: Paths, settings: Settings, host: str | None = None,
          port: int | None = None) -> None:
    server = make_server(paths, settings, host, port)
    h, p = server.server_address[:2]
    logger.info("Serving contact book on http://%s:%s (db: %s)", h, p, paths.db_file)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
