from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass

import vobject

from .errors import ValidationError
from .model import Contact
from .phones import format_number

FORMATS = ("csv", "txt", "json", "vcf")
DB_EXPORT_NAME = "contacts_backup.db"


@dataclass
class Export:
    body: bytes
    content_type: str
    filename: str


def export_csv(contacts: list[Contact]) -> str:
    """One row per phone; a contact with no phones still gets one row."""
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=["id", "name", "age", "phone"], lineterminator="\n")
    w.writeheader()
    for c in contacts:
        age = "" if c.age is None else c.age
        for phone in c.phones or [""]:
            w.writerow({"id": c.id, "name": c.name, "age": age, "phone": phone})
    return buf.getvalue()


def export_txt(contacts: list[Contact]) -> str:
    lines = [
        f"ID: {c.id} | NAME: {c.name} | AGE: {'' if c.age is None else c.age} | "
        f"PHONES: {'; '.join(c.phones)}"
        for c in contacts
    ]
    return "\n".join(lines)


def export_json(contacts: list[Contact]) -> str:
    return json.dumps([c.to_dict() for c in contacts], indent=2, ensure_ascii=False)


def export_vcf(contacts: list[Contact], default_region: str = "BR") -> str:
    chunks: list[str] = []
    for c in contacts:
        v = vobject.vCard()
        v.add("version").value = "4.0"
        v.add("fn").value = c.name or "Unnamed"
        v.add("n").value = vobject.vcard.Name(given=c.name or "")
        for t in c.phones:
            it = v.add("tel")
            it.value = format_number(t, default_region)
        if c.id is not None:
            v.add("uid").value = f"contact-book:{c.id}"
        v.add("prodid").value = "-//contact-book//EN"
        chunks.append(v.serialize())
    return "".join(chunks)


def render_export(
    contacts: list[Contact], fmt: str | None = "csv", default_region: str = "BR",
) -> Export:
    fmt = (fmt or "csv").strip().lower()
    if fmt == "json":
        return Export(export_json(contacts).encode("utf-8"),
                      "application/json; charset=utf-8", "contacts.json")
    if fmt == "txt":
        return Export(export_txt(contacts).encode("utf-8"),
                      "text/plain; charset=utf-8", "contacts.txt")
    if fmt == "vcf":
        return Export(export_vcf(contacts, default_region).encode("utf-8"),
                      "text/vcard; charset=utf-8", "contacts.vcf")
    if fmt == "csv":
        return Export(export_csv(contacts).encode("utf-8"),
                      "text/csv; charset=utf-8", "contacts.csv")
    raise ValidationError("format", f"Unknown export format {fmt!r}; use one of {', '.join(FORMATS)}")
