from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Phone:
    id: int | None = None
    contact_id: int | None = None
    number: str = ""  # as entered, formatting kept


@dataclass
class Contact:
    id: int | None = None
    name: str = ""
    age: int | None = None
    phones: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "phones": list(self.phones),
        }


@dataclass
class ContactInput:
    """Validated create/update payload."""
    name: str
    age: int | None
    phones: list[str] = field(default_factory=list)
