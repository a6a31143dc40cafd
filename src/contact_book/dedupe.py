"""Advisory duplicate detection across the whole book.

Nothing here blocks a write; the server's check-duplicates endpoint and the
`dupes` CLI command only report.
"""
from __future__ import annotations

from rapidfuzz import fuzz

from .model import Contact
from .phones import normalize_number

DEFAULT_THRESHOLD = 70.0


def phone_keys(contact: Contact) -> set[str]:
    return {k for k in (normalize_number(p) for p in contact.phones) if k}


def shared_numbers(a: Contact, b: Contact) -> set[str]:
    return phone_keys(a) & phone_keys(b)


def similarity(a: Contact, b: Contact) -> float:
    score = 0.0
    if shared_numbers(a, b):
        score += 60
    if a.name and b.name:
        score += 0.4 * fuzz.token_sort_ratio(a.name.casefold(), b.name.casefold())
    if a.age is not None and a.age == b.age:
        score += 5
    return min(score, 100.0)


def find_duplicate_clusters(
    contacts: list[Contact], threshold: float = DEFAULT_THRESHOLD,
) -> list[list[Contact]]:
    """Group contacts that look like the same person; singletons are dropped."""
    # O(n^2); fine for a personal address book
    visited: set[int] = set()
    clusters: list[list[Contact]] = []
    for i, c in enumerate(contacts):
        if i in visited:
            continue
        cluster = [c]
        visited.add(i)
        for j in range(i + 1, len(contacts)):
            if j in visited:
                continue
            if similarity(c, contacts[j]) >= threshold:
                cluster.append(contacts[j])
                visited.add(j)
        if len(cluster) > 1:
            clusters.append(cluster)
    return clusters

