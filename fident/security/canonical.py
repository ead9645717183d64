"""Canonical message construction for fident signatures."""

from __future__ import annotations

import hashlib

from ..request import RequestView, canonical_header_name
from .context import CanonicalMessage


class AmbiguousHeaderError(ValueError):
    """A signed header carried more than one value."""

    def __init__(self, name: str, count: int) -> None:
        super().__init__(f"Signed header {name!r} has {count} values")
        self.name = name
        self.count = count


def signed_header_names(request: RequestView, prefix: str, signature_header: str) -> list[str]:
    """Return the names covered by the signature, sorted byte-wise."""
    excluded = canonical_header_name(signature_header)
    selected = [
        name
        for name in request.names()
        if name.startswith(prefix) and name != excluded
    ]
    return sorted(selected, key=lambda name: name.encode("utf-8"))


def build_canonical_message(
    request: RequestView, prefix: str, signature_header: str
) -> CanonicalMessage:
    """Derive the canonical message for ``request``.

    Raises:
        AmbiguousHeaderError: if a selected header repeats.
    """
    entries = []
    for name in signed_header_names(request, prefix, signature_header):
        values = request.values(name)
        if len(values) > 1:
            raise AmbiguousHeaderError(name, len(values))
        entries.append((name, values[0]))
    return CanonicalMessage(target=request.target, entries=tuple(entries))


def message_digest(message: CanonicalMessage) -> bytes:
    """SHA-256 digest of the encoded canonical message."""
    return hashlib.sha256(message.to_bytes()).digest()
