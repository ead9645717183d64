"""Read-only request views consumed by the verifier and signer."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

HeaderInput = Union[Mapping[str, Any], Iterable[Tuple[str, str]]]

# RFC 3986 pchar delimiters plus "/", left unescaped when rebuilding a path
_PATH_SAFE = "/:@!$&'()*+,;="

_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789"
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


def canonical_header_name(name: str) -> str:
    """Return ``name`` in canonical MIME form, e.g. ``X-Fident-Identity-Id``.

    Names containing characters outside the HTTP token set are returned
    unchanged.
    """
    if not name or any(ch not in _TOKEN_CHARS for ch in name):
        return name
    chars = []
    upper = True
    for ch in name:
        chars.append(ch.upper() if upper else ch.lower())
        upper = ch == "-"
    return "".join(chars)


def wire_text(raw: bytes) -> str:
    """Decode wire bytes so that :func:`wire_bytes` restores them exactly."""
    return raw.decode("utf-8", "surrogateescape")


def wire_bytes(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _wsgi_text(value: str) -> str:
    # PEP 3333 native strings carry the raw bytes as latin-1 code points
    try:
        return wire_text(value.encode("latin-1"))
    except UnicodeEncodeError:
        return value


def _quote_path(path: str) -> str:
    return quote(wire_bytes(path), safe=_PATH_SAFE)


def _iter_header_pairs(headers: HeaderInput) -> Iterable[Tuple[str, str]]:
    if isinstance(headers, Mapping):
        for name, value in headers.items():
            if isinstance(value, (list, tuple)):
                for item in value:
                    yield name, str(item)
            else:
                yield name, str(value)
    else:
        for name, value in headers:
            yield name, str(value)


class RequestView(BaseModel):
    """Request-target plus an ordered, case-insensitive header multimap.

    Header names are stored in canonical MIME form so that the designated
    prefix can be matched case-sensitively regardless of how the host
    spelled them on the wire.
    """

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., description="Path and query exactly as received")
    headers: Tuple[Tuple[str, str], ...] = Field(default_factory=tuple)

    @classmethod
    def from_headers(cls, target: str, headers: Optional[HeaderInput] = None) -> "RequestView":
        pairs = tuple(
            (canonical_header_name(name), value)
            for name, value in _iter_header_pairs(headers or ())
        )
        return cls(target=target, headers=pairs)

    @classmethod
    def from_wsgi_environ(cls, environ: Mapping[str, Any]) -> "RequestView":
        target = environ.get("REQUEST_URI") or environ.get("RAW_URI")
        if not target:
            path = _wsgi_text(
                environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
            )
            target = _quote_path(path) or "/"
            query = environ.get("QUERY_STRING")
            if query:
                target += "?" + _wsgi_text(query)
        else:
            target = _wsgi_text(target)

        pairs: List[Tuple[str, str]] = []
        for key, value in environ.items():
            if key.startswith("HTTP_"):
                name = key[5:].replace("_", "-")
            elif key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
                name = key.replace("_", "-")
            else:
                continue
            pairs.append((name, _wsgi_text(str(value))))
        return cls.from_headers(target, pairs)

    @classmethod
    def from_asgi_scope(cls, scope: Mapping[str, Any]) -> "RequestView":
        raw_path = scope.get("raw_path")
        if raw_path:
            target = wire_text(raw_path)
        else:
            target = _quote_path(scope.get("path") or "/")
        query = scope.get("query_string") or b""
        if query:
            target += "?" + wire_text(query)

        pairs = [
            (wire_text(name), wire_text(value))
            for name, value in scope.get("headers", [])
        ]
        return cls.from_headers(target, pairs)

    def names(self) -> List[str]:
        """Distinct header names in first-seen order."""
        seen: List[str] = []
        for name, _ in self.headers:
            if name not in seen:
                seen.append(name)
        return seen

    def values(self, name: str) -> List[str]:
        key = canonical_header_name(name)
        return [value for header, value in self.headers if header == key]

    def get(self, name: str, default: str = "") -> str:
        values = self.values(name)
        return values[0] if values else default


def as_request_view(request: Any) -> RequestView:
    """Coerce a host request object into a :class:`RequestView`."""
    if isinstance(request, RequestView):
        return request
    if isinstance(request, Mapping):
        if request.get("type") in ("http", "websocket"):
            return RequestView.from_asgi_scope(request)
        if "REQUEST_METHOD" in request or "wsgi.version" in request:
            return RequestView.from_wsgi_environ(request)
    raise TypeError(f"Unsupported request object: {type(request).__name__}")
