"""
nexus-wire — raw HTTP/1.1 envelope builder

File: src/nexus_wire/envelope.py
Last updated: 2026-10-17

Purpose
- Render a RequestDescriptor into the literal bytes written to a socket on the
  streaming path, and parse such bytes back for transports and test doubles.

Functional requirements
- Line order: request line, Host, credential header, Content-Length, remaining
  headers, blank line, body.
- Content-Length always equals the byte length of the serialized body.

Non-functional requirements
- Pure; header values containing CR, LF or non-ASCII characters are rejected.
"""

from __future__ import annotations

from typing import Final

from nexus_wire.constants import HTTP_VERSION
from nexus_wire.providers.base import RequestDescriptor

CRLF: Final[bytes] = b"\r\n"
_HEADER_TERMINATOR: Final[bytes] = b"\r\n\r\n"


def render_envelope(descriptor: RequestDescriptor) -> bytes:
    """Return the HTTP/1.1 request bytes for ``descriptor``."""

    if not isinstance(descriptor, RequestDescriptor):
        raise TypeError("descriptor must be a RequestDescriptor")

    credential = descriptor.credential_header()
    lines: list[tuple[str, str]] = [("Host", descriptor.host_header)]
    if credential is not None:
        lines.append(credential)
    lines.append(("Content-Length", str(len(descriptor.body))))
    credential_name = credential[0].lower() if credential is not None else None
    lines.extend(
        (name, value) for name, value in descriptor.headers if name.lower() != credential_name
    )

    request_line = f"{descriptor.method} {descriptor.target} {HTTP_VERSION}"
    _validate_wire_text(request_line, "request line")
    head = [request_line.encode("ascii")]
    for name, value in lines:
        _validate_wire_text(name, "header name")
        _validate_wire_text(value, f"header {name}")
        head.append(f"{name}: {value}".encode("ascii"))
    return CRLF.join(head) + _HEADER_TERMINATOR + descriptor.body


def split_envelope(raw: bytes) -> tuple[str, tuple[tuple[str, str], ...], bytes]:
    """Split envelope bytes into request line, ordered headers and body.

    The body is cut to the declared Content-Length; a missing or short body
    raises ``ValueError``.
    """

    head, separator, remainder = raw.partition(_HEADER_TERMINATOR)
    if not separator:
        raise ValueError("envelope has no header terminator")
    head_lines = head.decode("latin-1").split("\r\n")
    request_line = head_lines[0]
    if not request_line.endswith(f" {HTTP_VERSION}"):
        raise ValueError(f"unsupported request line: {request_line!r}")

    headers: list[tuple[str, str]] = []
    for line in head_lines[1:]:
        name, colon, value = line.partition(":")
        if not colon or not name.strip():
            raise ValueError(f"malformed header line: {line!r}")
        headers.append((name.strip(), value.strip()))

    length = content_length(tuple(headers))
    if length is None:
        raise ValueError("envelope has no Content-Length header")
    if len(remainder) < length:
        raise ValueError(
            f"envelope body is shorter than Content-Length ({len(remainder)} < {length})"
        )
    return request_line, tuple(headers), remainder[:length]


def content_length(headers: tuple[tuple[str, str], ...]) -> int | None:
    """Return the Content-Length header value, or ``None`` when absent."""

    for name, value in headers:
        if name.lower() == "content-length":
            if not value.isdigit():
                raise ValueError(f"invalid Content-Length: {value!r}")
            return int(value)
    return None


def _validate_wire_text(value: str, field_name: str) -> None:
    if "\r" in value or "\n" in value:
        raise ValueError(f"{field_name} must not contain CR or LF")
    if not value.isascii():
        raise ValueError(f"{field_name} must contain only ASCII characters")


__all__ = [
    "CRLF",
    "content_length",
    "render_envelope",
    "split_envelope",
]
