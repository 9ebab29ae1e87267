"""Backslash escaping for values inlined as string literals.

The query service has no bind-parameter mechanism, so parameter values are
rendered into the query text. Escaping is purely byte-wise: no charset
validation, no normalization.
"""

from __future__ import annotations

_ESCAPES: dict[int, bytes] = {
    0x00: b"\\0",
    ord("\n"): b"\\n",
    ord("\r"): b"\\r",
    0x1A: b"\\Z",
    ord("'"): b"\\'",
    ord('"'): b'\\"',
    ord("\\"): b"\\\\",
}


def escape_bytes_backslash(buf: bytearray, raw: bytes) -> bytearray:
    """Append the escaped form of raw to buf and return buf."""
    for byte in raw:
        escaped = _ESCAPES.get(byte)
        if escaped is None:
            buf.append(byte)
        else:
            buf += escaped
    return buf


def escape_string(text: str) -> str:
    return escape_bytes_backslash(bytearray(), text.encode("utf-8")).decode("utf-8")
