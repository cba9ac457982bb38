"""Text file helpers shared by the filesystem adapters.

Story files and icon SVGs are produced by a variety of tools, so reads detect
byte-order marks and normalize newlines, while writes always go through a
temporary sibling file and :func:`os.replace`.
"""

from __future__ import annotations

import codecs
import locale
import os
import tempfile
from pathlib import Path

__all__ = ["read_text", "write_text"]

_BOM_MAP: dict[bytes, str] = {
    codecs.BOM_UTF8: "utf-8-sig",
    codecs.BOM_UTF16_LE: "utf-16-le",
    codecs.BOM_UTF16_BE: "utf-16-be",
}


def read_text(path: Path | str, *, encoding: str | None = None) -> str:
    """Read a text file with encoding detection and newline normalization."""

    raw = Path(path).read_bytes()
    text = raw.decode(encoding or _detect_encoding(raw))
    if text.startswith("\ufeff"):
        text = text[1:]
    return _normalize_newlines(text)


def write_text(path: Path | str, content: str, *, encoding: str = "utf-8") -> Path:
    """Replace ``path`` with ``content`` atomically."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    descriptor, tmp_name = tempfile.mkstemp(
        dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(descriptor, "w", encoding=encoding, newline="") as handle:
            handle.write(_normalize_newlines(content))
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    finally:
        if os.path.exists(tmp_name):  # pragma: no cover - cleanup path
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
    return target


def _detect_encoding(raw: bytes) -> str:
    for bom, encoding in _BOM_MAP.items():
        if raw.startswith(bom):
            return encoding

    preferred = locale.getpreferredencoding(False) or "utf-8"
    for candidate in dict.fromkeys(("utf-8", preferred, "latin-1")):
        try:
            raw.decode(candidate)
            return candidate
        except UnicodeDecodeError:
            continue
    return "utf-8"


def _normalize_newlines(text: str) -> str:
    if "\r" not in text:
        return text
    return text.replace("\r\n", "\n").replace("\r", "\n")
