from __future__ import annotations

import html
import re
from typing import Optional
from urllib.parse import urlsplit

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
ANGLE_BRACKETS = re.compile(r"[<>]")
JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
INLINE_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)

_BLOCK_TAGS = ("script", "iframe", "object", "embed")
_BLOCK_PATTERNS = [
    re.compile(rf"<{tag}\b[^<]*(?:(?!</{tag}>)<[^<]*)*</{tag}>", re.IGNORECASE)
    for tag in _BLOCK_TAGS
]
_HANDLER_ATTR_QUOTED = re.compile(r"on\w+\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)
_HANDLER_ATTR_BARE = re.compile(r"on\w+\s*=\s*[^\s>]*", re.IGNORECASE)
_DATA_HTML = re.compile(r"data:text/html", re.IGNORECASE)
_STYLE_ATTR = re.compile(r"\s*style\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)

_FILENAME_UNSAFE = re.compile(r"[^a-zA-Z0-9._-]")
_PHONE_SEPARATORS = re.compile(r"[\s\-()]")
_LOG_UNSAFE = re.compile(r"['\";\\]")


def sanitize_text(value: Optional[str], *, max_length: int = 10000) -> Optional[str]:
    """Plain-text cleanup for form fields: markup and script vectors removed."""
    if value is None:
        return None
    v = value.strip()
    v = CONTROL_CHARS.sub("", v)
    v = ANGLE_BRACKETS.sub("", v)
    v = JS_PROTOCOL.sub("", v)
    v = INLINE_HANDLER.sub("", v)
    if len(v) > max_length:
        v = v[:max_length]
    return v


def sanitize_html(value: Optional[str]) -> str:
    """Strip active content, then escape, for user text embedded in HTML mail."""
    if not value:
        return ""
    v = value
    for pattern in _BLOCK_PATTERNS:
        v = pattern.sub("", v)
    v = _HANDLER_ATTR_QUOTED.sub("", v)
    v = _HANDLER_ATTR_BARE.sub("", v)
    v = JS_PROTOCOL.sub("", v)
    v = _DATA_HTML.sub("", v)
    v = _STYLE_ATTR.sub("", v)
    return html.escape(v, quote=True)


def sanitize_email(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.strip().lower()[:255]


def sanitize_phone(value: Optional[str]) -> str:
    if not value:
        return ""
    return _PHONE_SEPARATORS.sub("", value)[:20]


def sanitize_filename(value: Optional[str]) -> str:
    if not value:
        return "file"
    v = _FILENAME_UNSAFE.sub("", value)
    v = v.replace("..", "")
    v = v.lstrip(".")
    return v[:255] or "file"


def sanitize_url(value: Optional[str]) -> str:
    """Return the URL when it is absolute http(s), else ""."""
    if not value:
        return ""
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return ""
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return ""
    return parts.geturl()


def sanitize_for_logging(value: Optional[str]) -> str:
    if not value:
        return ""
    v = _LOG_UNSAFE.sub("", value)
    v = v.replace("--", "").replace("/*", "").replace("*/", "")
    return v[:1000]
