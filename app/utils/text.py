"""Slug and short-text helpers."""

from __future__ import annotations

import math
import re

WORDS_PER_MINUTE = 200

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATORS = re.compile(r"[\s_-]+")
_EDGE_HYPHENS = re.compile(r"^-+|-+$")
_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_TAGS = re.compile(r"<[^>]*>")


def generate_slug(title: str) -> str:
    """Lowercase, drop punctuation and join words with single hyphens."""
    slug = title.lower().strip()
    slug = _NON_SLUG_CHARS.sub("", slug)
    slug = _SEPARATORS.sub("-", slug)
    return _EDGE_HYPHENS.sub("", slug)


def is_valid_slug(slug: str) -> bool:
    return bool(_SLUG_PATTERN.match(slug))


def estimate_reading_time(content: str) -> int:
    """Minutes to read ``content`` at 200 words per minute, at least 1."""
    words = len(content.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def extract_excerpt(content: str, max_length: int = 160) -> str:
    plain = _TAGS.sub("", content)
    if len(plain) <= max_length:
        return plain

    truncated = plain[:max_length]
    last_sentence_end = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
    if last_sentence_end > max_length * 0.5:
        return truncated[: last_sentence_end + 1]
    return truncated + "..."
