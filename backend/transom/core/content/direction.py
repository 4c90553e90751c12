"""Repair for note text stored back-to-front.

Some mobile builds wrote right-to-left runs for left-to-right text, so the
characters of every text node ended up reversed. Detection looks for common
English words spelled backwards.
"""

from __future__ import annotations

import re

from transom.core.content.translator import extract_text

_TEXT_NODE = re.compile(r">([^<]+)<")
_BODY_START = re.compile(r"<body[^>]*>", re.IGNORECASE)

_REVERSED_PATTERNS = (
    re.compile(r"^eht\s"),  # "the "
    re.compile(r"\ssi\s"),  # " is "
    re.compile(r"\sdna\s"),  # " and "
    re.compile(r"\sfo\s"),  # " of "
    re.compile(r"\snA\s"),  # " An "
    re.compile(r"\sa\s.*si\s"),
)

MIN_LENGTH = 10


def is_text_reversed(text: str | None) -> bool:
    if not text or len(text) < MIN_LENGTH:
        return False
    clean = extract_text(text).strip()
    if len(clean) < MIN_LENGTH:
        return False
    return any(pattern.search(clean) for pattern in _REVERSED_PATTERNS)


def reverse_text(text: str | None) -> str | None:
    """Reverse characters, touching only text nodes when markup is present."""
    if not text:
        return text
    if "<" not in text:
        return text[::-1]
    # the stylesheet in a document head is not note text
    body = _BODY_START.search(text)
    head, rest = (text[:body.end()], text[body.end():]) if body else ("", text)
    return head + _TEXT_NODE.sub(lambda match: f">{match.group(1)[::-1]}<", rest)
