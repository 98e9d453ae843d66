"""Canonical forms for numeric tokens and quoted text."""

from __future__ import annotations

import re
from typing import List, Tuple

_ARTIFACT_RE = re.compile(r",\s*[a-zA-Z]$")
_WHITESPACE_RE = re.compile(r"\s+")
_BRACKETED_RE = re.compile(r"\[[^\]]+\]")
_QUOTE_EDGE_RE = re.compile(r"^[\s'\"‘’“”]+|[\s'\"‘’“”]+$")
_EDGE_PUNCT_RE = re.compile(r"^[.,;:!?\s]+|[.,;:!?\s]+$")


def strip_extraction_artifact(raw: str) -> str:
    """Drop a trailing ``", <letter>"`` captured past the end of a figure."""

    return _ARTIFACT_RE.sub("", raw.strip()).strip()


def normalize_number(raw: str) -> str:
    """Canonical comparison form of a numeric token.

    ``"$1,450, t"`` becomes ``"$1450"``; ``"73  Billion"`` becomes ``"73 billion"``.
    """

    value = strip_extraction_artifact(raw)
    value = value.replace(",", "")
    value = _WHITESPACE_RE.sub(" ", value)
    return value.lower().strip()


def normalize_quote(raw: str) -> str:
    """Canonical comparison form of a quotation.

    Enclosing quote marks and bracketed editorial insertions such as
    ``[s]`` or ``[the]`` are removed, whitespace is collapsed and the
    result is lowercased.
    """

    text = _WHITESPACE_RE.sub(" ", raw)
    text = _BRACKETED_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text)
    text = _QUOTE_EDGE_RE.sub("", text)
    return text.lower()


def quote_dedup_key(raw: str) -> str:
    return _EDGE_PUNCT_RE.sub("", normalize_quote(raw))


def fold_case(text: str) -> str:
    """Lowercase without changing the string length.

    A few characters (e.g. ``"İ"``) expand when lowercased; those are left
    untouched so offsets found in the folded text stay valid in the original.
    """

    return "".join(ch.lower() if len(ch.lower()) == 1 else ch for ch in text)


def collapse_whitespace_with_offsets(text: str) -> Tuple[str, List[int]]:
    """Collapse whitespace runs to single spaces and trim the ends.

    Returns the collapsed text plus, for every character of it, the index of
    the character in ``text`` it came from.
    """

    chars: List[str] = []
    offsets: List[int] = []
    pending_space = -1

    for index, ch in enumerate(text):
        if ch.isspace():
            if chars and pending_space < 0:
                pending_space = index
            continue
        if pending_space >= 0:
            chars.append(" ")
            offsets.append(pending_space)
            pending_space = -1
        chars.append(ch)
        offsets.append(index)

    return "".join(chars), offsets
