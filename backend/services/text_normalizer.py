"""Canonical text form shared by alias indexing and raw-term lookup."""

import re
import unicodedata

# Punctuation is deleted, except "+" and "#" which distinguish c / c++ / c#,
# and hyphens, which are handled separately below.
_PUNCT_RE = re.compile(r"[^\w\s+#-]|_")
# A hyphen survives only between two word characters ("problem-solving").
_EDGE_HYPHEN_RE = re.compile(r"(?<![\w+#])-+|-+(?![\w+#])")
_WS_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation except internal hyphens, collapse whitespace.

    >>> normalize_text("  Node.js ")
    'nodejs'
    >>> normalize_text("C++")
    'c++'
    >>> normalize_text("Problem-Solving!")
    'problem-solving'
    """
    if not text:
        return ""
    s = unicodedata.normalize("NFKC", text).lower()
    s = _PUNCT_RE.sub("", s)
    s = _EDGE_HYPHEN_RE.sub(" ", s)
    return _WS_RE.sub(" ", s).strip()
