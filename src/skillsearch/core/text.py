"""Text normalization shared by the embedding and semantic search paths."""

import re

# Word characters are ASCII here; CJK Unified Ideographs are kept explicitly.
_DISALLOWED = re.compile(r"[^0-9A-Za-z_\s\u4e00-\u9fa5]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace.

    Every character that is not an ASCII word character, whitespace or a CJK
    ideograph becomes a space; whitespace runs then collapse to one space and
    the ends are trimmed. The result is a fixed point:
    ``normalize(normalize(s)) == normalize(s)``.
    """
    lowered = text.lower()
    replaced = _DISALLOWED.sub(" ", lowered)
    return _WHITESPACE.sub(" ", replaced).strip()


def english_ratio(text: str) -> float:
    """Share of non-whitespace characters that are ASCII letters."""
    compact = _WHITESPACE.sub("", text)
    if not compact:
        return 0.0
    letters = sum(1 for ch in compact if ("a" <= ch <= "z") or ("A" <= ch <= "Z"))
    return letters / len(compact)
