from __future__ import annotations
from .models import LetterProfile
from .config import ANONYMOUS_NAME

def _is_profile_letter(ch: str) -> bool:
    """Only plain lowercase Latin letters count. Accents, digits, CJK etc. are dropped."""
    return "a" <= ch <= "z"

def normalize_name(raw: str) -> str:
    """Trim the name; an empty result becomes the anonymous placeholder."""
    cleaned = raw.strip()
    return cleaned if cleaned else ANONYMOUS_NAME

def letter_profile(raw: str) -> LetterProfile:
    """
    Count each [a-z] letter of raw after lowercasing.
    Rules:
      * case-insensitive via .lower()
      * every other character is discarded (no transliteration)
      * letters that never occur are not materialized
    Pure and total: empty or letter-free input gives {}.
    """
    counts: LetterProfile = {}
    for ch in raw.lower():
        if _is_profile_letter(ch):
            counts[ch] = counts.get(ch, 0) + 1
    return counts

def distance(a: LetterProfile, b: LetterProfile) -> int:
    """L1 distance over the union of letters; a missing letter counts as zero."""
    return sum(abs(a.get(ch, 0) - b.get(ch, 0)) for ch in set(a) | set(b))
