#signalwatch/infrastructure/ocr/text_utils.py
"""
Text helpers for the label scorer: recognition-text cleaning, tokenizing
and confusable-character variants.
"""
import re
from typing import Dict, List

# Glyph pairs small antialiased text is commonly misread as
CONFUSABLES: Dict[str, str] = {
    'O': '0', '0': 'O',
    'I': '1', 'L': '1', '1': 'IL',
    'S': '5', '5': 'S',
    'B': '8', '8': 'B',
}
DIGIT_TO_LETTERS: Dict[str, str] = {'0': 'O', '1': 'IL', '5': 'S', '8': 'B'}
LETTER_TO_DIGIT: Dict[str, str] = {'O': '0', 'I': '1', 'L': '1', 'S': '5', 'B': '8'}

_DISALLOWED = re.compile(r"[^A-Z0-9:\-\s]")
_SEPARATORS = re.compile(r"[\s:\-]+")


def clean_recognized_text(text: str) -> str:
    """Uppercase and strip everything outside A-Z, 0-9, ':', '-' and whitespace."""
    if not text:
        return ""
    upper = text.upper().replace('|', 'I')
    return _DISALLOWED.sub("", upper)


def tokenize(text: str) -> List[str]:
    """Split cleaned text on whitespace, ':' and '-'."""
    return [t for t in _SEPARATORS.split(text) if t]


def alphanumeric_count(token: str) -> int:
    return sum(1 for c in token if c.isascii() and c.isalnum())


def confusable_variants(token: str) -> List[str]:
    """
    Expand a token into confusable-character variants, in both directions.

    Produces the token itself, the all-letters reading (digits fixed to
    letters, '1' read both as I and as L), the all-digits reading (letters
    corrupted to digits) and every single-position substitution. Order is
    stable and duplicates are removed, so a token without confusable
    characters yields only itself.
    """
    variants = [token]

    fixed_i = "".join(DIGIT_TO_LETTERS.get(c, c)[0] for c in token)
    fixed_l = "".join(DIGIT_TO_LETTERS.get(c, c)[-1] for c in token)
    corrupted = "".join(LETTER_TO_DIGIT.get(c, c) for c in token)
    variants.extend([fixed_i, fixed_l, corrupted])

    for index, char in enumerate(token):
        for replacement in CONFUSABLES.get(char, ""):
            variants.append(token[:index] + replacement + token[index + 1:])

    return list(dict.fromkeys(variants))
