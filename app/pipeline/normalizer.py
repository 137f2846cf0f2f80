"""
OCR text normaliser.

Runs before any field extraction. Line boundaries are preserved because
several field rules are anchored on them.
"""
from __future__ import annotations

import re

# Full-width digits and the two separators amounts depend on
_FULLWIDTH = str.maketrans("０１２３４５６７８９，．", "0123456789,.")

# Horizontal whitespace only (includes the ideographic space U+3000)
_HSPACE = re.compile(r"[^\S\n]+")


def normalize_text(text: str) -> str:
    """Canonicalise raw OCR text.

    Collapses horizontal whitespace runs to one space, folds full-width
    digits/comma/period to ASCII and drops blank lines. Idempotent.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.translate(_FULLWIDTH)
    lines = (_HSPACE.sub(" ", line).strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)
