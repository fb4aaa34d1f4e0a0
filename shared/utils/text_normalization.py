"""
Text helpers shared by keyword matching code.
"""

import unicodedata
from typing import Any, Iterable


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return str(value).strip() == ""


def fold_text(value: Any) -> str:
    """Lower-case and strip accents ("Orçado" -> "orcado")."""
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(value))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold().strip()


def contains_any(value: Any, keywords: Iterable[str]) -> bool:
    """Accent/case-insensitive substring match against folded keywords."""
    folded = fold_text(value)
    if not folded:
        return False
    return any(k in folded for k in keywords)
