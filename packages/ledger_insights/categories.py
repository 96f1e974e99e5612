"""Category codes, synonyms, and label derivation.

Ledger entries may be tagged with a one-letter shorthand (``g``) or the full
category name (``groceries``). Filtering treats both spellings as the same
category so a series requested either way aggregates identical rows.
"""

from __future__ import annotations

from types import MappingProxyType

from .models import ALL_CATEGORIES

CODE_TO_NAME = MappingProxyType(
    {
        "g": "groceries",
        "f": "food",
        "t": "transport",
        "b": "bills",
        "h": "health",
        "r": "rent",
        "m": "misc",
        "u": "uncategorized",
    }
)
NAME_TO_CODE = MappingProxyType({name: code for code, name in CODE_TO_NAME.items()})

UNCATEGORIZED = "uncategorized"
BILLS = "bills"


def category_synonyms(category: str | None) -> frozenset[str]:
    """Return the lower-cased ``category`` plus its code/name counterpart, if any."""

    lc = str(category or "").strip().lower()
    out = {lc}
    if lc in CODE_TO_NAME:
        out.add(CODE_TO_NAME[lc])
    if lc in NAME_TO_CODE:
        out.add(NAME_TO_CODE[lc])
    return frozenset(out)


def canonical_category(category: str) -> str:
    """Map a code to its full name; other labels are only lower-cased."""

    lc = category.strip().lower()
    return CODE_TO_NAME.get(lc, lc)


def is_all(category: str | None) -> bool:
    """True when ``category`` means "no filter" (``None``, empty, or ``"all"``)."""

    return category is None or not category.strip() or category.strip().lower() == ALL_CATEGORIES


def is_bills(category: str) -> bool:
    return BILLS in category_synonyms(category)


def category_from_description(description: str | None) -> str:
    """Derive a category from a free-text entry: its first word, lower-cased."""

    words = (description or "").split()
    if not words:
        return UNCATEGORIZED
    return words[0].lower()


__all__ = [
    "BILLS",
    "CODE_TO_NAME",
    "NAME_TO_CODE",
    "UNCATEGORIZED",
    "canonical_category",
    "category_from_description",
    "category_synonyms",
    "is_all",
    "is_bills",
]
