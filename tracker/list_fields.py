"""
Delimited list field helpers.

Skills and resources are stored as JSON lists, but they arrive and leave as
plain text in several places: form-style input ("Swift, UIKit"), legacy
exports, and CSV. These helpers convert between the two.
"""
from typing import Iterable, List, Optional

SKILL_SEPARATOR = ","
RESOURCE_SEPARATOR = "\n"


def clean_items(items: Iterable[str]) -> List[str]:
    """Trim every element and drop the empty ones, keeping order."""
    return [item.strip() for item in items if item and item.strip()]


def encode(items: Iterable[str], sep: str = SKILL_SEPARATOR) -> str:
    """
    Join non-empty trimmed elements with sep.

    Raises:
        ValueError: if an element contains the separator (it would not decode back).
    """
    cleaned = clean_items(items)
    for item in cleaned:
        if sep in item:
            raise ValueError(f"List item {item!r} contains the separator {sep!r}")
    return sep.join(cleaned)


def decode(text: Optional[str], sep: str = SKILL_SEPARATOR) -> List[str]:
    """Split on sep, trim each piece, drop empty pieces."""
    if not text:
        return []
    return clean_items(text.split(sep))


def coerce_list(value, sep: str = SKILL_SEPARATOR) -> List[str]:
    """Accept either a list of strings or a delimited string."""
    if value is None:
        return []
    if isinstance(value, str):
        return decode(value, sep)
    return clean_items(value)


def add_item(items: Iterable[str], item: str) -> List[str]:
    """Return a new list with the trimmed item appended. Empty items are ignored."""
    current = list(items or [])
    item = (item or "").strip()
    if item:
        current.append(item)
    return current


def remove_item(items: Iterable[str], item: str) -> List[str]:
    """Return a new list without any element equal to item."""
    item = (item or "").strip()
    return [existing for existing in (items or []) if existing != item]
