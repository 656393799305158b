"""Matching limit structures and plans to class structures"""

from typing import Any, Iterable, List, TypeVar

T = TypeVar('T')

COMPATIBILITY_FIELDS = (
    ("effectiveDate", "effective_date"),
    ("marketSegment", "market_segment"),
    ("productType", "product_type"),
)


def _value(item: Any, document_key: str, attribute: str) -> Any:
    if isinstance(item, dict):
        value = item.get(document_key)
    else:
        value = getattr(item, attribute, None)
    # Enum members compare by their persisted value
    return getattr(value, "value", value)


def is_compatible(left: Any, right: Any) -> bool:
    """Exact equality on effective date, market segment and product type.

    Works on camelCase documents and on ORM rows alike. There is no range or
    fuzzy matching: ``2025-01-01`` never matches ``2025-01-02``.
    """
    return all(
        _value(left, key, attr) == _value(right, key, attr)
        for key, attr in COMPATIBILITY_FIELDS
    )


def compatible_with(reference: Any, candidates: Iterable[T]) -> List[T]:
    return [candidate for candidate in candidates if is_compatible(reference, candidate)]
