"""
Helpers for building submitted data in tests.
"""

from typing import Any, Iterable, Optional


def formset_management_data(
    prefix: str, total: int, initial: int = 0
) -> dict[str, str]:
    """Management form entries Django formsets expect in submitted data."""
    return {
        f"{prefix}-TOTAL_FORMS": str(total),
        f"{prefix}-INITIAL_FORMS": str(initial),
        f"{prefix}-MIN_NUM_FORMS": "0",
        f"{prefix}-MAX_NUM_FORMS": "1000",
    }


def formset_data(
    prefix: str,
    rows: Iterable[dict[str, Any]],
    initial: Optional[int] = None,
) -> dict[str, Any]:
    """
    Submitted data for a formset.

    Args:
        prefix: Formset prefix, e.g. ``"addresses"``
        rows: One dict of field values per row
        initial: Rows that edit existing records; defaults to the rows
                 carrying an ``id``

    Returns:
        Flat dict including the management form
    """
    rows = list(rows)
    if initial is None:
        initial = sum(1 for row in rows if row.get("id"))
    data: dict[str, Any] = formset_management_data(prefix, len(rows), initial)
    for index, row in enumerate(rows):
        for name, value in row.items():
            data[f"{prefix}-{index}-{name}"] = value
    return data
