"""
BOQ Store - Caller-side accumulator and pricing helpers.

The orchestrator and the chat engine never hold the BOQ. They emit
completions and revised snapshots, and the caller folds them in here.
"""

from __future__ import annotations

import logging

from .models import BOQItem, CategorySummary

logger = logging.getLogger(__name__)

__all__ = [
    "BOQStore",
    "PRICE_MARKER",
    "apply_unit_price",
    "summarize_by_category",
    "grand_total_cost",
]

PRICE_MARKER = " || Price:"


class BOQStore:
    """
    Accumulates module completions in emission order.

    Example:
        >>> store = BOQStore()
        >>> await orchestrator.run(artifacts, on_log, store.add_module_result)
        >>> len(store.items)
    """

    def __init__(self, items: list[BOQItem] | None = None) -> None:
        self._items: list[BOQItem] = list(items or [])
        self._completed_modules: list[int] = []

    @property
    def items(self) -> list[BOQItem]:
        """Snapshot of the current items."""
        return list(self._items)

    @property
    def completed_modules(self) -> list[int]:
        return list(self._completed_modules)

    def add_module_result(self, module_id: int, items: list[BOQItem]) -> None:
        """Completion callback: append a module's items."""
        self._completed_modules.append(module_id)
        self._items.extend(items)
        logger.debug("Module %d folded into store: %d items", module_id, len(items))

    def replace(self, items: list[BOQItem]) -> None:
        """Swap in a revised snapshot (e.g. from a chat patch)."""
        self._items = list(items)

    def clear(self) -> None:
        self._items = []
        self._completed_modules = []

    def get(self, item_id: int) -> BOQItem | None:
        return next((item for item in self._items if item.id == item_id), None)

    def __len__(self) -> int:
        return len(self._items)


def apply_unit_price(items: list[BOQItem], item_id: int, price: float | None) -> list[BOQItem]:
    """
    Set a unit price on one item and record the cost in its breakdown.

    Any previous price suffix is replaced. A missing or negative price
    clears the suffix and stores 0.

    Returns:
        A new list; the input is not modified.
    """
    valid = price is not None and price >= 0
    updated: list[BOQItem] = []
    for item in items:
        if item.id != item_id:
            updated.append(item)
            continue

        breakdown = (item.calculation_breakdown or "").split(PRICE_MARKER)[0]
        if valid:
            cost = item.total * price
            breakdown += f"{PRICE_MARKER} {item.total:.2f} * {price:g} = {cost:,.2f}"

        updated.append(
            item.model_copy(
                update={
                    "unit_price": price if valid else 0.0,
                    "calculation_breakdown": breakdown,
                }
            )
        )
    return updated


def summarize_by_category(items: list[BOQItem]) -> list[CategorySummary]:
    """Aggregate totals and cost per category, in first-seen order."""
    summary: dict[str, CategorySummary] = {}
    for item in items:
        row = summary.get(item.category)
        if row is None:
            row = summary[item.category] = CategorySummary(
                category=item.category, unit=item.unit
            )
        row.total_quantity += item.total
        row.cost += item.total * (item.unit_price or 0.0)
        row.item_count += 1
    return list(summary.values())


def grand_total_cost(items: list[BOQItem]) -> float:
    return sum(item.total * (item.unit_price or 0.0) for item in items)
