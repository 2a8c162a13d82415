"""
BOQ Domain - Bill of Quantities data model and caller-side store.

This domain handles:
- Line item, dimension and confidence models
- Progress log entries
- Accumulating module results
- Unit pricing and category summaries
"""

from .models import BOQItem, CategorySummary, Confidence, Dimensions, LogEntry, LogKind
from .store import (
    PRICE_MARKER,
    BOQStore,
    apply_unit_price,
    grand_total_cost,
    summarize_by_category,
)

__all__ = [
    # Models
    "BOQItem",
    "Dimensions",
    "Confidence",
    "LogEntry",
    "LogKind",
    "CategorySummary",
    # Store
    "BOQStore",
    "PRICE_MARKER",
    "apply_unit_price",
    "summarize_by_category",
    "grand_total_cost",
]
