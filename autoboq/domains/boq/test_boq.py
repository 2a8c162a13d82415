"""
Tests for BOQ domain models and store.
"""

from __future__ import annotations

import pytest

from .models import BOQItem, Confidence, Dimensions, LogEntry, LogKind
from .store import (
    PRICE_MARKER,
    BOQStore,
    apply_unit_price,
    grand_total_cost,
    summarize_by_category,
)


def _item(item_id: int, category: str = "Concrete", total: float = 10.0, **kwargs) -> BOQItem:
    return BOQItem(
        id=item_id,
        category=category,
        description=f"Item {item_id}",
        unit="m3",
        total=total,
        **kwargs,
    )


# --- Model Tests ---


def test_dimensions_accept_short_keys() -> None:
    """Test Dimensions parses l/w/h wire keys."""
    dims = Dimensions.model_validate({"l": 3.0, "w": 2.0, "h": 0.5})
    assert dims.length == 3.0
    assert dims.width == 2.0
    assert dims.height == 0.5


def test_dimensions_default_zero() -> None:
    """Test missing dimensions default to 0."""
    dims = Dimensions()
    assert (dims.length, dims.width, dims.height) == (0.0, 0.0, 0.0)


def test_dimensions_reject_negative() -> None:
    """Test negative dimensions are rejected."""
    with pytest.raises(ValueError):
        Dimensions(length=-1.0)


def test_dimensions_merged_keeps_other_fields() -> None:
    """Test a partial merge only replaces the given sub-field."""
    dims = Dimensions(length=3.0, width=2.0, height=1.0)
    merged = dims.merged({"w": 5})
    assert merged.length == 3.0
    assert merged.width == 5.0
    assert merged.height == 1.0
    # Original untouched
    assert dims.width == 2.0


def test_dimensions_merged_long_keys_and_unknown() -> None:
    """Test merge accepts long keys and ignores unknown ones."""
    merged = Dimensions().merged({"height": 2.5, "depth": 9})
    assert merged.height == 2.5
    assert merged.length == 0.0


def test_boq_item_from_model_output() -> None:
    """Test BOQItem parses a raw model record."""
    item = BOQItem.model_validate(
        {
            "id": "7",
            "category": None,
            "description": "Footing F1",
            "unit": "m3",
            "count": 4,
            "dimensions": {"l": 1.5, "w": 1.5, "h": 0.6},
            "deduction": 0,
            "total": 5.4,
            "remarks": None,
            "confidence": {"overall": 0.9, "count_accuracy": 0.95, "dimension_extraction": 0.85},
            "calculation_breakdown": "4 * 1.5 * 1.5 * 0.6",
            "unknown_key": "ignored",
        }
    )
    assert item.id == 7
    assert item.category == ""
    assert item.remarks == ""
    assert item.dimensions.height == 0.6
    assert item.confidence.overall == 0.9


def test_boq_item_unusable_id_becomes_zero() -> None:
    """Test non-numeric ids are coerced to 0."""
    item = BOQItem(id="abc", description="x", unit="m", total=1.0)  # type: ignore
    assert item.id == 0


def test_boq_item_requires_total() -> None:
    """Test total is a required field."""
    with pytest.raises(ValueError):
        BOQItem.model_validate({"description": "x", "unit": "m"})


def test_confidence_bounds() -> None:
    """Test confidence values must be within [0, 1]."""
    assert Confidence(overall=1.0).overall == 1.0
    with pytest.raises(ValueError):
        Confidence(overall=1.2)


def test_boq_item_to_record_uses_aliases() -> None:
    """Test serialization emits l/w/h and unitPrice and drops None."""
    item = _item(1, dimensions=Dimensions(length=2.0), unit_price=15.0)
    record = item.to_record()
    assert record["dimensions"] == {"l": 2.0, "w": 0.0, "h": 0.0}
    assert record["unitPrice"] == 15.0
    assert "calculation_breakdown" not in record
    assert "source_file" not in record


def test_resolve_field() -> None:
    """Test field names and aliases map to their serialized key."""
    assert BOQItem.resolve_field("total") == "total"
    assert BOQItem.resolve_field("unit_price") == "unitPrice"
    assert BOQItem.resolve_field("unitPrice") == "unitPrice"
    assert BOQItem.resolve_field("colour") is None


def test_log_entry_is_immutable() -> None:
    """Test LogEntry is frozen."""
    entry = LogEntry(kind=LogKind.PROCESS, message="hello")
    assert entry.timestamp is not None
    with pytest.raises(Exception):
        entry.message = "changed"  # type: ignore


def test_log_kind_values() -> None:
    """Test LogKind enum values."""
    assert LogKind.THOUGHT.value == "thought"
    assert LogKind.PROCESS.value == "process"
    assert LogKind.ERROR.value == "error"
    assert LogKind.SUCCESS.value == "success"


# --- Store Tests ---


def test_store_accumulates_in_order() -> None:
    """Test completions are appended in emission order."""
    store = BOQStore()
    store.add_module_result(1, [_item(1), _item(2)])
    store.add_module_result(2, [])
    store.add_module_result(3, [_item(3)])

    assert [item.id for item in store.items] == [1, 2, 3]
    assert store.completed_modules == [1, 2, 3]
    assert len(store) == 3


def test_store_snapshot_is_a_copy() -> None:
    """Test mutating the returned list does not touch the store."""
    store = BOQStore([_item(1)])
    snapshot = store.items
    snapshot.clear()
    assert len(store) == 1


def test_store_replace_get_and_clear() -> None:
    """Test replace, get and clear."""
    store = BOQStore([_item(1)])
    store.replace([_item(5), _item(6)])
    assert store.get(5) is not None
    assert store.get(1) is None

    store.clear()
    assert len(store) == 0
    assert store.completed_modules == []


# --- Pricing Tests ---


def test_apply_unit_price_appends_cost_trace() -> None:
    """Test pricing sets unit price and appends the cost suffix."""
    items = [_item(1, total=12.5, calculation_breakdown="5 * 2.5")]
    updated = apply_unit_price(items, 1, 40)

    assert updated[0].unit_price == 40
    assert updated[0].calculation_breakdown == f"5 * 2.5{PRICE_MARKER} 12.50 * 40 = 500.00"
    # Input unchanged
    assert items[0].unit_price is None


def test_apply_unit_price_replaces_previous_suffix() -> None:
    """Test re-pricing replaces the old suffix rather than stacking."""
    items = apply_unit_price([_item(1, total=2.0, calculation_breakdown="2")], 1, 10)
    items = apply_unit_price(items, 1, 1500)

    breakdown = items[0].calculation_breakdown
    assert breakdown.count(PRICE_MARKER) == 1
    assert breakdown.endswith("2.00 * 1500 = 3,000.00")


def test_apply_unit_price_invalid_clears_suffix() -> None:
    """Test a missing or negative price resets to 0 without a suffix."""
    items = apply_unit_price([_item(1, calculation_breakdown="2")], 1, 10)

    cleared = apply_unit_price(items, 1, None)
    assert cleared[0].unit_price == 0.0
    assert cleared[0].calculation_breakdown == "2"

    negative = apply_unit_price(items, 1, -5)
    assert negative[0].unit_price == 0.0
    assert PRICE_MARKER not in negative[0].calculation_breakdown


def test_apply_unit_price_other_items_untouched() -> None:
    """Test only the targeted item changes."""
    items = [_item(1), _item(2)]
    updated = apply_unit_price(items, 2, 3)
    assert updated[0] is items[0]
    assert updated[1].unit_price == 3


def test_summarize_by_category() -> None:
    """Test per-category totals and cost, in first-seen order."""
    items = [
        _item(1, category="Excavation", total=10.0, unit_price=2.0),
        _item(2, category="Concrete", total=4.0),
        _item(3, category="Excavation", total=5.0, unit_price=4.0),
    ]
    summary = summarize_by_category(items)

    assert [row.category for row in summary] == ["Excavation", "Concrete"]
    assert summary[0].total_quantity == 15.0
    assert summary[0].cost == 40.0
    assert summary[0].item_count == 2
    assert summary[1].cost == 0.0
    assert grand_total_cost(items) == 40.0


def test_grand_total_cost_empty() -> None:
    """Test empty BOQ costs nothing."""
    assert grand_total_cost([]) == 0.0
    assert summarize_by_category([]) == []
