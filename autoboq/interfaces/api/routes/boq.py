"""
BOQ Routes - Pricing and category summaries over a client-held BOQ.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from autoboq.domains.boq import (
    BOQItem,
    CategorySummary,
    apply_unit_price,
    grand_total_cost,
    summarize_by_category,
)

router = APIRouter()


class PriceRequest(BaseModel):
    """Set one item's unit price."""

    boq: list[BOQItem]
    item_id: int
    unit_price: float | None = None


class SummaryRequest(BaseModel):
    boq: list[BOQItem] = Field(default_factory=list)


class SummaryResponse(BaseModel):
    categories: list[CategorySummary]
    grand_total_cost: float


@router.post("/price")
async def price_item(request: PriceRequest) -> list[dict]:
    """Return the BOQ with the item's price and cost trace updated."""
    if not any(item.id == request.item_id for item in request.boq):
        raise HTTPException(status_code=404, detail=f"Item {request.item_id} not found")
    updated = apply_unit_price(request.boq, request.item_id, request.unit_price)
    return [item.to_record() for item in updated]


@router.post("/summary", response_model=SummaryResponse)
async def summarize(request: SummaryRequest) -> SummaryResponse:
    """Totals and cost per category."""
    return SummaryResponse(
        categories=summarize_by_category(request.boq),
        grand_total_cost=grand_total_cost(request.boq),
    )
