"""
BOQ Models - Data types for Bill of Quantities line items and run logs.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Dimensions(BaseModel):
    """Measured dimensions of a line item. 0 means not applicable."""

    length: float = Field(default=0.0, ge=0.0, alias="l")
    width: float = Field(default=0.0, ge=0.0, alias="w")
    height: float = Field(default=0.0, ge=0.0, alias="h")

    model_config = {"populate_by_name": True}

    def merged(self, partial: dict[str, Any]) -> "Dimensions":
        """Return a copy with only the given sub-fields replaced."""
        data = self.model_dump()
        for key, value in partial.items():
            name = _DIMENSION_KEYS.get(key)
            if name is not None:
                data[name] = value
        return Dimensions.model_validate(data)


_DIMENSION_KEYS = {
    "l": "length",
    "w": "width",
    "h": "height",
    "length": "length",
    "width": "width",
    "height": "height",
}


class Confidence(BaseModel):
    """Model-reported confidence for an extracted item."""

    overall: float = Field(default=0.0, ge=0.0, le=1.0)
    count_accuracy: float = Field(default=0.0, ge=0.0, le=1.0)
    dimension_extraction: float = Field(default=0.0, ge=0.0, le=1.0)


class BOQItem(BaseModel):
    """A single quantified line item of a Bill of Quantities."""

    id: int = 0
    category: str = ""
    description: str
    unit: str
    count: float = Field(default=1.0, ge=0.0)
    dimensions: Dimensions = Field(default_factory=Dimensions)
    deduction: float = Field(default=0.0, ge=0.0)
    total: float
    remarks: str = ""
    confidence: Confidence = Field(default_factory=Confidence)
    calculation_breakdown: str | None = None
    unit_price: float | None = Field(default=None, ge=0.0, alias="unitPrice")
    source_file: str | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        """Ids are re-assigned by the orchestrator, so unusable ones become 0."""
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    @field_validator("remarks", "category", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def resolve_field(cls, name: str) -> str | None:
        """Map a field name or its alias to the serialized key, or None."""
        for field_name, info in cls.model_fields.items():
            if name in (field_name, info.alias):
                return info.alias or field_name
        return None

    def to_record(self) -> dict[str, Any]:
        """Serialize with the wire aliases (l/w/h, unitPrice)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LogKind(str, Enum):
    """Kinds of progress log entries."""

    THOUGHT = "thought"
    PROCESS = "process"
    ERROR = "error"
    SUCCESS = "success"


class LogEntry(BaseModel):
    """One entry of the append-only progress log."""

    kind: LogKind
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


class CategorySummary(BaseModel):
    """Aggregated quantity and cost for one BOQ category."""

    category: str
    unit: str
    total_quantity: float = 0.0
    cost: float = 0.0
    item_count: int = 0
