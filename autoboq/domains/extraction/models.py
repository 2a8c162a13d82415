"""
Extraction Models - Data types for the phased extraction pipeline.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

from autoboq.domains.boq.models import BOQItem


class AnalysisModule(BaseModel):
    """One extraction phase, scoped to a single BOQ category."""

    id: int = Field(ge=1)
    title: str
    localized_title: str
    instructions: str = ""

    model_config = {"frozen": True}


class ModuleStatus(str, Enum):
    """Per-module states of the extraction protocol."""

    PENDING = "pending"
    COOLING = "cooling"
    CALLING = "calling"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SourceFile(BaseModel):
    """An input drawing: either a path on disk or in-memory content."""

    name: str | None = None
    media_type: str = "application/pdf"
    path: Path | None = None
    content: bytes | None = None

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def set_name_from_path(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Set name from path if not provided."""
        if isinstance(data, dict):
            if data.get("name") is None and data.get("path") is not None:
                data["name"] = Path(data["path"]).name
        return data

    @model_validator(mode="after")
    def require_source(self) -> "SourceFile":
        if self.path is None and self.content is None:
            raise ValueError("SourceFile needs a path or content")
        return self


class ModuleResponse(BaseModel):
    """Schema of a module's JSON answer."""

    items: list[BOQItem]


class ModuleOutcome(BaseModel):
    """How one module ended."""

    module_id: int
    status: ModuleStatus
    item_count: int = 0
    attempts: int = 0
    error: str | None = None


class RunSummary(BaseModel):
    """Result of a full orchestration run."""

    model: str
    simulation: bool = False
    outcomes: list[ModuleOutcome] = Field(default_factory=list)
    total_items: int = 0
    next_id: int = 1
    cancelled: bool = False
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None

    @property
    def skipped_modules(self) -> list[int]:
        """Modules that produced no items because of a failure."""
        return [o.module_id for o in self.outcomes if o.status == ModuleStatus.FAILED]

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()
