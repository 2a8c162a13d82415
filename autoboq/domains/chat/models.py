"""
Chat Models - Data types for conversational BOQ patching.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, field_validator

from autoboq.domains.boq.models import BOQItem

if TYPE_CHECKING:
    from .contracts import ChatTransport


class ModificationAction(str, Enum):
    """Patch operations a chat reply may request."""

    UPDATE = "update"
    DELETE = "delete"
    ADD = "add"


class Modification(BaseModel):
    """One entry of a reply's ``modifications`` array."""

    id: int | None = None
    action: ModificationAction = ModificationAction.UPDATE
    field: str | None = None
    value: Any = None
    item: dict[str, Any] | None = None

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, value: Any) -> Any:
        if value is None:
            return ModificationAction.UPDATE
        if isinstance(value, str):
            value = value.strip().lower()
            if value in ("modify", "edit", "set"):
                return ModificationAction.UPDATE
            if value in ("remove",):
                return ModificationAction.DELETE
        return value


class ChatReply(BaseModel):
    """Outcome of one chat exchange."""

    response_text: str
    updated_boq: list[BOQItem] | None = None
    applied: int = 0

    @property
    def is_action(self) -> bool:
        """True when the reply changed the BOQ."""
        return self.updated_boq is not None


@dataclass(frozen=True)
class ChatSession:
    """A conversation bound to one model. Switch models by creating a new one."""

    model: str
    transport: ChatTransport
    created_at: datetime = field(default_factory=datetime.now)
