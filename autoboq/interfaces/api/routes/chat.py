"""
Chat Routes - Conversational BOQ editing.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from autoboq.domains.boq import BOQItem
from autoboq.domains.chat import ConversationalPatchEngine

from ..deps import get_chat_lock, get_patch_engine

router = APIRouter()


class ChatRequest(BaseModel):
    """Chat request body."""

    message: str = Field(..., min_length=1, max_length=4000)
    model: str | None = None
    boq: list[BOQItem] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Chat response body. ``boq`` is present only when the BOQ changed."""

    response: str
    model: str
    boq: list[dict] | None = None
    applied: int = 0


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    request: ChatRequest,
    engine: ConversationalPatchEngine = Depends(get_patch_engine),
    chat_lock: asyncio.Lock = Depends(get_chat_lock),
) -> ChatResponse:
    """
    Send an instruction about the current BOQ.

    Switching ``model`` starts a fresh conversation.
    """
    async with chat_lock:
        session = engine.select_model(request.model or engine.session.model)
        reply = await engine.submit(request.message, request.boq)

    return ChatResponse(
        response=reply.response_text,
        model=session.model,
        boq=[item.to_record() for item in reply.updated_boq] if reply.is_action else None,
        applied=reply.applied,
    )
