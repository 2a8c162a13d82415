"""
Conversational Patch Engine - Chat-driven edits to an existing BOQ.

Sends a reduced projection of the BOQ plus the user's instruction to a
persistent chat, then applies any structured modifications in the reply
to a copy of the BOQ. Patching is best effort: unknown ids and invalid
entries are skipped.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from autoboq.domains.boq.models import BOQItem
from autoboq.domains.extraction.parsing import strip_code_fences

from .contracts import ChatClient
from .models import ChatReply, ChatSession, Modification, ModificationAction

logger = logging.getLogger(__name__)

__all__ = [
    "CHAT_ERROR_MESSAGE",
    "SYSTEM_INSTRUCTION",
    "ConversationalPatchEngine",
    "apply_modifications",
    "build_chat_prompt",
    "create_chat_session",
    "submit",
]

SYSTEM_INSTRUCTION = (
    "أنت مساعد ذكي لمهندس الكميات. قم بالرد باللغة العربية. "
    "إذا طلب المستخدم تعديل قيمة، قم بإعادة الحساب وإرجاع JSON يحتوي على التعديلات."
)

CHAT_ERROR_MESSAGE = "Error processing request."

# Keys of the reduced projection the model sees, mapped back to item fields
_PROJECTION_FIELDS = {
    "desc": "description",
    "calc": "calculation_breakdown",
}


def create_chat_session(client: ChatClient, model: str) -> ChatSession:
    """Open a new session; no context carries over from earlier sessions."""
    return ChatSession(model=model, transport=client.start_chat(model, SYSTEM_INSTRUCTION))


def build_chat_prompt(user_text: str, boq: list[BOQItem]) -> str:
    projection = [
        {
            "id": item.id,
            "desc": item.description,
            "total": item.total,
            "calc": item.calculation_breakdown,
        }
        for item in boq
    ]
    return (
        f"Current BOQ Data: {json.dumps(projection, ensure_ascii=False)}\n\n"
        f'User Request: "{user_text}"\n\n'
        "Return JSON with 'response' and optional 'modifications' array. "
        "Each modification is {\"id\", \"field\", \"value\"} or "
        "{\"id\", \"action\": \"delete\"} or {\"action\": \"add\", \"item\"}."
    )


def _update_field(item: BOQItem, field: str, value: Any) -> BOQItem | None:
    """Return the item with one field set, or None if the update is invalid."""
    key = BOQItem.resolve_field(_PROJECTION_FIELDS.get(field, field))
    if key is None or key == "id":
        return None

    try:
        if key == "dimensions":
            if not isinstance(value, dict):
                return None
            return item.model_copy(update={"dimensions": item.dimensions.merged(value)})

        data = item.model_dump(by_alias=True)
        data[key] = value
        return BOQItem.model_validate(data)
    except ValidationError as e:
        logger.warning("Rejected update of %s on item %d: %s", field, item.id, e.error_count())
        return None


def apply_modifications(
    boq: list[BOQItem],
    modifications: list[Any],
) -> tuple[list[BOQItem], int]:
    """
    Apply raw modification entries to a copy of ``boq``.

    Returns:
        (new BOQ, number of modifications applied)
    """
    items = list(boq)
    applied = 0

    for raw in modifications:
        try:
            mod = Modification.model_validate(raw)
        except ValidationError:
            logger.warning("Skipping malformed modification: %r", raw)
            continue

        if mod.action == ModificationAction.DELETE:
            remaining = [item for item in items if item.id != mod.id]
            applied += len(items) - len(remaining)
            items = remaining
            continue

        if mod.action == ModificationAction.ADD:
            if mod.item is None:
                continue
            try:
                new_item = BOQItem.model_validate(mod.item)
            except ValidationError:
                logger.warning("Skipping invalid added item: %r", mod.item)
                continue
            next_id = max((item.id for item in items), default=0) + 1
            items.append(new_item.model_copy(update={"id": next_id}))
            applied += 1
            continue

        if mod.id is None or not mod.field:
            continue
        index = next((i for i, item in enumerate(items) if item.id == mod.id), None)
        if index is None:
            continue
        updated = _update_field(items[index], mod.field, mod.value)
        if updated is not None:
            items[index] = updated
            applied += 1

    return items, applied


async def submit(session: ChatSession, user_text: str, current_boq: list[BOQItem]) -> ChatReply:
    """
    Send one instruction and apply the reply.

    Never raises for transport failures; they become CHAT_ERROR_MESSAGE.
    """
    try:
        response = await session.transport.send(build_chat_prompt(user_text, current_boq))
    except Exception as e:
        logger.error("Chat error (model=%s): %s", session.model, e)
        return ChatReply(response_text=CHAT_ERROR_MESSAGE)

    text = strip_code_fences(response.text or "")
    if not text.startswith("{"):
        return ChatReply(response_text=text)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return ChatReply(response_text=text)
    if not isinstance(payload, dict):
        return ChatReply(response_text=text)

    response_text = payload.get("response")
    if not isinstance(response_text, str) or not response_text:
        response_text = text

    modifications = payload.get("modifications")
    if not isinstance(modifications, list):
        return ChatReply(response_text=response_text)

    updated, applied = apply_modifications(current_boq, modifications)
    logger.info("Chat patch applied %d of %d modification(s)", applied, len(modifications))
    return ChatReply(response_text=response_text, updated_boq=updated, applied=applied)


class ConversationalPatchEngine:
    """
    Holds the current chat session and replaces it on model change.

    Example:
        >>> engine = ConversationalPatchEngine(client, model="gemini-flash-latest")
        >>> reply = await engine.submit("اجعل الكمية 10", store.items)
        >>> if reply.updated_boq is not None:
        ...     store.replace(reply.updated_boq)
    """

    def __init__(self, client: ChatClient, model: str) -> None:
        self._client = client
        self.session = create_chat_session(client, model)

    def select_model(self, model: str) -> ChatSession:
        """Switch models; a different model always gets a fresh session."""
        if model != self.session.model:
            logger.info("Chat model changed %s -> %s, new session", self.session.model, model)
            self.session = create_chat_session(self._client, model)
        return self.session

    async def submit(self, user_text: str, current_boq: list[BOQItem]) -> ChatReply:
        return await submit(self.session, user_text, current_boq)
