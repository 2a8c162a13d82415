"""
Response Parsing - JSON boundary between model text and typed items.
"""

from __future__ import annotations

import re

from pydantic import ValidationError

from autoboq.config.errors import ResponseShapeError
from autoboq.domains.boq.models import BOQItem

from .models import ModuleResponse

__all__ = ["strip_code_fences", "parse_module_response", "rebase_items"]

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers and surrounding whitespace."""
    return _FENCE.sub("", text).strip()


def parse_module_response(text: str) -> list[BOQItem]:
    """
    Validate a module answer against ``{"items": BOQItem[]}``.

    Raises:
        ResponseShapeError: Not JSON, or any schema violation
    """
    try:
        return ModuleResponse.model_validate_json(strip_code_fences(text)).items
    except ValidationError as e:
        raise ResponseShapeError(
            "Response does not match the items schema",
            {"errors": e.error_count()},
        ) from e


def rebase_items(items: list[BOQItem], start_id: int, category: str) -> list[BOQItem]:
    """Assign sequential ids from ``start_id``, discarding supplied ids."""
    return [
        item.model_copy(update={"id": start_id + offset, "category": category})
        for offset, item in enumerate(items)
    ]
