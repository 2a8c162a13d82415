"""
Prompt Builder - Renders the request text for one extraction phase.

Pure and deterministic: the same module, start id and requirements always
produce the same text.
"""

from __future__ import annotations

from collections.abc import Sequence

from .models import AnalysisModule

__all__ = ["GLOBAL_REQUIREMENTS", "build_module_prompt"]

GLOBAL_REQUIREMENTS: tuple[str, ...] = (
    '**Mathematical Traceability**: Every item MUST have a "calculation_breakdown" '
    'showing the formula (e.g., "Count(5) * L(2) * W(1)").',
    "**Language**: Internal logic in English, Output Description/Category in ARABIC.",
)

MODULE_PROMPT = """You are the "Auto-BOQ Architect", an advanced Quantity Surveying AI.

ACTIVATE: Sequential Analysis Protocol.
CURRENT TARGET: Analyze ONLY the category: "{title}" ({localized_title}).
IGNORE all other categories for this specific step.

FILES CONTEXT:
- Structural Drawings (S): Priorities for Concrete, Steel, Foundations.
- Architectural Drawings (A): Priorities for Finishes, Masonry, Openings.

SPECIFIC INSTRUCTIONS FOR THIS PHASE:
{instructions}

GLOBAL REQUIREMENTS:
{requirements}

OUTPUT FORMAT (JSON):
{{
  "items": [
    {{
      "id": number,
      "category": "{localized_title}",
      "description": "Arabic Description including location",
      "unit": "m3/m2/m/No/Item",
      "count": number,
      "dimensions": {{ "l": number, "w": number, "h": number }},
      "deduction": number,
      "total": number,
      "remarks": "Notes on source file or discrepancies (e.g. 'S-01 prioritized')",
      "confidence": {{ "overall": 0.95, "count_accuracy": 0.95, "dimension_extraction": 0.95 }},
      "calculation_breakdown": "Formula string",
      "source_file": "Sheet Name"
    }}
  ]
}}"""


def build_module_prompt(
    module: AnalysisModule,
    start_id: int,
    requirements: Sequence[str] = GLOBAL_REQUIREMENTS,
) -> str:
    """
    Build the request text for one module.

    Args:
        module: Target phase; all other categories are excluded
        start_id: First item id the model should use for this phase
        requirements: Global formatting/traceability rules

    Returns:
        Prompt text
    """
    rules = list(requirements)
    rules.insert(1, f"**Start Item IDs** at: {start_id}.")
    numbered = "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, 1))

    return MODULE_PROMPT.format(
        title=module.title,
        localized_title=module.localized_title,
        instructions=module.instructions,
        requirements=numbered,
    )
