"""
Simulated Gemini - Offline stand-in used when no API key is configured.

Serves a fixed sample dataset through the same generate() contract as
GeminiClient, so the orchestrator runs its normal loop and callers see the
same event shape.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .models import GeminiResponse, GenerationRequest

logger = logging.getLogger(__name__)

__all__ = ["SAMPLE_BOQ_DATA", "SimulatedGeminiClient", "SimulatedChat"]

SAMPLE_BOQ_DATA: list[dict[str, Any]] = [
    {
        "id": 1,
        "category": "الأعمال التحضيرية",
        "description": "سياج مؤقت (Chain Link Fencing)",
        "unit": "m.l",
        "count": 1,
        "dimensions": {"l": 120, "w": 0, "h": 0},
        "deduction": 0,
        "total": 120,
        "remarks": "Perimeter calculation from PLOT LIMIT on A010.",
        "confidence": {"overall": 0.98, "count_accuracy": 1.0, "dimension_extraction": 0.96},
        "calculation_breakdown": "Perimeter = (30m x 2) + (30m x 2)",
        "source_file": "A-01 Site Plan.pdf",
    },
    {
        "id": 2,
        "category": "أعمال الحفر والخرسانة أسفل الأرض",
        "description": "حفر الموقع حتى منسوب -2.50م",
        "unit": "m³",
        "count": 1,
        "dimensions": {"l": 0, "w": 0, "h": 0},
        "deduction": 0,
        "total": 1450,
        "remarks": "Includes 1.0m working space offset around footings.",
        "confidence": {"overall": 0.88, "count_accuracy": 1.0, "dimension_extraction": 0.88},
        "calculation_breakdown": "Area(580m2) * Depth(2.5m)",
        "source_file": "S-01 Excavation.pdf",
    },
    {
        "id": 3,
        "category": "أعمال الحفر والخرسانة أسفل الأرض",
        "description": "أعمال نزح المياه (Dewatering)",
        "unit": "Item",
        "count": 1,
        "dimensions": {"l": 0, "w": 0, "h": 0},
        "deduction": 0,
        "total": 1,
        "remarks": "Required as Excavation depth > 1.5m and Water Table noted at -1.2m",
        "confidence": {"overall": 0.95, "count_accuracy": 1.0, "dimension_extraction": 0.95},
        "calculation_breakdown": "Lump Sum based on Section A-A",
        "source_file": "Geotechnical Report",
    },
    {
        "id": 4,
        "category": "أعمال الخرسانة فوق الأرض",
        "description": "بلاطة خرسانية مصمتة (Solid Slab S=150mm)",
        "unit": "m³",
        "count": 1,
        "dimensions": {"l": 20, "w": 15, "h": 0.15},
        "deduction": 4.5,
        "total": 40.5,
        "remarks": "Deducted Staircase void (3x1.5m).",
        "confidence": {"overall": 0.92, "count_accuracy": 1.0, "dimension_extraction": 0.92},
        "calculation_breakdown": "(20*15*0.15) - Void(3*1.5*0.15)",
        "source_file": "S-10 First Floor Slab.pdf",
    },
    {
        "id": 5,
        "category": "أعمال الطابوق",
        "description": "جدران بلوك خارجي معزول سماكة 20 سم",
        "unit": "m²",
        "count": 1,
        "dimensions": {"l": 150, "w": 1, "h": 3.5},
        "deduction": 45,
        "total": 480,
        "remarks": "Deducted 12 Windows (1.5x2.0) and 2 Doors.",
        "confidence": {"overall": 0.75, "count_accuracy": 0.9, "dimension_extraction": 0.70},
        "calculation_breakdown": "Gross(150*3.5) - Openings(45)",
        "source_file": "A-05 Floor Plan.pdf",
    },
    {
        "id": 6,
        "category": "أعمال الطابوق",
        "description": "أعمدة تقوية رأسية (Stiffener Columns)",
        "unit": "m³",
        "count": 8,
        "dimensions": {"l": 0.2, "w": 0.2, "h": 3.5},
        "deduction": 0,
        "total": 1.12,
        "remarks": "Added for wall spans > 4.0m.",
        "confidence": {"overall": 0.60, "count_accuracy": 0.6, "dimension_extraction": 0.9},
        "calculation_breakdown": "8 No * (0.2*0.2*3.5)",
        "source_file": "S-General Notes.pdf",
    },
]

Sleep = Callable[[float], Awaitable[None]]


class SimulatedGeminiClient:
    """
    Deterministic offline client.

    Requests are matched to sample items through the ``category`` entry
    of the request metadata.
    """

    def __init__(
        self,
        delay_seconds: float = 1.5,
        dataset: list[dict[str, Any]] | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.delay_seconds = delay_seconds
        self._dataset = SAMPLE_BOQ_DATA if dataset is None else dataset
        self._sleep = sleep

    async def generate(self, request: GenerationRequest) -> GeminiResponse:
        await self._sleep(self.delay_seconds)
        category = request.metadata.get("category")
        items = [dict(item) for item in self._dataset if item["category"] == category]
        logger.debug("Simulated generation: category=%s items=%d", category, len(items))
        return GeminiResponse(
            text=json.dumps({"items": items}, ensure_ascii=False),
            model=request.model,
        )

    def start_chat(self, model: str, system_instruction: str | None = None) -> "SimulatedChat":
        return SimulatedChat(model)


class SimulatedChat:
    """Offline chat that acknowledges requests without proposing changes."""

    def __init__(self, model: str) -> None:
        self.model = model

    async def send(self, message: str) -> GeminiResponse:
        reply = {"response": "وضع المحاكاة: لا يمكن تعديل الجدول بدون اتصال بالنموذج."}
        return GeminiResponse(text=json.dumps(reply, ensure_ascii=False), model=self.model)
