"""
Module Catalog - The fixed, ordered extraction phases.
"""

from __future__ import annotations

from collections.abc import Sequence

from autoboq.config.errors import ExtractionError

from .models import AnalysisModule

__all__ = ["MODULES", "get_module", "validate_catalog"]

MODULES: tuple[AnalysisModule, ...] = (
    AnalysisModule(
        id=1,
        title="Preliminary Works",
        localized_title="الأعمال التحضيرية",
        instructions="""PHASE: PRELIMINARY WORKS (The Setup)
1. **Site Fencing**: Search for "Site Plan". Find "PLOT LIMIT" or Boundary Line. Calculate Perimeter. Unit: m.l.
2. **Mobilization**: Search "General Notes" for "Site Office". Unit: LS (Lump Sum).
3. **Utilities**: Look for "Temporary Electricity/Water" notes.""",
    ),
    AnalysisModule(
        id=2,
        title="Substructure",
        localized_title="أعمال الحفر والخرسانة أسفل الأرض",
        instructions="""PHASE: EARTHWORKS & SUBSTRUCTURE (The Underground)
1. **Footings**: Cross-reference "Foundation Layout" with "Foundation Schedule".
2. **PCC/Blinding**: Detect thickness (usually 10cm). Formula: (L+0.2)*(W+0.2)*Thickness.
3. **Excavation**: (Footing Area + 1.0m offset) * (Depth from Ground to Bottom of PCC).
4. **Neck Columns**: Height = Top of Footing to Ground Beam.""",
    ),
    AnalysisModule(
        id=3,
        title="Superstructure",
        localized_title="أعمال الخرسانة فوق الأرض",
        instructions="""PHASE: SUPERSTRUCTURE (The Skeleton)
1. **The Truth Rule (CRITICAL)**: If dimensions differ between Arch (A) and Struct (S), prioritize STRUCTURAL for concrete.
2. **Slabs**: Search "Slab Layout". Identify labels (S=150, T=200). Area * Thickness.
3. **Beam Deduction**: If Beam Depth (60cm) > Slab (20cm), only calculate the "Drop" (40cm).
4. **Columns**: Scan "Column Schedule" and count on plan.""",
    ),
    AnalysisModule(
        id=4,
        title="Masonry Works",
        localized_title="أعمال الطابوق",
        instructions="""PHASE: MASONRY & OPENINGS (The Shell)
1. **Wall Trace**: Trace wall lines. Distinguish 20cm (Ext) vs 10cm (Int).
2. **Deductions**: Search tags (W1, D1). Go to Door Schedule. Deduct (W*H) from Wall Area.
3. **Lintels**: For every opening, add Lintel Concrete (Width + 0.4m).""",
    ),
    AnalysisModule(
        id=5,
        title="Waterproofing",
        localized_title="أعمال العزل",
        instructions="""PHASE: WATERPROOFING
1. **Roof**: Calculate Roof Area (Flat). Add skirting (upturn 30cm).
2. **Wet Areas**: Bathrooms/Kitchens floor area.
3. **Substructure**: Footing surface area for bituminous coating.""",
    ),
    AnalysisModule(
        id=6,
        title="Finishes & Openings",
        localized_title="التشطيبات والفتحات",
        instructions="""PHASE: FINISHES (Vision & Color)
1. **Room Mapping**: Read "Room Name" on Plan -> "Finish Schedule".
2. **Flooring**: Area inside rooms.
3. **Skirting**: Room Perimeter - Door Widths.
4. **Walls**: (Perimeter * Height) - Openings.""",
    ),
)


def get_module(module_id: int, catalog: Sequence[AnalysisModule] = MODULES) -> AnalysisModule | None:
    return next((m for m in catalog if m.id == module_id), None)


def validate_catalog(catalog: Sequence[AnalysisModule]) -> None:
    """
    Check that module ids are strictly ascending.

    Raises:
        ExtractionError: Empty or misordered catalog
    """
    if not catalog:
        raise ExtractionError("Module catalog is empty")
    ids = [m.id for m in catalog]
    if any(b <= a for a, b in zip(ids, ids[1:])):
        raise ExtractionError("Module ids must be strictly ascending", {"ids": ids})
