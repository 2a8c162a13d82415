"""
Extraction Routes - Phased BOQ extraction endpoints.

The run endpoint streams newline-delimited JSON events:

    {"event": "log", "kind": "process", "message": "...", "timestamp": "..."}
    {"event": "module_complete", "module_id": 1, "items": [...]}
    {"event": "summary", ...}        # or {"event": "failed", "error": {...}}
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from autoboq.config import AutoBOQError, ErrorCode
from autoboq.domains.boq import BOQItem, LogEntry
from autoboq.domains.extraction import (
    MODULES,
    CancellationToken,
    ExtractionOrchestrator,
    SourceFile,
)

from ..deps import get_orchestrator, get_run_lock

logger = logging.getLogger(__name__)

router = APIRouter()

INTERNAL_ERROR = {
    "code": ErrorCode.INTERNAL_ERROR.value,
    "message": "Internal server error",
    "details": {},
}


class ModuleInfo(BaseModel):
    """Catalog entry as exposed by the API."""

    id: int
    title: str
    localized_title: str


@router.get("/modules", response_model=list[ModuleInfo])
async def list_modules() -> list[ModuleInfo]:
    """List extraction phases in execution order."""
    return [
        ModuleInfo(id=m.id, title=m.title, localized_title=m.localized_title)
        for m in MODULES
    ]


def _line(payload: dict[str, Any]) -> bytes:
    return (json.dumps(payload, ensure_ascii=False) + "\n").encode("utf-8")


@router.post("/run")
async def run_extraction(
    files: list[UploadFile] = File(...),
    model: str | None = Form(None),
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
    run_lock: asyncio.Lock = Depends(get_run_lock),
) -> StreamingResponse:
    """
    Upload drawings and stream the extraction protocol.

    Every module yields exactly one ``module_complete`` event, in order.
    """
    if not files:
        raise HTTPException(status_code=400, detail="At least one file is required")
    if run_lock.locked():
        raise HTTPException(status_code=409, detail="An extraction run is already in progress")

    # Held from here until the stream ends; acquire does not yield on a free lock.
    await run_lock.acquire()
    try:
        sources = [
            SourceFile(
                name=upload.filename,
                media_type=upload.content_type or "application/pdf",
                content=await upload.read(),
            )
            for upload in files
        ]
    except Exception:
        run_lock.release()
        raise

    async def events() -> AsyncIterator[bytes]:
        queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        token = CancellationToken()

        def on_log(entry: LogEntry) -> None:
            queue.put_nowait({"event": "log", **entry.model_dump(mode="json")})

        def on_module_complete(module_id: int, items: list[BOQItem]) -> None:
            queue.put_nowait(
                {
                    "event": "module_complete",
                    "module_id": module_id,
                    "items": [item.to_record() for item in items],
                }
            )

        async def drive() -> None:
            try:
                summary = await orchestrator.run(
                    sources, on_log, on_module_complete, model=model, cancel_token=token
                )
                queue.put_nowait({"event": "summary", **summary.model_dump(mode="json")})
            except AutoBOQError as e:
                queue.put_nowait({"event": "failed", "error": e.to_dict()})
            except Exception:
                logger.exception("Extraction run crashed")
                queue.put_nowait({"event": "failed", "error": INTERNAL_ERROR})
            finally:
                queue.put_nowait(None)

        task = asyncio.create_task(drive())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield _line(event)
            await task
        finally:
            if not task.done():
                logger.info("Client disconnected, cancelling extraction run")
                token.cancel()
                await asyncio.gather(task, return_exceptions=True)
            run_lock.release()

    return StreamingResponse(events(), media_type="application/x-ndjson")
