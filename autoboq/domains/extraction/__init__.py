"""
Extraction Domain - Phased BOQ extraction from drawing files.

This domain handles:
- Encoding source drawings as inline artifacts
- The ordered module catalog
- Per-module prompt rendering
- Retry/backoff policy and cancellation
- Sequential orchestration with id re-basing
"""

from .cancellation import CancellationToken
from .catalog import MODULES, get_module, validate_catalog
from .contracts import CompletionCallback, GenerativeClient, LogCallback, Orchestrator
from .encoder import encode_artifact, encode_sources
from .models import (
    AnalysisModule,
    ModuleOutcome,
    ModuleResponse,
    ModuleStatus,
    RunSummary,
    SourceFile,
)
from .orchestrator import ExtractionOrchestrator
from .parsing import parse_module_response, rebase_items, strip_code_fences
from .prompts import GLOBAL_REQUIREMENTS, build_module_prompt
from .retry import FailureKind, RetryPolicy

__all__ = [
    # Contracts
    "GenerativeClient",
    "Orchestrator",
    "LogCallback",
    "CompletionCallback",
    # Models
    "AnalysisModule",
    "ModuleStatus",
    "ModuleOutcome",
    "ModuleResponse",
    "RunSummary",
    "SourceFile",
    # Catalog
    "MODULES",
    "get_module",
    "validate_catalog",
    # Implementations
    "encode_artifact",
    "encode_sources",
    "build_module_prompt",
    "GLOBAL_REQUIREMENTS",
    "strip_code_fences",
    "parse_module_response",
    "rebase_items",
    "FailureKind",
    "RetryPolicy",
    "CancellationToken",
    "ExtractionOrchestrator",
]
