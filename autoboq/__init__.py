"""
AutoBOQ - Bill of Quantities extraction from engineering drawings.

Example:
    >>> from autoboq.domains.extraction import ExtractionOrchestrator
    >>> orchestrator = ExtractionOrchestrator(client)
    >>> summary = await orchestrator.run(artifacts, on_log, on_module_complete)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
