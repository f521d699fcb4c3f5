"""
Import services: record mapping, single-tournament import, batch drivers.
"""

from aegis.services.batch import BatchSummary, run_batch
from aegis.services.importer import ImportOptions, ImportOrchestrator, ImportResult

__all__ = [
    "BatchSummary",
    "ImportOptions",
    "ImportOrchestrator",
    "ImportResult",
    "run_batch",
]
