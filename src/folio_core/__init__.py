"""Core package for folio: allocation engine, projection calculator and state document."""

from folio_core.allocation import AllocationEngine, require
from folio_core.document import dump_document, load_document
from folio_core.exceptions import ErrorCode, FolioError
from folio_core.projection import project, project_portfolio

__all__ = [
    "AllocationEngine",
    "ErrorCode",
    "FolioError",
    "dump_document",
    "load_document",
    "project",
    "project_portfolio",
    "require",
]
