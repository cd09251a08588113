"""
Validate-then-export: only Applications that pass validation are encoded;
the rest are reported with their reasons.
"""

import logging
from dataclasses import dataclass

from aces_core.data.reference_store import ReferenceDataStore
from aces_core.schemas.application import Application
from aces_core.schemas.document import ExportOptions
from aces_core.services.document_encoder import EncodeResult, encode_document
from aces_core.services.validator import BatchReport, validate_batch

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    document: EncodeResult | None
    report: BatchReport


def export_applications(
    store: ReferenceDataStore,
    applications: list[Application],
    options: ExportOptions,
) -> ExportResult:
    """Encode the valid subset of applications; document is None when nothing is valid."""
    report = validate_batch(store, applications)
    if report.invalid:
        logger.warning(f"{len(report.invalid)} of {report.total} applications excluded from export")
    if not report.valid:
        return ExportResult(document=None, report=report)
    return ExportResult(document=encode_document(report.valid, options, store), report=report)
