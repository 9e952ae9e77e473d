"""Form validation and mapping coverage, computed without filling anything."""

from __future__ import annotations

import math

from .document import PdfBytes, PdfLoadFailure, open_pdf, scan_fields
from .models import CoverageReport, FillMapping, FormValidation, SignatureKind
from .parser import classify_field
from .utils import get_logger

logger = get_logger(__name__)


def _percent(covered: int, total: int) -> int:
    if total <= 0:
        return 100
    # half rounds up, unlike round()
    return int(math.floor(covered / total * 100 + 0.5))


def validate_pdf_has_form(pdf_bytes: PdfBytes) -> FormValidation:
    """Report whether a PDF carries fillable fields. Never raises."""

    try:
        doc = open_pdf(pdf_bytes)
    except PdfLoadFailure as exc:
        return FormValidation(has_form=False, field_count=0, error=str(exc) or "Failed to load PDF")
    try:
        field_count = len(scan_fields(doc))
    except Exception as exc:
        logger.warning("Failed to enumerate form fields: %s", exc)
        return FormValidation(has_form=False, field_count=0, error=str(exc) or "Failed to load PDF")
    finally:
        doc.close()
    return FormValidation(has_form=field_count > 0, field_count=field_count)


def get_mapping_coverage(pdf_bytes: PdfBytes, mapping: FillMapping) -> CoverageReport:
    """Summarise how many fillable fields a mapping provides a value for.

    Signature fields are listed separately and excluded from ``total``. A
    field counts as covered when its name is a key of ``mapping``. Returns an
    all-zero report when the document cannot be read.
    """

    try:
        doc = open_pdf(pdf_bytes)
    except PdfLoadFailure as exc:
        logger.warning("Failed to compute mapping coverage: %s", exc)
        return CoverageReport()

    report = CoverageReport()
    try:
        for field in scan_fields(doc):
            if isinstance(classify_field(field), SignatureKind):
                report.signatures.append(field.name)
                continue
            report.total += 1
            if field.name in mapping:
                report.covered += 1
            else:
                report.missing.append(field.name)
    except Exception as exc:
        logger.warning("Failed to compute mapping coverage: %s", exc)
        return CoverageReport()
    finally:
        doc.close()

    report.coverage_percent = _percent(report.covered, report.total)
    return report


__all__ = ["validate_pdf_has_form", "get_mapping_coverage"]
