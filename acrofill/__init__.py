"""acrofill package.

PDF AcroForm field extraction, autofill and coverage reporting.
"""

from .coverage import get_mapping_coverage, validate_pdf_has_form
from .document import AcroFillError, PdfLoadFailure
from .filler import fill_pdf_form, match_option
from .models import (
	CheckboxKind,
	Confidence,
	CoverageReport,
	DropdownKind,
	FieldKind,
	FieldMatchResult,
	FieldOutcome,
	FieldPosition,
	FieldType,
	FillMapping,
	FillOptions,
	FillResult,
	FillStatus,
	FormField,
	FormFieldSummary,
	FormValidation,
	RadioKind,
	SignatureKind,
	TextKind,
)
from .parser import extract_form_fields, get_form_field_summary

__all__ = [
	"extract_form_fields",
	"get_form_field_summary",
	"fill_pdf_form",
	"match_option",
	"validate_pdf_has_form",
	"get_mapping_coverage",
	"AcroFillError",
	"PdfLoadFailure",
	"FieldType",
	"FieldKind",
	"TextKind",
	"CheckboxKind",
	"DropdownKind",
	"RadioKind",
	"SignatureKind",
	"FieldPosition",
	"FormField",
	"FormFieldSummary",
	"Confidence",
	"FieldMatchResult",
	"FillMapping",
	"FillOptions",
	"FillStatus",
	"FieldOutcome",
	"FillResult",
	"CoverageReport",
	"FormValidation",
]
