"""Write caller-supplied values back into a PDF's AcroForm fields."""

from __future__ import annotations

from collections import namedtuple
from typing import Dict, List, Optional, Sequence

import fitz

from . import config
from .document import FieldWidgets, PdfBytes, PdfLoadFailure, open_pdf, scan_fields
from .models import (
    CheckboxKind,
    DropdownKind,
    FieldOutcome,
    FillMapping,
    FillOptions,
    FillResult,
    FillStatus,
    RadioKind,
    SignatureKind,
    TextKind,
    resolve_mapping_value,
)
from .parser import TEXT, button_on_state, classify_field, widget_archetype, widget_type_label
from .utils import format_options, get_logger

logger = get_logger(__name__)

EXACT = "exact"
CASE_INSENSITIVE = "case_insensitive"
PARTIAL = "partial"

OptionMatch = namedtuple("OptionMatch", ["option", "tier"])


def match_option(options: Sequence[str], value: str, *, partial: bool = False) -> Optional[OptionMatch]:
    """Find the option a value refers to.

    Tiers are tried in order: exact, case-insensitive, then (when ``partial``
    is set) substring containment in either direction. Every string contains
    the empty string, so a blank value partially matches the first option and
    a blank option partially matches any value.
    """

    if value in options:
        return OptionMatch(value, EXACT)
    lower_value = value.lower()
    for option in options:
        if option.lower() == lower_value:
            return OptionMatch(option, CASE_INSENSITIVE)
    if partial:
        for option in options:
            lower_option = option.lower()
            if lower_value in lower_option or lower_option in lower_value:
                return OptionMatch(option, PARTIAL)
    return None


def normalize_mapping(mapping: FillMapping) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for name, entry in mapping.items():
        value = resolve_mapping_value(entry)
        if value is not None:
            values[name] = value
    return values


def _fill_text(field: FieldWidgets, kind: TextKind, value: str, options: FillOptions) -> FieldOutcome:
    widget = field.first
    if widget_archetype(widget) != TEXT:
        return FieldOutcome(
            field.name,
            FillStatus.SKIPPED,
            warnings=[f'Unknown field type "{widget_type_label(widget)}" for field "{field.name}"'],
        )
    if options.skip_existing_values:
        existing = widget.field_value
        if isinstance(existing, str) and existing.strip():
            logger.debug("Field '%s' already holds a value; leaving it", field.name)
            return FieldOutcome(
                field.name,
                FillStatus.SKIPPED,
                warnings=[f'Skipping field "{field.name}" - has existing value'],
            )

    text = value if kind.multiline else value.replace("\n", " ").strip()
    for widget in field.widgets:
        widget.field_value = text
        widget.update()
    logger.debug("Set text field '%s' to '%s'", field.name, text)
    return FieldOutcome(field.name, FillStatus.FILLED, modified=True)


def _fill_checkbox(field: FieldWidgets, value: str) -> FieldOutcome:
    checked = value.strip().lower() in config.CHECKED_VALUES
    for widget in field.widgets:
        widget.field_value = checked
        widget.update()
    logger.debug("Set checkbox '%s' checked=%s", field.name, checked)
    return FieldOutcome(field.name, FillStatus.FILLED, modified=True)


def _set_choice(field: FieldWidgets, choice: str) -> None:
    for widget in field.widgets:
        widget.field_value = choice
        widget.update()


def _fill_dropdown(field: FieldWidgets, kind: DropdownKind, value: str) -> FieldOutcome:
    match = match_option(kind.options, value, partial=True)
    if match is not None:
        _set_choice(field, match.option)
        warnings: List[str] = []
        if match.tier == PARTIAL:
            warnings.append(f'Field "{field.name}": Partial match - using "{match.option}" for "{value}"')
        logger.debug("Selected '%s' in '%s' (%s match)", match.option, field.name, match.tier)
        return FieldOutcome(field.name, FillStatus.FILLED, modified=True, warnings=warnings)

    if kind.editable:
        _set_choice(field, value)
        return FieldOutcome(
            field.name,
            FillStatus.FILLED,
            modified=True,
            warnings=[f'Field "{field.name}": Value "{value}" not in options, but field is editable'],
        )

    # Counted as filled for compatibility; ``modified`` tells callers nothing changed.
    return FieldOutcome(
        field.name,
        FillStatus.FILLED,
        warnings=[f'Field "{field.name}": Value "{value}" not in options: {format_options(kind.options)}'],
    )


def _select_radio(field: FieldWidgets, option: str) -> None:
    chosen: List[fitz.Widget] = []
    for widget in field.widgets:
        if button_on_state(widget) == option:
            chosen.append(widget)
            continue
        widget.field_value = False
        widget.update()
    # switch the selection on last so the group value ends up on it
    for widget in chosen:
        widget.field_value = True
        widget.update()


def _fill_radio(field: FieldWidgets, kind: RadioKind, value: str) -> FieldOutcome:
    match = match_option(kind.options, value)
    if match is None:
        return FieldOutcome(
            field.name,
            FillStatus.FILLED,
            warnings=[f'Radio group "{field.name}": Value "{value}" not in options: {format_options(kind.options)}'],
        )
    _select_radio(field, match.option)
    logger.debug("Selected radio option '%s' in '%s'", match.option, field.name)
    return FieldOutcome(field.name, FillStatus.FILLED, modified=True)


def fill_field(field: FieldWidgets, values: Dict[str, str], options: FillOptions) -> FieldOutcome:
    """Apply the mapped value to one field and report what happened.

    Never raises: failures while writing become a warning and a skipped
    outcome.
    """

    kind = classify_field(field)
    if isinstance(kind, SignatureKind):
        return FieldOutcome(field.name, FillStatus.SIGNATURE)

    value = values.get(field.name)
    if value is None:
        logger.debug("No value for field '%s'; skipping", field.name)
        return FieldOutcome(field.name, FillStatus.SKIPPED)
    if not field.has_widgets:
        return FieldOutcome(
            field.name,
            FillStatus.SKIPPED,
            warnings=[f'Field "{field.name}" has no widget - value not written'],
        )

    try:
        if isinstance(kind, TextKind):
            return _fill_text(field, kind, value, options)
        if isinstance(kind, CheckboxKind):
            return _fill_checkbox(field, value)
        if isinstance(kind, DropdownKind):
            return _fill_dropdown(field, kind, value)
        if isinstance(kind, RadioKind):
            return _fill_radio(field, kind, value)
        raise TypeError(f"unhandled field kind {kind!r}")
    except Exception as exc:
        logger.debug("Widget update failed for '%s': %s", field.name, exc)
        return FieldOutcome(
            field.name,
            FillStatus.SKIPPED,
            warnings=[f'Failed to fill field "{field.name}": {exc}'],
        )


def fill_pdf_form(
    pdf_bytes: PdfBytes,
    mapping: FillMapping,
    options: Optional[FillOptions] = None,
) -> FillResult:
    """Fill a PDF form with the provided values.

    Parameters
    ----------
    pdf_bytes:
        The original PDF.
    mapping:
        Field name to value, either a plain string or a match record whose
        ``value`` is used. Names that are not fields are ignored.
    options:
        ``flatten`` bakes the fields into page content after filling;
        ``skip_existing_values`` leaves text fields that already hold text.

    Returns
    -------
    FillResult
        The new PDF together with per-field outcomes and warnings.

    Raises
    ------
    PdfLoadFailure
        When the document cannot be opened or written at all.
    """

    options = options or FillOptions()
    values = normalize_mapping(mapping)

    try:
        doc = open_pdf(pdf_bytes)
    except PdfLoadFailure as exc:
        raise PdfLoadFailure(f"Failed to process PDF: {exc}") from exc

    try:
        fields = scan_fields(doc)
        logger.info("Starting fill for %d form fields", len(fields))
        outcomes = [fill_field(field, values, options) for field in fields]
        # drop widget references before the document is rewritten
        del fields
        if options.flatten:
            doc.bake(annots=False, widgets=True)
            # fields without widgets would otherwise survive in the field tree
            doc.xref_set_key(doc.pdf_catalog(), "AcroForm", "null")
            logger.debug("Flattened form fields into page content")
        pdf = doc.tobytes(**config.SAVE_OPTIONS)
    except Exception as exc:
        raise PdfLoadFailure(f"Failed to process PDF: {exc}") from exc
    finally:
        doc.close()

    result = FillResult.from_outcomes(pdf, outcomes)
    logger.info(
        "Filled %d fields, skipped %d fields, %d signature fields, %d warnings",
        len(result.filled_fields),
        len(result.skipped_fields),
        len(result.signature_fields),
        len(result.warnings),
    )
    return result


__all__ = ["fill_pdf_form", "fill_field", "match_option", "normalize_mapping", "OptionMatch"]
