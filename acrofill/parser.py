"""AcroForm field extraction and classification."""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import fitz

from . import config
from .document import FieldWidgets, PdfBytes, PdfLoadFailure, open_pdf, scan_fields
from .models import (
    CheckboxKind,
    DropdownKind,
    FieldKind,
    FieldPosition,
    FieldType,
    FormField,
    FormFieldSummary,
    RadioKind,
    SignatureKind,
    TextKind,
)
from .utils import get_logger, unique_in_order

logger = get_logger(__name__)

# Widget archetypes; several PDF constructs collapse onto one FieldKind later.
TEXT = "text"
CHECKBOX = "checkbox"
COMBOBOX = "combobox"
LISTBOX = "listbox"
RADIOBUTTON = "radiobutton"
SIGNATURE = "signature"
PUSHBUTTON = "button"

_WIDGET_TYPE_MAP_STR = {
    "text": TEXT,
    "checkbox": CHECKBOX,
    "combobox": COMBOBOX,
    "listbox": LISTBOX,
    "radiobutton": RADIOBUTTON,
    "signature": SIGNATURE,
    "button": PUSHBUTTON,
}
_WIDGET_TYPE_MAP_INT: Dict[int, str] = {}
_WIDGET_INT_PAIRS = {
    "PDF_WIDGET_TYPE_TEXT": TEXT,
    "PDF_WIDGET_TYPE_CHECKBOX": CHECKBOX,
    "PDF_WIDGET_TYPE_COMBOBOX": COMBOBOX,
    "PDF_WIDGET_TYPE_LISTBOX": LISTBOX,
    "PDF_WIDGET_TYPE_RADIOBUTTON": RADIOBUTTON,
    "PDF_WIDGET_TYPE_SIGNATURE": SIGNATURE,
    "PDF_WIDGET_TYPE_BUTTON": PUSHBUTTON,
}
for attr_name, archetype in _WIDGET_INT_PAIRS.items():
    value = getattr(fitz, attr_name, None)
    if isinstance(value, int):
        _WIDGET_TYPE_MAP_INT[value] = archetype


def widget_archetype(widget: fitz.Widget) -> Optional[str]:
    """Return the archetype of a widget, or None when it is not recognised."""

    widget_type = getattr(widget, "field_type", None)
    if isinstance(widget_type, int) and widget_type in _WIDGET_TYPE_MAP_INT:
        return _WIDGET_TYPE_MAP_INT[widget_type]
    type_string = getattr(widget, "field_type_string", None)
    if isinstance(type_string, str):
        return _WIDGET_TYPE_MAP_STR.get(type_string.strip().lower())
    return None


def widget_type_label(widget: fitz.Widget) -> str:
    type_string = getattr(widget, "field_type_string", None)
    if isinstance(type_string, str) and type_string:
        return type_string
    return str(getattr(widget, "field_type", "unknown"))


def field_flags(widget: fitz.Widget) -> int:
    return int(getattr(widget, "field_flags", 0) or 0)


def _flag_set(widget: fitz.Widget, flag: int) -> bool:
    try:
        return bool(field_flags(widget) & flag)
    except Exception as exc:
        logger.debug("Could not read flags of '%s': %s", getattr(widget, "field_name", "?"), exc)
        return False


def _choice_options(widget: fitz.Widget) -> Tuple[str, ...]:
    try:
        raw = getattr(widget, "choice_values", None) or []
        options: List[str] = []
        for item in raw:
            # /Opt entries may be [export value, display text] pairs
            if isinstance(item, (list, tuple)):
                if not item:
                    continue
                item = item[1] if len(item) > 1 else item[0]
            options.append(str(item))
        return tuple(options)
    except Exception as exc:
        logger.debug("Could not read options of '%s': %s", getattr(widget, "field_name", "?"), exc)
        return ()


def button_on_state(widget: fitz.Widget) -> Optional[str]:
    state = widget.on_state()
    if not isinstance(state, str):
        return None
    state = state.lstrip("/")
    if state.lower() in config.OFF_STATES:
        return None
    return state


def _radio_options(widgets: Sequence[fitz.Widget]) -> Tuple[str, ...]:
    try:
        states = (button_on_state(widget) for widget in widgets)
        return tuple(unique_in_order(state for state in states if state))
    except Exception as exc:
        logger.debug("Could not read radio states: %s", exc)
        return ()


_DICTIONARY_TYPES = {
    "Tx": TEXT,
    "Ch": COMBOBOX,
    "Sig": SIGNATURE,
}


def _dictionary_archetype(field: FieldWidgets) -> Optional[str]:
    """Archetype of a field without widgets, read from its /FT and /Ff."""

    if field.field_type == "Btn":
        if field.flags & config.PUSHBUTTON_FLAG:
            return PUSHBUTTON
        if field.flags & config.RADIO_FLAG:
            return RADIOBUTTON
        return CHECKBOX
    return _DICTIONARY_TYPES.get(field.field_type or "")


def field_archetype(field: FieldWidgets) -> Optional[str]:
    if field.has_widgets:
        return widget_archetype(field.first)
    return _dictionary_archetype(field)


def field_type_label(field: FieldWidgets) -> str:
    if field.has_widgets:
        return widget_type_label(field.first)
    return field.field_type or "unknown"


def _field_flag_set(field: FieldWidgets, flag: int) -> bool:
    if field.has_widgets:
        return _flag_set(field.first, flag)
    return bool(field.flags & flag)


def classify_field(field: FieldWidgets) -> FieldKind:
    """Resolve the FieldKind of a field from its first widget.

    Fields without widgets are classified from their own dictionary.
    """

    archetype = field_archetype(field)
    if archetype == TEXT:
        return TextKind(multiline=_field_flag_set(field, config.MULTILINE_FLAG))
    if archetype == CHECKBOX:
        return CheckboxKind()
    if archetype in (COMBOBOX, LISTBOX):
        return DropdownKind(
            options=_choice_options(field.first) if field.has_widgets else field.options,
            editable=_field_flag_set(field, config.COMBO_EDIT_FLAG),
        )
    if archetype == RADIOBUTTON:
        return RadioKind(options=_radio_options(field.widgets))
    if archetype == SIGNATURE:
        return SignatureKind()
    logger.debug("Field '%s' has unsupported widget type %s; treating as text", field.name, field_type_label(field))
    return TextKind(multiline=False)


def is_button_on(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lstrip("/").lower() not in config.OFF_STATES
    return False


def _default_value(field: FieldWidgets, kind: FieldKind) -> Optional[str]:
    try:
        value = field.first.field_value if field.has_widgets else field.value
        if isinstance(kind, TextKind):
            return value if isinstance(value, str) and value else None
        if isinstance(kind, CheckboxKind):
            return "true" if is_button_on(value) else "false"
        if isinstance(kind, DropdownKind):
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            return str(value) if value else None
        if isinstance(kind, (RadioKind, SignatureKind)):
            return None
    except Exception as exc:
        logger.debug("Could not read value of '%s': %s", field.name, exc)
    return None


def _position(field: FieldWidgets) -> Optional[FieldPosition]:
    if not field.has_widgets:
        return None
    try:
        page = field.first_page
        # widget rectangles are top-left based; report PDF user space instead
        rect = fitz.Rect(field.first.rect) * ~page.transformation_matrix
        return FieldPosition(page=page.number + 1, x=float(rect.x0), y=float(rect.y0))
    except Exception as exc:
        logger.debug("Could not read position of '%s': %s", field.name, exc)
        return None


def build_form_field(field: FieldWidgets) -> FormField:
    kind = classify_field(field)
    return FormField(
        name=field.name,
        kind=kind,
        position=_position(field),
        required=_field_flag_set(field, config.REQUIRED_FLAG),
        default_value=_default_value(field, kind),
    )


def extract_form_fields(pdf_bytes: PdfBytes) -> List[FormField]:
    """Extract the interactive fields of a PDF.

    Parameters
    ----------
    pdf_bytes:
        Raw PDF content. Encrypted documents are opened without applying
        their permission restrictions.

    Returns
    -------
    list[FormField]
        Fields in document order. Empty when the document has no form or
        cannot be parsed at all; this function never raises for bad input.
    """

    try:
        doc = open_pdf(pdf_bytes)
    except PdfLoadFailure as exc:
        logger.warning("Failed to extract form fields from PDF: %s", exc)
        return []

    try:
        fields = [build_form_field(field) for field in scan_fields(doc)]
    except Exception as exc:
        logger.warning("Failed to extract form fields from PDF: %s", exc)
        return []
    finally:
        doc.close()

    logger.info("Extracted %d form fields", len(fields))
    return fields


def get_form_field_summary(fields: Iterable[FormField]) -> FormFieldSummary:
    fields_list = list(fields)
    counts = Counter(field.type for field in fields_list)
    return FormFieldSummary(
        total=len(fields_list),
        by_type={field_type: counts.get(field_type, 0) for field_type in FieldType},
        required_count=sum(1 for field in fields_list if field.required),
        has_signature_fields=counts.get(FieldType.SIGNATURE, 0) > 0,
    )


__all__ = [
    "extract_form_fields",
    "get_form_field_summary",
    "classify_field",
    "build_form_field",
    "widget_archetype",
    "widget_type_label",
    "field_archetype",
    "field_type_label",
    "button_on_state",
    "is_button_on",
]
