"""Access to the PyMuPDF document model shared by extraction, filling and coverage."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple, Union

import fitz

from .utils import get_logger, normalize_field_name

logger = get_logger(__name__)

PdfBytes = Union[bytes, bytearray, memoryview]

_REFERENCE = re.compile(r"(\d+)\s+\d+\s+R")
_PDF_STRING = re.compile(r"\(((?:[^()\\]|\\.)*)\)")
_OPTION_PAIR = re.compile(r"\[\s*\(((?:[^()\\]|\\.)*)\)\s*\(((?:[^()\\]|\\.)*)\)\s*\]")

# entries a terminal field inherits from its ancestors
_INHERITED_KEYS = ("FT", "Ff", "V", "Opt")


class AcroFillError(Exception):
    """Base exception for acrofill errors."""
    pass


class PdfLoadFailure(AcroFillError):
    """The PDF could not be opened (or written back) at all."""
    pass


@dataclass
class FieldWidgets:
    """One terminal AcroForm field and its widgets, in document order.

    ``pages[i]`` is the page owning ``widgets[i]``. Widgets only hold a weak
    reference to their page, so the pages are kept alive here for as long as
    the widgets are in use. A field listed in the form's field tree with no
    widget on any page keeps an empty ``widgets`` list; ``field_type``,
    ``flags``, ``value`` and ``options`` then hold what its field dictionary
    declares, inherited entries included.
    """

    name: str
    widgets: List[fitz.Widget] = field(default_factory=list)
    pages: List[fitz.Page] = field(default_factory=list)
    xref: int = 0
    field_type: Optional[str] = None
    flags: int = 0
    value: Optional[str] = None
    options: Tuple[str, ...] = ()

    @property
    def first(self) -> fitz.Widget:
        return self.widgets[0]

    @property
    def first_page(self) -> fitz.Page:
        return self.pages[0]

    @property
    def has_widgets(self) -> bool:
        return bool(self.widgets)


@dataclass
class _FieldNode:
    name: str
    xref: int
    attributes: Dict[str, str]
    widget_xrefs: List[int]


def open_pdf(pdf_bytes: PdfBytes) -> fitz.Document:
    """Open PDF bytes, ignoring encryption restrictions where possible.

    Documents protected only by an owner password are opened with the empty
    user password. Raises :class:`PdfLoadFailure` when the bytes cannot be
    parsed or a user password is required.
    """

    if isinstance(pdf_bytes, (bytearray, memoryview)):
        pdf_bytes = bytes(pdf_bytes)
    if not isinstance(pdf_bytes, bytes):
        raise PdfLoadFailure(f"Expected PDF bytes, got {type(pdf_bytes).__name__}")
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as exc:
        raise PdfLoadFailure(str(exc) or exc.__class__.__name__) from exc
    if doc.needs_pass and not doc.authenticate(""):
        doc.close()
        raise PdfLoadFailure("Document is encrypted and requires a password")
    logger.debug("Opened PDF with %d pages (encrypted=%s)", doc.page_count, bool(doc.is_encrypted))
    return doc


def has_acroform(doc: fitz.Document) -> bool:
    try:
        return bool(doc.is_form_pdf)
    except Exception as exc:
        logger.debug("Could not inspect AcroForm dictionary: %s", exc)
        return False


def _get_key(doc: fitz.Document, xref: int, key: str) -> Optional[str]:
    kind, value = doc.xref_get_key(xref, key)
    if kind == "null":
        return None
    return value


def _references(doc: fitz.Document, xref: int, key: str) -> List[int]:
    """Object numbers listed under ``key``, following one indirect array."""

    kind, value = doc.xref_get_key(xref, key)
    if kind == "xref":
        target = int(value.split()[0])
        text = doc.xref_object(target, compressed=True)
        if not text.lstrip().startswith("["):
            return [target]
        value = text
    elif kind != "array":
        return []
    return [int(number) for number in _REFERENCE.findall(value)]


def _unescape(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text)


def _parse_options(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    body = raw.strip()[1:-1]
    pairs = _OPTION_PAIR.findall(body)
    if pairs:
        # [export value, display text] pairs contribute their display text
        return tuple(_unescape(display) for _export, display in pairs)
    return tuple(_unescape(text) for text in _PDF_STRING.findall(body))


def _walk_field_tree(doc: fitz.Document) -> List[_FieldNode]:
    """Terminal fields of ``/AcroForm /Fields`` in tree order."""

    nodes: List[_FieldNode] = []
    seen: Set[int] = set()

    def visit(xref: int, parent_name: Optional[str], inherited: Dict[str, str]) -> None:
        if xref in seen:
            logger.debug("Field tree revisits object %d; ignoring", xref)
            return
        seen.add(xref)
        partial = _get_key(doc, xref, "T")
        if parent_name and partial:
            name = f"{parent_name}.{partial}"
        else:
            name = partial or parent_name
        attributes = dict(inherited)
        for key in _INHERITED_KEYS:
            value = _get_key(doc, xref, key)
            if value is not None:
                attributes[key] = value

        kids = _references(doc, xref, "Kids")
        field_kids = [kid for kid in kids if _get_key(doc, kid, "T") is not None]
        widget_kids = [kid for kid in kids if kid not in field_kids]
        for kid in field_kids:
            visit(kid, name, attributes)
        if field_kids and not widget_kids:
            return

        name = normalize_field_name(name)
        if name is None:
            logger.debug("Skipping unnamed field object %d", xref)
            return
        if widget_kids:
            widget_xrefs = widget_kids
        elif _get_key(doc, xref, "Subtype") == "/Widget":
            widget_xrefs = [xref]
        else:
            widget_xrefs = []
        nodes.append(_FieldNode(name=name, xref=xref, attributes=attributes, widget_xrefs=widget_xrefs))

    for root in _references(doc, doc.pdf_catalog(), "AcroForm/Fields"):
        visit(root, None, {})
    return nodes


def _page_widgets(doc: fitz.Document) -> List[Tuple[fitz.Widget, fitz.Page]]:
    found: List[Tuple[fitz.Widget, fitz.Page]] = []
    for page_index in range(doc.page_count):
        page = doc[page_index]
        try:
            widgets = list(page.widgets() or [])
        except Exception as exc:
            logger.debug("Failed to read widgets on page %d: %s", page_index + 1, exc)
            continue
        found.extend((widget, page) for widget in widgets)
    return found


def _field_from_node(node: _FieldNode) -> FieldWidgets:
    flags = node.attributes.get("Ff")
    return FieldWidgets(
        name=node.name,
        xref=node.xref,
        field_type=(node.attributes.get("FT") or "").lstrip("/") or None,
        flags=int(flags) if flags and flags.lstrip("-").isdigit() else 0,
        value=node.attributes.get("V"),
        options=_parse_options(node.attributes.get("Opt")),
    )


def scan_fields(doc: fitz.Document) -> List[FieldWidgets]:
    """Collect the document's terminal form fields with their widgets.

    Fields come from the ``/AcroForm /Fields`` tree in tree order, and the
    page widgets are attached to them by object number. A field without
    widgets is still returned. Widgets that the tree does not reach are
    grouped by their field name after the tree's fields, in page order.
    Unnamed fields and widgets are ignored.
    """

    if not has_acroform(doc):
        return []

    by_name: Dict[str, FieldWidgets] = {}
    owner: Dict[int, FieldWidgets] = {}
    try:
        nodes = _walk_field_tree(doc)
    except Exception as exc:
        logger.debug("Could not walk the AcroForm field tree: %s", exc)
        nodes = []
    for node in nodes:
        entry = by_name.get(node.name)
        if entry is None:
            entry = by_name[node.name] = _field_from_node(node)
        for widget_xref in node.widget_xrefs:
            owner[widget_xref] = entry

    for widget, page in _page_widgets(doc):
        entry = owner.get(widget.xref)
        if entry is None:
            name = normalize_field_name(getattr(widget, "field_name", None))
            if name is None:
                logger.debug("Skipping unnamed widget on page %d", page.number + 1)
                continue
            entry = by_name.get(name)
            if entry is None:
                entry = by_name[name] = FieldWidgets(name=name, xref=widget.xref)
        entry.widgets.append(widget)
        entry.pages.append(page)

    widgetless = sum(1 for entry in by_name.values() if not entry.widgets)
    logger.debug("Scanned %d named fields (%d without widgets)", len(by_name), widgetless)
    return list(by_name.values())


__all__ = [
    "AcroFillError",
    "PdfLoadFailure",
    "PdfBytes",
    "FieldWidgets",
    "open_pdf",
    "has_acroform",
    "scan_fields",
]
