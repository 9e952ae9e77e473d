"""Shared fixtures: small AcroForm PDFs written object by object."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import fitz
import pytest

COMBO = 1 << 17
EDIT = 1 << 18
MULTILINE = 1 << 12
REQUIRED = 0x02
RADIO = (1 << 15) | (1 << 14)
PUSHBUTTON = 1 << 16

Rect = Tuple[float, float, float, float]


class FormPdfBuilder:
    """Minimal PDF writer producing AcroForm documents for tests.

    Rectangles are given in PDF user space (origin bottom-left). Widgets
    without an explicit rectangle are stacked down the page.
    """

    def __init__(self, pages: int = 1) -> None:
        self._objects: Dict[int, str] = {}
        self._next = 1
        self.catalog = self._reserve()
        self.page_tree = self._reserve()
        self.font = self._add("<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>")
        self.page_ids = [self._reserve() for _ in range(pages)]
        self.annots: Dict[int, List[int]] = {page_id: [] for page_id in self.page_ids}
        self.fields: List[int] = []
        self._slots: Dict[int, int] = {page_id: 0 for page_id in self.page_ids}

    def _reserve(self) -> int:
        number = self._next
        self._next += 1
        return number

    def _add(self, body: str) -> int:
        number = self._reserve()
        self._objects[number] = body
        return number

    def _appearance(self) -> int:
        return self._add(
            "<< /Type /XObject /Subtype /Form /BBox [0 0 20 20] /Length 0 >>\nstream\n\nendstream"
        )

    def _next_rect(self, page_id: int) -> Rect:
        slot = self._slots[page_id]
        self._slots[page_id] = slot + 1
        top = 740 - slot * 30
        return (50, top - 20, 250, top)

    def _widget(self, page: int, entries: str, rect: Optional[Rect], is_field: bool = True) -> int:
        page_id = self.page_ids[page - 1]
        rect = rect or self._next_rect(page_id)
        body = "<< /Type /Annot /Subtype /Widget /F 4 /P {page} 0 R /Rect [{rect}] {entries} >>".format(
            page=page_id,
            rect=" ".join(str(v) for v in rect),
            entries=entries,
        )
        number = self._add(body)
        self.annots[page_id].append(number)
        if is_field:
            self.fields.append(number)
        return number

    def text(
        self,
        name: str,
        value: Optional[str] = None,
        flags: int = 0,
        page: int = 1,
        rect: Optional[Rect] = None,
        parent: Optional[int] = None,
    ) -> int:
        entries = f"/FT /Tx /T ({name}) /Ff {flags} /DA (/Helv 10 Tf 0 g)"
        if value is not None:
            entries += f" /V ({value})"
        if parent is not None:
            entries += f" /Parent {parent} 0 R"
        return self._widget(page, entries, rect, is_field=parent is None)

    def checkbox(self, name: str, checked: bool = False, flags: int = 0, page: int = 1) -> int:
        on, off = self._appearance(), self._appearance()
        state = "/Yes" if checked else "/Off"
        entries = (
            f"/FT /Btn /T ({name}) /Ff {flags} /V {state} /AS {state} "
            f"/DA (/ZaDb 0 Tf 0 g) /AP << /N << /Yes {on} 0 R /Off {off} 0 R >> >>"
        )
        return self._widget(page, entries, None)

    def choice(
        self,
        name: str,
        options: Sequence[str],
        flags: int = COMBO,
        value: Optional[str] = None,
        page: int = 1,
    ) -> int:
        opts = " ".join(f"({option})" for option in options)
        entries = f"/FT /Ch /T ({name}) /Ff {flags} /Opt [{opts}] /DA (/Helv 10 Tf 0 g)"
        if value is not None:
            entries += f" /V ({value})"
        return self._widget(page, entries, None)

    def radio(self, name: str, states: Sequence[str], selected: Optional[str] = None, page: int = 1) -> int:
        parent = self._reserve()
        kids = []
        for state in states:
            on, off = self._appearance(), self._appearance()
            current = f"/{state}" if state == selected else "/Off"
            entries = f"/Parent {parent} 0 R /AS {current} /AP << /N << /{state} {on} 0 R /Off {off} 0 R >> >>"
            kids.append(self._widget(page, entries, None, is_field=False))
        value = f"/{selected}" if selected else "/Off"
        refs = " ".join(f"{kid} 0 R" for kid in kids)
        self._objects[parent] = f"<< /FT /Btn /Ff {RADIO} /T ({name}) /V {value} /Kids [{refs}] >>"
        self.fields.append(parent)
        return parent

    def signature(self, name: str, page: int = 1) -> int:
        return self._widget(page, f"/FT /Sig /T ({name})", None)

    def pushbutton(self, name: str, page: int = 1) -> int:
        normal = self._appearance()
        return self._widget(page, f"/FT /Btn /Ff {PUSHBUTTON} /T ({name}) /AP << /N {normal} 0 R >>", None)

    def reserve_field(self) -> int:
        """Reserve a root field object; fill it in later with :meth:`define`."""

        number = self._reserve()
        self.fields.append(number)
        return number

    def define(self, number: int, body: str) -> None:
        self._objects[number] = body

    def widgetless(self, name: str, entries: str = "/FT /Tx", root: bool = True) -> int:
        """A field listed in the form's field tree with no widget on any page."""

        number = self._add(f"<< {entries} /T ({name}) >>")
        if root:
            self.fields.append(number)
        return number

    def build(self) -> bytes:
        for page_id in self.page_ids:
            annots = " ".join(f"{number} 0 R" for number in self.annots[page_id])
            self._objects[page_id] = (
                f"<< /Type /Page /Parent {self.page_tree} 0 R /MediaBox [0 0 612 792] /Annots [{annots}] >>"
            )
        kids = " ".join(f"{page_id} 0 R" for page_id in self.page_ids)
        self._objects[self.page_tree] = f"<< /Type /Pages /Kids [{kids}] /Count {len(self.page_ids)} >>"
        acroform = ""
        if self.fields:
            fields = " ".join(f"{number} 0 R" for number in self.fields)
            acroform = (
                f" /AcroForm << /Fields [{fields}] /DR << /Font << /Helv {self.font} 0 R >> >> "
                "/DA (/Helv 0 Tf 0 g) >>"
            )
        self._objects[self.catalog] = f"<< /Type /Catalog /Pages {self.page_tree} 0 R{acroform} >>"

        out = bytearray(b"%PDF-1.7\n")
        offsets = []
        for number in range(1, self._next):
            offsets.append(len(out))
            out += f"{number} 0 obj\n{self._objects[number]}\nendobj\n".encode("latin-1")
        xref_at = len(out)
        out += f"xref\n0 {self._next}\n0000000000 65535 f \n".encode("latin-1")
        for offset in offsets:
            out += f"{offset:010d} 00000 n \n".encode("latin-1")
        out += (
            f"trailer\n<< /Size {self._next} /Root {self.catalog} 0 R >>\nstartxref\n{xref_at}\n%%EOF\n"
        ).encode("latin-1")
        return bytes(out)


def widget_states(pdf: bytes) -> Dict[str, List[dict]]:
    """Read back widget values and appearance states keyed by field name."""

    states: Dict[str, List[dict]] = {}
    with fitz.open(stream=pdf, filetype="pdf") as doc:
        for page in doc:
            for widget in page.widgets():
                states.setdefault(widget.field_name, []).append(
                    {
                        "value": widget.field_value,
                        "as": doc.xref_get_key(widget.xref, "AS")[1],
                        "on_state": widget.on_state(),
                    }
                )
    return states


@pytest.fixture
def builder():
    return FormPdfBuilder


@pytest.fixture
def blank_pdf() -> bytes:
    return FormPdfBuilder().build()


@pytest.fixture
def mixed_form_pdf() -> bytes:
    """One field of every kind, in a fixed order."""

    form = FormPdfBuilder()
    form.text("Name", flags=REQUIRED, rect=(50, 700, 250, 720))
    form.text("Notes", value="Prior note", flags=MULTILINE)
    form.checkbox("Agree")
    form.choice("State", ["California", "Texas"], value="Texas")
    form.choice("Services", ["Audit", "Payroll", "Tax"], flags=0)
    form.radio("Color", ["Red", "Blue"])
    form.signature("Sig1")
    return form.build()


@pytest.fixture
def widgetless_form_pdf() -> bytes:
    """A text field with a widget, then one that only exists in the field tree."""

    form = FormPdfBuilder()
    form.text("Shown")
    form.widgetless("Hidden", "/FT /Tx /V (x)")
    return form.build()


@pytest.fixture
def encrypted_pdf() -> bytes:
    form = FormPdfBuilder()
    form.text("Name")
    with fitz.open(stream=form.build(), filetype="pdf") as doc:
        return doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner", user_pw="")


@pytest.fixture
def password_pdf() -> bytes:
    form = FormPdfBuilder()
    form.text("Name")
    with fitz.open(stream=form.build(), filetype="pdf") as doc:
        return doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner", user_pw="secret")
