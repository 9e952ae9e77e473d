"""Data models for acrofill."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union


class FieldType(str, Enum):
    """Tag of a :data:`FieldKind`."""

    TEXT = "text"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    RADIO = "radio"
    SIGNATURE = "signature"


@dataclass(frozen=True)
class TextKind:
    multiline: bool = False
    type: ClassVar[FieldType] = FieldType.TEXT


@dataclass(frozen=True)
class CheckboxKind:
    type: ClassVar[FieldType] = FieldType.CHECKBOX


@dataclass(frozen=True)
class DropdownKind:
    """Combo boxes and list boxes; both are filled the same way."""

    options: Tuple[str, ...] = ()
    editable: bool = False
    type: ClassVar[FieldType] = FieldType.DROPDOWN


@dataclass(frozen=True)
class RadioKind:
    options: Tuple[str, ...] = ()
    type: ClassVar[FieldType] = FieldType.RADIO


@dataclass(frozen=True)
class SignatureKind:
    type: ClassVar[FieldType] = FieldType.SIGNATURE


FieldKind = Union[TextKind, CheckboxKind, DropdownKind, RadioKind, SignatureKind]


@dataclass(frozen=True)
class FieldPosition:
    """Lower-left corner of a field's first widget, in PDF user space."""

    page: int
    x: float
    y: float


@dataclass(frozen=True)
class FormField:
    """Representation of a named interactive field in a PDF."""

    name: str
    kind: FieldKind
    position: Optional[FieldPosition] = None
    required: bool = False
    default_value: Optional[str] = None

    @property
    def type(self) -> FieldType:
        return self.kind.type

    @property
    def options(self) -> Tuple[str, ...]:
        if isinstance(self.kind, (DropdownKind, RadioKind)):
            return self.kind.options
        return ()

    def to_public(self) -> Dict[str, Any]:  # stable outward shape
        public: Dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "required": self.required,
        }
        if self.options:
            public["options"] = list(self.options)
        if self.position is not None:
            public["position"] = {"page": self.position.page, "x": self.position.x, "y": self.position.y}
        if self.default_value is not None:
            public["default_value"] = self.default_value
        return public


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class FieldMatchResult:
    """Value chosen for a field by the upstream matching step.

    Only ``value`` is used when filling; ``source`` and ``confidence`` travel
    along for display.
    """

    value: str
    source: str = ""
    confidence: Confidence = Confidence.MEDIUM
    field_name: Optional[str] = None


MappingEntry = Union[str, FieldMatchResult, Mapping[str, Any]]
FillMapping = Mapping[str, Optional[MappingEntry]]


def resolve_mapping_value(entry: Optional[MappingEntry]) -> Optional[str]:
    """Reduce a mapping entry to the string that should be written.

    Returns ``None`` when the entry carries no value at all.
    """

    if entry is None:
        return None
    if isinstance(entry, str):
        return entry
    if isinstance(entry, FieldMatchResult):
        return entry.value
    if isinstance(entry, Mapping):
        value = entry.get("value")
        return None if value is None else str(value)
    return str(entry)


@dataclass(frozen=True)
class FillOptions:
    flatten: bool = False
    skip_existing_values: bool = False


class FillStatus(str, Enum):
    FILLED = "filled"
    SKIPPED = "skipped"
    SIGNATURE = "signature"


@dataclass
class FieldOutcome:
    """What happened to one field during a fill pass.

    ``modified`` is False when the field counts as filled but nothing was
    written, e.g. a dropdown value that matched no option.
    """

    name: str
    status: FillStatus
    modified: bool = False
    warnings: List[str] = field(default_factory=list)


@dataclass
class FillResult:
    pdf: bytes
    filled_fields: List[str] = field(default_factory=list)
    skipped_fields: List[str] = field(default_factory=list)
    signature_fields: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    outcomes: List[FieldOutcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(cls, pdf: bytes, outcomes: List[FieldOutcome]) -> "FillResult":
        result = cls(pdf=pdf, outcomes=list(outcomes))
        buckets = {
            FillStatus.FILLED: result.filled_fields,
            FillStatus.SKIPPED: result.skipped_fields,
            FillStatus.SIGNATURE: result.signature_fields,
        }
        for outcome in outcomes:
            buckets[outcome.status].append(outcome.name)
            result.warnings.extend(outcome.warnings)
        return result


@dataclass
class CoverageReport:
    total: int = 0
    covered: int = 0
    missing: List[str] = field(default_factory=list)
    signatures: List[str] = field(default_factory=list)
    coverage_percent: int = 0


@dataclass
class FormValidation:
    has_form: bool
    field_count: int
    error: Optional[str] = None


@dataclass
class FormFieldSummary:
    total: int
    by_type: Dict[FieldType, int]
    required_count: int
    has_signature_fields: bool


__all__ = [
    "FieldType",
    "TextKind",
    "CheckboxKind",
    "DropdownKind",
    "RadioKind",
    "SignatureKind",
    "FieldKind",
    "FieldPosition",
    "FormField",
    "Confidence",
    "FieldMatchResult",
    "MappingEntry",
    "FillMapping",
    "resolve_mapping_value",
    "FillOptions",
    "FillStatus",
    "FieldOutcome",
    "FillResult",
    "CoverageReport",
    "FormValidation",
    "FormFieldSummary",
]
