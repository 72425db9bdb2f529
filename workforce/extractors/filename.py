"""Filename based classification of uploaded documents.

Admins drop batches of files such as ``Nomina_Marzo_2025_Juan_Perez.pdf``.
Before anything is stored the filename is analysed to propose:

* the owning employee → matched against the company roster
* the document category → ``dni``, ``nomina``, ``contrato``, ``justificante``
  or ``otros``
* the month/year the document refers to
* a canonical rename such as ``Nómina Marzo 2025 - Juan Pérez.pdf``

Matching is done on separator-bounded tokens only.  Substring matching is
what makes ``mar`` inside ``Martinez`` look like March, so neither months nor
employee names are ever searched inside a longer token.  Results are
ephemeral: they seed the upload confirmation screen and are discarded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import PurePath
from typing import Iterable, Sequence

from workforce.core.errors import ClassificationAmbiguous
from workforce.core.name_normalize import capitalize_name, normalize
from workforce.domain.sessions import Employee


class DocumentType(str, Enum):
    DNI = "dni"
    NOMINA = "nomina"
    CONTRATO = "contrato"
    JUSTIFICANTE = "justificante"
    OTROS = "otros"

    @property
    def display_name(self) -> str:
        return DOCUMENT_TYPE_NAMES[self]


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


DOCUMENT_TYPE_NAMES: dict[DocumentType, str] = {
    DocumentType.DNI: "DNI",
    DocumentType.NOMINA: "Nómina",
    DocumentType.CONTRATO: "Contrato",
    DocumentType.JUSTIFICANTE: "Justificante",
    DocumentType.OTROS: "Otros",
}

# Table order is the priority order: the first type with a hit wins.
DOCUMENT_TYPE_KEYWORDS: dict[DocumentType, tuple[str, ...]] = {
    DocumentType.DNI: ("dni", "documento identidad", "cedula", "id card", "nie"),
    DocumentType.NOMINA: ("nomina", "payroll", "salary", "salario", "sueldo"),
    DocumentType.CONTRATO: ("contrato", "contract", "agreement", "acuerdo", "convenio"),
    DocumentType.JUSTIFICANTE: (
        "justificante",
        "certificado",
        "comprobante",
        "vacaciones",
        "vacation",
        "holiday",
        "permiso",
        "baja",
        "medico",
    ),
    DocumentType.OTROS: (
        "irpf",
        "hacienda",
        "impuesto",
        "declaracion",
        "renta",
        "tributacion",
        "fiscal",
        "formulario",
        "modelo",
        "aeat",
    ),
}

FISCAL_SUFFIX_KEYWORDS = ("irpf", "hacienda", "impuesto", "declaracion", "renta", "modelo")

# Keywords shorter than this must equal a whole token; longer ones may prefix one.
_PREFIX_MATCH_MIN = 5

MONTH_NAMES_ES = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)

FULL_MONTH_TOKENS: dict[str, int] = {
    **{name.lower(): index for index, name in enumerate(MONTH_NAMES_ES, start=1)},
    "setiembre": 9,
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

# No "mar": it collides with given names such as María del Mar.
ABBREVIATED_MONTH_TOKENS: dict[str, int] = {
    "jan": 1,
    "ene": 1,
    "feb": 2,
    "apr": 4,
    "abr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "ago": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
    "dic": 12,
}

_YEAR_TOKEN = re.compile(r"(?:19|20)\d{2}")
_NUMERIC_MONTH_TOKEN = re.compile(r"0?[1-9]|1[0-2]")
_MIN_NAME_TOKEN_LENGTH = 3


@dataclass(frozen=True, slots=True)
class DetectedDate:
    year: int
    month: int | None = None
    year_detected: bool = False

    @property
    def month_name(self) -> str | None:
        if self.month is None:
            return None
        return MONTH_NAMES_ES[self.month - 1]

    def label(self) -> str:
        """Date fragment used in canonical names ("Marzo 2025", "2025" or "")."""

        if self.month is not None:
            return f"{self.month_name} {self.year}"
        if self.year_detected:
            return str(self.year)
        return ""


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    file_name: str
    document_type: DocumentType
    type_detected: bool
    detected_date: DetectedDate
    confidence: Confidence
    employee: Employee | None = None
    employee_ambiguous: bool = False
    candidates: tuple[int, ...] = field(default_factory=tuple)
    suggested_name: str | None = None

    @property
    def requires_confirmation(self) -> bool:
        return self.confidence is not Confidence.HIGH

    def ensure_assignable(self) -> Employee:
        """Return the detected employee or raise when a human has to choose."""

        if self.employee is None or self.confidence is Confidence.LOW:
            reason = (
                "varios empleados coinciden con el nombre del archivo"
                if self.employee_ambiguous
                else "no se ha detectado ningún empleado en el nombre del archivo"
            )
            raise ClassificationAmbiguous(self.file_name, reason)
        return self.employee


@dataclass(frozen=True, slots=True)
class _EmployeeMatch:
    employee: Employee
    matched_tokens: frozenset[str]
    full_match: bool

    @property
    def score(self) -> tuple[int, bool, int]:
        return (len(self.matched_tokens), self.full_match, sum(len(token) for token in self.matched_tokens))


def split_extension(file_name: str) -> tuple[str, str]:
    path = PurePath(file_name or "")
    suffix = path.suffix.lower().lstrip(".")
    stem = path.stem if suffix else path.name
    return stem, suffix or "pdf"


def _keyword_hit(keyword: str, tokens: Sequence[str], joined: str) -> bool:
    if " " in keyword:
        return f" {keyword} " in f" {joined} "
    if len(keyword) >= _PREFIX_MATCH_MIN:
        return any(token.startswith(keyword) for token in tokens)
    return keyword in tokens


def detect_document_type(tokens: Sequence[str]) -> tuple[DocumentType, bool]:
    joined = " ".join(tokens)
    for doc_type, keywords in DOCUMENT_TYPE_KEYWORDS.items():
        if any(_keyword_hit(keyword, tokens, joined) for keyword in keywords):
            return doc_type, True
    return DocumentType.OTROS, False


def _name_tokens(full_name: str) -> list[str]:
    return [token for token in normalize(full_name).split() if len(token) >= _MIN_NAME_TOKEN_LENGTH]


def _match_employee(employee: Employee, token_set: set[str]) -> _EmployeeMatch | None:
    name_tokens = _name_tokens(employee.full_name)
    if not name_tokens:
        return None
    matched = frozenset(token for token in name_tokens if token in token_set)
    if len(matched) < min(2, len(name_tokens)):
        return None
    return _EmployeeMatch(employee=employee, matched_tokens=matched, full_match=len(matched) == len(name_tokens))


def detect_employee(tokens: Sequence[str], roster: Iterable[Employee]) -> tuple[_EmployeeMatch | None, list[_EmployeeMatch]]:
    """Return ``(winner, tied_top_candidates)``; the winner is ``None`` on ties."""

    token_set = set(tokens)
    matches = [match for employee in roster if (match := _match_employee(employee, token_set)) is not None]
    if not matches:
        return None, []

    best_score = max(match.score for match in matches)
    top = [match for match in matches if match.score == best_score]
    distinct = {match.employee.id for match in top}
    if len(distinct) > 1:
        return None, top
    return top[0], top


def detect_date(tokens: Sequence[str], *, excluded: Iterable[str] = (), today: date | None = None) -> DetectedDate:
    today = today or date.today()
    excluded_tokens = set(excluded)

    year_index: int | None = None
    for index, token in enumerate(tokens):
        if _YEAR_TOKEN.fullmatch(token):
            year_index = index
            break
    year = int(tokens[year_index]) if year_index is not None else today.year

    month: int | None = None
    for token in tokens:
        if token in FULL_MONTH_TOKENS:
            month = FULL_MONTH_TOKENS[token]
            break

    if month is None:
        for token in tokens:
            if token in ABBREVIATED_MONTH_TOKENS and token not in excluded_tokens:
                month = ABBREVIATED_MONTH_TOKENS[token]
                break

    if month is None:
        numeric = [
            (index, token)
            for index, token in enumerate(tokens)
            if len(token) <= 2 and _NUMERIC_MONTH_TOKEN.fullmatch(token)
        ]
        if numeric:
            chosen = numeric[0][1]
            if year_index is not None:
                adjacent = [token for index, token in numeric if abs(index - year_index) == 1]
                if adjacent:
                    chosen = adjacent[0]
            month = int(chosen)

    return DetectedDate(year=year, month=month, year_detected=year_index is not None)


def fiscal_keyword(tokens: Sequence[str]) -> str | None:
    for keyword in FISCAL_SUFFIX_KEYWORDS:
        if any(token.startswith(keyword) for token in tokens):
            return keyword.upper()
    return None


def canonical_name(
    file_name: str,
    employee: Employee,
    document_type: DocumentType,
    *,
    today: date | None = None,
) -> str:
    """Compose ``"{Type} {Month} {Year} (KEYWORD) - {Name}.{ext}"`` for an upload."""

    stem, extension = split_extension(file_name)
    tokens = normalize(stem).split()
    detected = detect_date(tokens, excluded=_name_tokens(employee.full_name), today=today)
    return _compose_name(document_type, detected, tokens, employee, extension)


def _compose_name(
    document_type: DocumentType,
    detected: DetectedDate,
    tokens: Sequence[str],
    employee: Employee,
    extension: str,
) -> str:
    parts = [document_type.display_name]
    date_label = detected.label()
    if date_label:
        parts.append(date_label)
    if document_type is DocumentType.OTROS:
        keyword = fiscal_keyword(tokens)
        if keyword:
            parts.append(f"({keyword})")
    return f"{' '.join(parts)} - {capitalize_name(employee.full_name)}.{extension}"


def classify(file_name: str, roster: Iterable[Employee] = (), *, today: date | None = None) -> ClassificationResult:
    stem, extension = split_extension(file_name)
    tokens = normalize(stem).split()

    document_type, type_detected = detect_document_type(tokens)
    winner, top = detect_employee(tokens, roster)
    ambiguous = winner is None and len(top) > 1

    excluded = winner.matched_tokens if winner else frozenset().union(*(match.matched_tokens for match in top))
    detected = detect_date(tokens, excluded=excluded, today=today)

    if winner is None:
        confidence = Confidence.LOW
    elif type_detected:
        confidence = Confidence.HIGH
    else:
        confidence = Confidence.MEDIUM

    suggested = None
    if winner is not None:
        suggested = _compose_name(document_type, detected, tokens, winner.employee, extension)

    return ClassificationResult(
        file_name=file_name,
        document_type=document_type,
        type_detected=type_detected,
        detected_date=detected,
        confidence=confidence,
        employee=winner.employee if winner else None,
        employee_ambiguous=ambiguous,
        candidates=tuple(sorted({match.employee.id for match in top})),
        suggested_name=suggested,
    )


def suggest_upload_mode(results: Iterable[ClassificationResult]) -> str:
    """``circular`` as soon as one file names no employee, ``individual`` otherwise."""

    if any(result.employee is None for result in results):
        return "circular"
    return "individual"

