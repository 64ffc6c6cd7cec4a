"""Validation and cleaning of raw prospect rows."""
from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .. import defaults
from ..errors import (
    EmptyResultError,
    FieldTooLongError,
    InvalidCategoryError,
    InvalidPhoneError,
    MissingFieldError,
    RowValidationError,
)
from ..models import Prospect
from ..reporting import PipelineReporter, report_errors, resolve_reporter
from .loaders import normalise_column


REQUIRED_FIELDS = ("company", "city", "phone", "business_type")
MAX_COMPANY_LENGTH = 100
MAX_CITY_LENGTH = 50
MIN_PHONE_DIGITS = 10

_WHITESPACE = re.compile(r"\s+")


@dataclass
class ParseReport:
    """Prospects that passed validation plus the rows that did not."""

    prospects: List[Prospect]
    errors: List[str] = field(default_factory=list)
    total_rows: int = 0
    corrections: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def invalid_rows(self) -> int:
        return len(self.errors)


@dataclass
class ProspectSummary:
    total: int
    by_business_type: Dict[str, int]
    by_city: Dict[str, int]
    sample_companies: List[str]
    used_fallback_type: int = 0


def _text(row: Mapping[str, object], column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    return str(value).strip()


def _collapse(value: str) -> str:
    return _WHITESPACE.sub(" ", value.strip())


def normalise_business_type(
    value: str,
    synonyms: Optional[Mapping[str, str]] = None,
) -> Tuple[str, bool]:
    """Return ``(category, corrected)`` for a raw business type.

    Raises :class:`InvalidCategoryError` when the value is neither a canonical
    category nor a known synonym.
    """

    cleaned = value.strip().lower()
    if cleaned in defaults.BUSINESS_TYPES:
        return cleaned, False
    table = defaults.CATEGORY_SYNONYMS if synonyms is None else synonyms
    corrected = table.get(cleaned)
    if corrected in defaults.BUSINESS_TYPES:
        return corrected, True
    raise InvalidCategoryError(value, defaults.BUSINESS_TYPES)


def validate_row(
    row: Mapping[str, object],
    row_number: int,
    *,
    fallback_business_type: Optional[str] = None,
    synonyms: Optional[Mapping[str, str]] = None,
) -> Prospect:
    """Clean and validate one raw row into a :class:`Prospect`."""

    prospect, _ = _clean_row(row, row_number, fallback_business_type, synonyms)
    return prospect


def _clean_row(
    row: Mapping[str, object],
    row_number: int,
    fallback_business_type: Optional[str],
    synonyms: Optional[Mapping[str, str]],
) -> Tuple[Prospect, Optional[str]]:
    normalised = {normalise_column(key): value for key, value in row.items() if key is not None}
    values = {column: _text(normalised, column) for column in REQUIRED_FIELDS}

    missing = [column for column in REQUIRED_FIELDS if not values[column]]
    used_fallback = False
    if "business_type" in missing and fallback_business_type:
        missing.remove("business_type")
        values["business_type"] = fallback_business_type
        used_fallback = True
    if missing:
        raise MissingFieldError(missing)

    company = _collapse(values["company"])
    if len(company) > MAX_COMPANY_LENGTH:
        raise FieldTooLongError("company", "Company name", MAX_COMPANY_LENGTH)

    city = _collapse(values["city"])
    if len(city) > MAX_CITY_LENGTH:
        raise FieldTooLongError("city", "City name", MAX_CITY_LENGTH)

    phone = values["phone"]
    if sum(1 for char in phone if char.isdigit()) < MIN_PHONE_DIGITS:
        raise InvalidPhoneError(MIN_PHONE_DIGITS)

    business_type, corrected = normalise_business_type(values["business_type"], synonyms)

    prospect = Prospect(
        id=f"prospect_{row_number:04d}",
        company=company,
        city=city,
        phone=phone,
        business_type=business_type,
        original_row=row_number,
        used_fallback_type=used_fallback,
    )
    return prospect, (values["business_type"] if corrected else None)


def parse_prospects(
    rows: Iterable[Mapping[str, object]],
    *,
    fallback_business_type: Optional[str] = None,
    synonyms: Optional[Mapping[str, str]] = None,
    reporter: Optional[PipelineReporter] = None,
) -> ParseReport:
    """Validate every row, collecting per-row errors instead of aborting."""

    reporter = resolve_reporter(reporter)
    report = ParseReport(prospects=[])

    for row_number, row in enumerate(rows, start=1):
        report.total_rows = row_number
        try:
            prospect, corrected_from = _clean_row(row, row_number, fallback_business_type, synonyms)
        except RowValidationError as exc:
            report.errors.append(f"Row {row_number}: {exc}")
            continue

        if corrected_from is not None:
            report.corrections.append((corrected_from, prospect.business_type))
            reporter.warning(f'Auto-corrected business type: "{corrected_from}" -> "{prospect.business_type}"')
        report.prospects.append(prospect)

    report_errors(reporter, report.errors, title=f"Found {len(report.errors)} validation errors:")

    if not report.prospects:
        raise EmptyResultError("No valid prospects found in input file")

    reporter.success(f"Successfully parsed {len(report.prospects)} prospects from {report.total_rows} rows")
    for business_type, count in Counter(p.business_type for p in report.prospects).items():
        reporter.info(f"  {business_type}: {count} prospects")
    return report


def summarize_prospects(prospects: List[Prospect]) -> ProspectSummary:
    by_business_type: Dict[str, int] = {}
    by_city: Dict[str, int] = {}
    for prospect in prospects:
        by_business_type[prospect.business_type] = by_business_type.get(prospect.business_type, 0) + 1
        by_city[prospect.city] = by_city.get(prospect.city, 0) + 1
    return ProspectSummary(
        total=len(prospects),
        by_business_type=by_business_type,
        by_city=by_city,
        sample_companies=[prospect.company for prospect in prospects[:5]],
        used_fallback_type=sum(1 for prospect in prospects if prospect.used_fallback_type),
    )


__all__ = [
    "ParseReport",
    "ProspectSummary",
    "normalise_business_type",
    "parse_prospects",
    "summarize_prospects",
    "validate_row",
]
