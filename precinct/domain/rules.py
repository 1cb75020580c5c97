from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic.alias_generators import to_camel

from precinct.domain.errors import ValidationFailedError
from precinct.domain.models import CaseStatus

CASE_REQUIRED_FIELDS: dict[str, str] = {
    "case_no": "case number is required",
    "case_name": "case name is required",
    "case_type_item_id": "case type is required",
    "main_officer_id": "main officer is required",
    "received_date": "received date is required",
}

# Fields that become mandatory once a case enters the given status.
CASE_STATUS_REQUIRED_FIELDS: dict[CaseStatus, dict[str, str]] = {
    CaseStatus.IN_PROGRESS: {},
    CaseStatus.CLOSED: {
        "closed_date": "closed date is required when the case is closed",
        "result_item_id": "result is required when the case is closed",
    },
    CaseStatus.TRANSFERRED: {
        "transfer_target": "transfer target is required when the case is transferred",
        "transfer_date": "transfer date is required when the case is transferred",
    },
    CaseStatus.ARCHIVED: {
        "archive_location": "archive location is required when the case is archived",
        "archive_date": "archive date is required when the case is archived",
    },
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _date_part(value: str) -> str:
    return value[:10]


class FieldErrors:
    """Collects every violation before failing so callers see them all at once."""

    def __init__(self) -> None:
        self._errors: dict[str, str] = {}

    def add(self, field: str, message: str) -> None:
        self._errors.setdefault(to_camel(field), message)

    def require(self, values: Mapping[str, Any], field: str, message: str) -> None:
        if _is_blank(values.get(field)):
            self.add(field, message)

    def not_before(self, values: Mapping[str, Any], field: str, start_field: str, message: str) -> None:
        value = values.get(field)
        start = values.get(start_field)
        if _is_blank(value) or _is_blank(start):
            return
        # YYYY-MM-DD strings order the same way as the dates they encode.
        if _date_part(value) < _date_part(start):
            self.add(field, message)

    def as_dict(self) -> dict[str, str]:
        return dict(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def raise_if_any(self, message: str = "validation failed") -> None:
        if self._errors:
            raise ValidationFailedError(message, self.as_dict())


def validate_case(values: Mapping[str, Any]) -> None:
    errors = FieldErrors()
    for field, message in CASE_REQUIRED_FIELDS.items():
        errors.require(values, field, message)

    status = values.get("status") or CaseStatus.IN_PROGRESS
    for field, message in CASE_STATUS_REQUIRED_FIELDS[CaseStatus(status)].items():
        errors.require(values, field, message)

    errors.not_before(values, "deadline_date", "received_date", "deadline date must not precede received date")
    errors.not_before(values, "closed_date", "received_date", "closed date must not precede received date")
    errors.not_before(
        values,
        "transfer_return_date",
        "transfer_date",
        "transfer return date must not precede transfer date",
    )
    errors.raise_if_any("case validation failed")


def validate_household(values: Mapping[str, Any]) -> None:
    errors = FieldErrors()
    errors.require(values, "community_id", "community is required")
    errors.require(values, "address", "address is required")
    errors.raise_if_any("household validation failed")


def validate_place(values: Mapping[str, Any]) -> None:
    errors = FieldErrors()
    errors.require(values, "name", "place name is required")
    errors.require(values, "address", "place address is required")
    errors.raise_if_any("place validation failed")


def validate_inspection(values: Mapping[str, Any]) -> None:
    errors = FieldErrors()
    errors.require(values, "inspect_date", "inspect date is required")
    if values.get("inspector_officer_id") is None and _is_blank(values.get("inspector_name")):
        errors.add("inspector_name", "either an inspector officer or an inspector name is required")
    errors.not_before(values, "rectified_date", "inspect_date", "rectified date must not precede inspect date")
    errors.raise_if_any("inspection validation failed")


def validate_officer(values: Mapping[str, Any]) -> None:
    errors = FieldErrors()
    errors.require(values, "name", "name is required")
    errors.raise_if_any("officer validation failed")


def validate_daily_log(values: Mapping[str, Any], *, today: str) -> None:
    errors = FieldErrors()
    errors.require(values, "log_date", "log date is required")
    log_date = values.get("log_date")
    if not _is_blank(log_date) and log_date > today:
        errors.add("log_date", "log date cannot be in the future")
    errors.raise_if_any("daily log validation failed")


def validate_key_population(values: Mapping[str, Any]) -> None:
    errors = FieldErrors()
    errors.require(values, "name", "name is required")
    # A flagged key person must carry a type and a control level.
    if values.get("is_key_population"):
        errors.require(values, "type_item_id", "type is required for a key population")
        errors.require(values, "control_level_item_id", "control level is required for a key population")
    errors.raise_if_any("key population validation failed")


def validate_visit(values: Mapping[str, Any]) -> None:
    errors = FieldErrors()
    errors.require(values, "visit_date", "visit date is required")
    if values.get("visitor_officer_id") is None and _is_blank(values.get("visitor_name")):
        errors.add("visitor_name", "either a visitor officer or a visitor name is required")
    errors.raise_if_any("visit validation failed")


def validate_date_range(date_from: str, date_to: str) -> None:
    errors = FieldErrors()
    errors.not_before(
        {"date_from": date_from, "date_to": date_to},
        "date_to",
        "date_from",
        "end date must not precede start date",
    )
    errors.raise_if_any("invalid date range")
