from __future__ import annotations

import pytest

from precinct.domain.errors import ValidationFailedError
from precinct.domain.rules import (
    validate_case,
    validate_daily_log,
    validate_date_range,
    validate_household,
    validate_inspection,
    validate_key_population,
    validate_visit,
)

BASE_CASE = {
    "case_no": "C-1",
    "case_name": "theft",
    "case_type_item_id": 1,
    "main_officer_id": 1,
    "received_date": "2024-01-10",
}


def _field_errors(**values: object) -> dict[str, str]:
    with pytest.raises(ValidationFailedError) as excinfo:
        validate_case({**BASE_CASE, **values})
    return excinfo.value.field_errors


def test_in_progress_case_needs_only_core_fields() -> None:
    validate_case({**BASE_CASE, "status": "在办"})


def test_missing_core_fields_are_all_reported() -> None:
    with pytest.raises(ValidationFailedError) as excinfo:
        validate_case({"case_name": "  "})
    assert set(excinfo.value.field_errors) == {
        "caseNo",
        "caseName",
        "caseTypeItemId",
        "mainOfficerId",
        "receivedDate",
    }


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("已结", {"closedDate", "resultItemId"}),
        ("移交", {"transferTarget", "transferDate"}),
        ("存档", {"archiveLocation", "archiveDate"}),
    ],
)
def test_status_requires_its_fields(status: str, expected: set[str]) -> None:
    assert set(_field_errors(status=status)) == expected


def test_date_ordering() -> None:
    errors = _field_errors(
        deadline_date="2024-01-09",
        status="已结",
        closed_date="2024-01-01",
        result_item_id=3,
        transfer_date="2024-02-01 09:00:00",
        transfer_return_date="2024-01-31 09:00:00",
    )
    assert set(errors) == {"deadlineDate", "closedDate", "transferReturnDate"}


def test_same_day_transfer_return_is_allowed() -> None:
    validate_case(
        {
            **BASE_CASE,
            "status": "移交",
            "transfer_target": "district",
            "transfer_date": "2024-02-01 09:00:00",
            "transfer_return_date": "2024-02-01 08:00:00",
        }
    )


def test_household_requires_community_and_address() -> None:
    with pytest.raises(ValidationFailedError) as excinfo:
        validate_household({"address": ""})
    assert set(excinfo.value.field_errors) == {"communityId", "address"}


def test_inspection_needs_an_inspector() -> None:
    with pytest.raises(ValidationFailedError) as excinfo:
        validate_inspection({"inspect_date": "2024-03-01", "rectified_date": "2024-02-01"})
    assert set(excinfo.value.field_errors) == {"inspectorName", "rectifiedDate"}
    validate_inspection({"inspect_date": "2024-03-01", "inspector_officer_id": 4})


def test_daily_log_cannot_be_in_the_future() -> None:
    validate_daily_log({"log_date": "2024-05-10"}, today="2024-05-10")
    with pytest.raises(ValidationFailedError) as excinfo:
        validate_daily_log({"log_date": "2024-05-11"}, today="2024-05-10")
    assert "logDate" in excinfo.value.field_errors


def test_key_population_flag_requires_classification() -> None:
    validate_key_population({"name": "qian", "is_key_population": False})
    with pytest.raises(ValidationFailedError) as excinfo:
        validate_key_population({"name": " ", "is_key_population": True, "type_item_id": 2})
    assert set(excinfo.value.field_errors) == {"name", "controlLevelItemId"}


def test_visit_needs_a_visitor() -> None:
    validate_visit({"visit_date": "2024-05-01", "visitor_name": "grid worker"})
    with pytest.raises(ValidationFailedError) as excinfo:
        validate_visit({"visit_date": "2024-05-01", "visitor_name": "  "})
    assert set(excinfo.value.field_errors) == {"visitorName"}


def test_date_range_must_not_be_reversed() -> None:
    validate_date_range("2024-05-01", "2024-05-01")
    with pytest.raises(ValidationFailedError) as excinfo:
        validate_date_range("2024-05-02", "2024-05-01")
    assert set(excinfo.value.field_errors) == {"dateTo"}
