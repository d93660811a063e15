"""CSV employee import."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from masterdata.errors import ValidationError
from masterdata.services import employee_svc, import_svc

GOOD_AND_BAD = (
    "First Name,Last Name,Personal Number,Phone,Start Date,Notes\n"
    "Anna,Svensson,19850101-1234,0701,2020-01-15,first\n"
    "Bad,Row,not-an-ssn,0702,2020-01-15,\n"
    "Erik,Lind,900101-5678,,2021-03-01,\n"
)


def test_normalize_header_aliases():
    assert import_svc.normalize_header(" Family Name ") == "surname"
    assert import_svc.normalize_header("E-mail") == "e-mail"
    assert import_svc.normalize_header("Town") == "town_district"
    assert import_svc.normalize_header("hire date") == "hire_date"


@pytest.mark.asyncio
async def test_bad_row_is_reported_and_good_rows_imported(db: AsyncSession):
    result = await import_svc.import_employees(db, GOOD_AND_BAD.encode("utf-8"))

    assert result.imported == 2
    assert result.skipped == 1
    [error] = result.to_dict()["errors"]
    assert error["row"] == 3
    assert "ssn" in error["message"]

    employees = await employee_svc.list_employees(db)
    assert {e.surname for e in employees} == {"Svensson", "Lind"}
    anna = next(e for e in employees if e.surname == "Svensson")
    assert anna.mobile == "0701"
    assert anna.comments == "first"


@pytest.mark.asyncio
async def test_duplicate_ssn_in_file_and_database(db: AsyncSession, employee):
    csv_text = (
        "first_name,surname,ssn,hire_date\n"
        f"Dup,Existing,{employee.ssn},2020-01-01\n"
        "New,Person,0101011234,2020-01-01\n"
        "Again,Person,0101011234,2020-01-01\n"
    )
    result = await import_svc.import_employees(db, csv_text)
    assert result.imported == 1
    assert [e["row"] for e in result.to_dict()["errors"]] == [2, 4]


@pytest.mark.asyncio
async def test_future_hire_date_rejected(db: AsyncSession):
    csv_text = "first_name,surname,ssn,hire_date\nA,B,0101011234,2999-01-01\nC,D,0101015678,2020-01-01\n"
    result = await import_svc.import_employees(db, csv_text)
    assert result.imported == 1
    assert "future" in result.errors[0].message


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "first_name,surname,ssn,hire_date\n", "\n\n"])
async def test_empty_file_rejected(db: AsyncSession, content):
    with pytest.raises(ValidationError):
        await import_svc.import_employees(db, content)


@pytest.mark.asyncio
async def test_all_rows_invalid(db: AsyncSession):
    with pytest.raises(ValidationError) as exc_info:
        await import_svc.import_employees(db, "first_name,surname,ssn,hire_date\n,,,\nX,,1,\n")
    assert exc_info.value.details[0]["row"] == 2


@pytest.mark.asyncio
async def test_row_rejected_by_database_does_not_abort_siblings(db: AsyncSession, employee, monkeypatch):
    async def nobody(*args, **kwargs):
        return None

    # the SSN lookup misses, as when another session inserts after the check
    monkeypatch.setattr(import_svc, "find_by_ssn", nobody)
    csv_text = (
        "first_name,surname,ssn,hire_date\n"
        "New,Person,0101011234,2020-01-01\n"
        f"Late,Writer,{employee.ssn},2020-01-01\n"
        "Other,Person,0101015678,2020-01-01\n"
    )
    result = await import_svc.import_employees(db, csv_text)

    assert result.imported == 2
    assert result.to_dict()["errors"] == [
        {"row": 3, "message": f"An employee with SSN {employee.ssn} already exists"}
    ]
    surnames = sorted(e.surname for e in await employee_svc.list_employees(db))
    assert surnames == ["Person", "Person", "Svensson"]
