"""Important dates: CRUD and CSV import."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from masterdata.errors import Forbidden, NotFound, ValidationError
from masterdata.roles import Role
from masterdata.services import important_date_svc

HEADER = "Week,Year,Category,Description,Date,Notes\n"


def _date(**overrides):
    data = {
        "week_number": 12,
        "year": 2025,
        "category": "Stena Dates",
        "date_description": "Inventory",
        "date_value": "2025-03-17",
        "notes": None,
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_create_update_delete(db: AsyncSession):
    created = await important_date_svc.create_date(db, _date())
    assert created.id is not None
    assert created.category == "Stena Dates"

    updated = await important_date_svc.update_date(db, created.id, {"notes": "moved", "week_number": 13})
    assert updated.notes == "moved"
    assert updated.week_number == 13

    await important_date_svc.delete_date(db, created.id)
    with pytest.raises(NotFound):
        await important_date_svc.get_date(db, created.id)


@pytest.mark.asyncio
async def test_list_orders_by_week_with_undated_weeks_last(db: AsyncSession):
    await important_date_svc.create_date(db, _date(week_number=None, date_description="Any time"))
    await important_date_svc.create_date(db, _date(week_number=40, date_description="Autumn"))
    await important_date_svc.create_date(db, _date(week_number=2, category="Other", date_description="Kickoff"))

    dates = await important_date_svc.list_dates(db)
    assert [d.date_description for d in dates] == ["Kickoff", "Autumn", "Any time"]

    others = await important_date_svc.list_dates(db, "Other")
    assert [d.date_description for d in others] == ["Kickoff"]


@pytest.mark.asyncio
async def test_only_hr_admin_manages_dates(db: AsyncSession):
    with pytest.raises(Forbidden):
        await important_date_svc.create_date(db, _date(), Role.SODEXO)

    created = await important_date_svc.create_date(db, _date())
    with pytest.raises(Forbidden):
        await important_date_svc.update_date(db, created.id, {"notes": "x"}, Role.PAYROLL)
    with pytest.raises(Forbidden):
        await important_date_svc.delete_date(db, created.id, Role.TOPLUX)
    with pytest.raises(Forbidden):
        await important_date_svc.import_dates(db, HEADER + "1,2025,Other,A,B,\n", acting_role=Role.OMC)


@pytest.mark.asyncio
async def test_update_rejects_unknown_and_empty_fields(db: AsyncSession):
    created = await important_date_svc.create_date(db, _date())
    with pytest.raises(ValidationError):
        await important_date_svc.update_date(db, created.id, {"colour": "red"})
    with pytest.raises(ValidationError):
        await important_date_svc.update_date(db, created.id, {})
    with pytest.raises(NotFound):
        await important_date_svc.update_date(db, uuid.uuid4(), {"notes": "x"})


@pytest.mark.asyncio
async def test_import_reports_field_errors_and_keeps_good_rows(db: AsyncSession):
    csv_text = (
        HEADER
        + "10,2025,stena dates,Stock count,2025-03-03,\n"
        + "11,1999,Other,Too old,1999-03-10,\n"
        + "12,2025,Holidays,Unknown category,2025-03-17,\n"
        + ",2026,ömc dates,Undated,Spring,kept\n"
    )
    result = await important_date_svc.import_dates(db, csv_text)

    assert result.imported == 2
    assert result.skipped == 2
    errors = result.to_dict()["errors"]
    assert [(e["row"], e["field"]) for e in errors] == [(3, "year"), (4, "category")]

    dates = await important_date_svc.list_dates(db)
    assert {d.category for d in dates} == {"Stena Dates", "ÖMC Dates"}
    undated = next(d for d in dates if d.week_number is None)
    assert undated.notes == "kept"


@pytest.mark.asyncio
async def test_import_rejects_every_row_of_an_in_file_duplicate(db: AsyncSession):
    csv_text = (
        HEADER
        + "5,2025,Other,First,2025-01-27,\n"
        + "5,2025,OTHER,Second,2025-01-28,\n"
        + "6,2025,Other,Unique,2025-02-03,\n"
    )
    result = await important_date_svc.import_dates(db, csv_text)

    assert result.imported == 1
    errors = result.to_dict()["errors"]
    assert [e["row"] for e in errors] == [2, 3]
    assert all(e["message"].startswith("Duplicate date entry (Week 5, Year 2025") for e in errors)


@pytest.mark.asyncio
async def test_import_rejects_keys_already_stored(db: AsyncSession):
    await important_date_svc.create_date(db, _date(week_number=20, category="PE3 Dates"))
    csv_text = HEADER + "20,2025,pe3 dates,Again,2025-05-12,\n"

    result = await important_date_svc.import_dates(db, csv_text)

    assert result.imported == 0
    [error] = result.to_dict()["errors"]
    assert "already exists" in error["message"]
    assert len(await important_date_svc.list_dates(db)) == 1


@pytest.mark.asyncio
async def test_import_with_column_mapping(db: AsyncSession):
    csv_text = "Vecka,År,Kategori,Händelse,Datum,Intern\n8,2025,Other,Sportlov,v. 8,secret\n"
    mapping = {
        "Vecka": "week_number",
        "År": "year",
        "Kategori": "category",
        "Händelse": "date_description",
        "Datum": "date_value",
        "Intern": "ignore",
    }
    result = await important_date_svc.import_dates(db, csv_text.encode("utf-8"), mapping)

    assert result.imported == 1
    [stored] = await important_date_svc.list_dates(db)
    assert stored.date_description == "Sportlov"
    assert stored.notes is None


def test_normalize_date_header():
    assert important_date_svc.normalize_date_header(" Week No ") == "week_number"
    assert important_date_svc.normalize_date_header("Event") == "date_description"
    assert important_date_svc.normalize_date_header("year") == "year"
