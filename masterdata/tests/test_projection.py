"""Access-filtered projection of employee + party data."""

from __future__ import annotations

import random
from datetime import date

import pytest

from masterdata.errors import Forbidden, ValidationError
from masterdata.models.column import ColumnConfig
from masterdata.models.employee import Employee
from masterdata.permissions import can_view
from masterdata.roles import ALL_ROLES, PARTY_ROLES, Role
from masterdata.services.projection import (
    MASTERDATA_FIELD_MAP,
    authorize_custom_data_write,
    authorize_masterdata_write,
    authorize_write,
    coerce_custom_value,
    project_for_read,
    project_snapshot,
)


def _col(name, *, masterdata=False, column_type="text", perms=None):
    return ColumnConfig(
        column_name=name,
        column_type=column_type,
        is_masterdata=masterdata,
        display_order=0,
        role_permissions=perms or {},
    )


@pytest.fixture
def columns():
    return [
        _col("First Name", masterdata=True, perms={r: {"view": True, "edit": False} for r in ("sodexo", "payroll")}),
        _col("SSN", masterdata=True, perms={"payroll": {"view": True, "edit": False}}),
        _col("Status", masterdata=True, perms={"sodexo": {"view": True, "edit": False}}),
        _col("Diet", perms={"sodexo": {"view": True, "edit": True}}),
        _col("Seats", column_type="number", perms={"sodexo": {"view": True, "edit": True}}),
        _col("Bank", perms={"payroll": {"view": True, "edit": False}}),
    ]


@pytest.fixture
def anna():
    return Employee(
        first_name="Anna",
        surname="Svensson",
        ssn="19850101-1234",
        hire_date=date(2020, 1, 15),
        is_archived=False,
        is_terminated=True,
    )


def test_ssn_visible_only_to_payroll(columns, anna):
    payroll = project_for_read(anna, {"Bank": "SE12"}, Role.PAYROLL, columns)
    sodexo = project_for_read(anna, {"Diet": "Vegan"}, Role.SODEXO, columns)

    assert payroll == {"First Name": "Anna", "SSN": "19850101-1234", "Bank": "SE12"}
    assert "SSN" not in sodexo
    with pytest.raises(Forbidden):
        authorize_write(columns[1], Role.PAYROLL)


def test_status_and_missing_custom_values(columns, anna):
    sodexo = project_for_read(anna, None, Role.SODEXO, columns)
    assert sodexo == {"First Name": "Anna", "Status": "Terminated", "Diet": None, "Seats": None}


def test_no_visible_columns_yields_empty_projection(columns, anna):
    assert project_for_read(anna, {"Diet": "x"}, Role.TOPLUX, columns) == {}


def test_hr_admin_sees_masterdata_not_custom(columns, anna):
    projected = project_for_read(anna, {"Diet": "Vegan"}, Role.HR_ADMIN, columns)
    assert set(projected) == {"First Name", "SSN", "Status"}


def test_custom_write_checks_permission_and_names(columns):
    cleaned = authorize_custom_data_write(columns, Role.SODEXO, {"Diet": "Vegan", "Seats": 2})
    assert cleaned == {"Diet": "Vegan", "Seats": 2}

    with pytest.raises(Forbidden):
        authorize_custom_data_write(columns, Role.PAYROLL, {"Bank": "SE12"})
    with pytest.raises(ValidationError):
        authorize_custom_data_write(columns, Role.SODEXO, {"Nope": 1})
    with pytest.raises(ValidationError):
        # masterdata columns are not custom data
        authorize_custom_data_write(columns, Role.SODEXO, {"First Name": "Eve"})


@pytest.mark.parametrize(
    "column_type,value,expected",
    [
        ("number", 3.5, 3.5),
        ("boolean", False, False),
        ("date", "2024-02-29", "2024-02-29"),
        ("text", "hello", "hello"),
        ("text", None, None),
    ],
)
def test_coerce_accepts_matching_values(column_type, value, expected):
    assert coerce_custom_value(_col("X", column_type=column_type), value) == expected


@pytest.mark.parametrize(
    "column_type,value",
    [("number", True), ("number", "3"), ("boolean", "yes"), ("date", "29/02/2024"), ("text", 5)],
)
def test_coerce_rejects_mismatched_values(column_type, value):
    with pytest.raises(ValidationError):
        coerce_custom_value(_col("X", column_type=column_type), value)


def test_masterdata_write(columns):
    authorize_masterdata_write(columns, Role.HR_ADMIN, ["first_name", "ssn", "comments"])
    with pytest.raises(Forbidden):
        authorize_masterdata_write(columns, Role.PAYROLL, ["ssn"])
    with pytest.raises(ValidationError):
        authorize_masterdata_write(columns, Role.HR_ADMIN, ["status"])
    with pytest.raises(ValidationError):
        authorize_masterdata_write(columns, Role.HR_ADMIN, ["salary"])


_FLAG_CHOICES = [None, {"view": False, "edit": False}, {"view": True, "edit": False}, {"view": True, "edit": True}]


def _random_columns(rng: random.Random) -> list[ColumnConfig]:
    masterdata = rng.sample(sorted(MASTERDATA_FIELD_MAP), rng.randint(0, len(MASTERDATA_FIELD_MAP)))
    custom = [f"Custom {i}" for i in range(rng.randint(0, 6))]
    cols = []
    for name in masterdata + custom:
        is_masterdata = name in MASTERDATA_FIELD_MAP
        roles = PARTY_ROLES if is_masterdata else ALL_ROLES
        perms = {}
        for role in roles:
            flags = rng.choice(_FLAG_CHOICES)
            if flags is not None:
                perms[role.value] = flags
        cols.append(_col(name, masterdata=is_masterdata, perms=perms))
    rng.shuffle(cols)
    return cols


@pytest.mark.parametrize("seed", range(40))
def test_projection_returns_exactly_the_viewable_columns(seed, anna):
    rng = random.Random(seed)
    cols = _random_columns(rng)
    party_data = {c.column_name: rng.randint(0, 9) for c in cols if not c.is_masterdata and rng.random() < 0.7}
    party_data["Orphan Key"] = "left behind"

    for role in ALL_ROLES:
        projected = project_for_read(anna, party_data, role, cols)
        assert set(projected) == {c.column_name for c in cols if can_view(role, c)}
        for c in cols:
            if c.column_name in projected and not c.is_masterdata:
                assert projected[c.column_name] == party_data.get(c.column_name)


def test_project_snapshot_masks_hidden_fields(columns):
    snapshot = {"id": "e1", "first_name": "Anna", "ssn": "19850101-1234", "is_archived": False, "rank": "Chef"}
    masked = project_snapshot(snapshot, Role.SODEXO, columns)
    assert masked == {"id": "e1", "first_name": "Anna", "ssn": None, "is_archived": False, "rank": None}
    assert project_snapshot(None, Role.SODEXO, columns) is None
