"""Permission value object and matrix lookups."""

from __future__ import annotations

import pytest

from masterdata.errors import Forbidden, ValidationError
from masterdata.models.column import ColumnConfig
from masterdata.permissions import (
    FULL_ACCESS,
    NO_ACCESS,
    READ_ONLY,
    Permission,
    PermissionMatrix,
    can_edit,
    can_view,
    hide_column,
    permission_for,
    replace_permissions,
    set_permissions,
    unhide_column,
)
from masterdata.roles import PARTY_ROLES, Role


def _column(name="Allergies", *, masterdata=False, perms=None) -> ColumnConfig:
    return ColumnConfig(
        column_name=name,
        column_type="text",
        is_masterdata=masterdata,
        display_order=0,
        role_permissions=perms or {},
    )


def test_edit_requires_view():
    with pytest.raises(ValidationError, match="Edit permission requires View"):
        Permission(view=False, edit=True)


def test_permission_flags_must_be_bool():
    with pytest.raises(ValidationError):
        Permission.from_dict({"view": "yes", "edit": False})


def test_missing_role_defaults_to_no_access():
    col = _column(perms={"sodexo": {"view": True, "edit": True}})
    assert can_view("sodexo", col) and can_edit("sodexo", col)
    assert not can_view("omc", col)
    assert not can_edit("omc", col)
    assert permission_for("toplux", col) == NO_ACCESS


def test_hr_admin_structural_access():
    masterdata = _column("SSN", masterdata=True)
    custom = _column(perms={"sodexo": {"view": True, "edit": True}})
    assert can_view(Role.HR_ADMIN, masterdata)
    assert can_edit(Role.HR_ADMIN, masterdata)
    assert not can_view(Role.HR_ADMIN, custom)
    assert not can_edit(Role.HR_ADMIN, custom)


def test_stored_hr_admin_key_is_ignored_on_masterdata():
    col = _column(
        "SSN",
        masterdata=True,
        perms={"hr_admin": {"view": False, "edit": False}, "legacy": {"view": True}},
    )
    assert len(col.permissions) == 0
    assert can_view(Role.HR_ADMIN, col) and can_edit(Role.HR_ADMIN, col)


def test_hr_admin_can_be_granted_custom_column():
    col = _column(perms={"sodexo": {"view": True, "edit": True}})
    set_permissions(col, Role.HR_ADMIN, READ_ONLY)
    assert col.role_permissions["hr_admin"] == {"view": True, "edit": False}
    assert can_view(Role.HR_ADMIN, col)
    assert not can_edit(Role.HR_ADMIN, col)


def test_hr_admin_entry_on_masterdata_is_forbidden():
    col = _column("Email", masterdata=True)
    matrix = PermissionMatrix.from_input({"hr_admin": {"view": True, "edit": True}})
    with pytest.raises(Forbidden):
        replace_permissions(col, matrix)
    assert col.role_permissions == {}


def test_malformed_stored_entry_reads_as_no_access(caplog):
    col = _column(perms={"omc": {"view": False, "edit": True}, "sodexo": {"view": True, "edit": True}})
    with caplog.at_level("WARNING", logger="masterdata.permissions"):
        assert permission_for("omc", col) == NO_ACCESS
    assert can_edit("sodexo", col)
    assert "omc" in caplog.text


def test_matrix_input_rejects_unknown_role():
    with pytest.raises(ValidationError, match="Unknown role"):
        PermissionMatrix.from_input({"janitor": {"view": True, "edit": False}})


def test_matrix_input_names_offending_role():
    with pytest.raises(ValidationError, match="Role omc"):
        PermissionMatrix.from_input({"omc": {"view": False, "edit": True}})


def test_set_permissions_updates_one_role():
    col = _column(perms={"sodexo": {"view": True, "edit": True}})
    set_permissions(col, "payroll", {"view": True, "edit": False})
    assert col.role_permissions == {
        "sodexo": {"view": True, "edit": True},
        "payroll": {"view": True, "edit": False},
    }


def test_set_permissions_rejects_edit_without_view():
    col = _column()
    with pytest.raises(ValidationError):
        set_permissions(col, "payroll", {"view": False, "edit": True})
    assert col.role_permissions == {}


def test_set_permissions_for_hr_admin_is_forbidden():
    col = _column("Email", masterdata=True)
    with pytest.raises(Forbidden):
        set_permissions(col, Role.HR_ADMIN, FULL_ACCESS)


def test_hide_then_unhide_restores_matrix():
    original = {"sodexo": {"view": True, "edit": True}, "payroll": {"view": True, "edit": False}}
    col = _column(perms=dict(original))
    saved = col.permissions

    hide_column(col)
    for role in PARTY_ROLES:
        assert not can_view(role, col)
        assert not can_edit(role, col)

    unhide_column(col, saved)
    assert col.permissions == PermissionMatrix.from_stored(original)
    assert can_edit("sodexo", col)
    assert can_view("payroll", col) and not can_edit("payroll", col)


def test_replace_permissions_validates_whole_matrix():
    col = _column(perms={"sodexo": {"view": True, "edit": False}})
    with pytest.raises(ValidationError):
        replace_permissions(col, {"sodexo": {"view": True, "edit": True}, "omc": {"view": False, "edit": True}})
    assert col.role_permissions == {"sodexo": {"view": True, "edit": False}}


def test_matrix_equality_fills_absent_roles():
    explicit = PermissionMatrix({role: NO_ACCESS for role in PARTY_ROLES})
    assert explicit == PermissionMatrix()
    assert PermissionMatrix({Role.OMC: READ_ONLY}) != PermissionMatrix()


def test_hide_revokes_hr_admin_grant_on_custom_column():
    col = _column(perms={"sodexo": {"view": True, "edit": True}, "hr_admin": {"view": True, "edit": False}})
    saved = col.permissions
    hide_column(col)
    assert not can_view(Role.HR_ADMIN, col)
    unhide_column(col, saved)
    assert can_view(Role.HR_ADMIN, col)
