"""Per-role view/edit matrix for a column.

The matrix is an immutable value object. Every ``Permission`` enforces
edit => view on construction.

The HR admin's full access to masterdata columns is structural
(``hr_admin_permission``) and can never be stored or changed. On custom
columns the HR admin is an ordinary matrix entry: it sees or edits a party's
column only when explicitly granted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Mapping

from .errors import Forbidden, ValidationError
from .roles import ALL_ROLES, Role, is_hr_admin, parse_role

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Permission:
    view: bool = False
    edit: bool = False

    def __post_init__(self):
        if not isinstance(self.view, bool) or not isinstance(self.edit, bool):
            raise ValidationError("Permission flags must be booleans")
        if self.edit and not self.view:
            raise ValidationError("Edit permission requires View permission")

    @classmethod
    def from_dict(cls, raw) -> Permission:
        if not isinstance(raw, Mapping):
            raise ValidationError("Permission must be an object with view and edit flags")
        return cls(view=raw.get("view", False), edit=raw.get("edit", False))

    def to_dict(self) -> dict[str, bool]:
        return {"view": self.view, "edit": self.edit}


NO_ACCESS = Permission()
READ_ONLY = Permission(view=True)
FULL_ACCESS = Permission(view=True, edit=True)


class PermissionMatrix:
    """Immutable mapping of role -> Permission."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[Role, Permission] | None = None):
        cleaned: dict[Role, Permission] = {}
        for role, perm in (entries or {}).items():
            role = _matrix_role(role)
            if not isinstance(perm, Permission):
                raise ValidationError("Matrix entries must be Permission values")
            cleaned[role] = perm
        self._entries = cleaned

    @classmethod
    def from_input(cls, raw) -> PermissionMatrix:
        """Build from caller-supplied JSON. Bad entries raise ValidationError."""
        if not isinstance(raw, Mapping):
            raise ValidationError("role_permissions must be an object")
        entries = {}
        for role, perm in raw.items():
            try:
                entries[_matrix_role(role)] = Permission.from_dict(perm)
            except ValidationError as exc:
                raise ValidationError(f"Role {role}: {exc.message}") from exc
        return cls(entries)

    @classmethod
    def from_stored(cls, raw, *, allow_hr_admin: bool = True) -> PermissionMatrix:
        """Build from a stored row.

        Unknown roles are ignored. A malformed entry (edit without view, non
        boolean flags) is read as NO_ACCESS and logged, so one bad row cannot
        break every listing.
        """
        entries = {}
        for role_raw, perm in (raw or {}).items():
            try:
                role = parse_role(role_raw)
            except ValueError:
                continue
            if role is Role.HR_ADMIN and not allow_hr_admin:
                continue
            try:
                entries[role] = Permission.from_dict(perm)
            except ValidationError as exc:
                log.warning("stored permission for %s is invalid (%s), reading as no access",
                            role.value, exc.message)
                entries[role] = NO_ACCESS
        return cls(entries)

    def get(self, role: str | Role) -> Permission:
        try:
            return self._entries.get(parse_role(role), NO_ACCESS)
        except ValueError:
            return NO_ACCESS

    def with_permission(self, role: str | Role, permission: Permission) -> PermissionMatrix:
        entries = dict(self._entries)
        entries[_matrix_role(role)] = permission
        return PermissionMatrix(entries)

    def hidden(self) -> PermissionMatrix:
        """Every role that could see the column, zeroed."""
        roles = [r for r in ALL_ROLES if r is not Role.HR_ADMIN or r in self._entries]
        return PermissionMatrix({role: NO_ACCESS for role in roles})

    def to_dict(self) -> dict[str, dict[str, bool]]:
        return {role.value: perm.to_dict() for role, perm in self._entries.items()}

    def __contains__(self, role) -> bool:
        try:
            return parse_role(role) in self._entries
        except ValueError:
            return False

    def __iter__(self) -> Iterator[Role]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PermissionMatrix):
            return NotImplemented
        return self.normalized() == other.normalized()

    def __hash__(self):
        return hash(tuple(sorted((r.value, p.view, p.edit) for r, p in self.normalized().items())))

    def normalized(self) -> dict[Role, Permission]:
        """Entries with absent roles filled in as NO_ACCESS."""
        return {role: self._entries.get(role, NO_ACCESS) for role in ALL_ROLES}

    def __repr__(self) -> str:
        return f"PermissionMatrix({self.to_dict()!r})"


def _matrix_role(role: str | Role) -> Role:
    try:
        return parse_role(role)
    except ValueError as exc:
        raise ValidationError(f"Unknown role: {role}") from exc


def _check_masterdata_matrix(column, matrix: PermissionMatrix) -> None:
    if column.is_masterdata and Role.HR_ADMIN in matrix:
        raise Forbidden("HR Admin permissions on masterdata columns cannot be modified")


def hr_admin_permission(column) -> Permission:
    """HR admin's access to ``column``: full for masterdata, granted entry otherwise."""
    if column.is_masterdata:
        return FULL_ACCESS
    return column.permissions.get(Role.HR_ADMIN)


def permission_for(role: str | Role, column) -> Permission:
    if is_hr_admin(role):
        return hr_admin_permission(column)
    return column.permissions.get(role)


def can_view(role: str | Role, column) -> bool:
    return permission_for(role, column).view


def can_edit(role: str | Role, column) -> bool:
    return permission_for(role, column).edit


def set_permissions(column, role: str | Role, permission: Permission | Mapping):
    """Apply ``permission`` for one role on ``column`` and return the column."""
    if not isinstance(permission, Permission):
        permission = Permission.from_dict(permission)
    matrix = column.permissions.with_permission(role, permission)
    _check_masterdata_matrix(column, matrix)
    column.role_permissions = matrix.to_dict()
    return column


def replace_permissions(column, matrix: PermissionMatrix | Mapping):
    """Replace the whole matrix on ``column`` in one assignment."""
    if not isinstance(matrix, PermissionMatrix):
        matrix = PermissionMatrix.from_input(matrix)
    _check_masterdata_matrix(column, matrix)
    column.role_permissions = matrix.to_dict()
    return column


def hide_column(column):
    """Zero out every role's permissions at once."""
    column.role_permissions = column.permissions.hidden().to_dict()
    return column


def unhide_column(column, saved_permissions: PermissionMatrix | Mapping):
    """Restore a previously saved matrix; the caller keeps the history."""
    return replace_permissions(column, saved_permissions)
