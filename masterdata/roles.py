"""Closed role set: one HR admin plus the external parties."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    HR_ADMIN = "hr_admin"
    SODEXO = "sodexo"
    OMC = "omc"
    PAYROLL = "payroll"
    TOPLUX = "toplux"


PARTY_ROLES: tuple[Role, ...] = (Role.SODEXO, Role.OMC, Role.PAYROLL, Role.TOPLUX)
ALL_ROLES: tuple[Role, ...] = (Role.HR_ADMIN, *PARTY_ROLES)

ROLE_DISPLAY_NAMES = {
    Role.HR_ADMIN: "HR Administrator",
    Role.SODEXO: "Sodexo",
    Role.OMC: "OMC",
    Role.PAYROLL: "Payroll",
    Role.TOPLUX: "Toplux",
}


def parse_role(value: str | Role) -> Role:
    """Coerce a raw role string to ``Role``. Raises ValueError if unknown."""
    if isinstance(value, Role):
        return value
    return Role((value or "").strip().lower())


def is_hr_admin(role: str | Role) -> bool:
    try:
        return parse_role(role) is Role.HR_ADMIN
    except ValueError:
        return False


def is_external_party(role: str | Role) -> bool:
    try:
        return parse_role(role) in PARTY_ROLES
    except ValueError:
        return False


def display_name(role: str | Role) -> str:
    try:
        return ROLE_DISPLAY_NAMES[parse_role(role)]
    except ValueError:
        return str(role)
