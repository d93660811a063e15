"""Session tokens, password hashing and current-user dependencies."""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import hmac
import json
import secrets
import time
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_db
from .errors import Forbidden, Unauthorized
from .models.user import User
from .roles import Role, parse_role


@dataclass(frozen=True)
class SessionUser:
    user_id: str
    email: str
    role: Role
    is_active: bool = True

    @property
    def is_hr_admin(self) -> bool:
        return self.role is Role.HR_ADMIN


def hash_password(password: str, iterations: int = 200_000) -> str:
    """Hash a password using PBKDF2-SHA256."""
    if not password:
        raise ValueError("Password is required")
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return (
        f"pbkdf2_sha256${iterations}$"
        f"{binascii.hexlify(salt).decode('ascii')}$"
        f"{binascii.hexlify(digest).decode('ascii')}"
    )


def verify_password(password: str, stored_hash: str) -> bool:
    if not password or not stored_hash:
        return False
    try:
        scheme, iterations_raw, salt_hex, digest_hex = stored_hash.split("$", 3)
        iterations = int(iterations_raw)
        salt = binascii.unhexlify(salt_hex.encode("ascii"))
        expected = binascii.unhexlify(digest_hex.encode("ascii"))
    except (ValueError, binascii.Error):
        return False
    if scheme != "pbkdf2_sha256":
        return False
    actual = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(actual, expected)


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, stored_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, stored_hash)


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * ((4 - (len(data) % 4)) % 4)
    return base64.urlsafe_b64decode((data + padding).encode("utf-8"))


def _sign(body: str) -> str:
    return hmac.new(settings.auth_secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_session_token(user: SessionUser, ttl_seconds: int | None = None) -> str:
    now = int(time.time())
    payload = {
        "sub": user.email,
        "uid": user.user_id,
        "role": user.role.value,
        "iat": now,
        "exp": now + (ttl_seconds if ttl_seconds is not None else settings.auth_session_ttl_seconds),
    }
    body = _b64url_encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))
    return f"{body}.{_sign(body)}"


def decode_session_token(token: str) -> SessionUser | None:
    """Return the token's user, or None if it is malformed, forged or expired."""
    if not token:
        return None
    try:
        body, provided_sig = token.split(".", 1)
    except ValueError:
        return None
    if not hmac.compare_digest(provided_sig, _sign(body)):
        return None

    try:
        payload = json.loads(_b64url_decode(body))
    except (ValueError, binascii.Error):
        return None
    if not isinstance(payload, dict):
        return None

    exp = payload.get("exp")
    if not isinstance(exp, int) or exp <= int(time.time()):
        return None
    try:
        role = parse_role(payload.get("role", ""))
    except (ValueError, AttributeError):
        return None
    sub, uid = payload.get("sub"), payload.get("uid")
    if not isinstance(sub, str) or not isinstance(uid, str):
        return None
    return SessionUser(user_id=uid, email=sub, role=role)


def _extract_token(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return request.cookies.get(settings.auth_cookie_name, "")


async def get_current_user(
    request: Request, db: AsyncSession = Depends(get_db)
) -> SessionUser:
    """Resolve the caller. Deactivated or deleted accounts are rejected."""
    claimed = decode_session_token(_extract_token(request))
    if claimed is None:
        raise Unauthorized() from None
    try:
        user_id = uuid.UUID(claimed.user_id)
    except ValueError:
        raise Unauthorized() from None

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise Unauthorized("Account is inactive or no longer exists")
    return SessionUser(user_id=str(user.id), email=user.email, role=parse_role(user.role))


async def require_hr_admin(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    if not user.is_hr_admin:
        raise Forbidden("HR Admin access required")
    return user


async def require_party(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    if user.is_hr_admin:
        raise Forbidden("HR Admin does not have access to party custom data")
    return user
