"""Login, logout and profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import SessionUser, get_current_user, issue_session_token
from ..config import settings
from ..database import get_db
from ..errors import Unauthorized
from ..roles import display_name, parse_role
from ..schemas.user import LoginRequest
from ..services import user_svc

router = APIRouter(prefix="/api")


def _profile(user: SessionUser) -> dict:
    return {
        "id": user.user_id,
        "email": user.email,
        "role": user.role.value,
        "role_name": display_name(user.role),
        "is_active": user.is_active,
    }


@router.post("/auth/login")
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await user_svc.authenticate(db, data.email, data.password)
    if user is None:
        raise Unauthorized("Invalid email or password")

    session_user = SessionUser(user_id=str(user.id), email=user.email, role=parse_role(user.role))
    token = issue_session_token(session_user)
    response = JSONResponse({"data": {"token": token, "user": _profile(session_user)}})
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=settings.auth_session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return response


@router.post("/auth/logout")
async def logout():
    response = JSONResponse({"data": {"success": True}})
    response.delete_cookie(settings.auth_cookie_name)
    return response


@router.get("/profile")
async def profile(user: SessionUser = Depends(get_current_user)):
    return {"data": _profile(user)}
