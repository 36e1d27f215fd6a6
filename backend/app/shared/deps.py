# app/shared/deps.py
"""
Dépendances FastAPI réutilisables dans tous les routers.
Injectées via Depends(), jamais appelées directement.
"""
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import decode_token
from app.shared.enums import StaffRole
from app.shared.models import StaffMember

bearer = HTTPBearer()


@dataclass
class AuthContext:
    """Contexte résolu du jeton : tenant + acteur."""
    restaurant_id: int
    user_id: int
    role: StaffRole


async def _get_staff_from_token(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StaffMember:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token invalide ou expiré",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
        staff_id = payload.get("sub")
        if staff_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    result = await db.execute(select(StaffMember).where(StaffMember.id == int(staff_id)))
    staff = result.scalar_one_or_none()

    if not staff or not staff.is_active:
        raise credentials_exception
    return staff


# ── Deps publiques ─────────────────────────────────────────

async def get_auth_context(
    staff: Annotated[StaffMember, Depends(_get_staff_from_token)],
) -> AuthContext:
    """Membre authentifié (tout rôle). Le tenant vient du profil, pas du jeton."""
    return AuthContext(
        restaurant_id=staff.restaurant_id,
        user_id=staff.id,
        role=StaffRole(staff.role),
    )


def require_roles(*roles: StaffRole):
    """Fabrique une dépendance qui exige l'un des rôles donnés."""

    async def _guard(
        ctx: Annotated[AuthContext, Depends(get_auth_context)],
    ) -> AuthContext:
        if ctx.role not in roles:
            raise HTTPException(status_code=403, detail="Rôle insuffisant pour cette opération")
        return ctx

    return _guard


# ── Type aliases pour les routers ─────────────────────────
DbDep      = Annotated[AsyncSession, Depends(get_db)]
AuthDep    = Annotated[AuthContext, Depends(get_auth_context)]
ManagerDep = Annotated[AuthContext, Depends(require_roles(StaffRole.ADMIN, StaffRole.MANAGER))]
