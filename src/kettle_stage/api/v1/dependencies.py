"""Shared API dependencies for storage access and admin authentication."""

from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from kettle_stage.core.settings import settings
from kettle_stage.db.session import get_db
from kettle_stage.repositories.post_repo import PostRepository
from kettle_stage.services.change_feed import ChangeHub, get_change_hub
from kettle_stage.services.heat import HeatEngine

ADMIN_ROLE = "admin"

# HTTP Bearer scheme for admin JWTs
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_post_repository(db: SessionDep) -> PostRepository:
    """Return a repository bound to the request session."""
    return PostRepository(db)


def get_change_hub_dep() -> ChangeHub:
    """Return the shared change hub."""
    return get_change_hub()


RepoDep = Annotated[PostRepository, Depends(get_post_repository)]
HubDep = Annotated[ChangeHub, Depends(get_change_hub_dep)]


def get_heat_engine(repo: RepoDep) -> HeatEngine:
    """Return a heat engine over the request repository."""
    return HeatEngine(repo)


HeatEngineDep = Annotated[HeatEngine, Depends(get_heat_engine)]


def create_admin_token(subject: str = ADMIN_ROLE, expires_minutes: int | None = None) -> str:
    """Create a signed JWT granting moderation access."""
    minutes = expires_minutes or settings.admin_token_expire_minutes
    to_encode: dict[str, Any] = {
        "sub": subject,
        "role": ADMIN_ROLE,
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> str:
    """Validate an admin bearer token and return its subject.

    Raises:
        HTTPException: If the token is invalid, expired or lacks the admin role
    """
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    if payload.get("role") != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return str(payload.get("sub", ADMIN_ROLE))


AdminDep = Annotated[str, Depends(require_admin)]
