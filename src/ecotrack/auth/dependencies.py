"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.auth.jwt import verify_token
from ecotrack.database import get_session
from ecotrack.db.models import User
from ecotrack.users.service import get_user_by_id

_bearer = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Extract and verify the bearer JWT, return the User. Raises 401 on failure."""
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, ValueError) as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user
