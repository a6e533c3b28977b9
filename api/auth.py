"""Bearer token authentication for the ERD API."""

import secrets

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from erdforge.config import Settings

_bearer = HTTPBearer(auto_error=False, description="API_AUTH_TOKEN")


async def require_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> None:
    """
    Dependency: require Authorization: Bearer <token> matching API_AUTH_TOKEN.
    503 when the server has no token configured, 401 for a missing or wrong token.
    """
    token = Settings.from_env().api_auth_token
    if not token:
        raise HTTPException(
            status_code=503,
            detail="Server configuration error: API_AUTH_TOKEN not set",
        )
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not secrets.compare_digest(credentials.credentials.strip(), token):
        raise HTTPException(status_code=401, detail="Unauthorized")
