"""FastAPI dependency injection for admin API authentication."""

import hmac
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from keygate.core.settings import GateSettings

_security = HTTPBearer(auto_error=False)


def load_settings() -> GateSettings:
    return GateSettings()


async def require_admin_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_security)],
    settings: Annotated[GateSettings, Depends(load_settings)],
) -> str:
    """Verify the KEYGATE_ADMIN_TOKEN Bearer token."""
    expected = settings.admin_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if credentials is None or not hmac.compare_digest(
        credentials.credentials.encode(), expected.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return credentials.credentials
