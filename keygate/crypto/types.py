"""Type definitions for session token signing and verification."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class SigningAlgorithm(StrEnum):
    """HMAC algorithms a company may sign its session tokens with."""

    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"


class SessionClaims(BaseModel):
    """Claims bundle for session token creation."""

    sub: str
    cid: str
    role: str
    id: str
    ttl_seconds: int


class DecodedSession(BaseModel):
    """Decoded and verified session token claims."""

    model_config = ConfigDict(extra="allow")

    sub: str
    cid: str = ""
    role: str = ""
    id: str = ""
    iat: int = 0
    exp: int
    jti: str = ""
