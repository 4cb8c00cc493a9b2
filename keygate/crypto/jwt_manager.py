"""Session token creation and verification using HMAC-signed JWTs."""

import secrets
import time

import jwt
from jwt.types import Options

from keygate.crypto.types import DecodedSession, SessionClaims, SigningAlgorithm

SESSION_TOKEN_DEFAULT_TTL = 1_209_600
JTI_BYTES = 16
LEGACY_ADMIN_ROLE = "admin"


def legacy_id_claim(role: str, user_id: int) -> str:
    """Value of the legacy ``id`` claim.

    Older consumers read ``id`` and expect the literal ``"admin"`` for admin
    users and the numeric user id for everyone else. New consumers should
    read ``sub`` and ``role`` instead.
    """
    if role == LEGACY_ADMIN_ROLE:
        return LEGACY_ADMIN_ROLE
    return str(user_id)


class SessionTokenManager:
    """Creates and verifies a company's HMAC-signed session tokens."""

    def __init__(self, secret: str, algorithm: SigningAlgorithm | str) -> None:
        self._secret = secret
        self._algorithm = SigningAlgorithm(algorithm)

    @property
    def algorithm(self) -> SigningAlgorithm:
        return self._algorithm

    def create_session_token(self, claims: SessionClaims) -> str:
        """Create a signed session token with a random ``jti``."""
        now = int(time.time())
        ttl = claims.ttl_seconds or SESSION_TOKEN_DEFAULT_TTL
        payload = {
            "sub": claims.sub,
            "cid": claims.cid,
            "role": claims.role,
            "id": claims.id,
            "iat": now,
            "exp": now + ttl,
            "jti": secrets.token_hex(JTI_BYTES),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm.value)

    def verify_token(self, token: str) -> DecodedSession:
        """Verify signature, algorithm and expiry of a session token.

        Raises ``jwt.InvalidTokenError`` (or a subclass) on any failure.
        """
        opts: Options = {"require": ["exp", "sub"]}
        raw = jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm.value],
            options=opts,
        )
        return DecodedSession.model_validate(raw)
