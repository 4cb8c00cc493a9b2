"""Entry protocol: exchange a session token or personal key for a redirect.

Steps, first match wins:

1. resolve the company (``company_id`` beats ``company_name``)
2. resolve the company's active signing secret
3. token shortcut: a valid presented token is redirected back unchanged
4. otherwise fall back to key verification: resolve the user (``phone``
   beats the name pair), compare the personal key in constant time
5. issue a new token, append it to the ledger, redirect

Only the success path of step 5 writes to the store.
"""

import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import jwt
from pydantic import ValidationError

from keygate.crypto.jwt_manager import SessionTokenManager, legacy_id_claim
from keygate.crypto.keys import verify_personal_key
from keygate.crypto.types import SessionClaims
from keygate.entry.errors import (
    BadRequestError,
    NotFoundError,
    ServerMisconfiguredError,
    UnauthorizedError,
)
from keygate.entry.types import (
    CompanyRecord,
    EntryOutcome,
    EntryPath,
    EntryQuery,
    SecretStore,
    TokenCheck,
    UserRecord,
)

logger = logging.getLogger(__name__)

MSG_COMPANY_NOT_FOUND = "Company not found"
MSG_NO_CALLBACK = "Company callback_url not set"
MSG_NO_SECRET = "Active signing secret not found for company"
MSG_BAD_ALGORITHM = "Company jwt_alg is not supported"
MSG_NO_IDENTIFIER = "Missing user identifier (phone or first_name+last_name)"
MSG_NO_KEY = "Missing personal key"
MSG_USER_NOT_FOUND = "User not found"
MSG_INVALID_KEY = "Invalid personal key"

MAX_COMPANY_ID = 2**31 - 1


def parse_company_id(raw: str) -> int | None:
    """Parse an ASCII decimal company id; anything else matches no row."""
    if not (raw.isascii() and raw.isdigit()):
        return None
    value = int(raw)
    if not 1 <= value <= MAX_COMPANY_ID:
        return None
    return value


def build_redirect(callback_url: str, token: str) -> str:
    """Attach ``token`` to the callback URL, replacing any existing one."""
    parts = urlsplit(callback_url)
    params = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k != "token"
    ]
    params.append(("token", token))
    return urlunsplit(parts._replace(query=urlencode(params)))


class EntryProtocol:
    """Runs one entry request against an injected secret store."""

    def __init__(self, store: SecretStore) -> None:
        self._store = store

    async def run(self, query: EntryQuery) -> EntryOutcome:
        """Authenticate the caller or raise an ``EntryError``."""
        company = await self._resolve_company(query)
        if not company.callback_url:
            raise ServerMisconfiguredError(MSG_NO_CALLBACK)

        secret = await self._store.get_active_secret(company.id)
        if not secret:
            raise ServerMisconfiguredError(MSG_NO_SECRET)

        try:
            manager = SessionTokenManager(secret, company.jwt_alg)
        except ValueError as exc:
            raise ServerMisconfiguredError(MSG_BAD_ALGORITHM) from exc

        presented = query.token
        check = self._check_presented_token(manager, presented)
        if check is TokenCheck.VALID and presented:
            logger.info("Reused session token for company %s", company.id)
            return EntryOutcome(
                path=EntryPath.TOKEN_REUSED,
                token=presented,
                redirect_url=build_redirect(company.callback_url, presented),
                company_id=company.id,
            )
        if check is TokenCheck.REJECTED:
            logger.debug(
                "Presented token rejected for company %s, "
                "falling back to key verification",
                company.id,
            )

        return await self._verify_key_and_issue(query, company, manager)

    async def _resolve_company(self, query: EntryQuery) -> CompanyRecord:
        company: CompanyRecord | None = None
        if query.company_id:
            company_id = parse_company_id(query.company_id)
            if company_id is not None:
                company = await self._store.get_company_by_id(company_id)
        elif query.company_name:
            company = await self._store.get_company_by_name(query.company_name)
        if company is None:
            logger.warning(
                "Entry for unknown company id=%r name=%r",
                query.company_id,
                query.company_name,
            )
            raise NotFoundError(MSG_COMPANY_NOT_FOUND)
        return company

    @staticmethod
    def _check_presented_token(
        manager: SessionTokenManager, token: str | None
    ) -> TokenCheck:
        if not token:
            return TokenCheck.ABSENT
        try:
            manager.verify_token(token)
        except (jwt.InvalidTokenError, ValidationError):
            return TokenCheck.REJECTED
        return TokenCheck.VALID

    async def _resolve_user(
        self, query: EntryQuery, company: CompanyRecord
    ) -> UserRecord | None:
        if query.phone:
            return await self._store.find_user_by_phone(company.id, query.phone)
        return await self._store.find_user_by_name(
            company.id, query.first_name or "", query.last_name or ""
        )

    async def _verify_key_and_issue(
        self,
        query: EntryQuery,
        company: CompanyRecord,
        manager: SessionTokenManager,
    ) -> EntryOutcome:
        if not query.has_user_identifier:
            raise BadRequestError(MSG_NO_IDENTIFIER)
        if not query.key:
            raise BadRequestError(MSG_NO_KEY)

        user = await self._resolve_user(query, company)
        if user is None:
            logger.warning("Entry for unknown user in company %s", company.id)
            raise NotFoundError(MSG_USER_NOT_FOUND)

        stored_key = await self._store.get_verification_key(user.id)
        if not verify_personal_key(query.key, stored_key):
            logger.warning("Personal key rejected for user %s", user.id)
            raise UnauthorizedError(MSG_INVALID_KEY)

        token = issue_session_token(manager, user, company)
        await self._store.insert_issued_token(user.id, token)
        logger.info(
            "Issued session token for user %s in company %s", user.id, company.id
        )

        return EntryOutcome(
            path=EntryPath.KEY_VERIFIED,
            token=token,
            redirect_url=build_redirect(company.callback_url or "", token),
            company_id=company.id,
            user_id=user.id,
        )


def issue_session_token(
    manager: SessionTokenManager, user: UserRecord, company: CompanyRecord
) -> str:
    """Sign a new session token for ``user`` with the company's settings."""
    claims = SessionClaims(
        sub=str(user.id),
        cid=str(company.id),
        role=user.role,
        id=legacy_id_claim(user.role, user.id),
        ttl_seconds=company.token_ttl_seconds or 0,
    )
    return manager.create_session_token(claims)
