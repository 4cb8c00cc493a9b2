"""Public entry endpoint: personal key or session token in, redirect out."""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.api.deps import load_settings
from keygate.core.settings import GateSettings
from keygate.db.engine import get_session
from keygate.db.store import SqlSecretStore
from keygate.entry.errors import EntryError, ServerError
from keygate.entry.protocol import EntryProtocol
from keygate.entry.types import EntryQuery

logger = logging.getLogger(__name__)

router = APIRouter()

HTTP_FOUND = 302
MSG_TIMEOUT = "Store request timed out"
MSG_SERVER_ERROR = "Server error"


@router.get("/api/auth/entry", response_model=None)
async def entry(
    db: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[GateSettings, Depends(load_settings)],
    q: Annotated[EntryQuery, Query()],
) -> RedirectResponse:
    """GET /api/auth/entry -- redirect to the company callback with a token."""
    store = SqlSecretStore(db, settings.secret_encryption_key)
    protocol = EntryProtocol(store)
    try:
        async with asyncio.timeout(settings.store_timeout_seconds):
            outcome = await protocol.run(q)
    except EntryError:
        raise
    except TimeoutError as exc:
        logger.error("Entry request exceeded %.1fs", settings.store_timeout_seconds)
        raise ServerError(MSG_TIMEOUT) from exc
    except Exception as exc:
        logger.exception("Entry request failed unexpectedly")
        raise ServerError(MSG_SERVER_ERROR) from exc

    return RedirectResponse(url=outcome.redirect_url, status_code=HTTP_FOUND)
