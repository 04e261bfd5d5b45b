"""FastAPI dependencies shared by the routers."""
from datetime import timedelta
from typing import Optional

import structlog
from fastapi import Depends, Header

from authsvc.config import Settings, get_settings
from authsvc.core.errors import GatewayError, Unauthorized
from authsvc.core.identity import IdentityService
from authsvc.core.store import CredentialStore, SqlCredentialStore
from authsvc.core.tokens import TokenService, check_worker_token

log = structlog.get_logger()

WORKER_TOKEN_HEADER = "X-Worker-Token"


def get_store(settings: Settings = Depends(get_settings)) -> CredentialStore:
    from authsvc.db import get_session_factory
    try:
        factory = get_session_factory()
    except RuntimeError as e:
        log.error("store_not_configured", error=str(e))
        raise GatewayError() from None
    return SqlCredentialStore(factory, timeout=settings.GATEWAY_TIMEOUT_SEC)


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def get_identity(
    store: CredentialStore = Depends(get_store),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> IdentityService:
    return IdentityService(store, tokens, token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES))


async def require_worker_token(
    x_worker_token: Optional[str] = Header(None, alias=WORKER_TOKEN_HEADER),
    settings: Settings = Depends(get_settings),
) -> None:
    if not check_worker_token(x_worker_token, settings.WORKER_SECRET):
        log.warning("worker_token_rejected", present=x_worker_token is not None)
        raise Unauthorized("Invalid worker token")


async def login_worker_token(
    x_worker_token: Optional[str] = Header(None, alias=WORKER_TOKEN_HEADER),
    settings: Settings = Depends(get_settings),
) -> None:
    """Login is public unless configured for service-to-service use."""
    if settings.LOGIN_REQUIRES_WORKER_TOKEN:
        await require_worker_token(x_worker_token, settings)
