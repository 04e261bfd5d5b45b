"""Auth API: register, login, token verification."""
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from authsvc.api.deps import get_identity, get_token_service, login_worker_token, require_worker_token
from authsvc.core.errors import InvalidToken
from authsvc.core.identity import IdentityService
from authsvc.core.tokens import TokenService
from authsvc.schemas.user import LoginResponse, RegisterResponse

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    payload: Any = Body(...),
    identity: IdentityService = Depends(get_identity),
):
    """Create a user plus its Free-tier API key and return a session token."""
    result = await identity.register(payload)
    return RegisterResponse(id=result["userId"], apiKey=result["apiKey"], token=result["token"])


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(login_worker_token)])
async def login(
    payload: Any = Body(...),
    identity: IdentityService = Depends(get_identity),
):
    return await identity.login(payload)


@router.get("/verify-token", dependencies=[Depends(require_worker_token)])
async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
):
    """Stateless check: signature and expiry only, no store round trip."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidToken("Missing bearer token")
    claims = tokens.verify(credentials.credentials)
    return {"valid": True, "userId": claims["userId"]}
