"""XHashPass API: credential lookup and subscription changes (worker-token protected)."""
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from authsvc.api.deps import get_identity, require_worker_token
from authsvc.core.identity import IdentityService
from authsvc.schemas.user import CredentialOut

router = APIRouter(dependencies=[Depends(require_worker_token)])


@router.get("", response_model=CredentialOut)
async def get_credential(
    user_id: Optional[str] = Query(None, alias="userId"),
    api_key: Optional[str] = Query(None, alias="apiKey"),
    identity: IdentityService = Depends(get_identity),
):
    record = await identity.get_credential(user_id=user_id, api_key=api_key)
    return record.to_dict()


@router.post("/{user_id}")
async def change_subscription(
    user_id: str,
    payload: Any = Body(...),
    identity: IdentityService = Depends(get_identity),
):
    """Move a user to another tier; limits and key expiry are recomputed."""
    return await identity.change_subscription(user_id, payload)
