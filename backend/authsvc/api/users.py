"""
User management API, worker-token protected.

Lookup and admin paths never expose password hashes or API keys.
"""
from typing import Any

from fastapi import APIRouter, Body, Depends

from authsvc.api.deps import get_identity, require_worker_token
from authsvc.core.identity import IdentityService
from authsvc.schemas.user import UserProfile

router = APIRouter(dependencies=[Depends(require_worker_token)])


# ── /user ──────────────────────────────────────────────────────────────────

@router.get("/user/{user_id}", response_model=UserProfile)
async def get_user(user_id: str, identity: IdentityService = Depends(get_identity)):
    return await identity.get_user(user_id)


@router.post("/user", status_code=201)
async def create_user(payload: Any = Body(...), identity: IdentityService = Depends(get_identity)):
    result = await identity.create_user(payload)
    return {"id": str(result["id"]), "message": result["message"]}


@router.post("/user/{user_id}")
async def update_user(user_id: str, payload: Any = Body(...), identity: IdentityService = Depends(get_identity)):
    return await identity.update_user(user_id, payload)


@router.delete("/user/{user_id}")
async def delete_user(user_id: str, identity: IdentityService = Depends(get_identity)):
    return await identity.delete_user(user_id)


# ── /users (admin flag) ────────────────────────────────────────────────────

@router.get("/users/admins")
async def list_admins(identity: IdentityService = Depends(get_identity)):
    return await identity.list_admins()


@router.get("/users/{user_id}/is-admin")
async def is_admin(user_id: str, identity: IdentityService = Depends(get_identity)):
    return await identity.is_admin(user_id)


@router.post("/users/{user_id}/admin-status")
async def set_admin_status(user_id: str, payload: Any = Body(...), identity: IdentityService = Depends(get_identity)):
    return await identity.set_admin_status(user_id, payload)
