"""
Identity service: registration, login, lookup and admin operations.

Stateless per request. Every operation validates its input, makes one or two
store calls and shapes a plain-dict result for the HTTP layer.
"""
import secrets
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

import structlog

from authsvc.core.errors import Conflict, NotFound, Unauthorized, ValidationError
from authsvc.core.passwords import burn_verify, hash_password, verify_password
from authsvc.core.store import CredentialRecord, CredentialStore, UserRecord
from authsvc.core.tiers import DEFAULT_TIER, tier_terms
from authsvc.core.tokens import TokenService
from authsvc.core.validation import (
    validate_admin_status,
    validate_login,
    validate_registration,
    validate_subscription,
    validate_update,
    validate_user_create,
)
from authsvc.schemas.user import RegisterRequest, UserType

log = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid credentials"


def parse_id(raw: Any, what: str = "User") -> uuid.UUID:
    """Ids that are not UUIDs cannot exist in the store, so they are simply not found."""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except (ValueError, TypeError):
        raise NotFound(f"{what} not found") from None


def generate_api_key() -> str:
    return "xhp_" + secrets.token_urlsafe(32)


def public_profile(record: UserRecord) -> Dict[str, Any]:
    """User fields safe to hand out on lookup paths: no password, no api key."""
    cred = record.credential
    return {
        "id": record.id,
        "full_name": record.full_name,
        "email": record.email,
        "user_type": record.user_type,
        "subscription_type": cred.subscription_type if cred else None,
        "rate_limit": cred.rate_limit if cred else None,
        "created_at": record.created_at,
    }


class IdentityService:
    def __init__(self, store: CredentialStore, tokens: TokenService, token_ttl: Optional[timedelta] = None):
        self.store = store
        self.tokens = tokens
        self.token_ttl = token_ttl

    # ── Registration ───────────────────────────────────────────────────────

    async def _create(self, data: RegisterRequest, user_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        existing = await self.store.find_by_email(data.email)
        if existing:
            log.info("register_conflict")
            raise Conflict("User already exists")

        user = {
            "id": user_id,
            "full_name": data.full_name,
            "email": data.email,
            "password": hash_password(data.password),
            "user_type": data.user_type.value,
        }
        credential = {"api_key": generate_api_key(), **tier_terms(DEFAULT_TIER)}
        # A concurrent registration that slipped past the check above hits the unique index
        created = await self.store.create(user, credential)
        log.info("user_created", user_id=str(created["id"]), user_type=user["user_type"])
        return created

    async def register(self, payload: Any) -> Dict[str, Any]:
        data = validate_registration(payload)
        created = await self._create(data)
        token = self.tokens.issue({"userId": created["id"], "keyId": created["keyId"]}, ttl=self.token_ttl)
        return {"userId": created["id"], "apiKey": created["apiKey"], "token": token}

    async def create_user(self, payload: Any) -> Dict[str, Any]:
        data = validate_user_create(payload)
        created = await self._create(data, user_id=data.id)
        return {"id": created["id"], "message": "User created successfully"}

    # ── Login / tokens ─────────────────────────────────────────────────────

    async def login(self, payload: Any) -> Dict[str, Any]:
        data = validate_login(payload)
        record = await self.store.find_by_email(data.email)

        if record is None:
            burn_verify(data.password)
            log.info("login_failed", reason="unknown_email")
            raise Unauthorized(INVALID_CREDENTIALS)
        if not verify_password(data.password, record.password):
            log.info("login_failed", reason="bad_password", user_id=str(record.id))
            raise Unauthorized(INVALID_CREDENTIALS)

        cred = record.credential
        token = self.tokens.issue(
            {"userId": record.id, "keyId": cred.id if cred else None}, ttl=self.token_ttl
        )
        log.info("login_succeeded", user_id=str(record.id))
        return {
            "success": True,
            "token": token,
            "user": {
                "id": record.id,
                "full_name": record.full_name,
                "email": record.email,
                "user_type": record.user_type,
                "api_key": cred.api_key if cred else None,
                "subscription_type": cred.subscription_type if cred else None,
            },
        }

    # ── Users ──────────────────────────────────────────────────────────────

    async def _get(self, user_id: Any) -> UserRecord:
        record = await self.store.find_by_id(parse_id(user_id))
        if record is None:
            raise NotFound("User not found")
        return record

    async def get_user(self, user_id: Any) -> Dict[str, Any]:
        return public_profile(await self._get(user_id))

    async def update_user(self, user_id: Any, payload: Any) -> Dict[str, str]:
        uid = parse_id(user_id)
        data = validate_update(payload)
        fields = data.model_dump(exclude_none=True, mode="json")
        await self.store.update(uid, fields)
        log.info("user_updated", user_id=str(uid), fields=sorted(fields))
        return {"message": "User updated successfully"}

    async def delete_user(self, user_id: Any) -> Dict[str, str]:
        uid = parse_id(user_id)
        await self.store.delete(uid)
        log.info("user_deleted", user_id=str(uid))
        return {"message": "User deleted successfully"}

    # ── Admin flag ─────────────────────────────────────────────────────────

    async def is_admin(self, user_id: Any) -> Dict[str, bool]:
        record = await self._get(user_id)
        return {"isAdmin": record.user_type == UserType.ADMIN.value}

    async def list_admins(self) -> Dict[str, List[str]]:
        admins = await self.store.list_users(user_type=UserType.ADMIN.value)
        return {"adminUsers": [str(r.id) for r in admins]}

    async def set_admin_status(self, user_id: Any, payload: Any) -> Dict[str, str]:
        uid = parse_id(user_id)
        data = validate_admin_status(payload)
        # Revoking admin drops the user back to the default role
        user_type = UserType.ADMIN if data.isAdmin else UserType.CLIENT
        await self.store.update(uid, {"user_type": user_type.value})
        log.info("admin_status_changed", user_id=str(uid), is_admin=data.isAdmin)
        return {"message": "Admin status updated successfully"}

    # ── Credentials ────────────────────────────────────────────────────────

    async def get_credential(self, user_id: Any = None, api_key: Optional[str] = None) -> CredentialRecord:
        if user_id is None and not api_key:
            raise ValidationError(
                [{"field": "userId", "message": "userId or apiKey is required"}]
            )
        uid = parse_id(user_id, "Credential") if user_id is not None else None
        record = await self.store.find_credential(user_id=uid, api_key=api_key or None)
        if record is None:
            raise NotFound("Credential not found")
        return record

    async def change_subscription(self, user_id: Any, payload: Any) -> Dict[str, Any]:
        uid = parse_id(user_id, "Credential")
        data = validate_subscription(payload)
        terms = tier_terms(data.subscription_type)
        record = await self.store.update_credential(uid, terms)
        log.info("subscription_changed", user_id=str(uid), tier=record.subscription_type)
        return {
            "message": "Subscription updated successfully",
            "subscription_type": record.subscription_type,
            "rate_limit": record.rate_limit,
            "expires_at": record.expires_at,
        }
