"""
Credential store gateway.

IdentityService talks to the CredentialStore protocol only. The one shipped
implementation, SqlCredentialStore, is a direct transactional database store on
SQLAlchemy asyncio: every call runs in its own transaction, is bounded by a
timeout, and maps driver failures onto the service error taxonomy.
"""
import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, TypeVar

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authsvc.core.errors import AuthServiceError, Conflict, GatewayError, NotFound
from authsvc.models.credential import Credential
from authsvc.models.user import User

log = structlog.get_logger()

T = TypeVar("T")

USER_FIELDS = {"full_name", "user_type"}
CREDENTIAL_FIELDS = {"subscription_type", "rate_limit", "rate_limit_reset_at", "expires_at"}


@dataclass
class CredentialRecord:
    id: uuid.UUID
    user_id: uuid.UUID
    subscription_type: str
    api_key: str
    rate_limit: int
    rate_limit_reset_at: datetime
    created_at: Optional[datetime]
    expires_at: datetime

    @classmethod
    def from_row(cls, row: Credential) -> "CredentialRecord":
        return cls(
            id=row.id,
            user_id=row.user_id,
            subscription_type=row.subscription_type,
            api_key=row.api_key,
            rate_limit=row.rate_limit,
            rate_limit_reset_at=row.rate_limit_reset_at,
            created_at=row.created_at,
            expires_at=row.expires_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "subscription_type": self.subscription_type,
            "api_key": self.api_key,
            "rate_limit": self.rate_limit,
            "rate_limit_reset_at": self.rate_limit_reset_at,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }


@dataclass
class UserRecord:
    """A user joined with its credential record, detached from any session."""
    id: uuid.UUID
    full_name: str
    email: str
    password: str
    user_type: str
    created_at: Optional[datetime] = None
    credential: Optional[CredentialRecord] = None

    @classmethod
    def from_row(cls, row: User) -> "UserRecord":
        return cls(
            id=row.id,
            full_name=row.full_name,
            email=row.email,
            password=row.password,
            user_type=row.user_type,
            created_at=row.created_at,
            credential=CredentialRecord.from_row(row.credential) if row.credential else None,
        )


class CredentialStore(Protocol):
    async def find_by_email(self, email: str) -> Optional[UserRecord]: ...

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[UserRecord]: ...

    async def list_users(self, user_type: Optional[str] = None) -> List[UserRecord]: ...

    async def create(self, user: Dict[str, Any], credential: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update(self, user_id: uuid.UUID, fields: Dict[str, Any]) -> None: ...

    async def delete(self, user_id: uuid.UUID) -> None: ...

    async def find_credential(
        self, user_id: Optional[uuid.UUID] = None, api_key: Optional[str] = None
    ) -> Optional[CredentialRecord]: ...

    async def update_credential(self, user_id: uuid.UUID, fields: Dict[str, Any]) -> CredentialRecord: ...


class SqlCredentialStore:
    def __init__(self, session_factory: async_sessionmaker, timeout: float = 5.0):
        self._factory = session_factory
        self._timeout = timeout

    async def _run(self, op: str, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async def _txn() -> T:
            async with self._factory() as session:
                async with session.begin():
                    return await fn(session)

        try:
            return await asyncio.wait_for(_txn(), timeout=self._timeout)
        except AuthServiceError:
            raise
        except IntegrityError as e:
            log.warning("store_integrity_error", op=op, error=str(e.orig))
            raise Conflict() from None
        except asyncio.TimeoutError:
            log.error("gateway_timeout", op=op, timeout=self._timeout)
            raise GatewayError("Backing store timed out") from None
        except (SQLAlchemyError, OSError) as e:
            log.error("gateway_error", op=op, error=str(e))
            raise GatewayError() from None

    # ── Users ──────────────────────────────────────────────────────────────

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        async def _op(session: AsyncSession):
            row = await session.scalar(select(User).where(User.email == email.lower()))
            return UserRecord.from_row(row) if row else None

        return await self._run("find_by_email", _op)

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[UserRecord]:
        async def _op(session: AsyncSession):
            row = await session.get(User, user_id)
            return UserRecord.from_row(row) if row else None

        return await self._run("find_by_id", _op)

    async def list_users(self, user_type: Optional[str] = None) -> List[UserRecord]:
        async def _op(session: AsyncSession):
            stmt = select(User).order_by(User.created_at)
            if user_type is not None:
                stmt = stmt.where(User.user_type == user_type)
            result = await session.execute(stmt)
            return [UserRecord.from_row(row) for row in result.scalars().all()]

        return await self._run("list_users", _op)

    async def create(self, user: Dict[str, Any], credential: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a user and its credential as one unit; either both land or neither."""
        async def _op(session: AsyncSession):
            row = User(
                id=user.get("id") or uuid.uuid4(),
                full_name=user["full_name"],
                email=user["email"].lower(),
                password=user["password"],
                user_type=user["user_type"],
            )
            session.add(row)
            await session.flush()

            cred = Credential(user_id=row.id, **credential)
            session.add(cred)
            await session.flush()
            return {"id": row.id, "apiKey": cred.api_key, "keyId": cred.id}

        return await self._run("create", _op)

    async def update(self, user_id: uuid.UUID, fields: Dict[str, Any]) -> None:
        async def _op(session: AsyncSession):
            row = await session.get(User, user_id)
            if row is None:
                raise NotFound("User not found")
            for key, value in fields.items():
                if key not in USER_FIELDS:
                    raise ValueError(f"field not updatable: {key}")
                setattr(row, key, value)

        await self._run("update", _op)

    async def delete(self, user_id: uuid.UUID) -> None:
        async def _op(session: AsyncSession):
            row = await session.get(User, user_id)
            if row is None:
                raise NotFound("User not found")
            await session.delete(row)

        await self._run("delete", _op)

    # ── Credentials ────────────────────────────────────────────────────────

    async def find_credential(
        self, user_id: Optional[uuid.UUID] = None, api_key: Optional[str] = None
    ) -> Optional[CredentialRecord]:
        if user_id is None and api_key is None:
            raise ValueError("user_id or api_key is required")

        async def _op(session: AsyncSession):
            stmt = select(Credential)
            if user_id is not None:
                stmt = stmt.where(Credential.user_id == user_id)
            if api_key is not None:
                stmt = stmt.where(Credential.api_key == api_key)
            row = await session.scalar(stmt)
            return CredentialRecord.from_row(row) if row else None

        return await self._run("find_credential", _op)

    async def update_credential(self, user_id: uuid.UUID, fields: Dict[str, Any]) -> CredentialRecord:
        async def _op(session: AsyncSession):
            row = await session.scalar(select(Credential).where(Credential.user_id == user_id))
            if row is None:
                raise NotFound("Credential not found")
            for key, value in fields.items():
                if key not in CREDENTIAL_FIELDS:
                    raise ValueError(f"field not updatable: {key}")
                setattr(row, key, value)
            await session.flush()
            return CredentialRecord.from_row(row)

        return await self._run("update_credential", _op)
