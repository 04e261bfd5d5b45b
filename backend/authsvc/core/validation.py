"""
Payload validation for the identity endpoints.

Each validator is a pure function: raw JSON-ish dict in, normalized pydantic
model out, or ValidationError listing every offending field.
"""
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from authsvc.core.errors import ValidationError
from authsvc.schemas.user import (
    AdminStatusRequest,
    CreateUserRequest,
    LoginRequest,
    RegisterRequest,
    SubscriptionUpdateRequest,
    UserUpdateRequest,
)

M = TypeVar("M", bound=BaseModel)


def _details(exc: PydanticValidationError) -> List[Dict[str, str]]:
    details = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        details.append({"field": loc, "message": err.get("msg", "invalid value")})
    return details


def _validate(model: Type[M], payload: Any) -> M:
    if not isinstance(payload, dict):
        raise ValidationError([{"field": "body", "message": "Request body must be a JSON object"}])
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(_details(e)) from None


def validate_registration(payload: Any) -> RegisterRequest:
    return _validate(RegisterRequest, payload)


def validate_user_create(payload: Any) -> CreateUserRequest:
    return _validate(CreateUserRequest, payload)


def validate_login(payload: Any) -> LoginRequest:
    return _validate(LoginRequest, payload)


def validate_update(payload: Any) -> UserUpdateRequest:
    return _validate(UserUpdateRequest, payload)


def validate_admin_status(payload: Any) -> AdminStatusRequest:
    return _validate(AdminStatusRequest, payload)


def validate_subscription(payload: Any) -> SubscriptionUpdateRequest:
    return _validate(SubscriptionUpdateRequest, payload)
