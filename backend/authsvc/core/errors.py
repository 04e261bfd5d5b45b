"""
Error taxonomy shared by the identity core and the HTTP boundary.

Every error carries the HTTP status and a stable machine code; the boundary
renders them as {"error": {"code", "message"}}.
"""
from typing import Any, Dict, List, Optional


class AuthServiceError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message}}


class ValidationError(AuthServiceError):
    status_code = 400
    code = "validation_error"
    default_message = "Validation failed"

    def __init__(self, details: Optional[List[Dict[str, str]]] = None, message: Optional[str] = None):
        super().__init__(message)
        self.details = details or []

    @property
    def fields(self) -> List[str]:
        return [d["field"] for d in self.details]

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["error"]["details"] = self.details
        return body


class Conflict(AuthServiceError):
    status_code = 409
    code = "conflict"
    default_message = "User already exists"


class Unauthorized(AuthServiceError):
    status_code = 401
    code = "unauthorized"
    default_message = "Unauthorized"


class InvalidToken(Unauthorized):
    code = "invalid_token"
    default_message = "Invalid token"


class NotFound(AuthServiceError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class GatewayError(AuthServiceError):
    status_code = 500
    code = "gateway_error"
    default_message = "Backing store unavailable"
