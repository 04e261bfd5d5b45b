from authsvc.models.user import User
from authsvc.models.credential import Credential

__all__ = ["User", "Credential"]
