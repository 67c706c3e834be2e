from .auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SessionResponse,
    UserInfo,
    VerifySecurityRequest,
)
from .register_entry import (
    MaxSerialResponse,
    MoveRequest,
    RegisterEntryCreate,
    RegisterEntryUpdate,
)

__all__ = [
    "ChangePasswordRequest",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "SessionResponse",
    "UserInfo",
    "VerifySecurityRequest",
    "MaxSerialResponse",
    "MoveRequest",
    "RegisterEntryCreate",
    "RegisterEntryUpdate",
]
