"""Authentication endpoints — login, logout, session status and password reset."""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from registers.application.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SessionResponse,
    UserInfo,
    VerifySecurityRequest,
)
from registers.application.services import AuthService
from registers.config import get_settings
from registers.domain.entities import Session
from registers.domain.exceptions import AuthenticationFailure
from registers.infrastructure.dependencies import (
    get_auth_service,
    get_current_session,
    get_session_token,
)

router = APIRouter(tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Check credentials and open a session cookie."""
    try:
        session = await service.authenticate(data.username, data.password)
    except AuthenticationFailure as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    settings = get_settings()
    # No max-age: the server-side sliding window decides expiry.
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return LoginResponse(user=UserInfo(username=session.username, role=session.role))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Destroy the caller's session, if any, and clear its cookie."""
    service.logout(token)
    response.delete_cookie(get_settings().session_cookie_name)
    return MessageResponse(success=True, message="Logged out successfully")


@router.get("/session", response_model=SessionResponse)
async def session_status(
    session: Session = Depends(get_current_session),
) -> SessionResponse:
    """Report the caller's live session; 401 when there is none."""
    return SessionResponse(user=UserInfo(username=session.username, role=session.role))


@router.post("/extend-session", response_model=MessageResponse)
async def extend_session(
    session: Session = Depends(get_current_session),
) -> MessageResponse:
    """Reset the sliding window. Resolving the session already slid it."""
    return MessageResponse(success=True, message="Session extended")


@router.post("/verify-security", response_model=MessageResponse)
async def verify_security(
    data: VerifySecurityRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    if not await service.verify_security_answer(data.username, data.answer):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect answer. Please try again.",
        )
    return MessageResponse(success=True)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    try:
        await service.change_password(data.username, data.answer, data.new_password)
    except (ValueError, AuthenticationFailure) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return MessageResponse(success=True, message="Password changed")
