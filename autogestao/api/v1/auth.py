"""Local account endpoints.

The session JWT is returned in the body and also set as an httponly
cookie; every other endpoint identifies the user from that cookie.
"""

from fastapi import APIRouter, Depends, Response

from autogestao.api.deps import (
    get_auth_service,
    get_current_user,
    get_tenant_context,
)
from autogestao.core.config import settings
from autogestao.core.exceptions import UnauthorizedError
from autogestao.models.user import User
from autogestao.schemas.auth import (
    EmailRequest,
    MeResponse,
    ProfileResponse,
    RefreshRequest,
    ResetPasswordRequest,
    SessionResponse,
    SignInRequest,
    SignOutRequest,
    SignUpRequest,
    TokenRequest,
    UserResponse,
)
from autogestao.schemas.common import SuccessResponse
from autogestao.schemas.tenant import PublicTenantResponse
from autogestao.services.auth import AuthService, SessionTokens
from autogestao.services.tenancy import TenantContext

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )


def _session_response(response: Response, session: SessionTokens) -> SessionResponse:
    _set_session_cookie(response, session.token)
    return SessionResponse(
        token=session.token,
        refresh_token=session.refresh_token,
        user=UserResponse.model_validate(session.user),
    )


@router.post("/sign-up", response_model=SessionResponse, status_code=201)
async def sign_up(
    body: SignUpRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    session = await auth.sign_up(body.email, body.password, name=body.name)
    await auth.send_verification_email(body.email)
    return _session_response(response, session)


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(
    body: SignInRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    session = await auth.sign_in(body.email, body.password)
    return _session_response(response, session)


@router.post("/refresh", response_model=SessionResponse)
async def refresh(
    body: RefreshRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    session = await auth.refresh_session(body.refresh_token)
    return _session_response(response, session)


@router.post("/sign-out", response_model=SuccessResponse)
async def sign_out(
    response: Response,
    body: SignOutRequest | None = None,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.sign_out(body.refresh_token if body else None)
    response.set_cookie(
        key=settings.session_cookie_name,
        value="",
        max_age=-1,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )
    return SuccessResponse(message="Signed out")


@router.get("/me", response_model=MeResponse)
async def me(
    ctx: TenantContext = Depends(get_tenant_context),
) -> MeResponse:
    """Current user (or null) and their role in the resolved tenant."""
    return MeResponse(
        user=UserResponse.model_validate(ctx.user) if ctx.user else None,
        tenant_subdomain=ctx.tenant_subdomain,
        tenant_role=ctx.user_tenant_role.value if ctx.user_tenant_role else None,
    )


@router.get("/profiles", response_model=list[ProfileResponse])
async def my_profiles(
    user: User | None = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> list[ProfileResponse]:
    if user is None:
        raise UnauthorizedError("Authentication required")
    rows = await auth.list_profiles(user.id)
    return [
        ProfileResponse(
            id=profile.id,
            tenant_id=profile.tenant_id,
            role=profile.role,
            is_active=profile.is_active,
            tenant=PublicTenantResponse.model_validate(tenant),
        )
        for profile, tenant in rows
    ]


@router.post("/send-verification-email", response_model=SuccessResponse)
async def send_verification_email(
    body: EmailRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.send_verification_email(body.email)
    return SuccessResponse(message="Verification email sent")


@router.post("/verify-email", response_model=SuccessResponse)
async def verify_email(
    body: TokenRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.verify_email(body.token)
    return SuccessResponse(message="Email verified")


@router.post("/request-password-reset", response_model=SuccessResponse)
async def request_password_reset(
    body: EmailRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.request_password_reset(body.email)
    return SuccessResponse(
        message="If the account exists, a reset link has been sent"
    )


@router.post("/reset-password", response_model=SuccessResponse)
async def reset_password(
    body: ResetPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.reset_password(body.token, body.new_password)
    return SuccessResponse(message="Password updated")
