import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from eproc_portal.api.deps import get_auth_service, get_optional_session
from eproc_portal.models.auth import ForgotPasswordRequest, LoginResponse, RegisterResponse, ResolvedSession, UserCreate, UserLogin
from eproc_portal.services.auth_service import AuthService, AuthServiceError
from eproc_portal.services.session_service import clear_session_cookies, session_cookie_updates
from eproc_portal.utils.helpers import apply_cookie_updates

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/signup",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register New Supplier",
    description="Creates the identity and its profile row with the supplier role.",
    responses={
        409: {"description": "User with this email already exists"},
        422: {"description": "Invalid input data"},
        500: {"description": "Internal server error during registration"},
    }
)
async def register_user(
    user_in: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        return await auth_service.register_user(user_in)
    except AuthServiceError as e:
        logger.warning(f"Registration failed: {e.message} (Status Code: {e.status_code})")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error during /signup endpoint: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An internal error occurred.")


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="User Login",
    description="Authenticates with email and password, sets the session cookie and returns the post-login target.",
    responses={
        401: {"description": "Invalid email or password"},
        500: {"description": "Internal server error during login"},
    }
)
async def login_user(
    login_data: UserLogin,
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Handles user login. The `redirect` field is only honoured when it is a
    local path; otherwise the caller is sent to the dashboard.
    """
    try:
        login_response, tokens = await auth_service.login_user(login_data)
    except AuthServiceError as e:
        logger.warning(f"Login failed for {login_data.email}: {e.message} (Status Code: {e.status_code})")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Unexpected error during /login endpoint: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An internal error occurred.")

    apply_cookie_updates(response, session_cookie_updates(tokens, request.cookies.keys()))
    return login_response


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="User Logout",
    description="Revokes the current session (if any) and clears the session cookies.",
)
async def logout_user(
    request: Request,
    response: Response,
    session: Optional[ResolvedSession] = Depends(get_optional_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.logout_user(session)
    apply_cookie_updates(response, clear_session_cookies(request.cookies.keys()))
    return None


@router.post(
    "/forgot-password",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request Password Reset",
    description="Sends a password reset email. Always accepted, so account existence is not revealed.",
)
async def forgot_password(
    body: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.send_password_reset(body.email)
    return {"message": "If the account exists, a reset link has been sent."}
