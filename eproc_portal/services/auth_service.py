import logging
from typing import Optional, Tuple

from eproc_portal.core.authorization import sanitize_redirect_target
from eproc_portal.core.config import settings
from eproc_portal.data_access.profile_repository import ProfileRepository
from eproc_portal.data_access.supabase_client import create_request_client, get_service_client
from eproc_portal.models.auth import (
    LoginResponse,
    RegisterResponse,
    ResolvedSession,
    Role,
    SessionTokens,
    UserCreate,
    UserLogin,
    UserRead,
)
from eproc_portal.models.profile import ProfileCreate
from eproc_portal.services.role_service import resolve_role
from eproc_portal.services.session_service import tokens_from_supabase_session

logger = logging.getLogger(__name__)


class AuthServiceError(Exception):
    """Custom exception for Auth service errors."""
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthService:
    def __init__(self, profiles: ProfileRepository, client_factory=create_request_client):
        self.profiles = profiles
        # A fresh client per flow: sign-in stores the session on the client object.
        self.client_factory = client_factory

    async def login_user(self, login_data: UserLogin) -> Tuple[LoginResponse, SessionTokens]:
        """
        Logs in a user with email and password using Supabase.

        Returns:
            The login response (with the sanitized post-login target) and the
            tokens to store in the session cookie.

        Raises:
            AuthServiceError: 401 on bad credentials or unconfirmed email, 500 otherwise.
        """
        client = self.client_factory()
        try:
            logger.info(f"Attempting login for user: {login_data.email}")
            res = client.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })
        except Exception as e:
            error_message = str(e).lower()
            if "invalid login" in error_message or "invalid credentials" in error_message:
                logger.warning(f"Invalid credentials for {login_data.email}")
                raise AuthServiceError("Invalid email or password.", 401)
            if "email not confirmed" in error_message:
                raise AuthServiceError("Email address has not been confirmed.", 401)
            logger.error(f"Error during user login: {e}", exc_info=True)
            raise AuthServiceError(f"Login failed: {str(e)}", 500)

        if not (res.session and res.user):
            logger.error(f"Supabase login response missing session or user data for {login_data.email}.")
            raise AuthServiceError("Login failed due to an unexpected Supabase response.", 500)

        user_id = str(res.user.id)
        app_metadata = res.user.app_metadata or {}
        profile = None
        try:
            profile = self.profiles.get_by_id(user_id)
        except Exception as e:
            # Still let the user in; the role falls back to the default.
            logger.error(f"Error fetching profile for {user_id} after login: {e}", exc_info=True)

        role = resolve_role(app_metadata.get("role"), profile.role.value if profile and profile.role else None)
        redirect_to = sanitize_redirect_target(login_data.redirect) or settings.DASHBOARD_PATH
        logger.info(f"Successfully logged in user: {user_id} as {role.value}")

        response = LoginResponse(
            redirect_to=redirect_to,
            user=UserRead(
                id=user_id,
                email=res.user.email or login_data.email,
                role=role,
                full_name=profile.full_name if profile else None,
            ),
        )
        return response, tokens_from_supabase_session(res.session)

    async def register_user(self, user_data: UserCreate) -> RegisterResponse:
        """
        Creates the identity and its supplier profile row (signup completion).

        Raises:
            AuthServiceError: 409 if the email is taken, 500 otherwise.
        """
        client = self.client_factory()
        try:
            logger.info(f"Attempting to register user: {user_data.email}")
            res = client.auth.sign_up({
                "email": user_data.email,
                "password": user_data.password,
                "options": {
                    "data": {
                        "full_name": user_data.full_name,
                        "phone": user_data.phone,
                        "country": user_data.country,
                    }
                },
            })
        except Exception as e:
            error_message = str(e).lower()
            if "already registered" in error_message or "already exists" in error_message:
                raise AuthServiceError(f"User with email {user_data.email} already exists.", 409)
            logger.error(f"Error during user registration: {e}", exc_info=True)
            raise AuthServiceError(f"Registration failed: {str(e)}", 500)

        if not res.user:
            logger.error(f"Supabase registration response missing user data for {user_data.email}.")
            raise AuthServiceError("Registration failed due to an unexpected Supabase response.", 500)

        user_id = str(res.user.id)
        try:
            self.profiles.create(ProfileCreate(
                id=user_id,
                email=user_data.email,
                full_name=user_data.full_name,
                phone=user_data.phone,
                country=user_data.country,
                role=Role.SUPPLIER,
            ))
        except Exception as e:
            # The identity exists; the role resolver defaults until the row is written.
            logger.error(f"Profile creation failed for new user {user_id}: {e}", exc_info=True)
            raise AuthServiceError("Account created but profile setup failed. Please contact support.", 500)

        logger.info(f"Successfully registered user: {user_id} ({user_data.email})")
        return RegisterResponse(user_id=user_id, email=user_data.email)

    async def logout_user(self, session: Optional[ResolvedSession]) -> None:
        """Revokes the session with the auth provider. Failures are logged only."""
        if session is None:
            return
        try:
            get_service_client().auth.admin.sign_out(session.tokens.access_token)
            logger.info(f"Signed out user {session.identity.user_id}.")
        except Exception as e:
            logger.warning(f"Sign-out with the auth provider failed for {session.identity.user_id}: {e}")

    async def send_password_reset(self, email: str) -> None:
        """Asks Supabase to email a reset link. Errors are logged, not surfaced."""
        try:
            self.client_factory().auth.reset_password_for_email(
                email, {"redirect_to": f"{settings.SITE_URL.rstrip('/')}/reset-password"}
            )
            logger.info(f"Password reset requested for {email}.")
        except Exception as e:
            logger.error(f"Password reset request failed for {email}: {e}", exc_info=True)
