# eproc_portal/models/auth.py

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class Role(str, Enum):
    """Coarse authorization label carried by every portal user."""
    ADMIN = "admin"
    SUPPLIER = "supplier"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Returns the Role whose value equals `value` exactly, otherwise None."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class RouteClass(str, Enum):
    """Static categorization of URL paths for authorization purposes."""
    PUBLIC = "public"
    ADMIN = "admin"
    SUPPLIER = "supplier"
    SHARED_PROTECTED = "shared_protected"


# --- Session / identity ---

class Identity(BaseModel):
    """Authenticated identity as issued by the auth provider (read-only here)."""
    user_id: str = Field(..., description="Auth provider user id (JWT 'sub').")
    email: str = Field("", description="Email address from the token, empty if absent.")
    role_claim: Optional[str] = Field(None, description="Raw role embedded in app_metadata, if any.")

    model_config = {"frozen": True}


class SessionTokens(BaseModel):
    """Token material stored in the session cookie."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"


class ResolvedSession(BaseModel):
    identity: Identity
    tokens: SessionTokens


class CookieUpdate(BaseModel):
    """A cookie to write (or delete, when max_age is 0) on the outbound response."""
    name: str
    value: str = ""
    max_age: int = 0


class SessionResolution(BaseModel):
    session: Optional[ResolvedSession] = None
    cookies: List[CookieUpdate] = Field(default_factory=list)

    @property
    def has_session(self) -> bool:
        return self.session is not None


# --- Authorization decision ---

class DecisionOutcome(str, Enum):
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_DASHBOARD = "redirect_dashboard"


class DecisionReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PUBLIC_ROUTE = "public_route"
    ALREADY_AUTHENTICATED = "already_authenticated"
    ROLE_MISMATCH = "role_mismatch"
    AUTHORIZED = "authorized"


class AuthorizationInput(BaseModel):
    has_session: bool
    role: Optional[Role] = None
    route_class: RouteClass

    model_config = {"frozen": True}


class AuthorizationDecision(BaseModel):
    outcome: DecisionOutcome
    reason: DecisionReason

    model_config = {"frozen": True}

    @property
    def allowed(self) -> bool:
        return self.outcome == DecisionOutcome.ALLOW


# --- API request/response bodies ---

class UserRead(BaseModel):
    """User data returned in responses"""
    id: str
    email: str
    role: Role
    full_name: Optional[str] = None


class UserLogin(BaseModel):
    """Data required for user login"""
    email: EmailStr
    password: str
    redirect: Optional[str] = Field(None, description="Post-login return path, as received in the login URL.")


class LoginResponse(BaseModel):
    redirect_to: str
    user: UserRead


class UserCreate(BaseModel):
    """Data required to complete signup"""
    email: EmailStr
    password: str = Field(..., min_length=8, description="User password (min 8 characters)")
    full_name: str = Field(..., min_length=1)
    phone: str = Field("", description="Contact phone number")
    country: str = Field("", description="Country of residence")


class RegisterResponse(BaseModel):
    """Response after successful registration"""
    message: str = "Registration successful. Please check your email for verification."
    user_id: str
    email: EmailStr


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


# --- Render guard ---

class GuardView(str, Enum):
    """What a render guard shows in place of (or as) the protected page."""
    LOADING = "loading"
    RENDER = "render"
    REDIRECT = "redirect"
    ACCESS_DENIED = "access_denied"


class GuardResult(BaseModel):
    view: GuardView
    reason: Optional[DecisionReason] = None
    navigate_to: Optional[str] = Field(None, description="Redirect target, or the link offered on the interstitial.")
    message: Optional[str] = None
    required_role: Optional[Role] = None
    current_role: Optional[Role] = None

    model_config = {"frozen": True}


# --- API caller ---

class Caller(BaseModel):
    """Who is calling a procurement endpoint, and which supplier they act for."""
    user_id: str
    email: str = ""
    role: Role
    supplier_id: Optional[str] = Field(None, description="Supplier linked to the caller's profile, if any.")

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def owns(self, supplier_id: Optional[str]) -> bool:
        return self.supplier_id is not None and self.supplier_id == supplier_id
