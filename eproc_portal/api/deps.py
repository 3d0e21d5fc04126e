# FastAPI dependencies (e.g., get_current_session, require_admin)
# eproc_portal/api/deps.py

import logging
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.concurrency import run_in_threadpool

from eproc_portal.core.security import InsufficientPermissionsException, MissingTokenException
from eproc_portal.data_access.supabase_client import get_service_client
from eproc_portal.models.auth import Caller, ResolvedSession, Role
from eproc_portal.services.role_service import RoleResolver
from eproc_portal.services.session_service import SessionResolver
from eproc_portal.utils.helpers import apply_cookie_updates

logger = logging.getLogger(__name__)

# auto_error=False: a missing header falls back to the session cookie
token_bearer_scheme = HTTPBearer(auto_error=False)


# --- Resolver Dependencies ---

def get_session_resolver(request: Request) -> SessionResolver:
    return request.app.state.session_resolver


def get_role_resolver(request: Request) -> RoleResolver:
    return request.app.state.role_resolver


# --- Authentication Dependencies ---

async def get_optional_session(
    request: Request,
    response: Response,
    auth_credentials: Optional[HTTPAuthorizationCredentials] = Depends(token_bearer_scheme),
    session_resolver: SessionResolver = Depends(get_session_resolver),
) -> Optional[ResolvedSession]:
    """
    Resolves the caller's session from a bearer token or the session cookie.
    Rotated cookies are written on the outgoing response.
    """
    authorization = f"Bearer {auth_credentials.credentials}" if auth_credentials else None
    resolution = await run_in_threadpool(session_resolver.resolve, dict(request.cookies), authorization)
    apply_cookie_updates(response, resolution.cookies)
    return resolution.session


async def get_current_session(
    session: Optional[ResolvedSession] = Depends(get_optional_session),
) -> ResolvedSession:
    """
    Dependency that ensures the caller is authenticated.

    Raises:
        MissingTokenException: 401 if no valid session could be resolved.
    """
    if session is None:
        raise MissingTokenException()
    return session


async def get_current_user_id(session: ResolvedSession = Depends(get_current_session)) -> str:
    return session.identity.user_id


async def get_current_role(
    session: ResolvedSession = Depends(get_current_session),
    role_resolver: RoleResolver = Depends(get_role_resolver),
) -> Role:
    return await run_in_threadpool(role_resolver.resolve, session.identity)


async def require_admin(role: Role = Depends(get_current_role)) -> Role:
    """
    Raises:
        InsufficientPermissionsException: 403 for non-admin callers.
    """
    if role != Role.ADMIN:
        logger.warning("Non-admin caller attempted an admin-only API operation.")
        raise InsufficientPermissionsException()
    return role


async def get_caller(
    request: Request,
    session: ResolvedSession = Depends(get_current_session),
    role: Role = Depends(get_current_role),
) -> Caller:
    """
    The caller of a procurement endpoint. Supplier users also carry the
    supplier linked to their profile; when the profile cannot be read they
    act for no supplier and every ownership check fails.
    """
    supplier_id = None
    if role != Role.ADMIN:
        try:
            profile = await run_in_threadpool(request.app.state.profile_repository.get_by_id, session.identity.user_id)
            supplier_id = profile.supplier_id if profile else None
        except Exception as e:
            logger.error(f"Could not load the profile of user {session.identity.user_id}: {e}", exc_info=True)
    return Caller(user_id=session.identity.user_id, email=session.identity.email, role=role, supplier_id=supplier_id)


# --- Service Dependencies ---

def get_auth_service(request: Request):
    from eproc_portal.services.auth_service import AuthService

    return AuthService(profiles=request.app.state.profile_repository)


def get_profile_service(request: Request):
    from eproc_portal.services.profile_service import ProfileService

    return ProfileService(profiles=request.app.state.profile_repository)


def get_notification_service(request: Request):
    from eproc_portal.services.notification_service import NotificationService

    return NotificationService(client=get_service_client(), profiles=request.app.state.profile_repository)


def get_storage_service():
    from eproc_portal.services.storage_service import StorageService

    return StorageService(client=get_service_client())


def get_tender_service(request: Request, notifications=Depends(get_notification_service)):
    from eproc_portal.services.tender_service import TenderService

    return TenderService(request.app.state.procurement_repository, notifications)


def get_proposal_service(
    request: Request,
    notifications=Depends(get_notification_service),
    storage=Depends(get_storage_service),
):
    from eproc_portal.services.proposal_service import ProposalService

    return ProposalService(request.app.state.procurement_repository, notifications, storage)


def get_supplier_service(request: Request):
    from eproc_portal.services.supplier_service import SupplierService

    return SupplierService(request.app.state.procurement_repository, request.app.state.profile_repository)


def get_service_order_service(request: Request, notifications=Depends(get_notification_service)):
    from eproc_portal.services.service_order_service import ServiceOrderService

    return ServiceOrderService(request.app.state.procurement_repository, notifications)


def get_invoice_service(request: Request, notifications=Depends(get_notification_service)):
    from eproc_portal.services.invoice_service import InvoiceService

    return InvoiceService(request.app.state.procurement_repository, notifications)


def get_approval_service(request: Request, tenders=Depends(get_tender_service)):
    from eproc_portal.services.approval_service import ApprovalService

    return ApprovalService(request.app.state.procurement_repository, tenders.notifications, tenders)
