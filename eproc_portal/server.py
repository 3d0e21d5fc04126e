"""
Primary FastAPI application entry point
"""
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eproc_portal.api.api import api_router
from eproc_portal.api.endpoints import pages
from eproc_portal.api.middleware import AuthorizationMiddleware
from eproc_portal.core.config import settings
from eproc_portal.data_access.procurement_repository import ProcurementRepository
from eproc_portal.data_access.profile_repository import ProfileRepository
from eproc_portal.data_access.supabase_client import reset_service_client
from eproc_portal.services.role_service import RoleResolver
from eproc_portal.services.session_service import SessionResolver

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application startup: {settings.PROJECT_NAME} v{settings.VERSION}")
    yield
    logger.info("Application shutdown: Dropping cached Supabase client...")
    reset_service_client()


def create_app(
    session_resolver: Optional[SessionResolver] = None,
    role_resolver: Optional[RoleResolver] = None,
    profile_repository: Optional[ProfileRepository] = None,
    procurement_repository: Optional[ProcurementRepository] = None,
) -> FastAPI:
    """
    Builds the portal application.

    Args:
        session_resolver: Overrides the cookie/bearer session resolver.
        role_resolver: Overrides the role resolver.
        profile_repository: Overrides the profile store used by the services.
        procurement_repository: Overrides the store for tenders, proposals and the other procurement tables.
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    profile_repository = profile_repository or ProfileRepository()
    app.state.profile_repository = profile_repository
    app.state.procurement_repository = procurement_repository or ProcurementRepository()
    app.state.session_resolver = session_resolver or SessionResolver()
    app.state.role_resolver = role_resolver or RoleResolver(profile_repository)

    # Added first so that it runs inside CORS handling
    app.add_middleware(AuthorizationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(pages.PageAccessDenied, pages.render_access_denied)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.include_router(pages.router, tags=["Pages"])
    return app


app = create_app()


def main():
    import uvicorn

    uvicorn.run("eproc_portal.server:app", host="0.0.0.0", port=8000)


# For local development
if __name__ == "__main__":
    main()
