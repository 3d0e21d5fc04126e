# eproc_portal/api/endpoints/profiles.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from eproc_portal.api.deps import get_current_user_id, get_profile_service, require_admin
from eproc_portal.models.profile import Profile, ProfileAdminUpdate, ProfileUpdate
from eproc_portal.services.profile_service import ProfileService, ProfileServiceError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "/me",
    response_model=Profile,
    summary="Get Own Profile",
    responses={404: {"description": "Profile not found"}},
)
async def read_own_profile(
    user_id: str = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
):
    try:
        return await profile_service.get_profile(user_id)
    except ProfileServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Error fetching profile for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not load profile.")


@router.patch(
    "/me",
    response_model=Profile,
    summary="Update Own Profile",
    description="Updates personal details. The role cannot be changed here.",
)
async def update_own_profile(
    changes: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
):
    try:
        return await profile_service.update_own_profile(user_id, changes)
    except ProfileServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Error updating profile for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not update profile.")


@router.patch(
    "/{user_id}",
    response_model=Profile,
    summary="Update Any Profile (Admin)",
    description="Admin-only: change a user's role or supplier linkage.",
    responses={
        403: {"description": "Caller is not an admin"},
        404: {"description": "Profile not found"},
    },
    dependencies=[Depends(require_admin)],
)
async def admin_update_profile(
    user_id: str,
    changes: ProfileAdminUpdate,
    actor_id: str = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service),
):
    try:
        return await profile_service.admin_update_profile(actor_id, user_id, changes)
    except ProfileServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Admin {actor_id} failed to update profile {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not update profile.")
