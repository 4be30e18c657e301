"""
Organization endpoints.

The /public routes need no session; everything else is role-gated.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db, require_employer, require_talent
from api.schemas.organizations import OrganizationCreate, OrganizationUpdate
from api.services import organizations as organization_service
from core.security import TokenUser

router = APIRouter(prefix="/organization", tags=["organizations"])


# ==================== Public ==================== #

@router.get("/public", summary="List Organizations")
async def list_public_organizations(db: AsyncSession = Depends(get_db)):
    return await organization_service.list_public_organizations(db)


@router.get("/public/{organization_id}", summary="Get Organization")
async def get_public_organization(
    organization_id: int = Path(..., description="Organization ID"),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.get_public_organization(db, organization_id)


@router.get(
    "/public-organizations/{organization_id}/followers/count",
    summary="Follower Count",
)
async def follower_count(
    organization_id: int = Path(..., description="Organization ID"),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.count_followers(db, organization_id)


# ==================== Employer ==================== #

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create Organization",
    description="Create an organization profile. Each employer may own at most four.",
)
async def create_organization(
    data: OrganizationCreate,
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.create_organization(db, current_user, data)


@router.get("", summary="My Organizations")
async def my_organizations(
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.list_my_organizations(db, current_user)


@router.patch("/{organization_id}", summary="Update Organization")
async def update_organization(
    data: OrganizationUpdate,
    organization_id: int = Path(..., description="Organization ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.update_organization(
        db, current_user, organization_id, data
    )


@router.delete("/{organization_id}", summary="Delete Organization")
async def delete_organization(
    organization_id: int = Path(..., description="Organization ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.delete_organization(db, current_user, organization_id)


@router.get("/{organization_id}/followers", summary="List Followers")
async def list_followers(
    organization_id: int = Path(..., description="Organization ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.list_followers(db, current_user, organization_id)


# ==================== Talent ==================== #

@router.post("/{organization_id}/follow", summary="Follow Organization")
async def follow_organization(
    organization_id: int = Path(..., description="Organization ID"),
    current_user: TokenUser = Depends(require_talent),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.follow_organization(db, current_user, organization_id)


@router.get("/{organization_id}/is-following", summary="Is Following")
async def is_following(
    organization_id: int = Path(..., description="Organization ID"),
    current_user: TokenUser = Depends(require_talent),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.is_following(db, current_user, organization_id)
