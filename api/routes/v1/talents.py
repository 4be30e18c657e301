"""Talent browsing endpoints for employers."""

from fastapi import APIRouter, Depends, Path, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db, require_employer
from api.services import talents as talent_service
from core.security import TokenUser

router = APIRouter(prefix="/talents", tags=["talents"])


@router.get("", summary="List Talents")
async def list_talents(
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    """Applications across all of the caller's jobs."""
    return await talent_service.list_talents(db, current_user)


@router.get(
    "/export-applications",
    summary="Export Applications",
    description="Download the caller's applications as `applications.csv`.",
)
async def export_applications(
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    content = await talent_service.export_applications(db, current_user)
    if content is None:
        return {"msg": "No applications found to export"}
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="applications.csv"'},
    )


@router.get("/{talent_id}", summary="Get Talent")
async def get_talent(
    talent_id: int = Path(..., description="Talent user ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await talent_service.get_talent(db, current_user, talent_id)
