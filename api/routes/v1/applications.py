"""
Job application endpoints.

Talents follow their own applications; employers review applications to the
jobs they created and move them through the review states.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db, require_employer, require_talent
from api.schemas.applications import StatusUpdate
from api.services import applications as application_service
from core.security import TokenUser

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("/my", summary="My Applications")
async def my_applications(
    current_user: TokenUser = Depends(require_talent),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.list_my_applications(db, current_user)


@router.get(
    "/job/{job_id}",
    summary="Applications For Job",
    description="All applications to one of the caller's jobs, with applicant profiles.",
)
async def job_applications(
    job_id: int = Path(..., description="Job ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.list_job_applications(db, current_user, job_id)


@router.patch(
    "/{job_id}/{applicant_id}/status",
    summary="Update Application Status",
    description="Move an applicant to pending, under review, shortlisted, interview or rejected.",
)
async def update_status(
    data: StatusUpdate,
    job_id: int = Path(..., description="Job ID"),
    applicant_id: int = Path(..., description="Talent user ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.update_application_status(
        db, current_user, job_id, applicant_id, data
    )


@router.patch("/{application_id}/withdraw", summary="Withdraw Application")
async def withdraw(
    application_id: int = Path(..., description="Application ID"),
    current_user: TokenUser = Depends(require_talent),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw an application that has not been decided yet."""
    return await application_service.withdraw_application(db, current_user, application_id)
