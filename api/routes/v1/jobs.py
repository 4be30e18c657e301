"""
Job posting endpoints.

Employers create and manage their own postings; talents apply with a CV.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_cv_storage, get_db, require_employer, require_talent
from api.schemas.applications import ApplicationForm
from api.schemas.common import PaginationParams
from api.schemas.jobs import JobCreate, JobSort, JobUpdate
from api.services import applications as application_service
from api.services import jobs as job_service
from core.security import TokenUser
from core.storage.local import LocalStorage
from database.models.applications import ExperienceLevel

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create Job",
    description="Create a job posting owned by the calling employer.",
)
async def create_job(
    data: JobCreate,
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.create_job(db, current_user, data)


@router.get(
    "",
    summary="List Jobs",
    description="List the calling employer's jobs with search, filters, sorting and pagination.",
)
async def list_jobs(
    search: Optional[str] = Query(None, description="Matches position, company or title"),
    status_filter: Optional[str] = Query(None, alias="status", description="Job status or 'all'"),
    job_type: Optional[str] = Query(None, alias="jobType", description="Job type or 'all'"),
    sort: JobSort = Query(JobSort.NEWEST),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.list_jobs(
        db,
        current_user,
        search=search,
        status=status_filter,
        job_type=job_type,
        sort=sort,
        pagination=PaginationParams(page=page, limit=limit),
    )


# Declared before /{job_id} so the literal segment wins
@router.get("/myApplications", summary="My Applications")
async def my_applications(
    current_user: TokenUser = Depends(require_talent),
    db: AsyncSession = Depends(get_db),
):
    """Applications submitted by the calling talent, with job summaries."""
    return await application_service.list_my_applications(db, current_user)


@router.get("/{job_id}", summary="Get Job")
async def get_job(
    job_id: int = Path(..., description="Job ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.get_job(db, current_user, job_id)


@router.patch("/{job_id}", summary="Update Job")
async def update_job(
    data: JobUpdate,
    job_id: int = Path(..., description="Job ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.update_job(db, current_user, job_id, data)


@router.delete("/{job_id}", summary="Delete Job")
async def delete_job(
    job_id: int = Path(..., description="Job ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.delete_job(db, current_user, job_id)


@router.post(
    "/applyForJob/{job_id}",
    status_code=status.HTTP_201_CREATED,
    summary="Apply For Job",
    description="Submit an application as multipart form data with a required `cv` file.",
)
async def apply_for_job(
    job_id: int = Path(..., description="Job ID"),
    cv: Optional[UploadFile] = File(None),
    cover_letter: Optional[str] = Form(None, alias="coverLetter"),
    portfolio: Optional[str] = Form(None),
    linkedin_profile: Optional[str] = Form(None, alias="linkedInProfile"),
    skills: Optional[list[str]] = Form(None),
    experience_level: Optional[ExperienceLevel] = Form(None, alias="experienceLevel"),
    availability: Optional[str] = Form(None),
    location_preferences: Optional[str] = Form(None, alias="locationPreferences"),
    references: Optional[list[str]] = Form(None),
    current_user: TokenUser = Depends(require_talent),
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_cv_storage),
):
    form = ApplicationForm(
        cover_letter=cover_letter,
        portfolio=portfolio,
        linkedin_profile=linkedin_profile,
        skills=skills,
        experience_level=experience_level,
        availability=availability,
        location_preferences=location_preferences,
        references=references,
    )
    return await application_service.apply_for_job(
        db, current_user, job_id, cv, form, storage
    )


@router.patch("/{job_id}/close", summary="Close Job")
async def close_job(
    job_id: int = Path(..., description="Job ID"),
    current_user: TokenUser = Depends(require_employer),
    db: AsyncSession = Depends(get_db),
):
    """Stop accepting applications for a job."""
    return await job_service.close_job(db, current_user, job_id)
