"""
Application service functions for API endpoints.

Implements the application status machine:
pending -> under review -> shortlisted -> interview -> rejected, with
withdrawn reachable by the talent from pending or under review only.
"""

from typing import Any, Dict, Optional
import logging

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool

from api.schemas.applications import ApplicationForm, StatusUpdate
from api.services.jobs import get_job_or_404, serialize_job_summary
from api.services.users import serialize_user_summary
from core.config import settings
from core.errors import BadRequestError, NotFoundError
from core.middleware.authorization import check_permissions
from core.security import TokenUser
from core.storage.local import LocalStorage
from core.utils.datetime import is_past, to_iso
from database.models.applications import (
    EMPLOYER_ASSIGNABLE_STATUSES,
    WITHDRAWABLE_STATUSES,
    ApplicationStatus,
    ExperienceLevel,
    JobApplication,
)
from database.models.jobs import Job

logger = logging.getLogger(__name__)


def serialize_application(
    application: JobApplication,
    include_job: bool = False,
    include_talent: bool = False,
) -> Dict[str, Any]:
    """
    Args:
        application: Row to serialize
        include_job: Embed a job summary (relationship must be loaded)
        include_talent: Embed the talent profile (relationship must be loaded)
    """
    data: Dict[str, Any] = {
        "id": application.id,
        "job": application.job_id,
        "talent": application.talent_id,
        "status": application.status.value,
        "cv": application.cv,
        "coverLetter": application.cover_letter,
        "portfolio": application.portfolio,
        "linkedInProfile": application.linkedin_profile,
        "skills": application.skills or [],
        "experienceLevel": (
            application.experience_level.value if application.experience_level else None
        ),
        "availability": application.availability,
        "locationPreferences": application.location_preferences,
        "references": application.references or [],
        "appliedAt": to_iso(application.applied_at),
        "updatedAt": to_iso(application.updated_at),
    }
    if include_job:
        data["job"] = serialize_job_summary(application.job)
    if include_talent:
        data["talent"] = serialize_user_summary(application.talent)
    return data


async def apply_for_job(
    db: AsyncSession,
    identity: TokenUser,
    job_id: int,
    cv: Optional[UploadFile],
    form: ApplicationForm,
    storage: LocalStorage,
) -> Dict[str, Any]:
    """
    Submit a talent's application with its CV.

    Raises:
        BadRequestError: No CV, job closed, deadline passed, or a prior
            application exists (rejected applicants may never reapply)
        NotFoundError: Unknown job
    """
    if cv is None or not cv.filename:
        raise BadRequestError("Please upload your CV")

    job = await db.get(Job, job_id)
    if not job:
        raise NotFoundError("Job not found")
    if job.is_closed:
        raise BadRequestError("This job is closed for applications")
    if job.application_deadline is not None and is_past(job.application_deadline):
        raise BadRequestError("The application deadline for this job has passed")

    talent_id = int(identity.user_id)
    result = await db.execute(
        select(JobApplication).where(
            JobApplication.job_id == job.id,
            JobApplication.talent_id == talent_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        if existing.status == ApplicationStatus.REJECTED:
            raise BadRequestError("You have been rejected for this job and cannot reapply")
        raise BadRequestError("You have already applied for this job")

    if cv.size is not None and cv.size > settings.max_upload_size:
        raise BadRequestError("CV file is too large")
    # Never buffer more than one byte past the limit
    content = await cv.read(settings.max_upload_size + 1)
    if not content:
        raise BadRequestError("Please upload your CV")
    if len(content) > settings.max_upload_size:
        raise BadRequestError("CV file is too large")

    cv_path = await run_in_threadpool(storage.save_cv, content, cv.filename)

    application = JobApplication(
        job_id=job.id,
        talent_id=talent_id,
        status=ApplicationStatus.PENDING,
        cv=cv_path,
        cover_letter=form.cover_letter,
        portfolio=form.portfolio,
        linkedin_profile=form.linkedin_profile,
        skills=form.skills,
        experience_level=form.experience_level or ExperienceLevel.BEGINNER,
        availability=form.availability,
        location_preferences=form.location_preferences,
        references=form.references,
    )
    db.add(application)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent submission for the same (job, talent) got there first
        await db.rollback()
        await run_in_threadpool(storage.delete, cv_path)
        raise BadRequestError("You have already applied for this job")

    logger.info(f"Talent {talent_id} applied for job {job.id}")
    return {
        "msg": "Application submitted successfully",
        "application": serialize_application(application),
    }


async def update_application_status(
    db: AsyncSession,
    identity: TokenUser,
    job_id: int,
    applicant_id: int,
    data: StatusUpdate,
) -> Dict[str, Any]:
    """
    Move an application to an employer-assignable status.

    Ownership is checked against the job's creator, not the application.
    """
    if data.status is None:
        raise BadRequestError("Please provide status")
    if data.status not in EMPLOYER_ASSIGNABLE_STATUSES:
        raise BadRequestError("Invalid status value")

    result = await db.execute(
        select(JobApplication)
        .options(selectinload(JobApplication.job))
        .where(
            JobApplication.job_id == job_id,
            JobApplication.talent_id == applicant_id,
        )
    )
    application = result.scalar_one_or_none()
    if not application:
        raise NotFoundError("Application not found")

    check_permissions(identity, application.job.created_by)

    previous = application.status
    application.status = data.status
    await db.commit()

    logger.info(
        f"Application {application.id} moved from {previous.value} to {data.status.value}"
    )
    return {
        "msg": "Application status updated",
        "application": serialize_application(application),
    }


async def withdraw_application(
    db: AsyncSession, identity: TokenUser, application_id: int
) -> Dict[str, Any]:
    application = await db.get(JobApplication, application_id)
    if not application:
        raise NotFoundError(f"No application with id {application_id}")

    check_permissions(identity, application.talent_id)

    if application.status not in WITHDRAWABLE_STATUSES:
        raise BadRequestError("Cannot withdraw after a decision has been made")

    application.status = ApplicationStatus.WITHDRAWN
    await db.commit()

    logger.info(f"Talent {identity.user_id} withdrew application {application.id}")
    return {
        "msg": "Application withdrawn",
        "application": serialize_application(application),
    }


async def list_my_applications(db: AsyncSession, identity: TokenUser) -> Dict[str, Any]:
    """The caller's applications, newest first, with job summaries."""
    result = await db.execute(
        select(JobApplication)
        .options(selectinload(JobApplication.job))
        .where(JobApplication.talent_id == int(identity.user_id))
        .order_by(JobApplication.applied_at.desc(), JobApplication.id.desc())
    )
    applications = result.scalars().all()
    return {
        "applications": [
            serialize_application(application, include_job=True)
            for application in applications
        ],
        "count": len(applications),
    }


async def list_job_applications(
    db: AsyncSession, identity: TokenUser, job_id: int
) -> Dict[str, Any]:
    """
    Applications for one of the caller's jobs, with talent profiles.

    Raises:
        NotFoundError: Unknown job, or no applications yet
    """
    job = await get_job_or_404(db, job_id)
    check_permissions(identity, job.created_by)

    result = await db.execute(
        select(JobApplication)
        .options(selectinload(JobApplication.talent))
        .where(JobApplication.job_id == job.id)
        .order_by(JobApplication.applied_at.asc(), JobApplication.id.asc())
    )
    applications = result.scalars().all()
    if not applications:
        raise NotFoundError("No job applications found.", body_key="error")

    return {
        "job": serialize_job_summary(job),
        "applications": [
            serialize_application(application, include_talent=True)
            for application in applications
        ],
        "count": len(applications),
    }
