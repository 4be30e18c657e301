"""
Talent browsing for employers.

Every query is restricted to applications on jobs the calling employer created.
"""

from typing import Any, Dict, List, Sequence
import csv
import io
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.services.applications import serialize_application
from api.services.users import serialize_user_summary
from core.errors import NotFoundError
from core.security import TokenUser
from core.utils.datetime import to_iso
from database.models.applications import JobApplication
from database.models.jobs import Job

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "talentName",
    "talentEmail",
    "talentPhone",
    "jobTitle",
    "jobPosition",
    "jobCompany",
    "status",
    "createdAt",
]


async def _employer_applications(
    db: AsyncSession, identity: TokenUser, talent_id: int | None = None
) -> Sequence[JobApplication]:
    query = (
        select(JobApplication)
        .join(Job, JobApplication.job_id == Job.id)
        .options(selectinload(JobApplication.job), selectinload(JobApplication.talent))
        .where(Job.created_by == int(identity.user_id))
    )
    if talent_id is not None:
        query = query.where(JobApplication.talent_id == talent_id)
    query = query.order_by(JobApplication.applied_at.desc(), JobApplication.id.desc())

    result = await db.execute(query)
    return result.scalars().all()


async def list_talents(db: AsyncSession, identity: TokenUser) -> Dict[str, Any]:
    applications = await _employer_applications(db, identity)
    if not applications:
        return {"msg": "No Applicants found"}

    return {
        "applications": [
            serialize_application(application, include_job=True, include_talent=True)
            for application in applications
        ],
        "count": len(applications),
    }


async def get_talent(
    db: AsyncSession, identity: TokenUser, talent_id: int
) -> Dict[str, Any]:
    """
    One talent's applications to the caller's jobs.

    Raises:
        NotFoundError: The talent has not applied to any of the caller's jobs
    """
    applications = await _employer_applications(db, identity, talent_id=talent_id)
    if not applications:
        raise NotFoundError(f"No applications found for talent {talent_id}")

    return {
        "talent": serialize_user_summary(applications[0].talent),
        "applications": [
            serialize_application(application, include_job=True)
            for application in applications
        ],
        "count": len(applications),
    }


def build_applications_csv(applications: List[JobApplication]) -> str:
    """
    Render applications as CSV with a fixed header row.

    Job and talent relationships must already be loaded.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for application in applications:
        talent = application.talent
        job = application.job
        writer.writerow(
            [
                f"{talent.name} {talent.last_name}".strip(),
                talent.email,
                talent.phone or "",
                job.title,
                job.position,
                job.company,
                application.status.value,
                to_iso(application.applied_at) or "",
            ]
        )
    return buffer.getvalue()


async def export_applications(db: AsyncSession, identity: TokenUser) -> str | None:
    """
    Returns:
        CSV text, or None when the caller has no applications to export
    """
    applications = await _employer_applications(db, identity)
    if not applications:
        return None

    logger.info(f"Employer {identity.user_id} exported {len(applications)} applications")
    return build_applications_csv(list(applications))
