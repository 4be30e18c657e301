"""Job service functions."""

from typing import Any, Dict, Iterable, List, Optional
import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.schemas.jobs import JobCreate, JobSort, JobUpdate
from core.errors import BadRequestError, NotFoundError
from core.middleware.authorization import check_permissions
from core.security import TokenUser
from core.utils.datetime import ensure_utc, to_iso
from database.models.applications import JobApplication
from database.models.jobs import Job, JobStatus, JobType

logger = logging.getLogger(__name__)

# Query value meaning "no filter" for status/jobType
ALL = "all"

SORT_ORDER = {
    JobSort.NEWEST: (Job.created_at.desc(), Job.id.desc()),
    JobSort.OLDEST: (Job.created_at.asc(), Job.id.asc()),
    JobSort.A_Z: (Job.position.asc(), Job.id.asc()),
    JobSort.Z_A: (Job.position.desc(), Job.id.desc()),
}


def serialize_job(job: Job, applicants: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {
        "id": job.id,
        "company": job.company,
        "title": job.title,
        "position": job.position,
        "description": job.description,
        "jobType": job.job_type.value,
        "jobStatus": job.job_status.value,
        "jobLocation": {
            "country": job.job_location_country,
            "city": job.job_location_city,
        },
        "applicationDeadline": to_iso(job.application_deadline),
        "isClosed": job.is_closed,
        "createdBy": job.created_by,
        "applicants": applicants if applicants is not None else [],
        "createdAt": to_iso(job.created_at),
        "updatedAt": to_iso(job.updated_at),
    }


def serialize_job_summary(job: Job) -> Dict[str, Any]:
    """Job fields shown next to an application."""
    return {
        "id": job.id,
        "title": job.title,
        "position": job.position,
        "company": job.company,
        "jobType": job.job_type.value,
        "jobLocation": {
            "country": job.job_location_country,
            "city": job.job_location_city,
        },
        "isClosed": job.is_closed,
        "applicationDeadline": to_iso(job.application_deadline),
    }


async def load_applicants(
    db: AsyncSession, job_ids: Iterable[int]
) -> Dict[int, List[Dict[str, Any]]]:
    """
    Applicant view per job, read from job_applications.

    Returns:
        Mapping of job id to [{talent, status, appliedAt, resume}]
    """
    job_ids = list(job_ids)
    applicants: Dict[int, List[Dict[str, Any]]] = {job_id: [] for job_id in job_ids}
    if not job_ids:
        return applicants

    result = await db.execute(
        select(JobApplication)
        .where(JobApplication.job_id.in_(job_ids))
        .order_by(JobApplication.applied_at.asc(), JobApplication.id.asc())
    )
    for application in result.scalars():
        applicants[application.job_id].append(
            {
                "talent": application.talent_id,
                "status": application.status.value,
                "appliedAt": to_iso(application.applied_at),
                "resume": application.cv,
            }
        )
    return applicants


async def get_job_or_404(db: AsyncSession, job_id: int) -> Job:
    job = await db.get(Job, job_id)
    if not job:
        raise NotFoundError(f"No job with id {job_id}")
    return job


async def _serialize_with_applicants(db: AsyncSession, job: Job) -> Dict[str, Any]:
    applicants = await load_applicants(db, [job.id])
    return serialize_job(job, applicants[job.id])


async def create_job(db: AsyncSession, identity: TokenUser, data: JobCreate) -> Dict[str, Any]:
    location = data.job_location
    if not all(
        [
            data.title,
            data.company,
            data.position,
            data.job_type,
            location and (location.country or location.city),
            data.description,
        ]
    ):
        raise BadRequestError("Please provide all required job fields")

    job = Job(
        title=data.title,
        company=data.company,
        position=data.position,
        description=data.description,
        job_type=data.job_type,
        job_status=data.job_status or JobStatus.PENDING,
        job_location_country=location.country or "",
        job_location_city=location.city or "",
        application_deadline=ensure_utc(data.application_deadline),
        is_closed=False,
        created_by=int(identity.user_id),
    )
    db.add(job)
    await db.commit()

    logger.info(f"Employer {identity.user_id} created job {job.id}")
    return {"job": serialize_job(job, [])}


def _enum_filter(value: Optional[str], enum_cls, label: str):
    if not value or value == ALL:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise BadRequestError(f"Invalid {label} filter: {value}")


async def list_jobs(
    db: AsyncSession,
    identity: TokenUser,
    search: Optional[str] = None,
    status: Optional[str] = None,
    job_type: Optional[str] = None,
    sort: JobSort = JobSort.NEWEST,
    pagination: Optional[PaginationParams] = None,
) -> Dict[str, Any]:
    """
    Owner-scoped, filtered and paginated job list.

    Returns:
        {jobs, totalJobs, numOfPages, currentPage}
    """
    pagination = pagination or PaginationParams()
    query = select(Job).where(Job.created_by == int(identity.user_id))

    if search:
        query = query.where(
            or_(
                Job.position.icontains(search, autoescape=True),
                Job.company.icontains(search, autoescape=True),
                Job.title.icontains(search, autoescape=True),
            )
        )

    status_value = _enum_filter(status, JobStatus, "status")
    if status_value is not None:
        query = query.where(Job.job_status == status_value)

    type_value = _enum_filter(job_type, JobType, "jobType")
    if type_value is not None:
        query = query.where(Job.job_type == type_value)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    query = query.order_by(*SORT_ORDER[sort]).limit(pagination.limit).offset(pagination.offset)
    result = await db.execute(query)
    jobs = result.scalars().all()

    applicants = await load_applicants(db, [job.id for job in jobs])
    return {
        "jobs": [serialize_job(job, applicants[job.id]) for job in jobs],
        "totalJobs": total,
        "numOfPages": pagination.page_count(total),
        "currentPage": pagination.page,
    }


async def get_job(db: AsyncSession, identity: TokenUser, job_id: int) -> Dict[str, Any]:
    job = await get_job_or_404(db, job_id)
    check_permissions(identity, job.created_by)
    return {"job": await _serialize_with_applicants(db, job)}


# Columns that may not be cleared by an update
_REQUIRED_FIELDS = {"title", "company", "position", "description", "job_type", "job_status"}


async def update_job(
    db: AsyncSession, identity: TokenUser, job_id: int, data: JobUpdate
) -> Dict[str, Any]:
    """Apply a partial update. Ownership fields are not part of JobUpdate."""
    job = await get_job_or_404(db, job_id)
    check_permissions(identity, job.created_by)

    changes = data.model_dump(exclude_unset=True)
    location = changes.pop("job_location", None)
    for field, value in changes.items():
        if value is None and (field in _REQUIRED_FIELDS or field == "is_closed"):
            continue
        if field == "application_deadline":
            value = ensure_utc(value)
        setattr(job, field, value)

    if location:
        if location.get("country") is not None:
            job.job_location_country = location["country"]
        if location.get("city") is not None:
            job.job_location_city = location["city"]

    await db.commit()
    logger.info(f"Employer {identity.user_id} updated job {job.id}")
    return {"job": await _serialize_with_applicants(db, job)}


async def delete_job(db: AsyncSession, identity: TokenUser, job_id: int) -> Dict[str, str]:
    job = await get_job_or_404(db, job_id)
    check_permissions(identity, job.created_by)

    await db.execute(delete(JobApplication).where(JobApplication.job_id == job.id))
    await db.delete(job)
    await db.commit()

    logger.info(f"Employer {identity.user_id} deleted job {job_id}")
    return {"msg": "Success! Job removed"}


async def close_job(db: AsyncSession, identity: TokenUser, job_id: int) -> Dict[str, Any]:
    """Stop accepting applications. Closing a closed job is a no-op."""
    job = await get_job_or_404(db, job_id)
    check_permissions(identity, job.created_by)

    if not job.is_closed:
        job.is_closed = True
        await db.commit()
        logger.info(f"Employer {identity.user_id} closed job {job.id}")

    return {
        "msg": "Job closed for applications",
        "job": await _serialize_with_applicants(db, job),
    }
