"""Job posting request schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import Field

from api.schemas.common import CamelModel, LocationIn
from database.models.jobs import JobStatus, JobType


class JobSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    A_Z = "a-z"
    Z_A = "z-a"


class JobCreate(CamelModel):
    title: Optional[str] = None
    company: Optional[str] = None
    position: Optional[str] = None
    description: Optional[str] = None
    job_type: Optional[JobType] = None
    job_status: Optional[JobStatus] = None
    job_location: Optional[LocationIn] = None
    application_deadline: Optional[datetime] = None


class JobUpdate(CamelModel):
    """Partial update. Ownership and identity fields are ignored if sent."""

    title: Optional[str] = Field(None, min_length=1)
    company: Optional[str] = Field(None, min_length=1)
    position: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    job_type: Optional[JobType] = None
    job_status: Optional[JobStatus] = None
    job_location: Optional[LocationIn] = None
    application_deadline: Optional[datetime] = None
    is_closed: Optional[bool] = None
