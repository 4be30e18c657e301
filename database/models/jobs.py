"""
Jobs Module

Job postings owned by a single employer. The applicant list is not stored on
the job; it is read from job_applications.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    BigInteger,
    DateTime,
    func,
    Text,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base, BigIntId, enum_values
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum


# ==================== Job Enums ===================== #
class JobStatus(str, PyEnum):
    """Employer-facing pipeline label, independent of application statuses."""

    PENDING = "pending"
    INTERVIEW = "interview"
    DECLINED = "declined"


class JobType(str, PyEnum):
    """Job employment type."""

    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    INTERNSHIP = "internship"


# ==================== Job ===================== #
class Job(Base):
    """
    Job posting.

    created_by is set from the session at creation and never updated.
    is_closed and a past application_deadline both block new applications.
    """

    __tablename__ = "jobs"
    __table_args__ = (
        Index("idx_jobs_owner_created", "created_by", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    company: Mapped[str] = mapped_column(String(200), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    job_type: Mapped[JobType] = mapped_column(
        SQLEnum(JobType, native_enum=False, length=50, values_callable=enum_values),
        default=JobType.FULL_TIME,
        nullable=False,
    )
    job_status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, native_enum=False, length=50, values_callable=enum_values),
        default=JobStatus.PENDING,
        nullable=False,
        index=True,
    )

    job_location_country: Mapped[str] = mapped_column(String(100), nullable=False)
    job_location_city: Mapped[str] = mapped_column(String(100), nullable=False)

    # Application gate
    application_deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_by: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
        onupdate=now,
    )

    def __repr__(self) -> str:
        return f"<Job id={self.id} title={self.title} closed={self.is_closed}>"
