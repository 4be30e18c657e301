"""
Application Models

The authoritative record of a talent's application to a job, with its status
state machine: pending -> under review -> shortlisted -> interview -> rejected,
plus the terminal withdrawn state.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    BigInteger,
    DateTime,
    func,
    Text,
    JSON,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from database.engine import Base, BigIntId, enum_values
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.jobs import Job
    from database.models.users import User


# ==================== Application Enums ===================== #
class ApplicationStatus(str, PyEnum):
    """Application pipeline status."""

    PENDING = "pending"
    UNDER_REVIEW = "under review"
    SHORTLISTED = "shortlisted"
    INTERVIEW = "interview"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"  # set only by the talent


# Statuses an employer may assign
EMPLOYER_ASSIGNABLE_STATUSES = frozenset(
    {
        ApplicationStatus.PENDING,
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.SHORTLISTED,
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.REJECTED,
    }
)

# Statuses a talent may still withdraw from
WITHDRAWABLE_STATUSES = frozenset(
    {ApplicationStatus.PENDING, ApplicationStatus.UNDER_REVIEW}
)


class ExperienceLevel(str, PyEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


# ==================== Job Application ===================== #
class JobApplication(Base):
    """One application per (job, talent) pair."""

    __tablename__ = "job_applications"

    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    job_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    talent_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(
            ApplicationStatus,
            native_enum=False,
            length=50,
            values_callable=enum_values,
        ),
        default=ApplicationStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Submission
    cv: Mapped[str] = mapped_column(String(500), nullable=False)  # stored path
    cover_letter: Mapped[str | None] = mapped_column(Text)
    portfolio: Mapped[str | None] = mapped_column(String(500))
    linkedin_profile: Mapped[str | None] = mapped_column(String(500))
    skills: Mapped[list[str] | None] = mapped_column(JSON)
    experience_level: Mapped[ExperienceLevel | None] = mapped_column(
        SQLEnum(
            ExperienceLevel,
            native_enum=False,
            length=50,
            values_callable=enum_values,
        )
    )
    availability: Mapped[str | None] = mapped_column(String(200))
    location_preferences: Mapped[str | None] = mapped_column(String(200))
    references: Mapped[list[str] | None] = mapped_column(JSON)

    # Timestamps
    applied_at: Mapped[datetime] = mapped_column(
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

    # Relationships (load explicitly with selectinload in async queries)
    job: Mapped["Job"] = relationship("Job")
    talent: Mapped["User"] = relationship("User")

    __table_args__ = (
        UniqueConstraint("job_id", "talent_id", name="uq_job_application_talent"),
        Index("idx_job_applications_talent_applied", "talent_id", "applied_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<JobApplication id={self.id} job={self.job_id} "
            f"talent={self.talent_id} status={self.status}>"
        )
