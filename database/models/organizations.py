from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    BigInteger,
    Integer,
    DateTime,
    func,
    Text,
    JSON,
    Enum as SQLEnum,
    UniqueConstraint,
)
from database.engine import Base, BigIntId, enum_values
from database.models.users import CompanySize
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.users import User


# ==================== Organization Type ===================== #
class OrganizationType(str, PyEnum):
    PRIVATE = "Private"
    PUBLIC = "Public"
    NON_PROFIT = "Non-Profit"
    STARTUP = "Startup"
    GOVERNMENT = "Government"
    OTHER = "Other"


# Hard cap on organizations a single employer may create
MAX_ORGANIZATIONS_PER_USER = 4


class Organization(Base):
    """
    Employer-owned company profile.

    hq_location is derived from the submitted headquarters as "City, Country".
    """

    __tablename__: str = "organizations"

    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    about: Mapped[str | None] = mapped_column(Text)
    industry: Mapped[str] = mapped_column(String(100), nullable=False)
    company_size: Mapped[CompanySize] = mapped_column(
        SQLEnum(CompanySize, native_enum=False, length=50, values_callable=enum_values),
        nullable=False,
    )
    hq_location: Mapped[str] = mapped_column(String(255), nullable=False)
    email_domain: Mapped[str] = mapped_column(String(255), nullable=False)
    hiring_contact_email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Optional profile
    logo: Mapped[str | None] = mapped_column(String(500))
    website: Mapped[str | None] = mapped_column(String(500))
    phone: Mapped[str | None] = mapped_column(String(30))
    mission: Mapped[str | None] = mapped_column(Text)
    culture: Mapped[str | None] = mapped_column(Text)
    founded_year: Mapped[int | None] = mapped_column(Integer)
    locations: Mapped[list[str] | None] = mapped_column(JSON)
    organization_type: Mapped[OrganizationType | None] = mapped_column(
        SQLEnum(
            OrganizationType,
            native_enum=False,
            length=50,
            values_callable=enum_values,
        )
    )
    careers_page: Mapped[str | None] = mapped_column(String(500))
    social_links: Mapped[dict[str, Any] | None] = mapped_column(
        JSON
    )  # {linkedin, twitter, facebook, glassdoor}

    # Media
    office_photos: Mapped[list[str] | None] = mapped_column(JSON)
    cover_image: Mapped[str | None] = mapped_column(String(500))
    intro_video: Mapped[str | None] = mapped_column(String(500))
    awards: Mapped[list[str] | None] = mapped_column(JSON)

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
        return f"<Organization id={self.id} name={self.name}>"


class OrganizationFollower(Base):
    """A user following an organization; at most one row per pair."""

    __tablename__: str = "organization_followers"

    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    organization_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    followed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
    )

    # Relationships
    user: Mapped["User"] = relationship("User")

    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_organization_follower"),
    )
