from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    BigInteger,
    DateTime,
    func,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base, BigIntId, enum_values
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum


# ==================== User Role ===================== #
class UserRole(str, PyEnum):
    TALENT = "talent"  # job seeker
    EMPLOYER = "employer"  # posts jobs and owns organizations


class CompanySize(str, PyEnum):
    """Headcount buckets shared by employer profiles and organizations."""

    XS = "1-10"
    S = "11-50"
    M = "51-200"
    L = "201-500"
    XL = "501-1000"
    XXL = "1000+"


class User(Base):
    """
    Account identity and credentials.

    The password hash is never serialized; role is fixed at registration.
    """

    __tablename__: str = "users"
    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )  # stored lower-cased
    password: Mapped[str] = mapped_column(String(255), nullable=False)  # bcrypt hash

    # Profile
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(
            UserRole,
            native_enum=False,
            length=50,
            values_callable=enum_values,
        ),
        nullable=False,
        index=True,
    )
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    location_country: Mapped[str] = mapped_column(String(100), nullable=False)
    location_city: Mapped[str] = mapped_column(String(100), nullable=False)
    profile_image: Mapped[str | None] = mapped_column(String(500))

    # Employer-only
    company_name: Mapped[str | None] = mapped_column(String(200))
    company_size: Mapped[CompanySize | None] = mapped_column(
        SQLEnum(
            CompanySize,
            native_enum=False,
            length=50,
            values_callable=enum_values,
        )
    )
    industry: Mapped[str | None] = mapped_column(String(100))

    # Email verification (single active token)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    verification_token: Mapped[str | None] = mapped_column(String(100))
    verification_token_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
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
        return f"<User id={self.id} email={self.email} role={self.role}>"


class RefreshToken(Base):
    """
    Refresh value issued at login, bound to the client that logged in.

    Several rows may exist per user; login consults the most recent one.
    """

    __tablename__: str = "refresh_tokens"
    __table_args__ = (Index("idx_refresh_tokens_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(
        BigIntId, primary_key=True, nullable=False, autoincrement=True
    )
    refresh_token: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    is_valid: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    ip: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
    )
