"""Job application request schemas."""

from typing import Optional
from pydantic import Field, field_validator

from api.schemas.common import CamelModel
from database.models.applications import ApplicationStatus, ExperienceLevel


class ApplicationForm(CamelModel):
    """Multipart fields submitted alongside the CV file."""

    cover_letter: Optional[str] = None
    portfolio: Optional[str] = None
    linkedin_profile: Optional[str] = Field(None, alias="linkedInProfile")
    skills: list[str] = Field(default_factory=list)
    experience_level: Optional[ExperienceLevel] = None
    availability: Optional[str] = None
    location_preferences: Optional[str] = None
    references: list[str] = Field(default_factory=list)

    @field_validator("skills", "references", mode="before")
    @classmethod
    def split_comma_list(cls, v):
        """Multipart forms send lists as repeated fields or one comma-separated value."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        items = []
        for value in v:
            items.extend(part.strip() for part in str(value).split(","))
        return [item for item in items if item]


class StatusUpdate(CamelModel):
    status: Optional[ApplicationStatus] = None
