"""Organization request schemas."""

from typing import Optional
from pydantic import EmailStr

from api.schemas.common import CamelModel
from database.models.organizations import OrganizationType
from database.models.users import CompanySize


class Headquarters(CamelModel):
    city: Optional[str] = None
    country: Optional[str] = None


class SocialLinks(CamelModel):
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    glassdoor: Optional[str] = None


class OrganizationCreate(CamelModel):
    # Required (checked by the service after trimming)
    name: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[CompanySize] = None
    headquarters: Optional[Headquarters] = None
    about: Optional[str] = None
    hiring_contact_email: Optional[EmailStr] = None
    email_domain: Optional[str] = None

    # Optional profile
    website: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    logo: Optional[str] = None
    phone: Optional[str] = None
    mission: Optional[str] = None
    culture: Optional[str] = None
    founded_year: Optional[int] = None
    locations: Optional[list[str]] = None
    organization_type: Optional[OrganizationType] = None
    careers_page: Optional[str] = None
    office_photos: Optional[list[str]] = None
    cover_image: Optional[str] = None
    intro_video: Optional[str] = None
    awards: Optional[list[str]] = None


class OrganizationUpdate(OrganizationCreate):
    """Same fields, all optional; only the ones sent are applied."""
