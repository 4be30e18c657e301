"""
Organization service functions.

Organizations are employer-owned profiles. Each employer may create up to
MAX_ORGANIZATIONS_PER_USER of them; talents can follow any organization.
"""

from typing import Any, Dict, Optional
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.schemas.organizations import (
    Headquarters,
    OrganizationCreate,
    OrganizationUpdate,
    SocialLinks,
)
from api.services.users import serialize_user_summary
from core.errors import BadRequestError, ForbiddenError, NotFoundError
from core.middleware.authorization import check_permissions
from core.security import TokenUser
from core.utils.datetime import to_iso
from core.utils.validators import is_url
from database.models.organizations import (
    MAX_ORGANIZATIONS_PER_USER,
    Organization,
    OrganizationFollower,
)

logger = logging.getLogger(__name__)

ORGANIZATION_LIMIT_REACHED = "You’ve reached the maximum number of organizations allowed."

# Social link key -> label used in the validation message
SOCIAL_LINK_LABELS = {
    "linkedin": "LinkedIn",
    "twitter": "Twitter",
    "facebook": "Facebook",
    "glassdoor": "Glassdoor",
}


def serialize_organization(organization: Organization) -> Dict[str, Any]:
    return {
        "id": organization.id,
        "name": organization.name,
        "description": organization.description,
        "about": organization.about,
        "industry": organization.industry,
        "companySize": organization.company_size.value,
        "hqLocation": organization.hq_location,
        "emailDomain": organization.email_domain,
        "hiringContactEmail": organization.hiring_contact_email,
        "logo": organization.logo,
        "website": organization.website,
        "phone": organization.phone,
        "mission": organization.mission,
        "culture": organization.culture,
        "foundedYear": organization.founded_year,
        "locations": organization.locations or [],
        "organizationType": (
            organization.organization_type.value if organization.organization_type else None
        ),
        "careersPage": organization.careers_page,
        "socialLinks": organization.social_links or {},
        "officePhotos": organization.office_photos or [],
        "coverImage": organization.cover_image,
        "introVideo": organization.intro_video,
        "awards": organization.awards or [],
        "createdBy": organization.created_by,
        "createdAt": to_iso(organization.created_at),
        "updatedAt": to_iso(organization.updated_at),
    }


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _hq_location(headquarters: Optional[Headquarters]) -> Optional[str]:
    """Derive "City, Country", or None unless both parts are present."""
    if headquarters is None:
        return None
    city = _clean(headquarters.city)
    country = _clean(headquarters.country)
    if not city or not country:
        return None
    return f"{city}, {country}"


def _validate_links(website: Optional[str], social_links: Optional[SocialLinks]) -> None:
    """
    Raises:
        BadRequestError: A supplied website or social link is not a URL
    """
    if website and not is_url(website):
        raise BadRequestError("Invalid website URL")
    if social_links is None:
        return
    for key, label in SOCIAL_LINK_LABELS.items():
        link = getattr(social_links, key)
        if link and not is_url(link):
            raise BadRequestError(f"Invalid {label} URL")


def _social_links_dict(social_links: Optional[SocialLinks]) -> Dict[str, str]:
    if social_links is None:
        return {}
    return social_links.model_dump(exclude_none=True)


async def get_organization_or_404(db: AsyncSession, organization_id: int) -> Organization:
    organization = await db.get(Organization, organization_id)
    if not organization:
        raise NotFoundError("Organization not found")
    return organization


async def create_organization(
    db: AsyncSession, identity: TokenUser, data: OrganizationCreate
) -> Dict[str, Any]:
    """
    Create an organization owned by the caller.

    Raises:
        BadRequestError: Missing required field or malformed URL
        ForbiddenError: The caller already owns the maximum number of
            organizations
    """
    name = _clean(data.name)
    description = _clean(data.description)
    industry = _clean(data.industry)
    about = _clean(data.about)
    email_domain = _clean(data.email_domain)
    hq_location = _hq_location(data.headquarters)

    if not all(
        [
            name,
            description,
            industry,
            data.company_size,
            hq_location,
            about,
            data.hiring_contact_email,
            email_domain,
        ]
    ):
        raise BadRequestError("All required organization fields must be provided")

    _validate_links(data.website, data.social_links)

    owner_id = int(identity.user_id)
    result = await db.execute(
        select(func.count())
        .select_from(Organization)
        .where(Organization.created_by == owner_id)
    )
    if (result.scalar() or 0) >= MAX_ORGANIZATIONS_PER_USER:
        raise ForbiddenError(ORGANIZATION_LIMIT_REACHED, body_key="error")

    organization = Organization(
        name=name,
        description=description,
        industry=industry,
        company_size=data.company_size,
        hq_location=hq_location,
        about=about,
        hiring_contact_email=str(data.hiring_contact_email),
        email_domain=email_domain,
        website=_clean(data.website),
        social_links=_social_links_dict(data.social_links),
        logo=data.logo,
        phone=data.phone,
        mission=data.mission,
        culture=data.culture,
        founded_year=data.founded_year,
        locations=data.locations,
        organization_type=data.organization_type,
        careers_page=data.careers_page,
        office_photos=data.office_photos,
        cover_image=data.cover_image,
        intro_video=data.intro_video,
        awards=data.awards,
        created_by=owner_id,
    )
    db.add(organization)
    await db.commit()

    logger.info(f"Employer {owner_id} created organization {organization.id}")
    return {
        "msg": "Organization created successfully",
        "newOrganization": serialize_organization(organization),
    }


async def list_my_organizations(db: AsyncSession, identity: TokenUser) -> Dict[str, Any]:
    result = await db.execute(
        select(Organization)
        .where(Organization.created_by == int(identity.user_id))
        .order_by(Organization.created_at.desc(), Organization.id.desc())
    )
    organizations = result.scalars().all()
    return {
        "organizations": [serialize_organization(o) for o in organizations],
        "count": len(organizations),
    }


async def list_public_organizations(db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(
        select(Organization).order_by(Organization.created_at.desc(), Organization.id.desc())
    )
    organizations = result.scalars().all()
    return {
        "organizations": [serialize_organization(o) for o in organizations],
        "count": len(organizations),
    }


async def get_public_organization(db: AsyncSession, organization_id: int) -> Dict[str, Any]:
    organization = await get_organization_or_404(db, organization_id)
    return {"organization": serialize_organization(organization)}


async def update_organization(
    db: AsyncSession,
    identity: TokenUser,
    organization_id: int,
    data: OrganizationUpdate,
) -> Dict[str, Any]:
    """
    Apply the supplied fields. Ownership cannot be transferred; a new
    headquarters re-derives hq_location and must carry both city and country.
    """
    organization = await get_organization_or_404(db, organization_id)
    check_permissions(identity, organization.created_by)

    changes = data.model_dump(exclude_unset=True)
    headquarters = changes.pop("headquarters", None)
    changes.pop("social_links", None)

    _validate_links(
        changes.get("website"),
        data.social_links if "social_links" in data.model_fields_set else None,
    )

    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            # Required columns keep their value when cleared
            if field in {
                "name",
                "description",
                "industry",
                "company_size",
                "about",
                "hiring_contact_email",
                "email_domain",
            }:
                continue
            value = None
        setattr(organization, field, value)

    if headquarters is not None:
        hq_location = _hq_location(data.headquarters)
        if hq_location is None:
            raise BadRequestError("Headquarters must include both city and country")
        organization.hq_location = hq_location

    if "social_links" in data.model_fields_set:
        organization.social_links = _social_links_dict(data.social_links)

    await db.commit()

    logger.info(f"Employer {identity.user_id} updated organization {organization.id}")
    return {
        "msg": "Organization updated successfully",
        "organization": serialize_organization(organization),
    }


async def delete_organization(
    db: AsyncSession, identity: TokenUser, organization_id: int
) -> Dict[str, str]:
    organization = await get_organization_or_404(db, organization_id)
    check_permissions(identity, organization.created_by)

    await db.execute(
        delete(OrganizationFollower).where(
            OrganizationFollower.organization_id == organization.id
        )
    )
    await db.delete(organization)
    await db.commit()

    logger.info(f"Employer {identity.user_id} deleted organization {organization_id}")
    return {"msg": "Organization deleted successfully"}


async def _find_follower(
    db: AsyncSession, organization_id: int, user_id: int
) -> Optional[OrganizationFollower]:
    result = await db.execute(
        select(OrganizationFollower).where(
            OrganizationFollower.organization_id == organization_id,
            OrganizationFollower.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def follow_organization(
    db: AsyncSession, identity: TokenUser, organization_id: int
) -> Dict[str, str]:
    """Follow an organization. Following twice is a no-op."""
    organization = await get_organization_or_404(db, organization_id)
    user_id = int(identity.user_id)

    if await _find_follower(db, organization.id, user_id):
        return {"msg": "Already following this organization"}

    db.add(OrganizationFollower(organization_id=organization.id, user_id=user_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return {"msg": "Already following this organization"}

    logger.info(f"User {user_id} followed organization {organization.id}")
    return {"msg": "Organization followed successfully"}


async def list_followers(
    db: AsyncSession, identity: TokenUser, organization_id: int
) -> Dict[str, Any]:
    organization = await get_organization_or_404(db, organization_id)
    check_permissions(identity, organization.created_by)

    result = await db.execute(
        select(OrganizationFollower)
        .options(selectinload(OrganizationFollower.user))
        .where(OrganizationFollower.organization_id == organization.id)
        .order_by(OrganizationFollower.followed_at.asc(), OrganizationFollower.id.asc())
    )
    followers = result.scalars().all()
    return {
        "followers": [
            {
                "user": serialize_user_summary(follower.user),
                "followedAt": to_iso(follower.followed_at),
            }
            for follower in followers
        ],
        "count": len(followers),
    }


async def is_following(
    db: AsyncSession, identity: TokenUser, organization_id: int
) -> Dict[str, bool]:
    organization = await get_organization_or_404(db, organization_id)
    follower = await _find_follower(db, organization.id, int(identity.user_id))
    return {"isFollowing": follower is not None}


async def count_followers(db: AsyncSession, organization_id: int) -> Dict[str, int]:
    organization = await get_organization_or_404(db, organization_id)
    result = await db.execute(
        select(func.count())
        .select_from(OrganizationFollower)
        .where(OrganizationFollower.organization_id == organization.id)
    )
    return {"followersCount": result.scalar() or 0}
