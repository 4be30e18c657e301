"""
API Services Layer.

Database operations behind the API endpoints. Every function takes the
request's AsyncSession first and raises core.errors types on failure.
"""

from api.services.users import (
    register,
    verify_email,
    resend_verification,
    login,
    update_user,
    update_user_password,
)

from api.services.jobs import (
    create_job,
    list_jobs,
    get_job,
    update_job,
    delete_job,
    close_job,
)

from api.services.applications import (
    apply_for_job,
    update_application_status,
    withdraw_application,
    list_my_applications,
    list_job_applications,
)

from api.services.organizations import (
    create_organization,
    list_my_organizations,
    list_public_organizations,
    get_public_organization,
    update_organization,
    delete_organization,
    follow_organization,
    list_followers,
    is_following,
    count_followers,
)

from api.services.talents import (
    list_talents,
    get_talent,
    export_applications,
    build_applications_csv,
)

__all__ = [
    # Users
    "register",
    "verify_email",
    "resend_verification",
    "login",
    "update_user",
    "update_user_password",
    # Jobs
    "create_job",
    "list_jobs",
    "get_job",
    "update_job",
    "delete_job",
    "close_job",
    # Applications
    "apply_for_job",
    "update_application_status",
    "withdraw_application",
    "list_my_applications",
    "list_job_applications",
    # Organizations
    "create_organization",
    "list_my_organizations",
    "list_public_organizations",
    "get_public_organization",
    "update_organization",
    "delete_organization",
    "follow_organization",
    "list_followers",
    "is_following",
    "count_followers",
    # Talents
    "list_talents",
    "get_talent",
    "export_applications",
    "build_applications_csv",
]
