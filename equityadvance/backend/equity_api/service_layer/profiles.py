# equity_api/service_layer/profiles.py
from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.offer_links import TrackingConfig
from ..models import Profile, ProfileRole, ProfileStatus

log = logging.getLogger(__name__)

# fields a partner may edit on their own profile
EDITABLE_FIELDS = ("full_name", "company_name", "company_url", "cell_phone")
# fields only set by back-office onboarding
ADMIN_FIELDS = ("status", "affiliate_id", "tracking_domain", "encoded_value")


class TrackingNotConfigured(RuntimeError):
    """The partner (or, for officers, their manager) has no affiliate tracking set up."""


class ProfileInactive(PermissionError):
    """Pending or denied partners cannot originate deals or campaigns."""


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


async def get_profile(session: AsyncSession, profile_id: str) -> Profile:
    profile = await session.get(Profile, profile_id)
    if profile is None:
        raise LookupError(f"Profile not found: {profile_id}")
    return profile


async def get_profile_by_invite(session: AsyncSession, invite_token: str) -> Profile:
    q = select(Profile).where(Profile.invite_token == invite_token, Profile.role == ProfileRole.manager)
    manager = (await session.execute(q)).scalars().first()
    if manager is None:
        raise LookupError("Invalid invite link")
    return manager


async def create_profile(
    session: AsyncSession,
    *,
    email: str,
    full_name: str | None = None,
    company_name: str | None = None,
    company_url: str | None = None,
    cell_phone: str | None = None,
    invite_token: str | None = None,
) -> Profile:
    """
    New partners start out pending. Signing up with a manager's invite token
    makes the new profile an officer on that manager's team; everyone else
    is a manager and gets an invite token of their own.
    """
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValueError("A valid email is required")

    existing = (await session.execute(select(Profile).where(Profile.email == email))).scalars().first()
    if existing is not None:
        raise ValueError(f"A profile already exists for {email}")

    parent: Profile | None = None
    if invite_token:
        parent = await get_profile_by_invite(session, invite_token.strip())

    profile = Profile(
        email=email,
        full_name=_clean(full_name),
        company_name=_clean(company_name),
        company_url=_clean(company_url),
        cell_phone=_clean(cell_phone),
        role=ProfileRole.officer if parent else ProfileRole.manager,
        status=ProfileStatus.pending,
        parent_id=parent.id if parent else None,
        invite_token=None if parent else secrets.token_urlsafe(16),
    )
    session.add(profile)
    await session.flush()
    log.info("profile created: id=%s role=%s parent=%s", profile.id, profile.role.value, profile.parent_id)
    return profile


async def update_profile(session: AsyncSession, profile_id: str, changes: dict[str, Any]) -> Profile:
    profile = await get_profile(session, profile_id)

    unknown = set(changes) - set(EDITABLE_FIELDS) - set(ADMIN_FIELDS)
    if unknown:
        raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

    for key, value in changes.items():
        if key == "status":
            try:
                value = ProfileStatus(value)
            except ValueError:
                raise ValueError(f"Invalid status: {value}") from None
            if value != profile.status:
                log.info("profile %s status %s -> %s", profile.id, profile.status.value, value.value)
            profile.status = value
            continue
        setattr(profile, key, _clean(value))

    profile.updated_at = datetime.utcnow()
    await session.flush()
    return profile


def require_active(profile: Profile) -> None:
    if profile.status != ProfileStatus.active:
        raise ProfileInactive(f"Profile {profile.id} is {profile.status.value}")


async def resolve_tracking_config(session: AsyncSession, profile: Profile) -> TrackingConfig:
    """
    Officers generate links with their manager's affiliate account; the role
    carried on the result stays the caller's so officer links get tagged.
    """
    source = profile
    if profile.role == ProfileRole.officer and profile.parent_id:
        source = await get_profile(session, profile.parent_id)

    if not source.tracking_domain or not source.encoded_value:
        raise TrackingNotConfigured(
            "Affiliate tracking is not configured for this account. Contact support to finish onboarding."
        )

    return TrackingConfig(
        tracking_domain=source.tracking_domain,
        encoded_value=source.encoded_value,
        role=profile.role.value,
    )


async def list_profiles(session: AsyncSession, status: str | ProfileStatus | None = None) -> list[Profile]:
    """All profiles, newest first; admins review the pending ones."""
    q = select(Profile).order_by(Profile.created_at.desc())
    if status is not None:
        try:
            status = ProfileStatus(status)
        except ValueError:
            raise ValueError(f"Invalid status: {status}") from None
        q = q.where(Profile.status == status)
    return list((await session.execute(q)).scalars().all())


async def list_team(session: AsyncSession, manager: Profile) -> list[Profile]:
    """Officers under a manager, newest first."""
    q = (
        select(Profile)
        .where(Profile.parent_id == manager.id, Profile.role == ProfileRole.officer)
        .order_by(Profile.created_at.desc())
    )
    return list((await session.execute(q)).scalars().all())


async def team_member_ids(session: AsyncSession, profile: Profile) -> list[str]:
    """Whose deals a profile sees: managers see their officers' too."""
    if profile.role != ProfileRole.manager:
        return [profile.id]
    officers = await list_team(session, profile)
    return [profile.id, *(o.id for o in officers)]
