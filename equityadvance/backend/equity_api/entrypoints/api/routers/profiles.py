# equity_api/entrypoints/api/routers/profiles.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import load_profile
from ..errors import DOMAIN_ERRORS, http_error
from ....db import get_session
from ....models import Profile, ProfileRole
from ....schemas import ProfileCreate, ProfileOut, ProfileStatusLiteral, ProfileUpdate, TeamMemberOut
from ....service_layer.profiles import create_profile, list_profiles, list_team, update_profile

router = APIRouter(prefix="/profiles", tags=["profiles"])


def profile_out(p: Profile) -> ProfileOut:
    return ProfileOut(
        id=p.id,
        email=p.email,
        full_name=p.full_name,
        company_name=p.company_name,
        company_url=p.company_url,
        cell_phone=p.cell_phone,
        role=p.role.value,
        status=p.status.value,
        parent_id=p.parent_id,
        invite_token=p.invite_token,
        tracking_configured=bool(p.tracking_domain and p.encoded_value),
        created_at=p.created_at,
    )


@router.post("", response_model=ProfileOut, status_code=201)
async def create(body: ProfileCreate, session: AsyncSession = Depends(get_session)) -> ProfileOut:
    try:
        p = await create_profile(
            session,
            email=body.email,
            full_name=body.full_name,
            company_name=body.company_name,
            company_url=body.company_url,
            cell_phone=body.cell_phone,
            invite_token=body.invite_token,
        )
    except DOMAIN_ERRORS as e:
        raise http_error(e) from e
    await session.commit()
    return profile_out(p)


@router.get("", response_model=list[ProfileOut])
async def list_all(
    status: ProfileStatusLiteral | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> list[ProfileOut]:
    return [profile_out(p) for p in await list_profiles(session, status)]


@router.get("/{profile_id}", response_model=ProfileOut)
async def get(profile_id: str, session: AsyncSession = Depends(get_session)) -> ProfileOut:
    return profile_out(await load_profile(session, profile_id))


@router.patch("/{profile_id}", response_model=ProfileOut)
async def update(
    profile_id: str,
    body: ProfileUpdate,
    session: AsyncSession = Depends(get_session),
) -> ProfileOut:
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")
    try:
        p = await update_profile(session, profile_id, changes)
    except DOMAIN_ERRORS as e:
        raise http_error(e) from e
    await session.commit()
    return profile_out(p)


@router.get("/{profile_id}/team", response_model=list[TeamMemberOut])
async def team(profile_id: str, session: AsyncSession = Depends(get_session)) -> list[TeamMemberOut]:
    manager = await load_profile(session, profile_id)
    if manager.role != ProfileRole.manager:
        raise HTTPException(status_code=400, detail="Only managers have a team")
    return [
        TeamMemberOut(id=o.id, email=o.email, full_name=o.full_name, status=o.status.value, created_at=o.created_at)
        for o in await list_team(session, manager)
    ]
