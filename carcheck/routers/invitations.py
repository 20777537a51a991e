from typing import List

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user
from carcheck.auth.rbac import Capability
from carcheck.core.clock import Clock, get_clock
from carcheck.core.db import get_db
from carcheck.middleware.rate_limit import SHARE_RESOLVE_LIMIT, limiter
from carcheck.models.invitation import Invitation
from carcheck.models.user import User
from carcheck.schemas.invitation import (
    InvitationAccepted,
    InvitationCreate,
    InvitationCreated,
    InvitationOut,
    InvitationPreview,
)
from carcheck.services.car_service import CarService
from carcheck.services.exceptions import NotFound
from carcheck.services.invitation_service import InvitationService, invitation_url, is_expired

router = APIRouter(tags=["invitations"])


def _invitation_out(invitation: Invitation, now: Clock) -> dict:
    return {
        **InvitationOut.model_validate(invitation).model_dump(exclude={"is_expired"}),
        "is_expired": is_expired(invitation, now()),
    }


@router.post("/cars/{car_id}/invitations", response_model=InvitationCreated, status_code=201)
async def create_invitation(
    car_id: int,
    req: InvitationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    await CarService(db).require_role(car_id, current_user, Capability.MANAGE_INVITATIONS)
    invitation = await InvitationService(db, now=now).create(car_id, req.email, req.role, current_user)
    return InvitationCreated(
        **_invitation_out(invitation, now),
        token=invitation.token,
        url=invitation_url(invitation.token),
    )


@router.get("/cars/{car_id}/invitations", response_model=List[InvitationOut])
async def list_invitations(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    """Unaccepted invitations; expired ones are flagged, not hidden."""
    await CarService(db).require_role(car_id, current_user, Capability.MANAGE_INVITATIONS)
    invitations = await InvitationService(db, now=now).list_pending(car_id)
    return [_invitation_out(invitation, now) for invitation in invitations]


@router.delete("/invitations/{invitation_id}", status_code=204)
async def delete_invitation(
    invitation_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = InvitationService(db)
    invitation = await service.get(invitation_id)
    if invitation is None:
        raise NotFound("Invitation not found.")
    await CarService(db).require_role(invitation.car_id, current_user, Capability.MANAGE_INVITATIONS)
    await service.delete(invitation_id)
    return Response(status_code=204)


@router.get("/invitation/{token}", response_model=InvitationPreview)
@limiter.limit(SHARE_RESOLVE_LIMIT)
async def preview_invitation(
    request: Request,
    token: str,
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    """What the invitee is about to accept; no sign-in needed to look."""
    invitation = await InvitationService(db, now=now).get_pending(token)
    car = await CarService(db).get_car(invitation.car_id)
    return InvitationPreview(
        car_id=car.id,
        registration_number=car.registration_number,
        email=invitation.email,
        role=invitation.role,
        expires_at=invitation.expires_at,
    )


@router.post("/invitation/{token}/accept", response_model=InvitationAccepted)
@limiter.limit(SHARE_RESOLVE_LIMIT)
async def accept_invitation(
    request: Request,
    token: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    invitation = await InvitationService(db, now=now).accept(token, current_user)
    return InvitationAccepted(car_id=invitation.car_id, role=invitation.role)
