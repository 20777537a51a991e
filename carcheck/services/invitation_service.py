import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.rbac import INVITABLE_ROLES, Role, can_manage
from carcheck.core.clock import Clock, as_utc, utcnow
from carcheck.core.environment import get_public_base_url
from carcheck.core.prometheus_metrics import invitation_acceptances_total
from carcheck.core.tokens import generate_token, mask_token
from carcheck.models.invitation import Invitation
from carcheck.models.user import User
from carcheck.services.exceptions import (
    DuplicateGrant,
    EmailMismatch,
    Expired,
    Forbidden,
    NotFound,
)
from carcheck.services.permission_service import PermissionService

logger = logging.getLogger(__name__)

INVITATION_TTL = timedelta(days=7)


def invitation_url(token: str) -> str:
    return f"{get_public_base_url()}/invitation/{token}"


def is_expired(invitation: Invitation, now) -> bool:
    """Expired is derived, never stored: past expires_at and still unaccepted."""
    return invitation.accepted_at is None and now > as_utc(invitation.expires_at)


class InvitationService:
    """
    Invitations for people who do not have access yet.

    Lifecycle: created -> accepted (exactly once) | expired (derived).
    Acceptance inserts the permission row and stamps the invitation in a
    single transaction; the stamp is a conditional update on
    `accepted_at IS NULL`, so two concurrent acceptances cannot both win.
    """

    def __init__(self, db: AsyncSession, now: Clock = utcnow):
        self.db = db
        self.now = now
        self.permissions = PermissionService(db)

    async def create(self, car_id: int, email: str, role: Role, invited_by: User) -> Invitation:
        role = Role(role)
        if role not in INVITABLE_ROLES:
            raise ValueError(f"Invitations can only grant {sorted(r.value for r in INVITABLE_ROLES)}.")
        if not can_manage(await self.permissions.get_role(car_id, invited_by.id)):
            raise Forbidden("Only an owner can invite people to this car.")

        invitation = Invitation(
            car_id=car_id,
            email=email.strip().lower(),
            role=role,
            token=generate_token(),
            expires_at=self.now() + INVITATION_TTL,
            invited_by=invited_by.id,
        )
        self.db.add(invitation)
        await self.db.commit()
        await self.db.refresh(invitation)

        logger.info(
            "Invitation created",
            extra={"car_id": car_id, "role": role.value, "token": mask_token(invitation.token)},
        )
        return invitation

    async def get_pending(self, token: str) -> Invitation:
        """Unaccepted invitation by token; raises NotFound or Expired."""
        stmt = select(Invitation).where(
            Invitation.token == token,
            Invitation.accepted_at.is_(None),
        )
        invitation = (await self.db.execute(stmt)).scalar_one_or_none()
        if invitation is None:
            raise NotFound("Invitation not found or already accepted.")
        if is_expired(invitation, self.now()):
            raise Expired("Invitation has expired.")
        return invitation

    async def accept(self, token: str, user: User) -> Invitation:
        try:
            invitation = await self.get_pending(token)
            if invitation.email != user.email.strip().lower():
                raise EmailMismatch("This invitation was sent to a different email address.")

            await self.permissions.add_grant(invitation.car_id, user.id, invitation.role)

            stamped = await self.db.execute(
                update(Invitation)
                .where(Invitation.id == invitation.id, Invitation.accepted_at.is_(None))
                .values(accepted_at=self.now(), accepted_by=user.id)
                .execution_options(synchronize_session=False)
            )
            if stamped.rowcount != 1:
                # Lost the race to a concurrent acceptance; drop our grant with it
                await self.db.rollback()
                raise NotFound("Invitation not found or already accepted.")

            await self.db.commit()
        except (NotFound, Expired, EmailMismatch, DuplicateGrant) as e:
            invitation_acceptances_total.labels(outcome=e.code).inc()
            logger.info("Invitation not accepted", extra={"token": mask_token(token), "reason": e.code})
            raise

        await self.db.refresh(invitation)
        invitation_acceptances_total.labels(outcome="accepted").inc()
        logger.info(
            "Invitation accepted",
            extra={"car_id": invitation.car_id, "user_id": user.id, "token": mask_token(token)},
        )
        return invitation

    async def list_pending(self, car_id: int) -> List[Invitation]:
        """All unaccepted invitations, expired ones included (callers filter for display)."""
        stmt = (
            select(Invitation)
            .where(Invitation.car_id == car_id, Invitation.accepted_at.is_(None))
            .order_by(Invitation.created_at.desc(), Invitation.id.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def get(self, invitation_id: int) -> Optional[Invitation]:
        return await self.db.get(Invitation, invitation_id)

    async def delete(self, invitation_id: int) -> None:
        invitation = await self.get(invitation_id)
        if invitation is None:
            raise NotFound("Invitation not found.")
        await self.db.delete(invitation)
        await self.db.commit()
        logger.info("Invitation deleted", extra={"invitation_id": invitation_id})
