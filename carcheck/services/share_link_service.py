import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional
from urllib.parse import urlencode

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.core.clock import Clock, as_utc, utcnow
from carcheck.core.environment import get_public_base_url, get_qr_service_url
from carcheck.core.prometheus_metrics import share_link_resolutions_total
from carcheck.core.tokens import generate_token, mask_token
from carcheck.models.enums import SharePermission
from carcheck.models.share_link import ShareLink
from carcheck.models.user import User
from carcheck.services.exceptions import NotFound

logger = logging.getLogger(__name__)


def share_url(token: str) -> str:
    return f"{get_public_base_url()}/shared/{token}"


def direct_share_url(car_id: int) -> str:
    return f"{get_public_base_url()}/cars/{car_id}/share"


def qr_code_url(text: str, size: int = 200) -> str:
    """Image URL of a QR code encoding `text`, for printing a share link."""
    return f"{get_qr_service_url()}?{urlencode({'size': f'{size}x{size}', 'data': text})}"


@dataclass(frozen=True)
class ShareAccess:
    """What a resolved share link lets this particular caller do."""
    link: ShareLink
    user: Optional[User]

    @property
    def car_id(self) -> int:
        return self.link.car_id

    @property
    def can_edit(self) -> bool:
        # Edit links only edit for signed-in users; everyone else is read-only
        return self.link.permission_type == SharePermission.EDIT and self.user is not None

    @property
    def read_only(self) -> bool:
        return not self.can_edit


class ShareLinkService:
    """
    Tokenized, optionally expiring links to a single car's checklist.

    A link with `expires_at = None` never expires. A link is expired once
    `now > expires_at` (strictly greater).
    """

    def __init__(self, db: AsyncSession, now: Clock = utcnow):
        self.db = db
        self.now = now

    async def create(
        self,
        car_id: int,
        permission_type: SharePermission,
        created_by: User,
        expires_in_days: Optional[int] = None,
    ) -> ShareLink:
        if expires_in_days is not None and expires_in_days < 0:
            raise ValueError("expires_in_days cannot be negative")

        expires_at = None
        if expires_in_days is not None:
            expires_at = self.now() + timedelta(days=expires_in_days)

        link = ShareLink(
            car_id=car_id,
            token=generate_token(),
            permission_type=SharePermission(permission_type),
            expires_at=expires_at,
            created_by=created_by.id,
            accessed_count=0,
        )
        self.db.add(link)
        await self.db.commit()
        await self.db.refresh(link)

        logger.info(
            "Share link created",
            extra={
                "car_id": car_id,
                "permission_type": link.permission_type.value,
                "token": mask_token(link.token),
            },
        )
        return link

    def is_expired(self, link: ShareLink) -> bool:
        return link.expires_at is not None and self.now() > as_utc(link.expires_at)

    async def resolve(self, token: str, count: bool = True) -> Optional[ShareLink]:
        """
        Look up a live link and, unless `count` is False, count the access.
        Fails closed: unknown and expired tokens both return None.
        """
        link = (await self.db.execute(select(ShareLink).where(ShareLink.token == token))).scalar_one_or_none()
        if link is None:
            share_link_resolutions_total.labels(outcome="unknown").inc()
            return None
        if self.is_expired(link):
            share_link_resolutions_total.labels(outcome="expired").inc()
            logger.info("Expired share link used", extra={"token": mask_token(token)})
            return None

        share_link_resolutions_total.labels(outcome="ok").inc()
        if not count:
            return link

        # Informational counter; increment in SQL rather than read-modify-write
        await self.db.execute(
            update(ShareLink)
            .where(ShareLink.id == link.id)
            .values(accessed_count=ShareLink.accessed_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        await self.db.refresh(link)
        return link

    async def access_for(self, token: str, user: Optional[User], count: bool = True) -> ShareAccess:
        """Resolve a token into a capability object; NotFound when unknown or expired."""
        link = await self.resolve(token, count=count)
        if link is None:
            raise NotFound("Share link not found or expired.")
        return ShareAccess(link=link, user=user)

    async def list_for_car(self, car_id: int) -> List[ShareLink]:
        stmt = (
            select(ShareLink)
            .where(ShareLink.car_id == car_id)
            .order_by(ShareLink.created_at.desc(), ShareLink.id.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def get(self, share_id: int) -> Optional[ShareLink]:
        return await self.db.get(ShareLink, share_id)

    async def delete(self, share_id: int) -> None:
        """Hard delete; deleting a missing link is a no-op."""
        link = await self.get(share_id)
        if link is None:
            return
        await self.db.delete(link)
        await self.db.commit()
        logger.info("Share link deleted", extra={"share_id": share_id})
