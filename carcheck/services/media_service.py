import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.core.clock import Clock, utcnow
from carcheck.models.checklist import ChecklistItem
from carcheck.models.maintenance import MaintenanceRecord
from carcheck.models.media import Media
from carcheck.models.user import User
from carcheck.services.exceptions import NotFound

logger = logging.getLogger(__name__)


def media_path(car_id: int, file_name: str, now: datetime) -> str:
    """Object storage key: cars/<car_id>/media/<epoch millis>[.<ext>]."""
    stem = str(int(now.timestamp() * 1000))
    _, dot, ext = file_name.strip().rpartition(".")
    if dot and ext:
        return f"cars/{car_id}/media/{stem}.{ext.lower()}"
    return f"cars/{car_id}/media/{stem}"


class MediaService:
    """
    Media attachment records for a car.

    Only the metadata lives here; the bytes go to object storage at the
    returned `file_path`. An attachment may point at one of the car's
    checklist items or maintenance records.
    """

    def __init__(self, db: AsyncSession, now: Clock = utcnow):
        self.db = db
        self.now = now

    async def attach(
        self,
        car_id: int,
        author: User,
        file_name: str,
        file_type: Optional[str] = None,
        file_size: Optional[int] = None,
        checklist_item_id: Optional[int] = None,
        maintenance_record_id: Optional[int] = None,
    ) -> Media:
        if not file_name or not file_name.strip():
            raise ValueError("file_name is required")
        if file_size is not None and file_size < 0:
            raise ValueError("file_size cannot be negative")

        if checklist_item_id is not None:
            item = await self.db.get(ChecklistItem, checklist_item_id)
            if item is None or item.car_id != car_id:
                raise NotFound("Checklist item not found for this car.")
        if maintenance_record_id is not None:
            record = await self.db.get(MaintenanceRecord, maintenance_record_id)
            if record is None or record.car_id != car_id:
                raise NotFound("Maintenance record not found for this car.")

        media = Media(
            car_id=car_id,
            checklist_item_id=checklist_item_id,
            maintenance_record_id=maintenance_record_id,
            file_path=media_path(car_id, file_name, self.now()),
            file_type=file_type,
            file_size=file_size,
            created_by=author.id,
        )
        self.db.add(media)
        await self.db.commit()
        await self.db.refresh(media)

        logger.info("Media attached", extra={"car_id": car_id, "media_id": media.id})
        return media

    async def list_for_car(
        self,
        car_id: int,
        checklist_item_id: Optional[int] = None,
        maintenance_record_id: Optional[int] = None,
    ) -> List[Media]:
        """Newest first, optionally narrowed to one attachment point."""
        stmt = select(Media).where(Media.car_id == car_id)
        if checklist_item_id is not None:
            stmt = stmt.where(Media.checklist_item_id == checklist_item_id)
        if maintenance_record_id is not None:
            stmt = stmt.where(Media.maintenance_record_id == maintenance_record_id)
        stmt = stmt.order_by(Media.created_at.desc(), Media.id.desc())
        return list((await self.db.execute(stmt)).scalars().all())

    async def get(self, media_id: int) -> Media:
        media = await self.db.get(Media, media_id)
        if media is None:
            raise NotFound("Media not found.")
        return media

    async def delete(self, media_id: int) -> None:
        media = await self.get(media_id)
        await self.db.delete(media)
        await self.db.commit()
        logger.info("Media deleted", extra={"media_id": media_id})
