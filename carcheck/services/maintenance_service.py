from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.models.maintenance import MaintenanceRecord
from carcheck.models.user import User


class MaintenanceService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_car(self, car_id: int) -> List[MaintenanceRecord]:
        """Maintenance history, newest first."""
        stmt = (
            select(MaintenanceRecord)
            .where(MaintenanceRecord.car_id == car_id)
            .order_by(MaintenanceRecord.date.desc(), MaintenanceRecord.id.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def add(
        self,
        car_id: int,
        author: User,
        type: str,
        date: date,
        mileage: Optional[int] = None,
        notes: Optional[str] = None,
        cost: Optional[float] = None,
    ) -> MaintenanceRecord:
        if not type or not type.strip():
            raise ValueError("Maintenance type is required.")

        record = MaintenanceRecord(
            car_id=car_id,
            type=type.strip(),
            date=date,
            mileage=mileage,
            notes=(notes or "").strip() or None,
            cost=cost,
            created_by=author.id,
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record
