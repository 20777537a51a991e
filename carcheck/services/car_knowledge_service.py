import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.models.car_model import CarModel

logger = logging.getLogger(__name__)


def knowledge_payload(car_model: CarModel) -> Dict[str, Any]:
    """JSON-ready view of a knowledge row, as handed to the analysis prompt."""
    return {
        "make": car_model.make,
        "model": car_model.model,
        "year_from": car_model.year_from,
        "year_to": car_model.year_to,
        "common_issues": car_model.common_issues or [],
        "recalls": car_model.recalls or [],
        "inspection_statistics": car_model.inspection_statistics or [],
        "maintenance_schedules": car_model.maintenance_schedules or [],
    }


class CarKnowledgeService:
    """Known issues, recalls, inspection statistics and service schedules per car model."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lookup(self, make: str, model: str, year: int) -> Optional[CarModel]:
        """
        The knowledge row covering `year` for this make and model.

        Make and model match case-insensitively. When ranges overlap the
        most recent `year_from` wins.
        """
        stmt = (
            select(CarModel)
            .where(
                func.lower(CarModel.make) == make.strip().lower(),
                func.lower(CarModel.model) == model.strip().lower(),
                CarModel.year_from <= year,
                or_(CarModel.year_to.is_(None), CarModel.year_to >= year),
            )
            .order_by(CarModel.year_from.desc(), CarModel.id.desc())
            .limit(1)
        )
        found = (await self.db.execute(stmt)).scalar_one_or_none()
        if found is None:
            logger.info("No car knowledge", extra={"make": make, "model": model, "year": year})
        return found

    async def add(
        self,
        make: str,
        model: str,
        year_from: int,
        year_to: Optional[int] = None,
        common_issues: Optional[List[Dict[str, Any]]] = None,
        recalls: Optional[List[Dict[str, Any]]] = None,
        inspection_statistics: Optional[List[Dict[str, Any]]] = None,
        maintenance_schedules: Optional[List[Dict[str, Any]]] = None,
    ) -> CarModel:
        if year_to is not None and year_to < year_from:
            raise ValueError("year_to cannot be before year_from")

        car_model = CarModel(
            make=make.strip(),
            model=model.strip(),
            year_from=year_from,
            year_to=year_to,
            common_issues=common_issues or [],
            recalls=recalls or [],
            inspection_statistics=inspection_statistics or [],
            maintenance_schedules=maintenance_schedules or [],
        )
        self.db.add(car_model)
        await self.db.commit()
        await self.db.refresh(car_model)
        return car_model
