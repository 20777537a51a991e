import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.rbac import Capability, Role, has_capability
from carcheck.models.car import Car
from carcheck.models.permission import CarPermission
from carcheck.models.user import User
from carcheck.services.exceptions import DuplicateCar, Forbidden, NotFound, Unauthorized

logger = logging.getLogger(__name__)


def normalize_registration(registration_number: str) -> str:
    return registration_number.strip().upper()


class CarService:
    """
    Car catalog and the membership check every other service relies on.

    Creating a car also creates its first permission row (the creator as
    owner) in the same transaction, so a car never exists without an owner.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_car(
        self,
        creator: User,
        registration_number: str,
        make: Optional[str] = None,
        model: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Car:
        registration = normalize_registration(registration_number)
        if not registration:
            raise ValueError("registration_number is required")

        existing = await self.db.execute(select(Car.id).where(Car.registration_number == registration))
        if existing.scalar_one_or_none() is not None:
            raise DuplicateCar(f"A car with registration number {registration} already exists.")

        car = Car(
            registration_number=registration,
            make=(make or "").strip() or None,
            model=(model or "").strip() or None,
            year=year,
            created_by=creator.id,
        )
        self.db.add(car)
        try:
            await self.db.flush()  # get id
            self.db.add(CarPermission(car_id=car.id, user_id=creator.id, role=Role.OWNER))
            await self.db.commit()
        except IntegrityError:
            # handle race where another request created the same registration
            await self.db.rollback()
            raise DuplicateCar(f"A car with registration number {registration} already exists.")
        await self.db.refresh(car)

        logger.info("Car created", extra={"car_id": car.id, "user_id": creator.id})
        return car

    async def get_car(self, car_id: int) -> Car:
        car = await self.db.get(Car, car_id)
        if car is None:
            raise NotFound("Car not found.")
        return car

    async def list_cars_for_user(self, user: User) -> List[Tuple[Car, Role]]:
        stmt = (
            select(Car, CarPermission.role)
            .join(CarPermission, CarPermission.car_id == Car.id)
            .where(CarPermission.user_id == user.id)
            .order_by(Car.created_at.desc(), Car.id.desc())
        )
        result = await self.db.execute(stmt)
        return [(car, role) for car, role in result.all()]

    async def get_role(self, car_id: int, user_id: int) -> Optional[Role]:
        stmt = select(CarPermission.role).where(
            CarPermission.car_id == car_id,
            CarPermission.user_id == user_id,
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def require_role(
        self,
        car_id: int,
        user: Optional[User],
        capability: Capability = Capability.VIEW_CHECKLIST,
    ) -> Role:
        """
        Resolve the caller's role on a car and check it grants `capability`.

        Raises:
            Unauthorized: no authenticated user
            NotFound: car does not exist, or the user has no role on it
            Forbidden: the user's role lacks the capability
        """
        if user is None:
            raise Unauthorized("Sign in required.")

        await self.get_car(car_id)
        role = await self.get_role(car_id, user.id)
        if role is None:
            # Do not reveal the car to non-members
            raise NotFound("Car not found.")
        if not has_capability(role, capability):
            raise Forbidden(f"Role '{role.value}' may not {capability.value}.")
        return role
