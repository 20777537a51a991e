from datetime import date

import pytest

from carcheck.services.maintenance_service import MaintenanceService


async def test_history_newest_first(async_db_session, car, owner):
    service = MaintenanceService(async_db_session)
    await service.add(car.id, owner, type="Oil change", date=date(2024, 5, 1), mileage=120000, cost=89.9)
    await service.add(car.id, owner, type="Timing belt", date=date(2025, 1, 10), mileage=140000, notes="  with water pump ")

    history = await service.list_for_car(car.id)

    assert [r.type for r in history] == ["Timing belt", "Oil change"]
    assert history[0].notes == "with water pump"
    assert history[1].cost == pytest.approx(89.9)


async def test_type_is_required(async_db_session, car, owner):
    with pytest.raises(ValueError):
        await MaintenanceService(async_db_session).add(car.id, owner, type="  ", date=date(2025, 1, 1))
