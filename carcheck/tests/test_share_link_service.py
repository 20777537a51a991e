import pytest

from carcheck.core.prometheus_metrics import REGISTRY
from carcheck.models.enums import SharePermission
from carcheck.services.exceptions import NotFound
from carcheck.services.share_link_service import (
    ShareAccess,
    ShareLinkService,
    direct_share_url,
    qr_code_url,
    share_url,
)


def _resolutions(outcome: str) -> float:
    return REGISTRY.get_sample_value("carcheck_share_link_resolutions_total", {"outcome": outcome}) or 0


async def test_create_view_link(async_db_session, car, owner, clock):
    link = await ShareLinkService(async_db_session, now=clock).create(car.id, SharePermission.VIEW, owner)

    assert len(link.token) == 32
    assert link.expires_at is None
    assert link.accessed_count == 0
    assert share_url(link.token) == f"https://carcheck.test/shared/{link.token}"
    assert direct_share_url(car.id) == f"https://carcheck.test/cars/{car.id}/share"


async def test_resolve_counts_each_access(async_db_session, car, owner, clock):
    service = ShareLinkService(async_db_session, now=clock)
    link = await service.create(car.id, SharePermission.VIEW, owner)

    await service.resolve(link.token)
    resolved = await service.resolve(link.token)

    assert resolved.id == link.id
    assert resolved.accessed_count == 2


async def test_uncounted_resolve_leaves_counter_alone(async_db_session, car, owner, clock):
    service = ShareLinkService(async_db_session, now=clock)
    link = await service.create(car.id, SharePermission.EDIT, owner)

    await service.access_for(link.token, owner, count=False)
    access = await service.access_for(link.token, owner, count=False)

    assert access.link.accessed_count == 0
    assert (await service.resolve(link.token)).accessed_count == 1


def test_qr_code_url_encodes_the_link():
    url = qr_code_url("https://carcheck.test/shared/abc")

    assert url == (
        "https://api.qrserver.com/v1/create-qr-code/"
        "?size=200x200&data=https%3A%2F%2Fcarcheck.test%2Fshared%2Fabc"
    )


async def test_link_without_expiry_never_expires(async_db_session, car, owner, clock):
    service = ShareLinkService(async_db_session, now=clock)
    link = await service.create(car.id, SharePermission.VIEW, owner, expires_in_days=None)

    clock.advance(days=365 * 50)

    assert await service.resolve(link.token) is not None


async def test_zero_day_link_is_expired_immediately_after(async_db_session, car, owner, clock):
    service = ShareLinkService(async_db_session, now=clock)
    link = await service.create(car.id, SharePermission.VIEW, owner, expires_in_days=0)
    before = _resolutions("expired")

    # now == expires_at is still valid; anything later is not
    assert not service.is_expired(link)
    clock.advance(microseconds=1)

    assert await service.resolve(link.token) is None
    assert _resolutions("expired") == before + 1


async def test_link_expires_after_its_days(async_db_session, car, owner, clock):
    service = ShareLinkService(async_db_session, now=clock)
    link = await service.create(car.id, SharePermission.VIEW, owner, expires_in_days=3)

    clock.advance(days=3)
    assert await service.resolve(link.token) is not None

    clock.advance(seconds=1)
    assert await service.resolve(link.token) is None


async def test_negative_expiry_rejected(async_db_session, car, owner, clock):
    with pytest.raises(ValueError):
        await ShareLinkService(async_db_session, now=clock).create(car.id, SharePermission.VIEW, owner, expires_in_days=-1)


async def test_unknown_token_fails_closed(async_db_session, clock):
    service = ShareLinkService(async_db_session, now=clock)
    assert await service.resolve("missing") is None
    with pytest.raises(NotFound):
        await service.access_for("missing", None)


async def test_edit_link_is_read_only_for_anonymous_callers(async_db_session, car, owner, other_user, clock):
    service = ShareLinkService(async_db_session, now=clock)
    link = await service.create(car.id, SharePermission.EDIT, owner)

    anonymous = await service.access_for(link.token, None)
    signed_in = await service.access_for(link.token, other_user)

    assert isinstance(anonymous, ShareAccess)
    assert anonymous.read_only
    assert signed_in.can_edit
    assert signed_in.car_id == car.id


async def test_view_link_never_edits(async_db_session, car, owner, other_user, clock):
    service = ShareLinkService(async_db_session, now=clock)
    link = await service.create(car.id, SharePermission.VIEW, owner)

    access = await service.access_for(link.token, other_user)

    assert not access.can_edit


async def test_list_and_delete(async_db_session, car, owner, clock):
    service = ShareLinkService(async_db_session, now=clock)
    first = await service.create(car.id, SharePermission.VIEW, owner)
    second = await service.create(car.id, SharePermission.EDIT, owner, expires_in_days=7)

    assert {link.id for link in await service.list_for_car(car.id)} == {first.id, second.id}

    await service.delete(first.id)
    await service.delete(first.id)  # no-op

    assert [link.id for link in await service.list_for_car(car.id)] == [second.id]
    assert await service.resolve(first.token) is None
