from urllib.parse import quote_plus

from carcheck.auth.rbac import Role
from carcheck.services.permission_service import PermissionService
from carcheck.tests.helpers import bearer


async def _create_link(client, car, owner, **body):
    resp = await client.post(f"/cars/{car.id}/share-links", headers=bearer(owner), json=body)
    assert resp.status_code == 201
    return resp.json()


async def test_view_link_is_public_and_counted(async_client, car, owner):
    await async_client.put(
        f"/cars/{car.id}/checklist/exterior/paint_condition", headers=bearer(owner), json={"status": "warning"}
    )
    link = await _create_link(async_client, car, owner, permission_type="view")
    assert link["url"] == f"https://carcheck.test/shared/{link['token']}"
    assert link["qr_url"].endswith(quote_plus(link["url"]))

    first = await async_client.get(f"/shared/{link['token']}")
    await async_client.get(f"/shared/{link['token']}")

    assert first.status_code == 200
    body = first.json()
    assert body["registration_number"] == "ABC-123"
    assert body["can_edit"] is False
    assert body["url"] == link["url"]
    assert [(i["item_key"], i["status"]) for i in body["items"]] == [("paint_condition", "warning")]

    listed = await async_client.get(f"/cars/{car.id}/share-links", headers=bearer(owner))
    assert listed.json()[0]["accessed_count"] == 2


async def test_edit_link_needs_a_signed_in_user(async_client, car, owner, other_user):
    link = await _create_link(async_client, car, owner, permission_type="edit")
    path = f"/shared/{link['token']}/checklist/technical/battery_tested"

    anonymous_view = await async_client.get(f"/shared/{link['token']}")
    assert anonymous_view.json()["can_edit"] is False

    anonymous_edit = await async_client.put(path, json={"status": "ok"})
    assert anonymous_edit.status_code == 403

    signed_in = await async_client.put(path, headers=bearer(other_user), json={"status": "ok", "comment": "12.6V"})
    assert signed_in.status_code == 200
    assert signed_in.json()["updated_by"] == other_user.id

    signed_in_view = await async_client.get(f"/shared/{link['token']}", headers=bearer(other_user))
    assert signed_in_view.json()["can_edit"] is True


    # Only the two reads count as accesses
    listed = await async_client.get(f"/cars/{car.id}/share-links", headers=bearer(owner))
    assert listed.json()[0]["accessed_count"] == 2


async def test_view_link_rejects_edits(async_client, car, owner, other_user):
    link = await _create_link(async_client, car, owner, permission_type="view")
    resp = await async_client.put(
        f"/shared/{link['token']}/checklist/technical/battery_tested", headers=bearer(other_user), json={"status": "ok"}
    )
    assert resp.status_code == 403


async def test_expired_and_unknown_links_look_the_same(async_client, car, owner, clock):
    link = await _create_link(async_client, car, owner, permission_type="view", expires_in_days=0)
    clock.advance(seconds=1)

    expired = await async_client.get(f"/shared/{link['token']}")
    unknown = await async_client.get("/shared/doesnotexist")

    assert expired.status_code == unknown.status_code == 404


async def test_only_owners_manage_links(async_client, async_db_session, car, owner, other_user):
    await PermissionService(async_db_session).grant(car.id, other_user.id, Role.CONTRIBUTOR)

    resp = await async_client.post(
        f"/cars/{car.id}/share-links", headers=bearer(other_user), json={"permission_type": "view"}
    )
    assert resp.status_code == 403

    link = await _create_link(async_client, car, owner)
    assert (await async_client.delete(f"/share-links/{link['id']}", headers=bearer(other_user))).status_code == 403
    assert (await async_client.delete(f"/share-links/{link['id']}", headers=bearer(owner))).status_code == 204
    assert (await async_client.get(f"/shared/{link['token']}")).status_code == 404


async def test_direct_share_requires_membership(async_client, async_db_session, car, owner, other_user):
    assert (await async_client.get(f"/cars/{car.id}/share", headers=bearer(other_user))).status_code == 404

    await PermissionService(async_db_session).grant(car.id, other_user.id, Role.VIEWER)
    viewer = await async_client.get(f"/cars/{car.id}/share", headers=bearer(other_user))
    assert viewer.status_code == 200
    assert viewer.json()["can_edit"] is False
    assert viewer.json()["url"] == f"https://carcheck.test/cars/{car.id}/share"

    owner_view = await async_client.get(f"/cars/{car.id}/share", headers=bearer(owner))
    assert owner_view.json()["can_edit"] is True


async def test_token_lookups_are_rate_limited(async_client):
    statuses = [(await async_client.get("/shared/guessing")).status_code for _ in range(31)]

    assert statuses[:30] == [404] * 30
    assert statuses[30] == 429


async def test_shared_view_lists_sections_in_catalog_order(async_client, car, owner):
    for section, key in (("buyer_advice", "written_contract"), ("exterior", "paint_condition")):
        await async_client.put(
            f"/cars/{car.id}/checklist/{section}/{key}", headers=bearer(owner), json={"status": "ok"}
        )
    link = await _create_link(async_client, car, owner, permission_type="view")

    items = (await async_client.get(f"/shared/{link['token']}")).json()["items"]

    assert [i["section"] for i in items] == ["exterior", "buyer_advice"]
