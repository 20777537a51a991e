import json

from carcheck.auth.rbac import Role
from carcheck.services.permission_service import PermissionService
from carcheck.tests.helpers import bearer, make_llm

ANALYSIS = {
    "questions": ["Has the clutch been replaced?"],
    "concerns": [],
    "maintenance_suggestions": [],
    "overall_assessment": "Looks fine for its age.",
}


async def test_report_json_and_html(async_client, car, owner):
    headers = bearer(owner)
    await async_client.put(
        f"/cars/{car.id}/checklist/documentation/vin_check", headers=headers, json={"status": "issue", "comment": "mismatch"}
    )
    await async_client.put(
        f"/cars/{car.id}/checklist/documentation/inspection_history", headers=headers, json={"status": "ok"}
    )

    report = await async_client.get(f"/cars/{car.id}/report", headers=headers)
    assert report.status_code == 200
    body = report.json()
    documentation = body["sections"][0]
    assert [i["item_key"] for i in documentation["items"]] == ["vin_check", "inspection_history"]
    assert documentation["items"][0]["status_label"] == "Issue"
    assert body["stats"]["total_checked"] == 2
    assert body["stats"]["interpretation"].startswith("Issues")
    assert [a["party"] for a in body["approvals"]] == ["seller", "buyer"]

    html = await async_client.get(f"/cars/{car.id}/report.html", headers=headers)
    assert html.status_code == 200
    assert html.headers["content-type"].startswith("text/html")
    assert "Vehicle inspection report" in html.text


async def test_report_requires_membership(async_client, car, other_user):
    assert (await async_client.get(f"/cars/{car.id}/report", headers=bearer(other_user))).status_code == 404


async def test_analyze_and_usage(async_client, car, owner, fake_llms):
    fake_llms.analysis_llm = make_llm(json.dumps(ANALYSIS))

    resp = await async_client.post("/ai/analyze", headers=bearer(owner), json={"carId": car.id})

    assert resp.status_code == 200
    assert resp.json()["analysis"]["overall_assessment"] == "Looks fine for its age."
    assert resp.json()["analysis"]["degraded"] is False

    usage = await async_client.get("/ai/usage", headers=bearer(owner))
    assert usage.json() == {"type": "free", "queries_used": 1, "queries_limit": 3, "can_use_ai": True}


async def test_viewers_may_use_ai_but_strangers_may_not(async_client, async_db_session, car, other_user, fake_llms):
    fake_llms.chat_llm = make_llm("Ask about the timing belt.")

    stranger = await async_client.post(
        "/ai/chat", headers=bearer(other_user), json={"carId": car.id, "message": "Worth it?"}
    )
    assert stranger.status_code == 404

    await PermissionService(async_db_session).grant(car.id, other_user.id, Role.VIEWER)
    viewer = await async_client.post(
        "/ai/chat",
        headers=bearer(other_user),
        json={
            "carId": car.id,
            "message": "Worth it?",
            "conversationHistory": [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello"}],
        },
    )
    assert viewer.status_code == 200
    assert viewer.json()["reply"] == "Ask about the timing belt."


async def test_quota_exhaustion_is_429(async_client, car, owner, fake_llms):
    fake_llms.chat_llm = make_llm("ok")
    for _ in range(3):
        assert (await async_client.post(
            "/ai/chat", headers=bearer(owner), json={"carId": car.id, "message": "again"}
        )).status_code == 200

    resp = await async_client.post("/ai/chat", headers=bearer(owner), json={"carId": car.id, "message": "again"})

    assert resp.status_code == 429
    assert resp.json()["error"] == "quota_exceeded"
    assert fake_llms.chat_llm.ainvoke.await_count == 3


async def test_upstream_failure_is_502(async_client, car, owner, fake_llms):
    fake_llms.analysis_llm = make_llm("")
    fake_llms.analysis_llm.ainvoke.side_effect = ConnectionError("connection reset")

    resp = await async_client.post("/ai/analyze", headers=bearer(owner), json={"carId": car.id})

    assert resp.status_code == 502
    assert resp.json()["error"] == "upstream_failure"


async def test_empty_chat_message_rejected(async_client, car, owner):
    resp = await async_client.post("/ai/chat", headers=bearer(owner), json={"carId": car.id, "message": "   "})
    assert resp.status_code == 422
