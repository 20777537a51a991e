import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from sqlalchemy import select

from carcheck.llm.llm_factory import LLMConfigurationError
from carcheck.models.ai_conversation import AIConversation
from carcheck.models.enums import ChecklistStatus, SubscriptionTier
from carcheck.schemas.ai import CarModelInfo, ChatTurn
from carcheck.services.ai_service import AIService, extract_json_object, parse_analysis
from carcheck.services.car_knowledge_service import CarKnowledgeService
from carcheck.services.checklist_service import ChecklistService
from carcheck.services.exceptions import QuotaExceeded, UpstreamFailure
from carcheck.tests.helpers import make_llm

VALID_ANALYSIS = {
    "questions": ["When was the timing belt replaced?"],
    "concerns": [
        {
            "category": "documentation",
            "severity": "high",
            "description": "VIN lookup does not match the advert.",
            "recommendation": "Ask the seller for the registration certificate.",
        }
    ],
    "maintenance_suggestions": [{"item": "Brake pads", "urgency": "soon", "estimated_cost": "200-400 EUR"}],
    "overall_assessment": "Do not buy before the VIN mismatch is explained.",
}


def test_extract_json_from_prose():
    raw = "Sure! Here is the analysis:\n```json\n" + json.dumps(VALID_ANALYSIS) + "\n```\nHope it helps."
    assert extract_json_object(raw)["overall_assessment"] == VALID_ANALYSIS["overall_assessment"]


def test_parse_analysis_falls_back_visibly():
    analysis = parse_analysis("I cannot answer that.")
    assert analysis.degraded is True
    assert analysis.concerns[0].severity == "low"


def test_parse_analysis_rejects_wrong_shape():
    bad = dict(VALID_ANALYSIS, concerns=[{"severity": "apocalyptic"}])
    assert parse_analysis(json.dumps(bad)).degraded is True


def test_model_cannot_flag_its_own_answer_degraded():
    analysis = parse_analysis(json.dumps(dict(VALID_ANALYSIS, degraded=True)))

    assert analysis.degraded is False
    assert analysis.overall_assessment == VALID_ANALYSIS["overall_assessment"]


async def test_analysis_builds_data_from_checklist_and_meters_usage(async_db_session, car, owner, clock):
    await ChecklistService(async_db_session, now=clock).upsert(
        car.id, "documentation", "vin_check", ChecklistStatus.ISSUE, "mismatch", owner
    )
    llm = make_llm(json.dumps(VALID_ANALYSIS), total_tokens=120)
    service = AIService(async_db_session, analysis_llm=llm)

    analysis = await service.analyze_inspection(owner, car.id)

    assert analysis.degraded is False
    assert analysis.concerns[0].severity == "high"

    messages = llm.ainvoke.await_args.args[0]
    assert isinstance(messages[0], SystemMessage)
    assert isinstance(messages[1], HumanMessage)
    assert '"item_key": "vin_check"' in messages[1].content
    assert "ABC-123" in messages[1].content

    subscription = await service.usage(owner)
    assert subscription.tier == SubscriptionTier.FREE
    assert subscription.queries_used == 1

    logged = (await async_db_session.execute(select(AIConversation))).scalars().all()
    assert len(logged) == 1
    assert logged[0].conversation_type == "analysis"
    assert logged[0].tokens_used == 120
    assert logged[0].car_id == car.id


async def test_malformed_completion_is_degraded_but_counted(async_db_session, car, owner):
    service = AIService(async_db_session, analysis_llm=make_llm("not json at all"))

    analysis = await service.analyze_inspection(owner, car.id, inspection_data={"checklist": []})

    assert analysis.degraded is True
    assert (await service.usage(owner)).queries_used == 1


async def test_quota_checked_before_calling_the_model(async_db_session, car, owner):
    llm = make_llm(json.dumps(VALID_ANALYSIS))
    service = AIService(async_db_session, analysis_llm=llm)

    for _ in range(3):
        await service.analyze_inspection(owner, car.id, inspection_data={"checklist": []})

    with pytest.raises(QuotaExceeded):
        await service.analyze_inspection(owner, car.id, inspection_data={"checklist": []})

    assert llm.ainvoke.await_count == 3
    usage = await service.usage(owner)
    assert (usage.queries_used, usage.queries_limit, usage.can_use_ai) == (3, 3, False)


async def test_upstream_failure_does_not_consume_quota(async_db_session, car, owner):
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=TimeoutError("upstream timed out"))
    service = AIService(async_db_session, chat_llm=llm)

    with pytest.raises(UpstreamFailure):
        await service.chat_about_car(owner, car.id, "Is this a good buy?")

    assert (await service.usage(owner)).queries_used == 0


async def test_unconfigured_gateway_is_upstream_failure(async_db_session, car, owner):
    factory = MagicMock()
    factory.get_analysis_llm.side_effect = LLMConfigurationError("OPENAI_API_KEY is not configured")
    service = AIService(async_db_session, llm_factory=factory)

    with pytest.raises(UpstreamFailure):
        await service.analyze_inspection(owner, car.id, inspection_data={"checklist": []})


async def test_chat_replays_history(async_db_session, car, owner):
    llm = make_llm("Check the timing belt history first.")
    service = AIService(async_db_session, chat_llm=llm)
    history = [
        ChatTurn(role="user", content="What should I look at?"),
        ChatTurn(role="assistant", content="Start with the documents."),
    ]

    reply = await service.chat_about_car(owner, car.id, "And then?", conversation_history=history)

    assert reply == "Check the timing belt history first."
    messages = llm.ainvoke.await_args.args[0]
    assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
    assert "ABC-123 Volvo V70 2012" in messages[0].content
    assert messages[-1].content == "And then?"


async def test_analysis_prompt_carries_known_model_issues(async_db_session, car, owner):
    await CarKnowledgeService(async_db_session).add(
        "Volvo",
        "V70",
        year_from=2007,
        year_to=2016,
        common_issues=[{"component": "PCV valve", "description": "Clogged crankcase ventilation", "frequency": "common"}],
        recalls=[{"campaign": "R-2013-04", "description": "Fuel pump wiring"}],
    )
    llm = make_llm(json.dumps(VALID_ANALYSIS))
    service = AIService(async_db_session, analysis_llm=llm)

    await service.analyze_inspection(
        owner, car.id, inspection_data={"checklist": []}, car_model=CarModelInfo(make="volvo", model="v70", year=2012)
    )

    prompt = llm.ainvoke.await_args.args[0][1].content
    assert "Clogged crankcase ventilation" in prompt
    assert "R-2013-04" in prompt

    logged = (await async_db_session.execute(select(AIConversation))).scalar_one()
    assert logged.input_data["car_knowledge"]["year_from"] == 2007


async def test_analysis_without_matching_knowledge(async_db_session, car, owner):
    await CarKnowledgeService(async_db_session).add("Volvo", "V70", year_from=2007, year_to=2016)
    llm = make_llm(json.dumps(VALID_ANALYSIS))
    service = AIService(async_db_session, analysis_llm=llm)

    await service.analyze_inspection(
        owner, car.id, inspection_data={"checklist": []}, car_model=CarModelInfo(make="Volvo", model="V70", year=2020)
    )

    prompt = llm.ainvoke.await_args.args[0][1].content
    assert "No known issues, recalls or statistics on record for this model" in prompt

    logged = (await async_db_session.execute(select(AIConversation))).scalar_one()
    assert logged.input_data["car_knowledge"] is None
