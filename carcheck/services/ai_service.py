import json
import logging
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.core.prometheus_metrics import ai_quota_rejections_total, ai_requests_total
from carcheck.core.prompt_loader import load_prompt
from carcheck.data.checklist_catalog import get_item
from carcheck.llm.config import TIER_QUERY_LIMITS
from carcheck.llm.llm_factory import LLMConfigurationError, LLMFactory
from carcheck.models.ai_conversation import AIConversation
from carcheck.models.car import Car
from carcheck.models.enums import SubscriptionTier
from carcheck.models.subscription import UserSubscription
from carcheck.models.user import User
from carcheck.schemas.ai import AIAnalysis, CarModelInfo, ChatTurn
from carcheck.services.car_knowledge_service import CarKnowledgeService, knowledge_payload
from carcheck.services.car_service import CarService
from carcheck.services.checklist_service import ChecklistService
from carcheck.services.exceptions import QuotaExceeded, UpstreamFailure

logger = logging.getLogger(__name__)

FALLBACK_ANALYSIS = {
    "questions": ["The analysis failed because of a technical error."],
    "concerns": [
        {
            "category": "system",
            "severity": "low",
            "description": "The AI analysis could not be completed.",
            "recommendation": "Try again or review the inspection data manually.",
        }
    ],
    "maintenance_suggestions": [],
    "overall_assessment": "Technical error in the AI analysis; no assessment is available.",
}


def extract_json_object(raw: str) -> Dict[str, Any]:
    """Parse the outermost {...} block of a completion; models often wrap JSON in prose."""
    content = raw.strip()
    start = content.find("{")
    end = content.rfind("}")
    if start != -1 and end > start:
        content = content[start:end + 1]
    return json.loads(content)


def parse_analysis(raw: str) -> AIAnalysis:
    """Validated analysis, or the clearly-flagged fallback when the content is malformed."""
    try:
        payload = extract_json_object(raw)
        if isinstance(payload, dict):
            # Only the fallback path may flag an answer as degraded
            payload.pop("degraded", None)
        return AIAnalysis.model_validate(payload)
    except (ValueError, PydanticValidationError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning("Malformed AI analysis content; using fallback", extra={"error": str(e)})
        return AIAnalysis.model_validate({**FALLBACK_ANALYSIS, "degraded": True})


def _tokens_used(response) -> int:
    usage = getattr(response, "usage_metadata", None) or {}
    return int(usage.get("total_tokens", 0))


class AIService:
    """
    Gateway to the hosted completion API.

    Every call is metered: the user's quota is checked before the external
    API is invoked, and usage is incremented only after a response arrives.
    """

    def __init__(
        self,
        db: AsyncSession,
        analysis_llm=None,
        chat_llm=None,
        llm_factory: Optional[LLMFactory] = None,
    ):
        self.db = db
        self._analysis_llm = analysis_llm
        self._chat_llm = chat_llm
        self._factory = llm_factory or LLMFactory()
        self.cars = CarService(db)
        self.knowledge = CarKnowledgeService(db)
        self.checklist = ChecklistService(db)

    # Quota

    async def usage(self, user: User) -> UserSubscription:
        """Subscription row for the user, created as free tier on first use."""
        subscription = await self.db.get(UserSubscription, user.id)
        if subscription is None:
            subscription = UserSubscription(
                user_id=user.id,
                tier=SubscriptionTier.FREE,
                queries_used=0,
                queries_limit=TIER_QUERY_LIMITS[SubscriptionTier.FREE],
            )
            self.db.add(subscription)
            await self.db.commit()
        else:
            # usage counter is bumped with a SQL update, reload it
            await self.db.refresh(subscription)
        return subscription

    async def check_quota(self, user: User) -> UserSubscription:
        subscription = await self.usage(user)
        if not subscription.can_use_ai:
            ai_quota_rejections_total.labels(tier=subscription.tier.value).inc()
            logger.info("AI quota exhausted", extra={"user_id": user.id, "tier": subscription.tier.value})
            raise QuotaExceeded("AI usage limit exceeded. Please upgrade your subscription.")
        return subscription

    async def _record_usage(
        self,
        user: User,
        car_id: Optional[int],
        conversation_type: str,
        input_data: Dict[str, Any],
        ai_response: Dict[str, Any],
        tokens_used: int,
    ) -> None:
        self.db.add(
            AIConversation(
                user_id=user.id,
                car_id=car_id,
                conversation_type=conversation_type,
                input_data=input_data,
                ai_response=ai_response,
                tokens_used=tokens_used,
            )
        )
        await self.db.execute(
            update(UserSubscription)
            .where(UserSubscription.user_id == user.id)
            .values(queries_used=UserSubscription.queries_used + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

    # Inputs

    async def build_inspection_data(self, car_id: int) -> Dict[str, Any]:
        """The `inspectionData` payload assembled from stored checklist records."""
        car: Car = await self.cars.get_car(car_id)
        grouped = await self.checklist.all_items(car_id)
        checklist = []
        for section, records in grouped.items():
            for record in records:
                definition = get_item(section, record.item_key)
                checklist.append({
                    "section": section,
                    "item_key": record.item_key,
                    "title": definition.title if definition else record.item_key,
                    "status": record.status.value,
                    "comment": record.comment,
                })
        return {
            "checklist": checklist,
            "registration_number": car.registration_number,
            "year": car.year,
            "make": car.make,
            "model": car.model,
        }

    def _llm(self, kind: str):
        try:
            if kind == "analysis":
                if self._analysis_llm is None:
                    self._analysis_llm = self._factory.get_analysis_llm()
                return self._analysis_llm
            if self._chat_llm is None:
                self._chat_llm = self._factory.get_chat_llm()
            return self._chat_llm
        except LLMConfigurationError as e:
            logger.error("AI gateway not configured", extra={"error": str(e)})
            raise UpstreamFailure("The AI service is not configured.") from e

    async def _invoke(self, kind: str, messages: list):
        llm = self._llm(kind)
        try:
            return await llm.ainvoke(messages)
        except Exception as e:
            # Any transport or API error from the provider SDK
            ai_requests_total.labels(kind=kind, outcome="upstream_failure").inc()
            logger.error("AI completion call failed", extra={"kind": kind, "error": str(e)})
            raise UpstreamFailure("The AI service is unavailable. Please try again later.") from e

    # Operations

    async def analyze_inspection(
        self,
        user: User,
        car_id: int,
        inspection_data: Optional[Dict[str, Any]] = None,
        car_model: Optional[CarModelInfo] = None,
    ) -> AIAnalysis:
        await self.check_quota(user)

        if inspection_data is None:
            inspection_data = await self.build_inspection_data(car_id)

        car_knowledge = None
        if car_model is not None:
            found = await self.knowledge.lookup(car_model.make, car_model.model, car_model.year)
            if found is not None:
                car_knowledge = knowledge_payload(found)

        context = {
            "inspection_data": inspection_data,
            "car_model": car_model.model_dump() if car_model else None,
            "car_knowledge": car_knowledge,
        }
        prompt = load_prompt("analysis", "user").format(
            inspection_data=json.dumps(inspection_data, indent=2, ensure_ascii=False, default=str),
            car_model=json.dumps(context["car_model"]) if car_model else "No specific model data available",
            car_knowledge=(
                json.dumps(car_knowledge, indent=2, ensure_ascii=False)
                if car_knowledge
                else "No known issues, recalls or statistics on record for this model"
            ),
        )
        messages = [
            SystemMessage(content=load_prompt("analysis", "system")),
            HumanMessage(content=prompt),
        ]

        logger.info("Requesting AI analysis", extra={"user_id": user.id, "car_id": car_id})
        response = await self._invoke("analysis", messages)
        analysis = parse_analysis(str(response.content))

        await self._record_usage(
            user,
            car_id,
            "analysis",
            input_data=context,
            ai_response=analysis.model_dump(),
            tokens_used=_tokens_used(response),
        )
        ai_requests_total.labels(kind="analysis", outcome="degraded" if analysis.degraded else "ok").inc()
        return analysis

    async def chat_about_car(
        self,
        user: User,
        car_id: int,
        message: str,
        conversation_history: Optional[List[ChatTurn]] = None,
    ) -> str:
        await self.check_quota(user)
        car = await self.cars.get_car(car_id)

        vehicle = " ".join(
            str(part) for part in (car.registration_number, car.make, car.model, car.year) if part
        )
        messages = [SystemMessage(content=load_prompt("chat", "system").format(vehicle=vehicle))]
        for turn in conversation_history or []:
            if turn.role == "user":
                messages.append(HumanMessage(content=turn.content))
            else:
                messages.append(AIMessage(content=turn.content))
        messages.append(HumanMessage(content=message))

        response = await self._invoke("chat", messages)
        reply = str(response.content)

        await self._record_usage(
            user,
            car_id,
            "chat",
            input_data={"message": message, "history_length": len(conversation_history or [])},
            ai_response={"reply": reply},
            tokens_used=_tokens_used(response),
        )
        ai_requests_total.labels(kind="chat", outcome="ok").inc()
        return reply
