from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user
from carcheck.auth.rbac import Capability
from carcheck.core.db import get_db
from carcheck.llm.llm_factory import LLMFactory
from carcheck.middleware.rate_limit import limiter
from carcheck.models.user import User
from carcheck.schemas.ai import AnalyzeRequest, AnalyzeResponse, ChatRequest, ChatResponse, UsageOut
from carcheck.services.ai_service import AIService
from carcheck.services.car_service import CarService

router = APIRouter(prefix="/ai", tags=["ai"])


def get_llm_factory() -> LLMFactory:
    return LLMFactory()


@router.post("/analyze", response_model=AnalyzeResponse)
@limiter.limit("10/minute")
async def analyze(
    request: Request,
    req: AnalyzeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm_factory: LLMFactory = Depends(get_llm_factory),
):
    """Structured analysis of a car's inspection data. Consumes one query from the caller's quota."""
    await CarService(db).require_role(req.car_id, current_user, Capability.USE_AI)
    analysis = await AIService(db, llm_factory=llm_factory).analyze_inspection(
        current_user,
        req.car_id,
        inspection_data=req.inspection_data,
        car_model=req.car_model,
    )
    return AnalyzeResponse(analysis=analysis)


@router.post("/chat", response_model=ChatResponse)
@limiter.limit("20/minute")
async def chat(
    request: Request,
    req: ChatRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm_factory: LLMFactory = Depends(get_llm_factory),
):
    await CarService(db).require_role(req.car_id, current_user, Capability.USE_AI)
    reply = await AIService(db, llm_factory=llm_factory).chat_about_car(
        current_user,
        req.car_id,
        req.message,
        conversation_history=req.conversation_history,
    )
    return ChatResponse(reply=reply, timestamp=datetime.now(timezone.utc).isoformat())


@router.get("/usage", response_model=UsageOut)
async def usage(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm_factory: LLMFactory = Depends(get_llm_factory),
):
    subscription = await AIService(db, llm_factory=llm_factory).usage(current_user)
    return UsageOut(
        type=subscription.tier.value,
        queries_used=subscription.queries_used,
        queries_limit=subscription.queries_limit,
        can_use_ai=subscription.can_use_ai,
    )
