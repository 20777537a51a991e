from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CarModelInfo(BaseModel):
    make: str
    model: str
    year: int


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    car_id: int = Field(..., alias="carId")
    # Built from the stored checklist when omitted
    inspection_data: Optional[dict[str, Any]] = Field(None, alias="inspectionData")
    car_model: Optional[CarModelInfo] = Field(None, alias="carModel")


class Concern(BaseModel):
    category: str
    severity: Literal["low", "medium", "high", "critical"]
    description: str
    recommendation: str


class MaintenanceSuggestion(BaseModel):
    item: str
    urgency: Literal["immediate", "soon", "routine"]
    estimated_cost: Optional[str] = None


class AIAnalysis(BaseModel):
    questions: List[str] = Field(default_factory=list)
    concerns: List[Concern] = Field(default_factory=list)
    maintenance_suggestions: List[MaintenanceSuggestion] = Field(default_factory=list)
    overall_assessment: str
    # True when the model's answer could not be parsed and this is the canned fallback
    degraded: bool = False


class AnalyzeResponse(BaseModel):
    success: bool = True
    analysis: AIAnalysis


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    car_id: int = Field(..., alias="carId")
    message: str
    conversation_history: List[ChatTurn] = Field(default_factory=list, alias="conversationHistory")

    @field_validator('message')
    def no_message(cls, v):
        if not v or not v.strip():
            raise ValueError("Please provide a message")
        return v


class ChatResponse(BaseModel):
    success: bool = True
    reply: str
    timestamp: str


class UsageOut(BaseModel):
    type: str
    queries_used: int
    queries_limit: int
    can_use_ai: bool
