import os

from carcheck.core.environment import get_free_query_limit
from carcheck.models.enums import SubscriptionTier

LOCAL_INFERENCE = os.getenv("LOCAL_INFERENCE", "false").lower() == "true"
PROVIDER = "local" if LOCAL_INFERENCE else "openai"  # openai | local

# Model IDs
AI_MODEL_ID = os.getenv("AI_MODEL_ID", "gpt-4o-mini")
LOCAL_MODEL_ID = os.getenv("LOCAL_MODEL_ID", "Qwen/Qwen2.5-7B-Instruct-AWQ")

# Local OpenAI-compatible inference server URL
LOCAL_LLM_URL = os.getenv("LOCAL_LLM_URL", "http://vllm:8000/v1")

REQUEST_TIMEOUT_SECONDS = 60

# Generation settings per use
ANALYSIS_TEMPERATURE = 0.3
ANALYSIS_MAX_TOKENS = 2000
CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 800

# Queries per subscription tier
TIER_QUERY_LIMITS = {
    SubscriptionTier.FREE: get_free_query_limit(),
    SubscriptionTier.PREMIUM: 50,
    SubscriptionTier.PRO: 500,
}
