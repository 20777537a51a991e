import os

from langchain_openai import ChatOpenAI

from .config import (
    AI_MODEL_ID,
    ANALYSIS_MAX_TOKENS,
    ANALYSIS_TEMPERATURE,
    CHAT_MAX_TOKENS,
    CHAT_TEMPERATURE,
    LOCAL_LLM_URL,
    LOCAL_MODEL_ID,
    PROVIDER,
    REQUEST_TIMEOUT_SECONDS,
)


class LLMConfigurationError(RuntimeError):
    """Raised when the completion client cannot be built (e.g. missing API key)."""


class LLMFactory:
    def __init__(self, provider: str = PROVIDER):
        self._provider = provider

    # Local
    def _local_llm(self, temperature: float, max_tokens: int):
        return ChatOpenAI(
            model=LOCAL_MODEL_ID,
            base_url=LOCAL_LLM_URL,
            api_key="not-needed",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=REQUEST_TIMEOUT_SECONDS,
            max_retries=0,
        )

    # Remote
    def _remote_llm(self, temperature: float, max_tokens: int):
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise LLMConfigurationError("OPENAI_API_KEY is not configured")
        return ChatOpenAI(
            model=AI_MODEL_ID,
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=REQUEST_TIMEOUT_SECONDS,
            max_retries=0,  # failures surface to the user immediately
        )

    def _build(self, temperature: float, max_tokens: int):
        if self._provider == "local":
            return self._local_llm(temperature, max_tokens)
        if self._provider == "openai":
            return self._remote_llm(temperature, max_tokens)
        raise LLMConfigurationError(f"Unsupported provider: {self._provider}")

    # Public API
    def get_analysis_llm(self):
        return self._build(
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
        )

    def get_chat_llm(self):
        return self._build(
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )
