from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

from langchain_core.messages import AIMessage

from carcheck.auth.auth_handler import sign_jwt
from carcheck.models.user import User


class FakeClock:
    """Callable clock that only moves when a test says so."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeLLMFactory:
    def __init__(self, analysis_llm=None, chat_llm=None):
        self.analysis_llm = analysis_llm
        self.chat_llm = chat_llm

    def get_analysis_llm(self):
        return self.analysis_llm

    def get_chat_llm(self):
        return self.chat_llm


def make_llm(content: str, total_tokens: int = 42):
    """Mock chat model whose ainvoke returns a fixed AIMessage."""
    mock = MagicMock()
    mock.ainvoke = AsyncMock(
        return_value=AIMessage(
            content=content,
            usage_metadata={"input_tokens": 30, "output_tokens": total_tokens - 30, "total_tokens": total_tokens},
        )
    )
    return mock


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {sign_jwt(user.email)['access_token']}"}
