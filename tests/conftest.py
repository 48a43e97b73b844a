"""Tests configuration and fixtures."""

import asyncio
from typing import AsyncGenerator
from uuid import UUID

import pytest

from mindsync.config import Settings
from mindsync.config.settings import ChatSettings, DatabaseSettings
from mindsync.domain.enums.subscription_tier import SubscriptionTier
from mindsync.infrastructure.database.connection import DatabaseManager
from mindsync.infrastructure.database.models.user_model import UserModel
from mindsync.infrastructure.database.repositories.user_repository import to_domain
from mindsync.infrastructure.llm.provider import LLMProvider, LLMProviderError, LLMResponse
from mindsync.services.auth.security import hash_password
from mindsync.services.prompt.prompt_builder import CompletionPrompt


class FakeLLMProvider(LLMProvider):
    """
    In-process provider double.

    Records every prompt it receives; can be told to fail, hang or
    return an empty reply.
    """

    def __init__(
        self,
        reply: str = "Estoy aquí para escucharte.",
        *,
        fail: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.reply = reply
        self.fail = fail
        self.delay = delay
        self.prompts: list[CompletionPrompt] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def generate(self, prompt: CompletionPrompt) -> LLMResponse:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise LLMProviderError("upstream unavailable", provider="fake")
        return LLMResponse(content=self.reply, provider="fake", model="fake-model")

    def is_configured(self) -> bool:
        return True


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite database."""
    return Settings(
        env="development",
        debug=True,
        database=DatabaseSettings(
            url=f"sqlite+aiosqlite:///{tmp_path / 'mindsync_test.db'}",
            auto_create_schema=True,
        ),
        chat=ChatSettings(completion_timeout_seconds=0.5),
    )


@pytest.fixture
async def db(test_settings: Settings) -> AsyncGenerator[DatabaseManager, None]:
    manager = DatabaseManager(test_settings)
    await manager.initialize()
    yield manager
    await manager.close()


@pytest.fixture
def fake_provider() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def create_user(db: DatabaseManager):
    """Factory inserting a user row and returning the domain entity."""

    async def _create(
        email: str = "ana@x.com",
        name: str = "Ana",
        password: str = "secret1",
        tier: SubscriptionTier = SubscriptionTier.FREE,
        **columns,
    ):
        async with db.session() as session:
            model = UserModel(
                name=name,
                email=email,
                password_hash=hash_password(password),
                subscription_tier=tier.value,
                preferences={},
                **columns,
            )
            session.add(model)
            await session.flush()
            user_id: UUID = model.id
        async with db.session() as session:
            model = await session.get(UserModel, user_id)
            return to_domain(model)

    return _create


@pytest.fixture
def provider_factory():
    """Build FakeLLMProvider instances with custom behaviour."""
    return FakeLLMProvider
