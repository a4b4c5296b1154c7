"""End-to-end tests for RAGOrchestrator.ask over real SQLite stores.

Providers are the deterministic mocks from conftest; everything between
them (embedding client, retriever, prompt building, persistence) is real.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from zeb_ai.interfaces.conversation_store import IConversationStore
from zeb_ai.models.conversation import MessageRole
from zeb_ai.models.pipeline import AskPhase
from zeb_ai.pipeline.orchestrator import DEGRADED_ANSWER
from zeb_ai.utils.errors import (
    GenerationError,
    InputValidationError,
    PersistenceError,
    ProviderUnavailableError,
)

_NOTICE_START = "I couldn't find any internal ASTU documents"

_HAPPY_PATH = [
    AskPhase.RECEIVED,
    AskPhase.EMBEDDING,
    AskPhase.RETRIEVING,
    AskPhase.GENERATING,
    AskPhase.PERSISTING,
    AskPhase.COMPLETED,
]


async def _seed(orchestrator) -> dict[str, str]:
    docs = {
        "fire": ("Fire Evacuation", "During a fire alarm leave the building by the nearest stairwell."),
        "clinic": ("Student Clinic", "The student clinic in block 5 is open from eight to five."),
        "parking": ("Parking Rules", "Vehicles must park in marked bays near the main gate."),
    }
    ids = {}
    for key, (title, content) in docs.items():
        result = await orchestrator.ingest_text(title=title, content=content, owner_id="admin")
        ids[key] = result.document_id
    return ids


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestAskWithContext:
    @pytest.mark.asyncio
    async def test_vector_retrieval_grounds_answer(self, orchestrator, mock_llm_provider) -> None:
        ids = await _seed(orchestrator)

        result = await orchestrator.ask("Which stairwell during a fire alarm?", owner_id="student-1")

        assert result.answer == mock_llm_provider.answer
        assert result.degraded is False
        assert result.phases == _HAPPY_PATH
        assert result.sources[0].id == ids["fire"]
        assert result.sources[0].similarity is not None
        assert len(result.sources) == 3
        prompt = mock_llm_provider.last_user_prompt
        assert "Document 1: Fire Evacuation [Category: other] (Relevance:" in prompt
        assert prompt.endswith("USER QUESTION: Which stairwell during a fire alarm?")

    @pytest.mark.asyncio
    async def test_emergency_question_gets_priority_instruction(self, orchestrator, mock_llm_provider) -> None:
        await _seed(orchestrator)
        await orchestrator.ask("There is smoke and fire in my dorm!", owner_id="student-1")
        assert "PRIORITY:" in mock_llm_provider.last_user_prompt

    @pytest.mark.asyncio
    async def test_question_is_stripped(self, orchestrator) -> None:
        result = await orchestrator.ask("   Where is the clinic?  ", owner_id="student-1")
        assert result.question == "Where is the clinic?"

    @pytest.mark.asyncio
    async def test_retrieval_limit_from_config(self, orchestrator_factory, mock_embedding_provider, mock_llm_provider, rag_config) -> None:
        orchestrator = orchestrator_factory(
            mock_embedding_provider,
            mock_llm_provider,
            config=rag_config.model_copy(update={"retrieval_limit": 1}),
        )
        await _seed(orchestrator)
        result = await orchestrator.ask("fire alarm stairwell", owner_id="student-1")
        assert len(result.sources) == 1


# ---------------------------------------------------------------------------
# Empty knowledge base
# ---------------------------------------------------------------------------


class TestAskWithoutContext:
    @pytest.mark.asyncio
    async def test_empty_index_answer_carries_notice(self, orchestrator, mock_llm_provider) -> None:
        result = await orchestrator.ask("How do I report a lost ID card?", owner_id="student-1")

        assert result.sources == []
        assert result.answer.startswith(_NOTICE_START)
        assert mock_llm_provider.answer in result.answer
        assert "No internal ASTU documents matched" in mock_llm_provider.last_user_prompt

    @pytest.mark.asyncio
    async def test_notice_not_duplicated(self, orchestrator, mock_llm_provider) -> None:
        notice = (
            "I couldn't find any internal ASTU documents related to your question, "
            "so the following is general safety advice."
        )
        mock_llm_provider.answer = f"{notice} Keep your ID safe."
        result = await orchestrator.ask("Lost ID card?", owner_id="student-1")
        assert result.answer.count(_NOTICE_START) == 1


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


class TestConversationFlow:
    @pytest.mark.asyncio
    async def test_first_question_creates_titled_conversation(self, orchestrator, conversation_store) -> None:
        question = "What should I do if I see someone fainting near the library entrance?"
        result = await orchestrator.ask(question, owner_id="student-1")

        conversations = await conversation_store.list_conversations("student-1")
        assert [c.id for c in conversations] == [result.conversation_id]
        assert len(conversations[0].title) == 50
        assert conversations[0].title.endswith("...")
        assert conversations[0].last_message == result.answer[:100]

    @pytest.mark.asyncio
    async def test_follow_up_reuses_conversation(self, orchestrator, conversation_store) -> None:
        first = await orchestrator.ask("Where is the clinic?", owner_id="student-1")
        second = await orchestrator.ask(
            "What are its hours?",
            owner_id="student-1",
            conversation_id=first.conversation_id,
        )

        assert second.conversation_id == first.conversation_id
        messages = await conversation_store.list_messages(first.conversation_id, "student-1")
        assert [(m.role, m.text) for m in messages] == [
            (MessageRole.USER, "Where is the clinic?"),
            (MessageRole.MODEL, first.answer),
            (MessageRole.USER, "What are its hours?"),
            (MessageRole.MODEL, second.answer),
        ]

    @pytest.mark.asyncio
    async def test_foreign_conversation_id_starts_new_thread(self, orchestrator) -> None:
        theirs = await orchestrator.ask("Where is the clinic?", owner_id="student-1")
        mine = await orchestrator.ask(
            "Where is the gym?",
            owner_id="student-2",
            conversation_id=theirs.conversation_id,
        )
        assert mine.conversation_id is not None
        assert mine.conversation_id != theirs.conversation_id

    @pytest.mark.asyncio
    async def test_unknown_conversation_id_starts_new_thread(self, orchestrator) -> None:
        result = await orchestrator.ask("Where is the gym?", owner_id="student-1", conversation_id="nope")
        assert result.conversation_id not in (None, "nope")

    @pytest.mark.asyncio
    async def test_persistence_failure_still_answers(
        self,
        orchestrator_factory,
        mock_embedding_provider,
        mock_llm_provider,
    ) -> None:
        broken = MagicMock(spec=IConversationStore)
        broken.create_conversation = AsyncMock(side_effect=PersistenceError(message="disk full"))
        orchestrator = orchestrator_factory(mock_embedding_provider, mock_llm_provider, conversations=broken)

        result = await orchestrator.ask("Where is the clinic?", owner_id="student-1")

        assert result.answer == mock_llm_provider.answer
        assert result.conversation_id is None
        assert result.phases[-1] is AskPhase.COMPLETED

    @pytest.mark.asyncio
    async def test_without_conversation_store(self, orchestrator_factory, mock_embedding_provider, mock_llm_provider) -> None:
        orchestrator = orchestrator_factory(mock_embedding_provider, mock_llm_provider, with_conversations=False)
        result = await orchestrator.ask("Where is the clinic?", owner_id="student-1")
        assert result.conversation_id is None


# ---------------------------------------------------------------------------
# Degraded paths
# ---------------------------------------------------------------------------


class TestDegradedPaths:
    @pytest.mark.asyncio
    async def test_embedding_outage_recovers_through_text_search(
        self,
        orchestrator,
        orchestrator_factory,
        failing_embedding_provider,
        mock_llm_provider,
    ) -> None:
        ids = await _seed(orchestrator)
        outage = orchestrator_factory(failing_embedding_provider, mock_llm_provider)

        result = await outage.ask("When is the clinic open?", owner_id="student-1")

        assert result.phases == [
            AskPhase.RECEIVED,
            AskPhase.EMBEDDING,
            AskPhase.ERROR_RECOVERED,
            AskPhase.RETRIEVING,
            AskPhase.GENERATING,
            AskPhase.PERSISTING,
            AskPhase.COMPLETED,
        ]
        assert result.degraded is False
        assert result.sources[0].id == ids["clinic"]
        assert result.sources[0].similarity is None
        assert "(Relevance:" not in mock_llm_provider.last_user_prompt

    @pytest.mark.asyncio
    async def test_generation_outage_returns_fallback_and_persists(
        self,
        orchestrator,
        mock_llm_provider,
        conversation_store,
    ) -> None:
        mock_llm_provider.error = ProviderUnavailableError(
            message="quota exhausted",
            provider_name="mock-llm",
            retryable=False,
        )

        result = await orchestrator.ask("Where is the clinic?", owner_id="student-1")

        assert result.degraded is True
        assert result.answer == DEGRADED_ANSWER
        messages = await conversation_store.list_messages(result.conversation_id, "student-1")
        assert messages[-1].text == DEGRADED_ANSWER

    @pytest.mark.asyncio
    async def test_no_llm_configured(self, orchestrator_factory, mock_embedding_provider) -> None:
        orchestrator = orchestrator_factory(mock_embedding_provider, None)
        result = await orchestrator.ask("Where is the clinic?", owner_id="student-1")
        assert result.degraded is True
        assert result.answer == DEGRADED_ANSWER

    @pytest.mark.asyncio
    async def test_unexpected_generation_error_fails(self, orchestrator, mock_llm_provider, conversation_store) -> None:
        mock_llm_provider.error = RuntimeError("template bug")

        with pytest.raises(GenerationError):
            await orchestrator.ask("Where is the clinic?", owner_id="student-1")

        assert await conversation_store.list_conversations("student-1") == []


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("question", ["", "   \n\t "])
    async def test_blank_question_rejected_before_providers(
        self,
        orchestrator,
        mock_embedding_provider,
        mock_llm_provider,
        question: str,
    ) -> None:
        with pytest.raises(InputValidationError):
            await orchestrator.ask(question, owner_id="student-1")
        assert mock_embedding_provider.calls == []
        assert mock_llm_provider.calls == []

    @pytest.mark.asyncio
    async def test_overlong_question_rejected(self, orchestrator, mock_llm_provider) -> None:
        with pytest.raises(InputValidationError):
            await orchestrator.ask("a" * 1001, owner_id="student-1")
        assert mock_llm_provider.calls == []

    @pytest.mark.asyncio
    async def test_question_at_limit_accepted(self, orchestrator) -> None:
        result = await orchestrator.ask("a" * 1000, owner_id="student-1")
        assert result.question == "a" * 1000
