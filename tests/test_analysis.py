"""
Tests for the AI study tools and the OpenAI adapter.
"""

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from academic_vault.core.exceptions import (
    AIGenerationError,
    AIUnavailableError,
    NotFoundError,
    ValidationError,
)
from academic_vault.schemas.ai import AnalysisFeature, QuickStudyTool
from academic_vault.schemas.file import ChatMessage, Flashcard, Visibility
from academic_vault.services.ai_gateway import OpenAIGateway
from academic_vault.services.analysis_service import FileAnalysisService, quick_study
from academic_vault.services.sample_data import SAMPLE_PAPER_TITLE, build_sample_files
from academic_vault.services.vault_controller import UploadItem, VaultStateController

LECTURE_TEXT = "Photosynthesis converts light energy into chemical energy."


@pytest.fixture
def service(controller, fake_ai) -> FileAnalysisService:
    return FileAnalysisService(controller, fake_ai)


async def upload_text(controller, name="bio.txt", content=LECTURE_TEXT.encode()):
    result = await controller.upload([UploadItem(filename=name, content=content, content_type="text/plain")])
    return result.uploaded[0]


class TestFileContent:
    @pytest.mark.asyncio
    async def test_text_blob_is_decoded(self, controller, service):
        file = await upload_text(controller)
        assert await service.get_file_content(file) == LECTURE_TEXT

    @pytest.mark.asyncio
    async def test_binary_blob_gives_placeholder(self, controller, service):
        file = await upload_text(controller, name="scan.png", content=b"\x89PNG\r\n\x1a\n\xff\xfe")
        content = await service.get_file_content(file)
        assert "binary" in content and "scan.png" in content

    @pytest.mark.asyncio
    async def test_sample_files_use_built_in_text(self, service, identity):
        paper = next(f for f in build_sample_files(identity.user_id) if f.title == SAMPLE_PAPER_TITLE)
        assert "Memory Consolidation" in await service.get_file_content(paper)

    @pytest.mark.asyncio
    async def test_missing_blob_is_not_found(self, controller, gateway, service):
        file = await upload_text(controller)
        gateway.blobs.clear()

        with pytest.raises(NotFoundError):
            await service.get_file_content(file)


class TestGenerate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("feature", [
        AnalysisFeature.SUMMARY,
        AnalysisFeature.CONCEPTS,
        AnalysisFeature.QUESTIONS,
        AnalysisFeature.TIMELINE,
    ])
    async def test_text_features_are_cached_on_the_file(self, controller, gateway, service, fake_ai, feature):
        file = await upload_text(controller)

        updated = await service.generate(file.id, feature)

        assert getattr(updated.ai_content, feature.value) == "Generated text"
        assert getattr(gateway.files[file.id].ai_content, feature.value) == "Generated text"
        assert LECTURE_TEXT in fake_ai.prompts[0]
        assert fake_ai.schemas == [None]

    @pytest.mark.asyncio
    async def test_flashcards_use_structured_output(self, controller, gateway, service, fake_ai):
        file = await upload_text(controller)

        updated = await service.generate(file.id, AnalysisFeature.FLASHCARDS)

        assert fake_ai.schemas[0]["properties"]["flashcards"]["type"] == "array"
        assert updated.ai_content.flashcards[0] == Flashcard(
            question="What is consolidation?", answer="Stabilizing new memories"
        )
        assert len(gateway.files[file.id].ai_content.flashcards) == 2

    @pytest.mark.asyncio
    async def test_existing_artifacts_are_kept(self, controller, service):
        file = await upload_text(controller)
        await service.generate(file.id, AnalysisFeature.SUMMARY)

        updated = await service.generate(file.id, AnalysisFeature.CONCEPTS)

        assert updated.ai_content.summary == "Generated text"
        assert updated.ai_content.concepts == "Generated text"

    @pytest.mark.asyncio
    async def test_ai_failure_leaves_cached_content_untouched(self, controller, gateway, service, fake_ai):
        file = await upload_text(controller)
        await service.generate(file.id, AnalysisFeature.SUMMARY)
        fake_ai.fail()

        with pytest.raises(AIGenerationError):
            await service.generate(file.id, AnalysisFeature.SUMMARY)

        cached = gateway.files[file.id].ai_content
        assert cached.summary == "Generated text"
        assert cached.concepts is None

    @pytest.mark.asyncio
    async def test_malformed_flashcards_are_rejected(self, controller, gateway, service, fake_ai):
        file = await upload_text(controller)
        fake_ai.structured_response = {"cards": []}

        with pytest.raises(AIGenerationError):
            await service.generate(file.id, AnalysisFeature.FLASHCARDS)
        assert gateway.files[file.id].ai_content is None

    @pytest.mark.asyncio
    async def test_flashcards_missing_fields_are_rejected(self, controller, gateway, service, fake_ai):
        file = await upload_text(controller)
        fake_ai.structured_response = {"flashcards": [{"question": "No answer here"}]}

        with pytest.raises(AIGenerationError):
            await service.generate(file.id, AnalysisFeature.FLASHCARDS)
        assert gateway.files[file.id].ai_content is None

    @pytest.mark.asyncio
    async def test_shared_file_of_another_user_is_not_cached(self, gateway, other_identity, fake_ai, make_file):
        file = make_file("public.txt", visibility=Visibility.SHARED)
        gateway.files[file.id] = file
        viewer = VaultStateController(gateway, other_identity, scope=Visibility.SHARED)

        updated = await FileAnalysisService(viewer, fake_ai).generate(file.id, AnalysisFeature.SUMMARY)

        assert updated.ai_content.summary == "Generated text"
        assert gateway.files[file.id].ai_content is None


class TestChat:
    @pytest.mark.asyncio
    async def test_chat_seeds_document_and_appends_both_turns(self, controller, gateway, service, fake_ai):
        file = await upload_text(controller)

        updated = await service.send_chat_message(file.id, "  What is photosynthesis?  ")

        call = fake_ai.chat_calls[0]
        assert "bio.txt" in call["system_instruction"]
        assert LECTURE_TEXT in call["system_instruction"]
        assert call["history"] == []
        assert call["message"] == "What is photosynthesis?"
        assert updated.ai_content.chat_history == [
            ChatMessage(role="user", content="What is photosynthesis?"),
            ChatMessage(role="model", content="Happy to help with that."),
        ]
        assert len(gateway.files[file.id].ai_content.chat_history) == 2

    @pytest.mark.asyncio
    async def test_prior_turns_are_replayed(self, controller, service, fake_ai):
        file = await upload_text(controller)
        await service.send_chat_message(file.id, "First question")

        await service.send_chat_message(file.id, "Second question")

        assert [m.content for m in fake_ai.chat_calls[1]["history"]] == ["First question", "Happy to help with that."]

    @pytest.mark.asyncio
    async def test_failed_reply_records_nothing(self, controller, gateway, service, fake_ai):
        file = await upload_text(controller)
        fake_ai.fail()

        with pytest.raises(AIGenerationError):
            await service.send_chat_message(file.id, "Hello?")
        assert gateway.files[file.id].ai_content is None

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, controller, service, fake_ai):
        file = await upload_text(controller)
        with pytest.raises(ValidationError):
            await service.send_chat_message(file.id, "   ")
        assert fake_ai.chat_calls == []


class TestQuickStudy:
    @pytest.mark.asyncio
    async def test_summary(self, fake_ai):
        result = await quick_study(fake_ai, LECTURE_TEXT, QuickStudyTool.SUMMARY)
        assert result == "Generated text"
        assert LECTURE_TEXT in fake_ai.prompts[0]

    @pytest.mark.asyncio
    async def test_flashcards(self, fake_ai):
        result = await quick_study(fake_ai, LECTURE_TEXT, QuickStudyTool.FLASHCARDS)
        assert all(isinstance(card, Flashcard) for card in result)

    @pytest.mark.asyncio
    async def test_blank_text_rejected(self, fake_ai):
        with pytest.raises(ValidationError):
            await quick_study(fake_ai, " \n ", QuickStudyTool.CONCEPTS)


class TestOpenAIGateway:
    @staticmethod
    def completion(content):
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    @pytest.mark.asyncio
    async def test_missing_key_disables_ai(self):
        gateway = OpenAIGateway(api_key="")
        with pytest.raises(AIUnavailableError):
            await gateway.generate("hello")

    @pytest.mark.asyncio
    async def test_structured_output_is_parsed(self):
        gateway = OpenAIGateway(api_key="sk-test", model="gpt-4o-mini")
        gateway.client = MagicMock()
        gateway.client.chat.completions.create = AsyncMock(
            return_value=self.completion('{"flashcards": [{"question": "Q", "answer": "A"}]}')
        )

        result = await gateway.generate("make cards", {"type": "object"})

        assert result == {"flashcards": [{"question": "Q", "answer": "A"}]}
        kwargs = gateway.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"]["type"] == "json_schema"

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        gateway = OpenAIGateway(api_key="sk-test")
        gateway.client = MagicMock()
        gateway.client.chat.completions.create = AsyncMock(return_value=self.completion("not json"))

        with pytest.raises(AIGenerationError):
            await gateway.generate("make cards", {"type": "object"})

    @pytest.mark.asyncio
    async def test_chat_maps_model_turns_to_assistant(self):
        gateway = OpenAIGateway(api_key="sk-test")
        gateway.client = MagicMock()
        gateway.client.chat.completions.create = AsyncMock(return_value=self.completion("Sure."))

        reply = await gateway.chat(
            "You are a study coach.",
            [ChatMessage(role="user", content="hi"), ChatMessage(role="model", content="hello")],
            "explain",
        )

        assert reply == "Sure."
        messages = gateway.client.chat.completions.create.call_args.kwargs["messages"]
        assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_request_failure_is_wrapped(self):
        gateway = OpenAIGateway(api_key="sk-test")
        gateway.client = MagicMock()
        gateway.client.chat.completions.create = AsyncMock(side_effect=RuntimeError("rate limited"))

        with pytest.raises(AIGenerationError):
            await gateway.generate("hello")
