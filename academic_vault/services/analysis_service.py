from typing import Dict, List, Tuple, Union
import logging

from pydantic import ValidationError as PydanticValidationError

from academic_vault.core.exceptions import AIGenerationError, NotFoundError, ValidationError
from academic_vault.core.prompts import (
    FILE_CONCEPTS_PROMPT,
    FILE_FLASHCARDS_PROMPT,
    FILE_QUESTIONS_PROMPT,
    FILE_SUMMARY_PROMPT,
    FILE_TIMELINE_PROMPT,
    FLASHCARDS_SCHEMA,
    QUICK_CONCEPTS_PROMPT,
    QUICK_FLASHCARDS_PROMPT,
    QUICK_SUMMARY_PROMPT,
    STUDY_COACH_SYSTEM_PROMPT,
)
from academic_vault.schemas.ai import AnalysisFeature, QuickStudyTool
from academic_vault.schemas.file import AnalysisContent, ChatMessage, Flashcard, VaultFile
from academic_vault.services.ai_gateway import AIGateway
from academic_vault.services.sample_data import sample_content_for
from academic_vault.services.vault_controller import VaultStateController

logger = logging.getLogger(__name__)

FEATURE_PROMPTS: Dict[AnalysisFeature, str] = {
    AnalysisFeature.SUMMARY: FILE_SUMMARY_PROMPT,
    AnalysisFeature.CONCEPTS: FILE_CONCEPTS_PROMPT,
    AnalysisFeature.QUESTIONS: FILE_QUESTIONS_PROMPT,
    AnalysisFeature.TIMELINE: FILE_TIMELINE_PROMPT,
    AnalysisFeature.FLASHCARDS: FILE_FLASHCARDS_PROMPT,
}

QUICK_STUDY_PROMPTS: Dict[QuickStudyTool, str] = {
    QuickStudyTool.SUMMARY: QUICK_SUMMARY_PROMPT,
    QuickStudyTool.CONCEPTS: QUICK_CONCEPTS_PROMPT,
    QuickStudyTool.FLASHCARDS: QUICK_FLASHCARDS_PROMPT,
}


def _parse_flashcards(payload) -> List[Flashcard]:
    if not isinstance(payload, dict) or not isinstance(payload.get("flashcards"), list):
        raise AIGenerationError("AI response did not contain flashcards")
    try:
        return [Flashcard.model_validate(card) for card in payload["flashcards"]]
    except PydanticValidationError as e:
        logger.error(f"❌ Malformed flashcards from AI: {e}")
        raise AIGenerationError("AI response contained malformed flashcards")


async def quick_study(ai: AIGateway, text: str, tool: QuickStudyTool) -> Union[str, List[Flashcard]]:
    """Run a study tool over pasted text; nothing is stored"""
    if not text.strip():
        raise ValidationError("Paste some text to study first")

    prompt = QUICK_STUDY_PROMPTS[tool].format(content=text)
    if tool == QuickStudyTool.FLASHCARDS:
        return _parse_flashcards(await ai.generate(prompt, FLASHCARDS_SCHEMA))
    return await ai.generate(prompt)


class FileAnalysisService:
    """
    AI study tools for a single file.

    Results are cached in the file's `ai_content` and saved through the vault
    controller, so the list and detail views stay in step. A failed AI call
    leaves the cached content as it was. Files the caller does not own (shared
    ones) still get results, they are just not cached on the record.
    """

    def __init__(self, controller: VaultStateController, ai: AIGateway):
        self.controller = controller
        self.ai = ai

    async def get_file_content(self, file: VaultFile) -> str:
        if not file.storage_path:
            return sample_content_for(file)

        data = await self.controller.gateway.get_blob(file.storage_path)
        if data is None:
            raise NotFoundError("File content")
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return f"Could not read content from file: {file.title}. It may be a binary file."

    async def _load(self, file_id: str) -> Tuple[VaultFile, str]:
        file = await self.controller.open_detail(file_id)
        return file, await self.get_file_content(file)

    async def _store(self, file: VaultFile, ai_content: AnalysisContent) -> VaultFile:
        updated = file.model_copy(update={"ai_content": ai_content})
        if file.owner_id != self.controller.identity.user_id:
            return updated
        return await self.controller.update_file(updated)

    async def generate(self, file_id: str, feature: AnalysisFeature) -> VaultFile:
        file, content = await self._load(file_id)
        prompt = FEATURE_PROMPTS[feature].format(content=content)
        logger.info(f"🤖 Generating {feature.value} for file {file.id}")

        if feature == AnalysisFeature.FLASHCARDS:
            value = _parse_flashcards(await self.ai.generate(prompt, FLASHCARDS_SCHEMA))
        else:
            value = await self.ai.generate(prompt)

        current = file.ai_content or AnalysisContent()
        return await self._store(file, current.model_copy(update={feature.value: value}))

    async def send_chat_message(self, file_id: str, message: str) -> VaultFile:
        message = message.strip()
        if not message:
            raise ValidationError("Message cannot be empty")

        file, content = await self._load(file_id)
        current = file.ai_content or AnalysisContent()
        history = list(current.chat_history or [])

        system_instruction = STUDY_COACH_SYSTEM_PROMPT.format(title=file.title, content=content)
        reply = await self.ai.chat(system_instruction, history, message)

        history += [
            ChatMessage(role="user", content=message),
            ChatMessage(role="model", content=reply),
        ]
        return await self._store(file, current.model_copy(update={"chat_history": history}))
