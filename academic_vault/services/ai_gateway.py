from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union
import json
import logging

from openai import AsyncOpenAI

from academic_vault.core.config import settings
from academic_vault.core.exceptions import AIGenerationError, AIUnavailableError
from academic_vault.schemas.file import ChatMessage

logger = logging.getLogger(__name__)

GenerateResult = Union[str, Dict[str, Any]]


class AIGateway(ABC):
    """Remote text generation"""

    @abstractmethod
    async def generate(self, prompt: str, output_schema: Optional[Dict[str, Any]] = None) -> GenerateResult:
        """Free text, or a parsed JSON object when output_schema is given"""

    @abstractmethod
    async def chat(self, system_instruction: str, history: List[ChatMessage], message: str) -> str:
        """Reply to `message` given the system instruction and earlier turns"""


class OpenAIGateway(AIGateway):
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        api_key = settings.openai_api_key if api_key is None else api_key
        self.model = model or settings.ai_model
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        if self.client is None:
            logger.warning("⚠️ OPENAI_API_KEY not set, AI features are disabled")

    def _require_client(self) -> AsyncOpenAI:
        if self.client is None:
            raise AIUnavailableError()
        return self.client

    async def _complete(self, messages: List[dict], **kwargs) -> str:
        client = self._require_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                **kwargs,
            )
        except Exception as e:
            logger.error(f"❌ OpenAI request failed: {e}")
            raise AIGenerationError(f"AI request failed: {str(e)}")

        content = response.choices[0].message.content
        if not content:
            raise AIGenerationError("AI returned an empty response")
        return content

    async def generate(self, prompt, output_schema=None):
        if output_schema is None:
            return await self._complete([{"role": "user", "content": prompt}])

        text = await self._complete(
            [{"role": "user", "content": prompt}],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "structured_output", "schema": output_schema, "strict": True},
            },
        )
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"❌ AI returned invalid JSON: {e}")
            raise AIGenerationError("AI returned malformed structured output")

    async def chat(self, system_instruction, history, message):
        messages = [{"role": "system", "content": system_instruction}]
        for turn in history:
            # Stored transcripts use "model" for assistant turns
            role = "assistant" if turn.role == "model" else "user"
            messages.append({"role": role, "content": turn.content})
        messages.append({"role": "user", "content": message})
        return await self._complete(messages)
