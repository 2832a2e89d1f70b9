from pydantic import BaseModel, Field
from typing import List, Union
from enum import Enum
from .file import Flashcard


class AnalysisFeature(str, Enum):
    SUMMARY = "summary"
    CONCEPTS = "concepts"
    QUESTIONS = "questions"
    TIMELINE = "timeline"
    FLASHCARDS = "flashcards"


class QuickStudyTool(str, Enum):
    SUMMARY = "summary"
    CONCEPTS = "concepts"
    FLASHCARDS = "flashcards"


class ChatRequest(BaseModel):
    message: str = Field(..., max_length=8000)


class QuickStudyRequest(BaseModel):
    text: str
    tool: QuickStudyTool


class QuickStudyResponse(BaseModel):
    tool: QuickStudyTool
    result: Union[str, List[Flashcard]]
