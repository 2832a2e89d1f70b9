"""Onboarding sample files and the text the AI features read for them"""
from typing import Dict, List, Optional
import uuid

from academic_vault.schemas.file import FileStatus, FileType, VaultFile, Visibility
from academic_vault.services.data_gateway import utcnow

SAMPLE_LECTURE_TITLE = "Sample Lecture Video - Intro to Psychology.mp4"
SAMPLE_PAPER_TITLE = "Research Paper Sample - The Impact of Sleep on Learning.pdf"

_SAMPLE_FILES: List[dict] = [
    {
        "title": SAMPLE_LECTURE_TITLE,
        "type": FileType.MP4,
        "size": 128 * 1024 * 1024,
        "tags": ["sample", "lecture", "psychology"],
        "meta": {"duration": 2700, "course_code": "DEMO101"},
    },
    {
        "title": SAMPLE_PAPER_TITLE,
        "type": FileType.PDF,
        "size": 3 * 1024 * 1024,
        "tags": ["sample", "research", "learning"],
        "meta": {"pages": 15},
    },
]

SAMPLE_CONTENT: Dict[str, str] = {
    SAMPLE_LECTURE_TITLE: """Transcript: Introduction to Psychology - Sample Lecture

(00:10) Professor: Hello everyone, and welcome to Introduction to Psychology. In this course, we're going to explore the human mind and behavior. Why do we think and feel the way we do?

(01:15) Professor: Today, we'll start with the major schools of thought. First, Structuralism, pioneered by Wilhelm Wundt, broke mental processes down into their most basic components using introspection.

(03:45) Professor: Then came Functionalism, influenced by Charles Darwin. Functionalists like William James asked what consciousness and behavior are for.

(05:20) Professor: We'll also touch on Psychoanalysis, Sigmund Freud's theory of the unconscious mind. This is where the id, ego, and superego come from.
""",
    SAMPLE_PAPER_TITLE: """The Impact of Sleep on Memory Consolidation and Learning

Abstract:
This paper reviews the role of sleep in learning and memory consolidation. Evidence suggests sleep stabilizes new memories, abstracts general rules from specific experiences, and integrates new information with existing knowledge. We explore the dialogue between the hippocampus and neocortex during different sleep stages.

Introduction:
When we learn something new, the memory is initially fragile. Sleep, particularly Slow-Wave Sleep (SWS) and Rapid Eye Movement (REM) sleep, helps solidify it, making it robust and long-lasting. This process is known as consolidation.
""",
}

UNAVAILABLE_CONTENT = "The content for this file could not be retrieved or is not available for preview."


def build_sample_files(owner_id: str, folder_id: Optional[str] = None) -> List[VaultFile]:
    now = utcnow()
    return [
        VaultFile(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            folder_id=folder_id,
            status=FileStatus.READY,
            progress=100,
            visibility=Visibility.PRIVATE,
            collection_ids=[],
            created_at=now,
            updated_at=now,
            **sample,
        )
        for sample in _SAMPLE_FILES
    ]


def sample_content_for(file: VaultFile) -> str:
    return SAMPLE_CONTENT.get(file.title, UNAVAILABLE_CONTENT)
