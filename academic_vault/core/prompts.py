"""
Centralized prompts for the Academic Vault study tools.
Templates take the document (or pasted) text via str.format placeholders.
"""

FILE_SUMMARY_PROMPT = """Provide a comprehensive, well-structured summary of the following document:

---
{content}
---"""

FILE_CONCEPTS_PROMPT = """Extract the key concepts, terms, and important people from the following document. Present them as a markdown bulleted list:

---
{content}
---"""

FILE_QUESTIONS_PROMPT = """Generate a list of 3-5 open-ended study questions based on the main topics of the following document. Present them as a markdown numbered list:

---
{content}
---"""

FILE_TIMELINE_PROMPT = """Analyze the following document for key events or a sequence of steps. Create a timeline from this information. If the document is not event-based, list the main sections in order. Present as a markdown list.

---
{content}
---"""

FILE_FLASHCARDS_PROMPT = """Based on the following document, create a JSON array of 5 flashcards. Each flashcard should have a 'question' and 'answer' field. The questions should cover the most important topics in the text.

---
{content}
---"""

QUICK_SUMMARY_PROMPT = """Provide a concise summary of the following text:

---
{content}
---"""

QUICK_CONCEPTS_PROMPT = """Extract the key concepts, terms, and people from the following text. Present them in a markdown bulleted list:

---
{content}
---"""

QUICK_FLASHCARDS_PROMPT = """Based on the following text, create 5 flashcards with a 'question' and 'answer'.

---
{content}
---"""

STUDY_COACH_SYSTEM_PROMPT = """You are a helpful study coach. Your goal is to help the user understand the provided document. The document is titled "{title}". The full text content of the document is:

---
{content}
---

Base all your answers on this document content. If the user asks something outside the scope of the document, politely state that you can only answer questions about the provided material."""

# JSON schema for structured flashcard output
FLASHCARDS_SCHEMA = {
    "type": "object",
    "properties": {
        "flashcards": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question": {"type": "string"},
                    "answer": {"type": "string"},
                },
                "required": ["question", "answer"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["flashcards"],
    "additionalProperties": False,
}
