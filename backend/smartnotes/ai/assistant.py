from typing import Optional

from smartnotes.ai.gateway import AIGateway

SYSTEM_PROMPT = "You are a helpful study assistant. Provide clear, concise, and educational responses."

QUIZ_FORMAT = (
    "Format each question as:\n"
    "Q: [Question]\n"
    "A) [Option A]\n"
    "B) [Option B]\n"
    "C) [Option C]\n"
    "D) [Option D]\n"
    "Correct Answer: [Letter]"
)


def _require(text: Optional[str], what: str) -> str:
    if not text or not text.strip():
        raise ValueError(f"{what} is required")
    return text


class StudyAssistant:
    """The study helpers offered on an open note."""

    def __init__(self, gateway: AIGateway):
        self.gateway = gateway

    async def _ask(self, prompt: str) -> str:
        return await self.gateway.complete(SYSTEM_PROMPT, prompt)

    async def summarize(self, note_content: str) -> str:
        content = _require(note_content, "Note content")
        return await self._ask(f"Summarize these study notes concisely for a student:\n\n{content}")

    async def explain(self, selected_text: str) -> str:
        text = _require(selected_text, "Text to explain")
        return await self._ask(f"Explain this concept in simple terms for a student:\n\n{text}")

    async def quiz(self, note_content: str) -> str:
        content = _require(note_content, "Note content")
        return await self._ask(
            "Based on these study notes, generate 5 multiple-choice questions with answers:"
            f"\n\n{content}\n\n{QUIZ_FORMAT}"
        )

    async def enhance(self, note_content: str) -> str:
        content = _require(note_content, "Note content")
        return await self._ask(
            "Improve and enhance these study notes by fixing grammar, expanding key points, "
            f"and making them more comprehensive:\n\n{content}"
        )

    async def study_tips(self, note_content: str, subject: Optional[str] = None) -> str:
        content = _require(note_content, "Note content")
        about = f" about {subject}" if subject else ""
        return await self._ask(
            f"Based on these study notes{about}, provide personalized study tips and recommendations:\n\n{content}"
        )
