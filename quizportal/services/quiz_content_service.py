"""
Quiz content generation: lecture text -> flashcards, MCQs and open questions
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from quizportal.config import settings
from quizportal.exceptions import GenerationFailedError, LLMRequestError
from quizportal.services.llm_client import LLMClient, llm_client

logger = logging.getLogger(__name__)

GENERATION_TEMPERATURE = 0.7
GENERATION_MAX_TOKENS = 4096


@dataclass
class QuizCounts:
    """Requested item counts, already clamped by the caller"""
    flashcard_count: int
    mcq_count: int
    open_question_count: int


@dataclass
class QuizContent:
    """Model output as returned; items are not re-validated"""
    flashcards: List[Dict[str, Any]] = field(default_factory=list)
    mcqs: List[Dict[str, Any]] = field(default_factory=list)
    open_questions: List[Dict[str, Any]] = field(default_factory=list)


class QuizContentService:
    """Builds the generation prompt, calls the model and parses its JSON"""

    def __init__(self, client: Optional[LLMClient] = None, max_chars: Optional[int] = None):
        self.client = client or llm_client
        self.max_chars = max_chars or settings.MAX_MATERIAL_CHARS

    def generate_quiz_content(self, text: str, counts: QuizCounts) -> QuizContent:
        """
        Generate quiz items from lecture text in a single model round trip

        Args:
            text: Extracted document text (truncated to the material budget)
            counts: Requested number of items of each kind

        Returns:
            QuizContent with whatever arrays the model produced

        Raises:
            GenerationFailedError: model call failed or returned invalid JSON
        """
        prompt = self._create_prompt(text[:self.max_chars], counts)

        try:
            raw = self.client.complete(
                [{"role": "user", "content": prompt}],
                temperature=GENERATION_TEMPERATURE,
                max_tokens=GENERATION_MAX_TOKENS,
                json_mode=True,
            )
        except LLMRequestError as e:
            raise GenerationFailedError(str(e), status_code=e.status_code, body=e.body) from e

        content = self._parse_response(raw)

        logger.info(
            f"Generated {len(content.flashcards)} flashcards, {len(content.mcqs)} MCQs, "
            f"{len(content.open_questions)} open questions "
            f"(requested {counts.flashcard_count}/{counts.mcq_count}/{counts.open_question_count})"
        )
        return content

    def _create_prompt(self, text: str, counts: QuizCounts) -> str:
        """Create the instruction prompt with the exact counts and output contract"""

        return f"""You are a quiz generator. Based on the following lesson content, generate a quiz in JSON format with exactly this structure:

{{
  "flashcards": [
    {{ "term": "...", "definition": "..." }}
  ],
  "mcqs": [
    {{ "question": "...", "optionA": "...", "optionB": "...", "optionC": "...", "optionD": "...", "correctOption": "A" }}
  ],
  "openQuestions": [
    {{ "question": "...", "modelAnswer": "..." }}
  ]
}}

Requirements:
- Generate exactly {counts.flashcard_count} flashcards (key term and its definition/explanation)
- Generate exactly {counts.mcq_count} multiple choice questions (4 options each, correctOption must be "A", "B", "C", or "D")
- Generate exactly {counts.open_question_count} open-ended questions with detailed model answers
- All content must be based on the provided lesson material
- Questions should test understanding, not just memorization
- Return ONLY valid JSON, no other text

Lesson content:
{text}"""

    def _parse_response(self, raw: str) -> QuizContent:
        """Parse the model's JSON object into QuizContent"""
        cleaned = raw.strip()

        # Remove markdown code blocks
        if cleaned.startswith("```json"):
            cleaned = cleaned[7:-3].strip()
        elif cleaned.startswith("```"):
            cleaned = cleaned[3:-3].strip()

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse quiz JSON: {str(e)}")
            logger.error(f"Response text: {raw[:500]}")
            raise GenerationFailedError(f"Model returned invalid JSON: {str(e)}", body=raw) from e

        if not isinstance(data, dict):
            raise GenerationFailedError("Model response is not a JSON object", body=raw)

        arrays = {}
        for key in ("flashcards", "mcqs", "openQuestions"):
            value = data.get(key) or []
            if not isinstance(value, list):
                raise GenerationFailedError(f"'{key}' is not an array", body=raw)
            arrays[key] = value

        return QuizContent(
            flashcards=arrays["flashcards"],
            mcqs=arrays["mcqs"],
            open_questions=arrays["openQuestions"],
        )


# Global instance
quiz_content_service = QuizContentService()
