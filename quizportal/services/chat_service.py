"""
Chat-with-material assistant
"""
import logging
from typing import Dict, List, Optional

from quizportal.config import settings
from quizportal.exceptions import ChatFailedError, LLMRequestError
from quizportal.services.llm_client import LLMClient, llm_client

logger = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.3
CHAT_MAX_TOKENS = 1024

FALLBACK_REPLY = "Sorry, I couldn't answer that right now. Please try again in a moment."


class ChatService:
    """Stateless: the caller resends the whole conversation on every turn"""

    def __init__(self, client: Optional[LLMClient] = None, max_chars: Optional[int] = None):
        self.client = client or llm_client
        self.max_chars = max_chars or settings.MAX_MATERIAL_CHARS

    def chat(self, material_text: str, message: str, history: List[Dict[str, str]]) -> str:
        """
        Answer a question about the lecture material

        Args:
            material_text: Source material (truncated to the material budget)
            message: The new user message
            history: Prior turns, each {"role": "user"|"assistant", "content": str}

        Raises:
            ChatFailedError: model call failed or returned an empty reply
        """
        messages = [{"role": "system", "content": self._system_prompt(material_text[:self.max_chars])}]
        messages.extend({"role": turn["role"], "content": turn["content"]} for turn in history)
        messages.append({"role": "user", "content": message})

        try:
            reply = self.client.complete(
                messages,
                temperature=CHAT_TEMPERATURE,
                max_tokens=CHAT_MAX_TOKENS,
            )
        except LLMRequestError as e:
            logger.error(f"Chat request failed: {str(e)}")
            raise ChatFailedError(str(e)) from e

        if not reply.strip():
            raise ChatFailedError("Model returned an empty reply")

        return reply.strip()

    def _system_prompt(self, material: str) -> str:
        return (
            "You are a helpful study assistant. Answer the student's questions using ONLY "
            "the lecture material below. If the answer is not in the material, say so briefly "
            "instead of guessing. Keep answers short and clear.\n\n"
            f"Lecture material:\n{material}"
        )


# Global instance
chat_service = ChatService()
