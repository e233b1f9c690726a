"""
Client for an OpenAI-compatible chat-completions endpoint

Only the minimal contract is relied on:
request  {model, messages[], temperature, max_tokens, response_format?}
response {choices: [{message: {content}}]}
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from quizportal.config import settings
from quizportal.exceptions import LLMRequestError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _is_retryable_response(response: httpx.Response) -> bool:
    return response.status_code in RETRYABLE_STATUS_CODES


class LLMClient:
    """
    Blocking chat-completions client with bounded retry

    Transient failures (transport errors, timeouts, 429, 5xx) are retried with
    exponential backoff. Everything else fails on the first response.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: float = 1.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_url = api_url or settings.LLM_API_URL
        self.api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.model = model or settings.LLM_MODEL
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS
        self.max_retries = max(1, max_retries or settings.LLM_MAX_RETRIES)
        self.backoff_seconds = backoff_seconds
        self.transport = transport

    def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
        json_mode: bool = False,
    ) -> str:
        """
        Send one chat completion request and return the first choice's content

        Raises:
            LLMRequestError: missing key, timeout, transport failure,
                non-success status or malformed body
        """
        if not self.api_key:
            raise LLMRequestError("LLM_API_KEY is not set")

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            response = self._retrying()(self._post, payload)
        except httpx.TimeoutException as e:
            raise LLMRequestError(f"LLM request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMRequestError(f"LLM transport error: {str(e)}") from e

        if not response.is_success:
            raise LLMRequestError(
                f"LLM API error: {response.status_code} {response.text[:500]}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMRequestError(
                f"Malformed LLM response: {str(e)}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        if not isinstance(content, str):
            raise LLMRequestError(
                "LLM response content is not text",
                status_code=response.status_code,
                body=response.text,
            )

        return content

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=8),
            retry=retry_if_exception_type(httpx.TransportError) | retry_if_result(_is_retryable_response),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            # Hand the last response back (or re-raise the last error) once attempts run out
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )

    def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            logger.info(f"Calling LLM ({self.model})...")
            return client.post(self.api_url, json=payload, headers=headers)


# Global instance
llm_client = LLMClient()
