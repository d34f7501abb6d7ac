"""Async client for the Gemini generateContent API."""
import asyncio
import json
import logging
from typing import Optional

import aiohttp

from academy_bot.config import settings
from academy_bot.llm.exceptions import (
    ApiError, ConfigurationError, EmptyResponse, NetworkError
)
from academy_bot.llm.models import GenerationRequest, QuestionRecord
from academy_bot.llm.parser import extract_text, parse_questions

logger = logging.getLogger(__name__)


class GeminiClient:
    """Single-shot quiz generation over HTTP. No retries, no caching."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            api_key: API key, defaults to GEMINI_API_KEY
            model: model name substituted into the endpoint template
            api_url: endpoint template containing ``{model}``
            timeout: total request timeout in seconds
            session: shared aiohttp session; one is opened per call if omitted
        """
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.api_url = api_url or settings.GEMINI_API_URL
        self.timeout = timeout if timeout is not None else settings.GEMINI_TIMEOUT
        self._session = session

    @property
    def endpoint(self) -> str:
        return self.api_url.format(model=self.model)

    async def generate(self, request: GenerationRequest) -> list[QuestionRecord]:
        """
        Request a quiz and decode it.

        Raises:
            ConfigurationError: API key is not configured
            NetworkError: transport failure or timeout
            ApiError: non-2xx response
            EmptyResponse: no candidate text in a successful response
            MalformedContent: candidate text fails JSON or schema checks
        """
        if not self.api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY not found in environment. Set it or add to .env"
            )

        if self._session is not None:
            status, reason, raw = await self._post(self._session, request)
        else:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                status, reason, raw = await self._post(session, request)

        if not 200 <= status < 300:
            message = _error_message(raw.decode("utf-8", errors="replace"), reason, status)
            logger.error("Quiz generation failed with HTTP %d: %s", status, message)
            raise ApiError(status, message)

        try:
            body = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError:
            raise EmptyResponse("Response body is not valid UTF-8")
        except (json.JSONDecodeError, TypeError):
            raise EmptyResponse("Response body is not JSON")

        questions = parse_questions(extract_text(body))
        logger.info("Received %d questions for topic %r", len(questions), request.topic)
        return questions

    async def _post(
        self, session: aiohttp.ClientSession, request: GenerationRequest
    ) -> tuple[int, str, bytes]:
        logger.info("Requesting quiz on %r from %s", request.topic, self.endpoint)
        try:
            async with session.post(
                self.endpoint,
                params={"key": self.api_key},
                json=request.to_payload(),
                headers={"Content-Type": "application/json"},
            ) as response:
                # Decoded in generate(); invalid UTF-8 becomes EmptyResponse
                raw = await response.read()
                return response.status, response.reason or "", raw
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            detail = self._redact(str(e)) or type(e).__name__
            logger.error("Quiz generation request failed: %s", detail)
            raise NetworkError(f"Network error: {detail}") from e

    def _redact(self, text: str) -> str:
        if self.api_key:
            return text.replace(self.api_key, "***")
        return text


def _error_message(raw: str, reason: str, status: int) -> str:
    """Pull ``error.message`` from an error body, else fall back to the reason phrase."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        data = None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return reason or f"HTTP {status}"
