import json
import logging
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from academy_bot.llm.exceptions import EmptyResponse, MalformedContent
from academy_bot.llm.models import QuestionRecord

logger = logging.getLogger(__name__)

_QUIZ_ADAPTER = TypeAdapter(list[QuestionRecord])


def extract_text(body: Any) -> str:
    """Return ``candidates[0].content.parts[0].text`` or raise EmptyResponse."""
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise EmptyResponse("Response has no candidate text")
    if not isinstance(text, str) or not text.strip():
        raise EmptyResponse("Candidate text is empty")
    return text


def parse_questions(raw_text: str) -> list[QuestionRecord]:
    """Decode model output into question records.

    The whole batch is rejected if any record is invalid.
    """
    try:
        data = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error("Failed to parse model output as JSON: %s", e)
        raise MalformedContent(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise MalformedContent(f"Expected a JSON array, got {type(data).__name__}")
    if not data:
        raise MalformedContent("Model returned no questions")

    try:
        questions = _QUIZ_ADAPTER.validate_python(data)
    except SchemaError as e:
        logger.error("Model output failed question schema: %s", e)
        raise MalformedContent(f"Invalid question data: {e}") from e

    return questions
