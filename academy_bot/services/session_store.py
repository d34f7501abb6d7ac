"""In-memory per-user quiz sessions. Nothing survives a restart."""
import logging
from typing import Optional

from academy_bot.config import settings
from academy_bot.llm.client import GeminiClient
from academy_bot.services.quiz_session import QuizSession

logger = logging.getLogger(__name__)

_client: Optional[GeminiClient] = None
_sessions: dict[int, QuizSession] = {}


def get_client() -> GeminiClient:
    """Get or create the shared generation client."""
    global _client
    if _client is None:
        _client = GeminiClient()
    return _client


def get_session(user_id: int) -> QuizSession:
    """Get or create the quiz session for a user."""
    session = _sessions.get(user_id)
    if session is None:
        session = QuizSession(get_client(), question_count=settings.QUESTION_COUNT)
        _sessions[user_id] = session
        logger.debug("Created quiz session for user %d", user_id)
    return session


def drop_session(user_id: int):
    """Forget a user's session."""
    _sessions.pop(user_id, None)


def clear_sessions():
    _sessions.clear()
