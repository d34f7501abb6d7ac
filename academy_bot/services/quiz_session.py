"""Quiz session state machine.

One ``QuizSession`` owns one user's ``Session`` aggregate and exposes the
transitions the bot drives: topic edit, generation, answering, grading,
naming the certificate and reset. Every transition returns a snapshot of the
session so handlers never hold a reference to live state.

Generation is the only suspending step. Each attempt takes a new generation
token; when the client returns, the result is applied only if its token is
still current, so a later request (or a topic edit) supersedes an earlier one.
"""
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Protocol, Sequence

from academy_bot.llm.exceptions import (
    ConfigurationError, EmptyResponse, NetworkError, QuizError, ValidationError
)
from academy_bot.llm.models import GenerationRequest, QuestionRecord
from academy_bot.llm.prompts import QUESTION_COUNT, build_request

logger = logging.getLogger(__name__)

EMPTY_TOPIC_MESSAGE = "Please enter a topic to generate a test."
NO_QUIZ_MESSAGE = "Please generate a test first."
ALREADY_SUBMITTED_MESSAGE = "This test has already been submitted."
EMPTY_RESPONSE_MESSAGE = "Failed to generate questions. Please try again."


class SessionState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    GRADED = "graded"


class QuizGenerator(Protocol):
    async def generate(self, request: GenerationRequest) -> list[QuestionRecord]:
        ...


@dataclass
class Session:
    """Full mutable state of one user's quiz interaction."""
    topic: str = ""
    quiz: tuple[QuestionRecord, ...] = ()
    answers: dict[int, str] = field(default_factory=dict)
    score: float = 0.0
    certificate_shown: bool = False
    user_name: str = ""
    loading: bool = False
    error: str = ""
    state: SessionState = SessionState.IDLE
    generation: int = 0


@dataclass(frozen=True)
class GenerationOutcome:
    """Result of one generation attempt tagged with its token."""
    token: int
    quiz: tuple[QuestionRecord, ...] = ()
    error: Optional[QuizError] = None


def calculate_score(quiz: Sequence[QuestionRecord], answers: dict[int, str]) -> float:
    """Percentage of questions answered correctly; unanswered count as wrong."""
    if not quiz:
        return 0.0
    correct = sum(
        1 for index, question in enumerate(quiz)
        if answers.get(index) == question.correct_answer
    )
    return correct / len(quiz) * 100


def describe_error(error: QuizError) -> str:
    """User-facing message for a failed generation attempt."""
    if isinstance(error, EmptyResponse):
        return EMPTY_RESPONSE_MESSAGE
    if isinstance(error, ConfigurationError):
        return str(error)
    if isinstance(error, NetworkError):
        return "Could not reach the quiz service. Please try again."
    return f"Error generating test: {error}. Please try a different topic or try again."


class QuizSession:
    def __init__(self, client: QuizGenerator, question_count: int = QUESTION_COUNT):
        self._client = client
        self._question_count = question_count
        self._session = Session()

    @property
    def state(self) -> SessionState:
        return self._session.state

    def snapshot(self) -> Session:
        return replace(self._session, answers=dict(self._session.answers))

    def set_topic(self, text: str) -> Session:
        """Store the topic and invalidate everything downstream of it."""
        s = self._session
        s.topic = text
        self._clear_quiz()
        s.error = ""
        s.loading = False
        s.state = SessionState.IDLE
        # Drops any in-flight generation result.
        s.generation += 1
        return self.snapshot()

    async def request_generation(self) -> Optional[Session]:
        """
        Generate a quiz for the current topic.

        Returns the session view, or None when a newer request or a topic
        edit superseded this attempt before it finished.
        """
        s = self._session
        try:
            topic = self._validated_topic()
        except ValidationError as e:
            s.error = str(e)
            logger.info("Generation rejected: %s", e)
            return self.snapshot()

        self._clear_quiz()
        s.error = ""
        s.loading = True
        s.state = SessionState.GENERATING
        s.generation += 1
        token = s.generation

        request = build_request(topic, self._question_count)
        try:
            quiz = await self._client.generate(request)
        except QuizError as e:
            outcome = GenerationOutcome(token, error=e)
        except Exception as e:
            logger.exception("Unexpected error from generation client")
            outcome = GenerationOutcome(token, error=QuizError(f"Unexpected error: {type(e).__name__}"))
        else:
            outcome = GenerationOutcome(token, quiz=tuple(quiz))

        if not self._apply(outcome):
            return None
        return self.snapshot()

    def _apply(self, outcome: GenerationOutcome) -> bool:
        s = self._session
        if outcome.token != s.generation:
            logger.debug(
                "Discarding stale generation result %d (current %d)",
                outcome.token, s.generation,
            )
            return False

        s.loading = False
        if outcome.error is not None:
            logger.warning("Quiz generation failed: %s", outcome.error)
            self._clear_quiz()
            s.error = describe_error(outcome.error)
            s.state = SessionState.IDLE
            return True

        s.quiz = outcome.quiz
        s.state = SessionState.READY
        logger.info("Quiz ready: %d questions on %r", len(s.quiz), s.topic)
        return True

    def set_answer(self, question_index: int, option_key: str) -> Session:
        """Record an answer; later answers to the same question replace earlier ones."""
        s = self._session
        if s.state is not SessionState.READY:
            logger.debug("Ignoring answer in state %s", s.state.value)
            return self.snapshot()
        if not 0 <= question_index < len(s.quiz):
            logger.warning("Ignoring answer for unknown question %d", question_index)
            return self.snapshot()
        if option_key not in s.quiz[question_index].options:
            logger.warning("Ignoring unknown option %r for question %d", option_key, question_index)
            return self.snapshot()
        s.answers[question_index] = option_key
        return self.snapshot()

    def submit_test(self) -> Session:
        s = self._session
        try:
            self._check_submittable()
        except ValidationError as e:
            s.error = str(e)
            return self.snapshot()

        s.score = calculate_score(s.quiz, s.answers)
        s.certificate_shown = True
        s.error = ""
        s.state = SessionState.GRADED
        logger.info(
            "Test on %r graded: %d/%d answered, score %.2f",
            s.topic, len(s.answers), len(s.quiz), s.score,
        )
        return self.snapshot()

    def set_user_name(self, text: str) -> Session:
        s = self._session
        if s.state is not SessionState.GRADED:
            logger.debug("Ignoring user name in state %s", s.state.value)
            return self.snapshot()
        s.user_name = text
        return self.snapshot()

    def reset(self) -> Session:
        """Start over after a graded test."""
        s = self._session
        if s.state is not SessionState.GRADED:
            logger.debug("Ignoring reset in state %s", s.state.value)
            return self.snapshot()
        self._session = Session(generation=s.generation)
        return self.snapshot()

    def _validated_topic(self) -> str:
        topic = self._session.topic.strip()
        if not topic:
            raise ValidationError(EMPTY_TOPIC_MESSAGE)
        return topic

    def _check_submittable(self):
        s = self._session
        if s.state is SessionState.GRADED:
            raise ValidationError(ALREADY_SUBMITTED_MESSAGE)
        if s.state is not SessionState.READY or not s.quiz:
            raise ValidationError(NO_QUIZ_MESSAGE)

    def _clear_quiz(self):
        s = self._session
        s.quiz = ()
        s.answers = {}
        s.score = 0.0
        s.certificate_shown = False
