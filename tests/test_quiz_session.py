"""Tests for the quiz session state machine."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from academy_bot.llm.client import GeminiClient
from academy_bot.llm.exceptions import (
    ApiError, ConfigurationError, EmptyResponse, MalformedContent, NetworkError
)
from academy_bot.services.quiz_session import (
    ALREADY_SUBMITTED_MESSAGE,
    EMPTY_RESPONSE_MESSAGE,
    EMPTY_TOPIC_MESSAGE,
    NO_QUIZ_MESSAGE,
    QuizSession,
    SessionState,
    calculate_score,
)


class ControlledClient:
    """Generation client whose calls finish only when the test says so."""

    def __init__(self):
        self.calls = []

    async def generate(self, request):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((request, future))
        return await future


async def _settle():
    for _ in range(3):
        await asyncio.sleep(0)


def _make_session(result=None, error=None) -> tuple[QuizSession, AsyncMock]:
    client = AsyncMock()
    if error is not None:
        client.generate.side_effect = error
    else:
        client.generate.return_value = result
    return QuizSession(client), client


async def _ready_session(records) -> QuizSession:
    session, _ = _make_session(records)
    session.set_topic("Python")
    await session.request_generation()
    return session


# ============================================================================
# GENERATION
# ============================================================================


class TestRequestGeneration:

    async def test_success_ready_with_records(self, sample_records):
        """Five records in original order, empty answers, not loading."""
        session, client = _make_session(sample_records)
        session.set_topic("  Python  ")

        view = await session.request_generation()

        assert view.state is SessionState.READY
        assert view.quiz == tuple(sample_records)
        assert view.answers == {}
        assert view.loading is False
        assert view.error == ""
        request = client.generate.await_args.args[0]
        assert request.topic == "Python"

    @pytest.mark.parametrize("topic", ["", "   ", "\n\t"])
    async def test_empty_topic_no_network(self, topic):
        session, client = _make_session([])
        session.set_topic(topic)

        view = await session.request_generation()

        client.generate.assert_not_called()
        assert view.error == EMPTY_TOPIC_MESSAGE
        assert view.state is SessionState.IDLE
        assert view.loading is False

    async def test_malformed_content_clears_previous_quiz(self, sample_records):
        """A failed regeneration leaves no stale quiz behind."""
        session = await _ready_session(sample_records)
        session.set_answer(0, "A")
        session._client.generate.side_effect = MalformedContent("options missing D")

        view = await session.request_generation()

        assert view.state is SessionState.IDLE
        assert view.quiz == ()
        assert view.answers == {}
        assert view.score == 0.0
        assert view.loading is False
        assert "options missing D" in view.error

    @pytest.mark.parametrize("error, expected", [
        (ApiError(429, "quota exceeded"), "API error: 429 - quota exceeded"),
        (EmptyResponse("no candidates"), EMPTY_RESPONSE_MESSAGE),
        (ConfigurationError("GEMINI_API_KEY not found"), "GEMINI_API_KEY not found"),
        (NetworkError("timeout"), "Could not reach the quiz service"),
    ])
    async def test_failures_return_to_idle(self, error, expected):
        session, _ = _make_session(error=error)
        session.set_topic("Python")

        view = await session.request_generation()

        assert view.state is SessionState.IDLE
        assert view.quiz == ()
        assert view.loading is False
        assert expected in view.error

    @pytest.mark.parametrize("error", [
        RuntimeError("client bug"),
        UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
    ])
    async def test_unexpected_client_error_returns_to_idle(self, sample_records, error):
        """Errors outside the quiz error family still end generation cleanly."""
        session = await _ready_session(sample_records)
        session._client.generate.side_effect = error

        view = await session.request_generation()

        assert view.state is SessionState.IDLE
        assert view.loading is False
        assert view.quiz == ()
        assert type(error).__name__ in view.error

    async def test_undecodable_body_through_client(self):
        """A 2xx body with invalid UTF-8 ends in IDLE with an error message."""
        response = MagicMock()
        response.status = 200
        response.reason = "OK"
        response.read = AsyncMock(return_value=b'{"candidates": "\xff\xfe"}')
        http = MagicMock()
        http.post.return_value.__aenter__.return_value = response
        client = GeminiClient(api_key="k", model="m", api_url="https://example.test/{model}", session=http)
        session = QuizSession(client)
        session.set_topic("Python")

        view = await session.request_generation()

        assert view.state is SessionState.IDLE
        assert view.loading is False
        assert view.error == EMPTY_RESPONSE_MESSAGE

    async def test_cannot_submit_after_failure(self):
        session, _ = _make_session(error=EmptyResponse("nothing"))
        session.set_topic("Python")
        await session.request_generation()

        view = session.submit_test()

        assert view.state is SessionState.IDLE
        assert view.error == NO_QUIZ_MESSAGE

    async def test_loading_while_in_flight(self, sample_records):
        client = ControlledClient()
        session = QuizSession(client)
        session.set_topic("Python")

        task = asyncio.create_task(session.request_generation())
        await _settle()

        view = session.snapshot()
        assert view.state is SessionState.GENERATING
        assert view.loading is True

        client.calls[0][1].set_result(sample_records)
        assert (await task).state is SessionState.READY

    async def test_regenerate_from_graded_clears_everything(self, sample_records, two_question_quiz):
        session = await _ready_session(sample_records)
        session.set_answer(0, "A")
        session.submit_test()
        session._client.generate.return_value = two_question_quiz

        view = await session.request_generation()

        assert view.state is SessionState.READY
        assert view.quiz == tuple(two_question_quiz)
        assert view.answers == {}
        assert view.score == 0.0
        assert view.certificate_shown is False


class TestSupersede:

    async def test_stale_response_ignored(self, sample_records, two_question_quiz):
        """Only the most recent request may populate the quiz."""
        client = ControlledClient()
        session = QuizSession(client)
        session.set_topic("Python")

        first = asyncio.create_task(session.request_generation())
        await _settle()
        second = asyncio.create_task(session.request_generation())
        await _settle()
        assert len(client.calls) == 2

        client.calls[1][1].set_result(two_question_quiz)
        second_view = await second
        client.calls[0][1].set_result(sample_records)

        assert await first is None
        assert second_view.state is SessionState.READY
        assert session.snapshot().quiz == tuple(two_question_quiz)

    async def test_stale_arrives_first(self, sample_records, two_question_quiz):
        """A stale result arriving while the newer one is pending changes nothing."""
        client = ControlledClient()
        session = QuizSession(client)
        session.set_topic("Python")

        first = asyncio.create_task(session.request_generation())
        await _settle()
        second = asyncio.create_task(session.request_generation())
        await _settle()

        client.calls[0][1].set_result(sample_records)
        assert await first is None
        view = session.snapshot()
        assert view.state is SessionState.GENERATING
        assert view.quiz == ()
        assert view.loading is True

        client.calls[1][1].set_result(two_question_quiz)
        assert (await second).quiz == tuple(two_question_quiz)

    async def test_stale_error_ignored(self, sample_records):
        client = ControlledClient()
        session = QuizSession(client)
        session.set_topic("Python")

        first = asyncio.create_task(session.request_generation())
        await _settle()
        second = asyncio.create_task(session.request_generation())
        await _settle()

        client.calls[1][1].set_result(sample_records)
        await second
        client.calls[0][1].set_exception(ApiError(500, "boom"))

        assert await first is None
        view = session.snapshot()
        assert view.state is SessionState.READY
        assert view.error == ""

    async def test_topic_edit_discards_in_flight(self, sample_records):
        client = ControlledClient()
        session = QuizSession(client)
        session.set_topic("Python")

        task = asyncio.create_task(session.request_generation())
        await _settle()
        session.set_topic("Rust")
        client.calls[0][1].set_result(sample_records)

        assert await task is None
        view = session.snapshot()
        assert view.state is SessionState.IDLE
        assert view.topic == "Rust"
        assert view.quiz == ()
        assert view.loading is False


# ============================================================================
# ANSWERING AND GRADING
# ============================================================================


class TestAnswers:

    async def test_last_write_wins(self, two_question_quiz):
        session = await _ready_session(two_question_quiz)

        session.set_answer(0, "A")
        view = session.set_answer(0, "C")

        assert view.answers == {0: "C"}
        assert view.state is SessionState.READY

    def test_answer_before_generation_ignored(self):
        session, _ = _make_session([])

        view = session.set_answer(0, "A")

        assert view.answers == {}
        assert view.state is SessionState.IDLE

    @pytest.mark.parametrize("index, key", [(5, "A"), (-1, "A"), (0, "E"), (0, "a")])
    async def test_invalid_answer_ignored(self, two_question_quiz, index, key):
        session = await _ready_session(two_question_quiz)

        assert session.set_answer(index, key).answers == {}

    async def test_snapshot_is_detached(self, two_question_quiz):
        session = await _ready_session(two_question_quiz)

        view = session.set_answer(0, "B")
        view.answers[1] = "A"

        assert session.snapshot().answers == {0: "B"}


class TestSubmit:

    async def test_half_correct_is_fifty(self, two_question_quiz):
        """{0: "B"} against correct answers B, A scores exactly 50."""
        session = await _ready_session(two_question_quiz)
        session.set_answer(0, "B")

        view = session.submit_test()

        assert view.score == 50.0
        assert view.state is SessionState.GRADED
        assert view.certificate_shown is True

    async def test_no_answers_is_zero(self, sample_records):
        session = await _ready_session(sample_records)

        assert session.submit_test().score == 0.0

    async def test_all_correct(self, sample_records):
        session = await _ready_session(sample_records)
        for index, record in enumerate(sample_records):
            session.set_answer(index, record.correct_answer)

        assert session.submit_test().score == 100.0

    def test_submit_without_quiz(self):
        session, _ = _make_session([])

        view = session.submit_test()

        assert view.error == NO_QUIZ_MESSAGE
        assert view.state is SessionState.IDLE
        assert view.certificate_shown is False

    async def test_resubmit_rejected(self, two_question_quiz):
        session = await _ready_session(two_question_quiz)
        session.set_answer(0, "B")
        session.submit_test()

        # Answers are frozen after grading
        session.set_answer(1, "A")
        view = session.submit_test()

        assert view.score == 50.0
        assert view.error == ALREADY_SUBMITTED_MESSAGE
        assert view.answers == {0: "B"}


class TestCalculateScore:

    def test_empty_quiz(self):
        assert calculate_score([], {}) == 0.0

    def test_unanswered_in_denominator(self, sample_records):
        assert calculate_score(sample_records, {0: "A"}) == 20.0


# ============================================================================
# CERTIFICATE AND RESET
# ============================================================================


class TestCertificateAndReset:

    async def test_user_name_only_when_graded(self, two_question_quiz):
        session = await _ready_session(two_question_quiz)

        assert session.set_user_name("Ada").user_name == ""
        session.submit_test()
        assert session.set_user_name("Ada").user_name == "Ada"

    async def test_reset_only_when_graded(self, two_question_quiz):
        session = await _ready_session(two_question_quiz)

        view = session.reset()

        assert view.state is SessionState.READY
        assert view.topic == "Python"

    async def test_reset_clears_session(self, two_question_quiz):
        session = await _ready_session(two_question_quiz)
        session.set_answer(0, "B")
        session.submit_test()
        session.set_user_name("Ada")

        view = session.reset()

        assert view.state is SessionState.IDLE
        assert view.topic == ""
        assert view.quiz == ()
        assert view.answers == {}
        assert view.score == 0.0
        assert view.user_name == ""
        assert view.certificate_shown is False

    async def test_fresh_session_after_reset(self, two_question_quiz, sample_records):
        """No answers leak into the next session."""
        session = await _ready_session(two_question_quiz)
        session.set_answer(0, "B")
        session.set_answer(1, "A")
        session.submit_test()
        session.reset()
        session._client.generate.return_value = sample_records

        session.set_topic("x")
        view = await session.request_generation()

        assert view.state is SessionState.READY
        assert view.quiz == tuple(sample_records)
        assert view.answers == {}
        assert session.submit_test().score == 0.0

    async def test_topic_edit_clears_quiz(self, two_question_quiz):
        session = await _ready_session(two_question_quiz)
        session.set_answer(0, "B")

        view = session.set_topic("Python 3")

        assert view.state is SessionState.IDLE
        assert view.quiz == ()
        assert view.answers == {}
        assert view.error == ""
