import html
import logging

from aiogram import Router, F
from aiogram.filters import StateFilter
from aiogram.types import CallbackQuery, Message
from aiogram.fsm.context import FSMContext

from academy_bot.keyboards.quiz_kb import question_keyboard, retry_keyboard, submit_keyboard
from academy_bot.services.quiz_session import QuizSession, Session, SessionState
from academy_bot.services.session_store import get_session
from academy_bot.states.quiz_states import QuizFlow

logger = logging.getLogger(__name__)

router = Router()


@router.message(
    StateFilter(None, QuizFlow.entering_topic, QuizFlow.generating_test, QuizFlow.answering_question),
    F.text,
)
async def topic_entered(message: Message, state: FSMContext):
    """Any text outside the certificate view is a new topic."""
    session = get_session(message.from_user.id)
    session.set_topic(message.text)
    await run_generation(message, state, session)


@router.callback_query(F.data == "regenerate")
async def regenerate(callback: CallbackQuery, state: FSMContext):
    """Generate a fresh quiz for the current topic."""
    await callback.answer()
    session = get_session(callback.from_user.id)
    await run_generation(callback.message, state, session)


async def run_generation(message: Message, state: FSMContext, session: QuizSession):
    topic = session.snapshot().topic.strip()
    if topic:
        await state.set_state(QuizFlow.generating_test)
        await message.answer(f"⏳ Generating a test on <b>{html.escape(topic)}</b>...", parse_mode="HTML")

    view = await session.request_generation()
    if view is None:
        # A newer request owns the session now
        return

    if view.state is SessionState.READY:
        await state.set_state(QuizFlow.answering_question)
        await send_quiz(message, view)
        return

    await state.set_state(QuizFlow.entering_topic)
    await message.answer(
        f"❗ {html.escape(view.error)}",
        reply_markup=retry_keyboard() if topic else None,
        parse_mode="HTML",
    )


async def send_quiz(message: Message, view: Session):
    """Send every question with its own keyboard, then the submit controls."""
    await message.answer(f"📝 <b>Your Test: {html.escape(view.topic.strip())}</b>", parse_mode="HTML")
    for index, question in enumerate(view.quiz):
        await message.answer(
            f"❓ {index + 1}. {html.escape(question.question)}",
            reply_markup=question_keyboard(index, question, view.answers.get(index)),
            parse_mode="HTML",
        )
    await message.answer(
        "Pick an answer for each question, then submit.",
        reply_markup=submit_keyboard(),
    )
