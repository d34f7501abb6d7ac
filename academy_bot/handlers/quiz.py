import logging

from aiogram import Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery
from aiogram.fsm.context import FSMContext

from academy_bot.keyboards.certificate_kb import certificate_keyboard
from academy_bot.keyboards.quiz_kb import question_keyboard
from academy_bot.services.certificate import format_certificate
from academy_bot.services.quiz_session import SessionState
from academy_bot.services.session_store import get_session
from academy_bot.states.quiz_states import QuizFlow

logger = logging.getLogger(__name__)

router = Router()


def _parse_answer_data(data: str) -> tuple[int, str] | None:
    """Parse 'ans:<index>:<key>' callback data."""
    parts = data.split(":")
    if len(parts) != 3 or not parts[1].isdigit():
        return None
    return int(parts[1]), parts[2]


@router.callback_query(QuizFlow.answering_question, F.data.startswith("ans:"))
async def answer_selected(callback: CallbackQuery, state: FSMContext):
    parsed = _parse_answer_data(callback.data)
    if parsed is None:
        await callback.answer()
        return
    index, key = parsed

    session = get_session(callback.from_user.id)
    view = session.set_answer(index, key)
    if view.answers.get(index) != key:
        await callback.answer("This question is no longer active.")
        return

    await callback.answer(f"Selected {key}")
    try:
        await callback.message.edit_reply_markup(
            reply_markup=question_keyboard(index, view.quiz[index], key)
        )
    except TelegramBadRequest as e:
        # Same selection clicked twice leaves the markup unchanged
        logger.debug("Keyboard not updated: %s", e)


@router.callback_query(F.data == "submit_test")
async def submit_test(callback: CallbackQuery, state: FSMContext):
    session = get_session(callback.from_user.id)
    view = session.submit_test()
    if view.state is not SessionState.GRADED or view.error:
        await callback.answer(view.error, show_alert=True)
        return

    await callback.answer()
    await state.set_state(QuizFlow.viewing_certificate)
    await callback.message.answer(
        format_certificate(view),
        reply_markup=certificate_keyboard(),
        parse_mode="HTML",
    )
    await callback.message.answer("✏️ Type your name to put it on the certificate:")
