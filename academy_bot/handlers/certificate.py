from aiogram import Router, F
from aiogram.types import CallbackQuery, Message
from aiogram.fsm.context import FSMContext

from academy_bot.handlers.start import WELCOME_TEXT
from academy_bot.keyboards.certificate_kb import certificate_keyboard
from academy_bot.services.certificate import download_certificate, format_certificate
from academy_bot.services.quiz_session import SessionState
from academy_bot.services.session_store import drop_session, get_session
from academy_bot.states.quiz_states import QuizFlow

router = Router()


@router.message(QuizFlow.viewing_certificate, F.text)
async def name_entered(message: Message, state: FSMContext):
    session = get_session(message.from_user.id)
    view = session.set_user_name(message.text.strip())
    if view.state is not SessionState.GRADED:
        await state.set_state(QuizFlow.entering_topic)
        await message.answer(WELCOME_TEXT)
        return
    await message.answer(
        format_certificate(view),
        reply_markup=certificate_keyboard(),
        parse_mode="HTML",
    )


@router.callback_query(F.data == "download_certificate")
async def download(callback: CallbackQuery):
    session = get_session(callback.from_user.id)
    await callback.answer(download_certificate(session.snapshot()), show_alert=True)


@router.callback_query(F.data == "another_test")
async def another_test(callback: CallbackQuery, state: FSMContext):
    user_id = callback.from_user.id
    view = get_session(user_id).reset()
    if view.state is SessionState.IDLE:
        # Next topic message creates a fresh session
        drop_session(user_id)
    await state.set_state(QuizFlow.entering_topic)
    await callback.message.answer("📚 Enter a topic for your next test:")
    await callback.answer()
