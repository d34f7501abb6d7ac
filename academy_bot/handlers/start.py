from aiogram import Router
from aiogram.filters import CommandStart
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from academy_bot.services.session_store import drop_session
from academy_bot.states.quiz_states import QuizFlow

router = Router()

WELCOME_TEXT = (
    "👋 Welcome to Emmanuel Education Academy!\n\n"
    "Send me any topic, e.g. 'React Hooks', 'World War II' or 'Quantum Physics', "
    "and I will generate a 5-question test for you."
)


@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext):
    await state.clear()
    drop_session(message.from_user.id)
    await state.set_state(QuizFlow.entering_topic)
    await message.answer(WELCOME_TEXT)
