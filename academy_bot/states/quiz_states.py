from aiogram.fsm.state import StatesGroup, State


class QuizFlow(StatesGroup):
    entering_topic = State()
    generating_test = State()
    answering_question = State()
    viewing_certificate = State()
