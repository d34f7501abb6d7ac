from typing import Optional

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from academy_bot.llm.models import QuestionRecord


def question_keyboard(index: int, question: QuestionRecord, selected: Optional[str] = None) -> InlineKeyboardMarkup:
    buttons = []
    for key, text in question.options.items():
        marker = "🔘" if key == selected else "⚪"
        buttons.append([InlineKeyboardButton(
            text=f"{marker} {key}. {text}",
            callback_data=f"ans:{index}:{key}",
        )])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def submit_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="✅ Submit Test", callback_data="submit_test")],
        [InlineKeyboardButton(text="🔄 New questions", callback_data="regenerate")],
    ])


def retry_keyboard() -> InlineKeyboardMarkup:
    """Shown after a failed generation."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔄 Try again", callback_data="regenerate")],
    ])
