from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def certificate_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="📥 Download Certificate", callback_data="download_certificate")],
        [InlineKeyboardButton(text="📝 Take Another Test", callback_data="another_test")],
    ])
