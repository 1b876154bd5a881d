# prizepool/keyboards/main.py
from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

POOL_BUTTON_TEXT = "🎁 Pool"
PANEL_BUTTON_TEXT = "🛠 Panel"


def main_menu_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=POOL_BUTTON_TEXT)]],
        resize_keyboard=True,
        input_field_placeholder="Tap 🎁 Pool to watch the draw…",
    )


def admin_panel_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=PANEL_BUTTON_TEXT), KeyboardButton(text=POOL_BUTTON_TEXT)],
        ],
        resize_keyboard=True,
        input_field_placeholder="/spin <auction> <username>",
    )
