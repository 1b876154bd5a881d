# prizepool/handlers/common.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from prizepool.utils.reply import reply_safe

router = Router(name="common")


@router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    await reply_safe(
        message,
        "👋 Welcome to the live prize pool!\n\n"
        "Tap 🎁 Pool (or send /pool) to see what is left and who won what.\n"
        "Use /help to see commands.",
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await reply_safe(
        message,
        "📌 <b>Commands</b>\n"
        "/pool - live prize pool\n\n"
        "<b>Staff</b>\n"
        "/panel - admin view\n"
        "/spin &lt;auction&gt; &lt;username&gt; - draw one prize\n"
        "/bulk &lt;first auction&gt; &lt;count 1-10&gt; &lt;username&gt; - draw several\n"
        "/reset - restore the pool, keep history\n"
        "/hard_reset CONFIRM - restore the pool and wipe history\n"
        "/clear_history - wipe history, keep the pool\n"
        "/offline on|off - hide the public view\n"
        "/giveaway_item &lt;prize&gt; - set the buyer's giveaway prize\n"
        "/giveaway [prize] - run the buyer's giveaway\n"
        "/items - show the item config\n\n"
        "<b>Owner</b>\n"
        "/testing on|off - allow repeated auction numbers\n"
        "/items_set - replace the item config (lines after the command)\n"
        "/catalog - staff catalog\n"
        "/staff_add &lt;telegram_id&gt; [owner] - grant staff access\n"
        "/staff - list staff\n"
        "/actions - recent staff actions",
    )
