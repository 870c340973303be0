"""Telegram message formatting and delivery utilities."""

import logging

import telegramify_markdown
from telegram import Bot

from .core.digest import TELEGRAM_CHUNK_LIMIT, split_message

logger = logging.getLogger(__name__)


async def send_markdown(bot_or_msg, text: str, *, chat_id: int | str | None = None) -> int:
    """Send markdown text to Telegram, converting to MarkdownV2.

    bot_or_msg: a Bot instance (pass chat_id) or an Update.message (calls reply_text).
    Returns the number of messages sent.
    """
    converted = telegramify_markdown.markdownify(text)
    chunks = split_message(converted, TELEGRAM_CHUNK_LIMIT)
    for chunk in chunks:
        if chat_id is not None:
            await bot_or_msg.send_message(chat_id=chat_id, text=chunk, parse_mode="MarkdownV2")
        else:
            await bot_or_msg.reply_text(chunk, parse_mode="MarkdownV2")
    if len(chunks) > 1:
        logger.debug(f"Message split into {len(chunks)} chunks")
    return len(chunks)


class TelegramSender:
    """MessageSender delivering to one configured chat."""

    def __init__(self, bot: Bot, chat_id: int | str):
        self.bot = bot
        self.chat_id = chat_id

    async def send(self, text: str) -> None:
        await send_markdown(self.bot, text, chat_id=self.chat_id)
