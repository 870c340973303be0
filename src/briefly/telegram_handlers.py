"""Telegram command handlers.

Collaborators are read from `context.bot_data`, populated by
create_application: "config", "messaging", "claude" and "conversations".
"""

import asyncio
import logging

from telegram import Update
from telegram.ext import ContextTypes

from .errors import BrieflyError
from .telegram_format import send_markdown

logger = logging.getLogger(__name__)

COMMANDS_TEXT = (
    "/morning - Today's calendar and focus tasks\n"
    "/afternoon - Progress update and remaining tasks\n"
    "/evening - Completed today and inbox triage\n"
    "/claude <request> - Ask Claude Code about the project\n"
    "/help - Show all commands"
)


# ============== Simple Commands ==============


async def start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    config = context.bot_data["config"]
    await update.message.reply_text(
        "Hey! I'm Briefly, your daily briefing assistant.\n\n"
        f"I'll send you a digest at {config.morning_time}, {config.afternoon_time} on weekdays "
        f"and {config.evening_time}.\n\n"
        "Commands:\n" + COMMANDS_TEXT
    )


async def help_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command."""
    await update.message.reply_text("*Briefly Commands*\n\n" + COMMANDS_TEXT, parse_mode="Markdown")


# ============== Digests ==============


async def _reply_with_digest(update: Update, context: ContextTypes.DEFAULT_TYPE, name: str, build_attr: str):
    messaging = context.bot_data["messaging"]
    try:
        text = await asyncio.to_thread(getattr(messaging, build_attr))
    except BrieflyError as e:
        logger.error(f"Failed to build {name} message: {e}")
        await update.message.reply_text(f"Failed to build the {name} message: {e}")
        return
    await send_markdown(update.message, text)


async def morning_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /morning command."""
    await _reply_with_digest(update, context, "morning", "build_morning_message")


async def afternoon_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /afternoon command."""
    await _reply_with_digest(update, context, "afternoon", "build_afternoon_message")


async def evening_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /evening command."""
    await _reply_with_digest(update, context, "evening", "build_evening_message")


# ============== Claude ==============


async def claude_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /claude <request> - run Claude Code with the chat's recent history."""
    claude = context.bot_data.get("claude")
    if claude is None:
        await update.message.reply_text("Claude integration is not configured.")
        return

    request = " ".join(context.args or []).strip()
    if not request:
        await update.message.reply_text("Usage: /claude <request>")
        return

    conversations = context.bot_data["conversations"]
    chat_id = update.effective_chat.id
    history = conversations.history(chat_id)

    await update.message.reply_text("Working on it...")
    try:
        answer = await asyncio.to_thread(claude.respond, request, history)
    except BrieflyError as e:
        logger.error(f"Claude request failed: {e}")
        await update.message.reply_text(f"Claude failed: {e}")
        return

    conversations.append(chat_id, f"User: {request}")
    conversations.append(chat_id, f"Claude: {answer}")
    await send_markdown(update.message, answer or "_(no output)_")
