"""Briefly Telegram Bot."""

import logging

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, MessageHandler, filters
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Config, load_config, parse_time
from .core.civil import TARGET_TIMEZONE
from .errors import BrieflyError
from .messaging import MessagingService, build_claude, build_messaging
from .ports import LLMService
from .sessions import ConversationStore
from .telegram_format import TelegramSender
from .telegram_handlers import (
    start_handler,
    help_handler,
    morning_handler,
    afternoon_handler,
    evening_handler,
    claude_handler,
)

logger = logging.getLogger(__name__)


class ChatFilter(filters.BaseFilter):
    """Filter to only allow the configured chat."""

    def __init__(self, chat_id: int | str | None):
        super().__init__()
        self.chat_id = str(chat_id).strip() if chat_id else ""

    def check_update(self, update: Update) -> bool:
        if not self.chat_id:
            return True  # No restriction if no chat configured
        chat = update.effective_chat
        if chat is None:
            return False
        return str(chat.id) == self.chat_id


def create_application(
    config: Config | None = None,
    messaging: MessagingService | None = None,
    claude: LLMService | None = None,
) -> Application:
    """Create and configure the Telegram bot application."""
    if config is None:
        config = load_config()

    token = config.require("telegram_bot_token")

    # Build application
    app = Application.builder().token(token).build()

    if messaging is None:
        sender = TelegramSender(app.bot, config.require("telegram_chat_id"))
        messaging = build_messaging(config, sender)
    if claude is None:
        claude = build_claude(config)

    app.bot_data["config"] = config
    app.bot_data["messaging"] = messaging
    app.bot_data["claude"] = claude
    app.bot_data["conversations"] = ConversationStore()

    chat_filter = ChatFilter(config.telegram_chat_id)

    app.add_handler(CommandHandler("start", start_handler, filters=chat_filter))
    app.add_handler(CommandHandler("help", help_handler, filters=chat_filter))
    app.add_handler(CommandHandler("morning", morning_handler, filters=chat_filter))
    app.add_handler(CommandHandler("afternoon", afternoon_handler, filters=chat_filter))
    app.add_handler(CommandHandler("evening", evening_handler, filters=chat_filter))
    app.add_handler(CommandHandler("claude", claude_handler, filters=chat_filter))

    # Handle messages from any other chat
    async def unauthorized_handler(update: Update, context):
        chat = update.effective_chat
        logger.warning(f"Ignoring message from unauthorized chat {chat.id if chat else '?'}")

    if chat_filter.chat_id:
        app.add_handler(MessageHandler(~chat_filter & filters.ALL, unauthorized_handler))

    return app


async def send_scheduled_digest(messaging: MessagingService, name: str) -> None:
    """Run one scheduled digest; failures are logged so the scheduler keeps running."""
    logger.info(f"Sending scheduled {name} message")
    try:
        await getattr(messaging, f"send_{name}_message")()
    except BrieflyError as e:
        logger.error(f"Scheduled {name} message failed: {e}")
    except TelegramError as e:
        logger.error(f"Failed to deliver scheduled {name} message: {e}")


def setup_scheduler(app: Application, config: Config, messaging: MessagingService | None = None) -> AsyncIOScheduler:
    """Set up the three daily digests."""
    if messaging is None:
        messaging = app.bot_data["messaging"]

    scheduler = AsyncIOScheduler(timezone=TARGET_TIMEZONE)

    schedule = [
        ("morning", config.morning_time, "*"),
        ("afternoon", config.afternoon_time, "mon-fri"),
        ("evening", config.evening_time, "*"),
    ]
    for name, at, days in schedule:
        hour, minute = parse_time(at)
        scheduler.add_job(
            send_scheduled_digest,
            CronTrigger(day_of_week=days, hour=hour, minute=minute, timezone=TARGET_TIMEZONE),
            args=[messaging, name],
            id=f"{name}_digest",
        )
        logger.info(f"Scheduled {name} message at {hour:02d}:{minute:02d} ({days}) {TARGET_TIMEZONE}")

    return scheduler


def run_bot(config: Config | None = None):
    """Run the Telegram bot."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    config = config or load_config()
    app = create_application(config)
    scheduler = setup_scheduler(app, config)

    async def post_init(application: Application) -> None:
        """Start scheduler after event loop is running."""
        scheduler.start()
        logger.info("Scheduler started")

    app.post_init = post_init

    # Log startup info
    if config.telegram_chat_id:
        logger.info(f"Bot restricted to chat: {config.telegram_chat_id}")
    else:
        logger.warning("No TELEGRAM_CHAT_ID configured - bot is open to anyone!")

    logger.info(f"Starting Briefly Telegram bot ({config.environment})...")

    # Run bot
    app.run_polling(allowed_updates=Update.ALL_TYPES)
