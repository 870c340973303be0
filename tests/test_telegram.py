"""Tests for Telegram delivery, handlers and scheduling."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from briefly.config import Config
from briefly.errors import CalendarFetchError
from briefly.sessions import ConversationStore
from briefly.telegram_bot import ChatFilter, send_scheduled_digest, setup_scheduler
from briefly.telegram_format import TelegramSender, send_markdown
from briefly.telegram_handlers import claude_handler, morning_handler, start_handler


def make_update(chat_id=42):
    update = MagicMock()
    update.effective_chat.id = chat_id
    update.message.reply_text = AsyncMock()
    return update


class TestChatFilter:
    def test_allows_configured_chat(self):
        assert ChatFilter("42").check_update(make_update(42))

    def test_rejects_other_chats(self):
        assert not ChatFilter(42).check_update(make_update(7))

    def test_open_when_unconfigured(self):
        assert ChatFilter("").check_update(make_update(7))


class TestSendMarkdown:
    @patch("briefly.telegram_format.telegramify_markdown.markdownify", side_effect=lambda t: t)
    def test_long_text_is_chunked(self, _markdownify):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        text = "\n\n".join(["a" * 3000, "b" * 3000])

        sent = asyncio.run(send_markdown(bot, text, chat_id=42))

        assert sent == 2
        assert bot.send_message.await_count == 2
        bot.send_message.assert_any_await(chat_id=42, text="a" * 3000, parse_mode="MarkdownV2")

    @patch("briefly.telegram_format.telegramify_markdown.markdownify", return_value="converted")
    def test_reply_to_message(self, _markdownify):
        message = MagicMock()
        message.reply_text = AsyncMock()
        asyncio.run(send_markdown(message, "**hi**"))
        message.reply_text.assert_awaited_once_with("converted", parse_mode="MarkdownV2")

    @patch("briefly.telegram_format.send_markdown", new_callable=AsyncMock)
    def test_sender_targets_chat(self, mock_send):
        bot = MagicMock()
        asyncio.run(TelegramSender(bot, "42").send("hello"))
        mock_send.assert_awaited_once_with(bot, "hello", chat_id="42")


class TestHandlers:
    def test_start_lists_configured_schedule(self):
        update = make_update()
        context = MagicMock()
        context.bot_data = {"config": Config(morning_time="06:45", afternoon_time="16:00", evening_time="21:15")}

        asyncio.run(start_handler(update, context))

        reply = update.message.reply_text.await_args.args[0]
        assert "06:45, 16:00 on weekdays and 21:15" in reply

    @patch("briefly.telegram_handlers.send_markdown", new_callable=AsyncMock)
    def test_morning_replies_with_digest(self, mock_send):
        update = make_update()
        context = MagicMock()
        context.bot_data = {"messaging": MagicMock(build_morning_message=MagicMock(return_value="digest"))}

        asyncio.run(morning_handler(update, context))

        mock_send.assert_awaited_once_with(update.message, "digest")

    def test_morning_reports_fetch_failure(self):
        update = make_update()
        messaging = MagicMock()
        messaging.build_morning_message.side_effect = CalendarFetchError("All 2 calendar source(s) failed")
        context = MagicMock()
        context.bot_data = {"messaging": messaging}

        asyncio.run(morning_handler(update, context))

        reply = update.message.reply_text.await_args.args[0]
        assert "Failed to build the morning message" in reply

    @patch("briefly.telegram_handlers.send_markdown", new_callable=AsyncMock)
    def test_claude_uses_history(self, mock_send):
        update = make_update()
        claude = MagicMock()
        claude.respond.return_value = "Done."
        conversations = ConversationStore()
        conversations.append(42, "User: earlier")
        context = MagicMock()
        context.args = ["fix", "the", "tests"]
        context.bot_data = {"claude": claude, "conversations": conversations}

        asyncio.run(claude_handler(update, context))

        claude.respond.assert_called_once_with("fix the tests", ["User: earlier"])
        assert conversations.history(42) == ["User: earlier", "User: fix the tests", "Claude: Done."]
        mock_send.assert_awaited_once_with(update.message, "Done.")

    def test_claude_requires_request(self):
        update = make_update()
        context = MagicMock()
        context.args = []
        context.bot_data = {"claude": MagicMock(), "conversations": ConversationStore()}

        asyncio.run(claude_handler(update, context))

        update.message.reply_text.assert_awaited_once_with("Usage: /claude <request>")


class TestScheduler:
    def test_three_daily_jobs(self):
        scheduler = setup_scheduler(MagicMock(), Config(), messaging=MagicMock())

        jobs = {job.id: job for job in scheduler.get_jobs()}
        assert set(jobs) == {"morning_digest", "afternoon_digest", "evening_digest"}

        def fields(job_id):
            return {f.name: str(f) for f in jobs[job_id].trigger.fields}

        assert fields("morning_digest")["hour"] == "7"
        assert fields("afternoon_digest")["day_of_week"] == "mon-fri"
        assert (fields("afternoon_digest")["hour"], fields("afternoon_digest")["minute"]) == ("15", "30")
        assert fields("evening_digest")["day_of_week"] == "*"
        assert str(jobs["evening_digest"].trigger.timezone) == "America/Sao_Paulo"

    def test_scheduled_failure_is_logged(self, caplog):
        messaging = MagicMock()
        messaging.send_evening_message = AsyncMock(side_effect=CalendarFetchError("down"))

        asyncio.run(send_scheduled_digest(messaging, "evening"))

        assert "Scheduled evening message failed: down" in caplog.text
