"""Briefly CLI - daily briefing bot."""

import asyncio
import json
import logging
import sys

import click
from telegram import Bot

from .config import load_config
from .core.civil import now_in_target
from .core.tasks import sort_by_priority
from .errors import BrieflyError, ConfigError
from .messaging import build_messaging
from .telegram_format import TelegramSender

DIGESTS = ("morning", "afternoon", "evening")


class ConsoleSender:
    """MessageSender that prints the digest instead of delivering it."""

    async def send(self, text: str) -> None:
        click.echo(text)


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """Briefly - daily calendar and task digests."""
    if verbose:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


async def _run_digest(name: str, send: bool) -> None:
    config = load_config()
    if not send:
        messaging = build_messaging(config, ConsoleSender())
        await getattr(messaging, f"send_{name}_message")()
        return

    bot = Bot(config.require("telegram_bot_token"))
    async with bot:
        messaging = build_messaging(config, TelegramSender(bot, config.require("telegram_chat_id")))
        await getattr(messaging, f"send_{name}_message")()
    click.echo(f"{name.capitalize()} message sent.")


def _digest_command(name: str):
    @click.option("--send", is_flag=True, help="Deliver to the Telegram chat instead of printing")
    def command(send: bool):
        try:
            asyncio.run(_run_digest(name, send))
        except BrieflyError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    command.__doc__ = f"Build the {name} digest."
    return main.command(name)(command)


morning = _digest_command("morning")
afternoon = _digest_command("afternoon")
evening = _digest_command("evening")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def calendar(as_json: bool):
    """Show today's relevant events."""
    from .adapters.ical_feed import ICalFeedAdapter

    config = load_config()
    try:
        events = ICalFeedAdapter(config.ical_urls, timeout=config.fetch_timeout).get_today_events()
    except BrieflyError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": e.id,
                        "summary": e.summary,
                        "start": e.start_time.isoformat(),
                        "end": e.end_time.isoformat(),
                        "location": e.location,
                        "all_day": e.is_all_day,
                    }
                    for e in events
                ],
                indent=2,
            )
        )
        return

    if not events:
        click.echo("No events today.")
        return
    for event in events:
        click.echo(f"  {event.format_for_message(include_location=True)}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tasks(as_json: bool):
    """List tasks due today or overdue."""
    from .adapters.todoist_api import TodoistAdapter

    config = load_config()
    now = now_in_target()
    try:
        relevant = sort_by_priority(TodoistAdapter(config.require("todoist_api_token")).fetch_relevant())
    except BrieflyError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": t.id,
                        "content": t.content,
                        "priority": t.priority,
                        "due_date": t.due_date.isoformat() if t.due_date else None,
                        "due_today": t.is_due_today(now),
                        "overdue": t.is_overdue(now),
                        "inbox": t.is_in_inbox(),
                        "url": t.url,
                    }
                    for t in relevant
                ],
                indent=2,
            )
        )
        return

    if not relevant:
        click.echo("No tasks due today.")
        return
    for task in relevant:
        flag = "OVERDUE" if task.is_overdue(now) else "today"
        click.echo(f"{task.get_priority_indicator()}{task.content} ({flag})")


@main.command()
def bot():
    """Run the Telegram bot with the daily schedule."""
    from .telegram_bot import run_bot

    try:
        config = load_config()
        click.echo("Starting Briefly Telegram bot...")
        click.echo("Press Ctrl+C to stop")
        run_bot(config)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
