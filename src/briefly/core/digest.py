"""Pure digest formatting - no I/O dependencies.

Messages are composed as plain Markdown; conversion to Telegram's MarkdownV2
happens at delivery time.
"""

import re

from .calendar import CalendarEvent, sort_events_by_start
from .tasks import Task

TELEGRAM_CHUNK_LIMIT = 4000
UNGROUPED = "Ungrouped"

_MARKDOWN_SPECIALS = re.compile(r"([_*\[\]`])")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def escape_markdown(text: str) -> str:
    """Escape only the characters that would break bold/italic/link markup."""
    return _MARKDOWN_SPECIALS.sub(r"\\\1", text)


def clean_task_content(content: str) -> str:
    """Drop bold markers and reduce [text](url) links to the bare url."""
    cleaned = content.replace("**", "")
    return _MARKDOWN_LINK.sub(r"\2", cleaned)


def format_task_line(task: Task, bullet: bool = True) -> str:
    """
    Format a single task for display.

    Pure function - no I/O.
    """
    content = escape_markdown(clean_task_content(task.content))
    line = f"{task.get_priority_indicator()}{content}"
    if task.url:
        line += f" [View Task]({task.url})"
    return f"• {line}" if bullet else line


def format_event_line(event: CalendarEvent) -> str:
    return f"• {event.format_for_message(include_location=False)}"


def _by_priority(tasks: list[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: t.priority, reverse=True)


def format_task_groups(grouped: dict[str, list[Task]], bullet: bool = True) -> str:
    """Render grouped tasks, highest priority first within each group."""
    sections = []
    for name, tasks in grouped.items():
        if not tasks:
            continue
        lines = [format_task_line(t, bullet) for t in _by_priority(tasks)]
        if name != UNGROUPED:
            lines.insert(0, f"**{name}**")
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def _format_completed(tasks: list[Task], empty: str) -> str:
    if not tasks:
        return f"• _{empty}_"
    return "\n".join(f"{t.get_priority_indicator()}{escape_markdown(t.content)}" for t in _by_priority(tasks))


def format_morning_message(events: list[CalendarEvent], grouped_tasks: dict[str, list[Task]]) -> str:
    """Morning overview: today's calendar followed by today's focus."""
    parts = ["☀️ **Good Morning!**"]

    if events:
        calendar_md = "\n".join(format_event_line(e) for e in sort_events_by_start(events))
        parts.append(f"**Today's Calendar**\n{calendar_md}")
    else:
        parts.append("**No meetings scheduled for today**")

    groups_md = format_task_groups(grouped_tasks)
    if groups_md:
        parts.append(f"**Today's Focus**\n\n{groups_md}")
    else:
        parts.append("**No tasks scheduled for today!**")

    return "\n\n".join(parts) + "\n"


def format_afternoon_message(
    completed: list[Task],
    grouped_remaining: dict[str, list[Task]],
    motivation: str | None = None,
) -> str:
    """Afternoon update: what got done and what is still open."""
    parts = [
        "🌤️ **Afternoon Update**",
        "✔️ **Completed**\n" + _format_completed(completed, "Nothing completed yet"),
    ]

    remaining_md = format_task_groups(grouped_remaining, bullet=False)
    parts.append("⏰ **Remaining**\n" + (remaining_md or "• _All done!_"))

    if motivation:
        parts.append(f"💭 _{motivation}_")
    return "\n\n".join(parts) + "\n"


def format_evening_message(
    completed: list[Task],
    grouped_inbox: dict[str, list[Task]],
    reflection: str | None = None,
) -> str:
    """Evening check: what got done today and which inbox items need triage."""
    parts = [
        "🌙 **Evening Check**",
        "✔️ **Completed Today**\n" + _format_completed(completed, "Nothing completed today"),
    ]

    inbox_md = format_task_groups(grouped_inbox, bullet=False)
    if inbox_md:
        parts.append(f"📥 **Inbox Triage**\n\n{inbox_md}\n\n💡 _Quick triage time_")
    else:
        parts.append("📥 **Inbox Triage**\n• _Inbox is empty_\n• _Perfect time to relax!_")

    if reflection:
        parts.append(f"🌅 _{reflection}_")
    return "\n\n".join(parts) + "\n"


def split_message(text: str, limit: int = TELEGRAM_CHUNK_LIMIT) -> list[str]:
    """
    Split text into chunks no longer than `limit`.

    Breaks on paragraphs first, then on lines, and hard-cuts only lines that
    are longer than the limit on their own. Never returns an empty list.
    """
    chunks: list[str] = []
    current = ""

    def flush() -> None:
        nonlocal current
        if current.strip():
            chunks.append(current.strip())
        current = ""

    for section in text.split("\n\n"):
        if current and len(current) + len(section) + 2 > limit:
            flush()

        if len(section) <= limit:
            current = f"{current}\n\n{section}" if current else section
            continue

        for line in section.split("\n"):
            if current and len(current) + len(line) + 1 > limit:
                flush()
            if len(line) > limit:
                flush()
                chunks.extend(line[i : i + limit] for i in range(0, len(line), limit))
            else:
                current = f"{current}\n{line}" if current else line

    flush()
    return chunks or [text]
