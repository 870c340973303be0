"""OpenAI adapter - task grouping and the closing notes of the digests."""

import json
import logging

from openai import OpenAI, OpenAIError

from briefly.core.tasks import Task
from briefly.errors import BrieflyError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4.1-mini"

GROUPING_PROMPT = """\
You are a productivity assistant that helps organize tasks.
Your job is to group these tasks logically into meaningful categories without changing their text.
Do not create more than 5 categories unless absolutely necessary.
Tasks have unique identifiers like [TASK:0], [TASK:1], etc. that must be preserved in your response.
Respond with a JSON object where keys are category names and values are arrays of task identifiers only.
Example: {"Work": ["[TASK:0]", "[TASK:2]"], "Personal": ["[TASK:1]", "[TASK:3]"]}
Only respond with the JSON, nothing else."""

MOTIVATION_PROMPT = """\
You are a supportive productivity assistant.
Based on the user's completed tasks, provide a single short sentence of encouragement
that acknowledges their progress today. Keep it brief, positive, and motivational.
Do not add any additional formatting, just the motivational sentence."""

REFLECTION_PROMPT = """\
You are a wise and supportive productivity coach providing end-of-day reflection.
Based on the user's daily accomplishments and inbox status, provide a single thoughtful sentence
that combines acknowledgment of their work with gentle guidance for tomorrow.
Focus on progress, learning, and balanced productivity.
Keep it brief, reflective, and encouraging. Do not add any additional formatting."""

NOTHING_DONE_MOTIVATION = "Keep going! The day is still young and you have time to make progress."
EMPTY_MOTIVATION = "Great job on your progress today!"
FAILED_MOTIVATION = "Well done on your progress today!"
EMPTY_REFLECTION = "Today's work is done - rest well and tomorrow brings new opportunities."
FAILED_REFLECTION = "Reflect on today's progress and prepare your mind for tomorrow's possibilities."


def task_identifier(index: int) -> str:
    return f"[TASK:{index}]"


class OpenAIGroupingService:
    """
    OpenAI chat-completions adapter.

    Implements the TaskGrouper and Reflector protocols. Grouping failures are
    raised so the caller can fall back; reflections never fail and degrade to
    canned sentences instead.
    """

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, client: OpenAI | None = None):
        self.model = model
        self._client = client or OpenAI(api_key=api_key)

    def _complete(self, system: str, user: str, **kwargs) -> str | None:
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            **kwargs,
        )
        return response.choices[0].message.content

    def group_tasks(self, tasks: list[Task]) -> dict[str, list[Task]]:
        """
        Group tasks into named categories.

        The model only ever sees and returns identifiers, so task text is never
        rewritten. Identifiers the model invents are dropped.
        """
        if not tasks:
            return {}

        by_identifier = {task_identifier(i): t for i, t in enumerate(tasks)}
        listing = "\n".join(f"{task_identifier(i)} {t.content}" for i, t in enumerate(tasks))

        try:
            content = self._complete(GROUPING_PROMPT, listing, response_format={"type": "json_object"})
        except OpenAIError as e:
            raise BrieflyError(f"Failed to group tasks with GPT: {e}") from e
        if not content:
            raise BrieflyError("Failed to group tasks with GPT: empty response")

        try:
            identifiers_by_group = json.loads(content)
        except json.JSONDecodeError as e:
            raise BrieflyError(f"Failed to parse GPT response as JSON: {e}") from e
        if not isinstance(identifiers_by_group, dict):
            raise BrieflyError(f"Unexpected grouping response: {content[:200]}")

        grouped: dict[str, list[Task]] = {}
        for group, identifiers in identifiers_by_group.items():
            if not isinstance(identifiers, list):
                continue
            grouped[group] = [
                by_identifier[str(ident).strip()] for ident in identifiers if str(ident).strip() in by_identifier
            ]
        logger.debug(f"Grouped {len(tasks)} tasks into {len(grouped)} categories")
        return grouped

    def generate_motivation(self, completed: list[Task]) -> str:
        """One sentence of encouragement for the afternoon update."""
        if not completed:
            return NOTHING_DONE_MOTIVATION

        task_list = "\n".join(t.content for t in completed)
        try:
            content = self._complete(MOTIVATION_PROMPT, f"Completed tasks: {task_list}", max_tokens=50)
        except OpenAIError as e:
            logger.error(f"Failed to generate motivation message: {e}")
            return FAILED_MOTIVATION
        return (content or "").strip() or EMPTY_MOTIVATION

    def generate_evening_reflection(self, completed: list[Task], inbox: list[Task]) -> str:
        """One sentence closing the evening check."""
        if completed:
            completed_context = f"Completed tasks today: {', '.join(t.content for t in completed)}"
        else:
            completed_context = "No tasks completed today"
        if inbox:
            inbox_context = f"{len(inbox)} items in inbox requiring attention"
        else:
            inbox_context = "Inbox is clean and empty"

        try:
            content = self._complete(REFLECTION_PROMPT, f"{completed_context}. {inbox_context}.", max_tokens=60)
        except OpenAIError as e:
            logger.error(f"Failed to generate evening reflection: {e}")
            return FAILED_REFLECTION
        return (content or "").strip() or EMPTY_REFLECTION
