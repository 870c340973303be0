"""Tests for the OpenAI grouping and reflection adapter."""

import json
from unittest.mock import MagicMock

import pytest
from openai import OpenAIError

from briefly.adapters.openai_grouping import (
    FAILED_MOTIVATION,
    FAILED_REFLECTION,
    NOTHING_DONE_MOTIVATION,
    OpenAIGroupingService,
)
from briefly.core.tasks import Task
from briefly.errors import BrieflyError


def completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def service(client):
    return OpenAIGroupingService(api_key="sk-test", client=client)


@pytest.fixture
def tasks():
    return [
        Task(id="a", content="Email Bob"),
        Task(id="b", content="Buy milk"),
        Task(id="c", content="Review PR"),
    ]


class TestGroupTasks:
    def test_maps_identifiers_back_to_tasks(self, service, client, tasks):
        client.chat.completions.create.return_value = completion(
            json.dumps({"Work": ["[TASK:0]", "[TASK:2]"], "Personal": ["[TASK:1]", "[TASK:9]"]})
        )

        grouped = service.group_tasks(tasks)

        assert [t.id for t in grouped["Work"]] == ["a", "c"]
        assert [t.id for t in grouped["Personal"]] == ["b"]

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4.1-mini"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][1]["content"] == "[TASK:0] Email Bob\n[TASK:1] Buy milk\n[TASK:2] Review PR"

    def test_empty_input_skips_the_call(self, service, client):
        assert service.group_tasks([]) == {}
        client.chat.completions.create.assert_not_called()

    def test_api_error_raises(self, service, client, tasks):
        client.chat.completions.create.side_effect = OpenAIError("boom")
        with pytest.raises(BrieflyError):
            service.group_tasks(tasks)

    @pytest.mark.parametrize("content", [None, "not json", "[1, 2]"])
    def test_bad_response_raises(self, service, client, tasks, content):
        client.chat.completions.create.return_value = completion(content)
        with pytest.raises(BrieflyError):
            service.group_tasks(tasks)


class TestReflections:
    def test_motivation(self, service, client, tasks):
        client.chat.completions.create.return_value = completion("  You crushed it!  ")
        assert service.generate_motivation(tasks) == "You crushed it!"
        assert client.chat.completions.create.call_args.kwargs["max_tokens"] == 50

    def test_motivation_without_completed_tasks(self, service, client):
        assert service.generate_motivation([]) == NOTHING_DONE_MOTIVATION
        client.chat.completions.create.assert_not_called()

    def test_motivation_fallback_on_error(self, service, client, tasks):
        client.chat.completions.create.side_effect = OpenAIError("boom")
        assert service.generate_motivation(tasks) == FAILED_MOTIVATION

    def test_evening_reflection_context(self, service, client, tasks):
        client.chat.completions.create.return_value = completion("Rest well.")

        assert service.generate_evening_reflection(tasks[:1], tasks) == "Rest well."
        user = client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert user == "Completed tasks today: Email Bob. 3 items in inbox requiring attention."

    def test_evening_reflection_fallback_on_error(self, service, client):
        client.chat.completions.create.side_effect = OpenAIError("boom")
        assert service.generate_evening_reflection([], []) == FAILED_REFLECTION
