"""Tests for the Todoist adapter."""

from datetime import datetime
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest
import requests

from briefly.adapters.todoist_api import API_BASE, COMPLETED_URL, TodoistAdapter
from briefly.errors import AuthenticationError, SourceUnavailable

SP = ZoneInfo("America/Sao_Paulo")


def make_response(payload=None, status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def adapter(session):
    return TodoistAdapter("secret-token", session=session)


def task_record(task_id, content="Task", **extra):
    return {"id": task_id, "content": content, "project_id": "p1", "priority": 1, **extra}


class TestFetchByFilter:
    def test_sends_filter_and_token(self, adapter, session):
        session.get.return_value = make_response([task_record("1")])

        tasks = adapter.fetch_by_filter("today | overdue")

        assert [t.id for t in tasks] == ["1"]
        args, kwargs = session.get.call_args
        assert args[0] == f"{API_BASE}/tasks"
        assert kwargs["params"] == {"filter": "today | overdue"}
        assert kwargs["headers"] == {"Authorization": "Bearer secret-token"}

    def test_accepts_results_envelope(self, adapter, session):
        session.get.return_value = make_response({"results": [task_record("1"), task_record("2")]})
        assert [t.id for t in adapter.fetch_all()] == ["1", "2"]

    def test_deep_link_fallback(self, adapter, session):
        session.get.return_value = make_response([task_record("42"), task_record("43", url="https://x/43")])
        tasks = adapter.fetch_relevant()
        assert tasks[0].url == "https://todoist.com/app/task/42"
        assert tasks[1].url == "https://x/43"

    def test_malformed_record_is_skipped(self, adapter, session, caplog):
        session.get.return_value = make_response([task_record("1", priority=99), task_record("2")])
        tasks = adapter.fetch_relevant()
        assert [t.id for t in tasks] == ["2"]
        assert "Skipping malformed task record" in caplog.text

    def test_named_filters(self, adapter, session):
        session.get.return_value = make_response([])
        adapter.fetch_inbox_without_due_dates()
        assert session.get.call_args.kwargs["params"] == {"filter": "#Inbox & no date"}


class TestErrors:
    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_token(self, adapter, session, status):
        session.get.return_value = make_response(status=status)
        with pytest.raises(AuthenticationError):
            adapter.fetch_all()

    def test_server_error(self, adapter, session):
        session.get.return_value = make_response(status=503)
        with pytest.raises(SourceUnavailable):
            adapter.fetch_all()

    def test_connection_error(self, adapter, session):
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(SourceUnavailable):
            adapter.fetch_all()

    def test_missing_token(self):
        with pytest.raises(AuthenticationError):
            TodoistAdapter("")


class TestAfternoonAndCompleted:
    def test_remaining_excludes_inbox(self, adapter, session):
        def get(url, params=None, headers=None, timeout=None):
            if params == {"filter": "today | overdue"}:
                return make_response([task_record("1"), task_record("2"), task_record("3")])
            return make_response([task_record("2")])

        session.get.side_effect = get
        assert [t.id for t in adapter.fetch_remaining_for_afternoon()] == ["1", "3"]

    def test_completed_since(self, adapter, session):
        since = datetime(2025, 1, 15, 7, 0, tzinfo=SP)
        session.get.return_value = make_response(
            {
                "items": [
                    {"id": "c1", "task_id": "t1", "content": "Done early", "completed_at": "2025-01-15T12:30:00Z"},
                    {"id": "c2", "task_id": "t2", "content": "Done yesterday", "completed_at": "2025-01-14T20:00:00Z"},
                ]
            }
        )

        tasks = adapter.fetch_completed_since(since)

        assert [t.id for t in tasks] == ["t1"]
        assert tasks[0].is_completed
        assert tasks[0].url == "https://todoist.com/app/task/t1"
        args, kwargs = session.get.call_args
        assert args[0] == COMPLETED_URL
        assert kwargs["params"] == {"since": "2025-01-15T10:00:00"}
