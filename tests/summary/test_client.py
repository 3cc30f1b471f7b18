"""Tests for the OpenAI summarizer with a mocked client."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from codetrace.exceptions import SummaryError
from codetrace.storage import record_key
from codetrace.summary import OpenAISummarizer, attach_summary

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _reply(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def client():
    client = MagicMock()
    client.chat.completions.create.return_value = _reply(
        json.dumps(
            {
                "whatWasBuilt": "Built widgets.",
                "keyFilesModified": ["src/a.ts"],
                "apparentGoal": "Ship widgets",
                "suggestedTitle": "Widgets",
            }
        )
    )
    return client


class TestSummarize:
    def test_sends_projection(self, client, make_session):
        summarizer = OpenAISummarizer(model="gpt-test", client=client)
        summary = summarizer.summarize(make_session())

        assert summary.suggested_title == "Widgets"
        assert summary.model == "gpt-test"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0]["role"] == "system"
        assert "// src/a.ts" not in kwargs["messages"][1]["content"]

    def test_missing_key(self, make_session):
        with pytest.raises(SummaryError) as exc_info:
            OpenAISummarizer(api_key=None).summarize(make_session())
        assert "API key" in exc_info.value.reason

    @pytest.mark.parametrize(
        "error_cls,status,expected",
        [
            (openai.AuthenticationError, 401, "Invalid API key"),
            (openai.RateLimitError, 429, "Rate limit exceeded"),
            (openai.InternalServerError, 503, "OpenAI is having issues"),
        ],
    )
    def test_status_errors(self, client, make_session, error_cls, status, expected):
        response = httpx.Response(status, request=REQUEST)
        client.chat.completions.create.side_effect = error_cls("boom", response=response, body=None)

        with pytest.raises(SummaryError) as exc_info:
            OpenAISummarizer(client=client).summarize(make_session())

        assert expected in exc_info.value.reason
        assert exc_info.value.status == status

    def test_connection_error(self, client, make_session):
        client.chat.completions.create.side_effect = openai.APIConnectionError(request=REQUEST)
        with pytest.raises(SummaryError) as exc_info:
            OpenAISummarizer(client=client).summarize(make_session())
        assert "Could not reach OpenAI" in exc_info.value.reason

    def test_empty_choices(self, client, make_session):
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        with pytest.raises(SummaryError):
            OpenAISummarizer(client=client).summarize(make_session())


class TestAttachSummary:
    def test_resaves_in_place(self, client, store, make_session):
        session = make_session()
        store.save(session)

        summary = OpenAISummarizer(client=client).summarize(session)
        path = attach_summary(store, session, summary)

        assert path == store.path_for(session)
        assert store.count() == 1
        stored = store.load(record_key(session))
        assert stored.summary["suggestedTitle"] == "Widgets"
        assert stored.summary["keyFilesModified"] == ["src/a.ts"]
