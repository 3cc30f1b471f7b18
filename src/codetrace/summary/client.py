"""OpenAI-backed session summarizer."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol

from openai import APIConnectionError, APIError, APIStatusError, OpenAI

from ..exceptions import SummaryError
from ..logging_config import get_logger
from ..models import Session
from ..storage import EventStore
from .models import SessionSummary
from .projection import SYSTEM_PROMPT, build_analysis_data, build_prompt, parse_summary

logger = get_logger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

_STATUS_MESSAGES = {
    401: "Invalid API key. Please check your settings.",
    429: "Rate limit exceeded. Try again in a minute.",
    500: "OpenAI is having issues. Try again later.",
    503: "OpenAI is having issues. Try again later.",
}


class Summarizer(Protocol):
    def summarize(self, session: Session) -> SessionSummary: ...


class OpenAISummarizer:
    """Asks a chat model for a JSON summary of a session's projection."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client: Any = None,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._api_key = api_key
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise SummaryError(
                    "OpenAI API key not set. Add openai_api_key to codetrace.toml "
                    "or set OPENAI_API_KEY."
                )
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def summarize(self, session: Session) -> SessionSummary:
        """Generate a summary.

        Raises:
            SummaryError: If the key is missing, the API call fails, or the
                reply cannot be parsed
        """
        client = self._get_client()
        prompt = build_prompt(build_analysis_data(session))

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except APIStatusError as e:
            message = _STATUS_MESSAGES.get(e.status_code, f"OpenAI error: {e.message}")
            raise SummaryError(message, status=e.status_code) from e
        except APIConnectionError as e:
            raise SummaryError(f"Could not reach OpenAI: {e}") from e
        except APIError as e:
            raise SummaryError(f"OpenAI error: {e.message}") from e

        content = response.choices[0].message.content if response.choices else None
        summary = parse_summary(content, self.model)
        logger.info("Generated summary %r for session %s", summary.suggested_title, session.id)
        return summary


def attach_summary(store: EventStore, session: Session, summary: SessionSummary) -> Optional[Path]:
    """Attach ``summary`` and re-save the session over its existing document."""
    session.summary = summary.to_dict()
    return store.save(session)
