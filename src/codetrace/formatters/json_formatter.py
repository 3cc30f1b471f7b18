"""JSON formatter for sessions."""

import json

from ..models import Session
from .base import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Render the persisted document, optionally without file snapshots."""

    def __init__(self, include_content: bool = False) -> None:
        self.include_content = include_content

    def render(self, session: Session) -> None:
        print(self.format(session))

    def format(self, session: Session) -> str:
        data = session.to_dict()
        if not self.include_content:
            for change in data["changes"]:
                change.pop("content", None)
        return json.dumps(data, indent=2, ensure_ascii=False)
