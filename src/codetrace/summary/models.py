"""AI summary record attached to a stored session."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..models import format_timestamp, parse_timestamp, utc_now


@dataclass(frozen=True)
class SessionSummary:
    """Structured summary produced by the model.

    Stored on the session document under ``summary`` with camelCase keys.
    """

    what_was_built: str
    key_files_modified: list[str]
    apparent_goal: str
    suggested_title: str
    model: str
    generated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "whatWasBuilt": self.what_was_built,
            "keyFilesModified": list(self.key_files_modified),
            "apparentGoal": self.apparent_goal,
            "suggestedTitle": self.suggested_title,
            "generatedAt": format_timestamp(self.generated_at),
            "model": self.model,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionSummary:
        generated = data.get("generatedAt")
        return cls(
            what_was_built=str(data.get("whatWasBuilt", "")),
            key_files_modified=[str(f) for f in data.get("keyFilesModified", [])],
            apparent_goal=str(data.get("apparentGoal", "")),
            suggested_title=str(data.get("suggestedTitle", "")),
            model=str(data.get("model", "")),
            generated_at=parse_timestamp(generated) if generated else utc_now(),
        )
