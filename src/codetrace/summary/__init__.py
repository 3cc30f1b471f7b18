"""AI summaries of recorded sessions."""

from .client import DEFAULT_MODEL, OpenAISummarizer, Summarizer, attach_summary
from .models import SessionSummary
from .projection import (
    SYSTEM_PROMPT,
    AnalysisData,
    build_analysis_data,
    build_prompt,
    parse_summary,
)

__all__ = [
    "SessionSummary",
    "Summarizer",
    "OpenAISummarizer",
    "attach_summary",
    "DEFAULT_MODEL",
    "AnalysisData",
    "build_analysis_data",
    "build_prompt",
    "parse_summary",
    "SYSTEM_PROMPT",
]
