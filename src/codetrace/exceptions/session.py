"""Session lifecycle and summarization exceptions."""

from typing import Optional

from .base import CodeTraceError


class DuplicateOperationError(CodeTraceError):
    """Raised for start() while recording or stop() while idle."""

    def __init__(self, operation: str, state: str):
        super().__init__(
            f"Cannot {operation} while {state}",
            details={"operation": operation, "state": state},
        )
        self.operation = operation
        self.state = state


class SummaryError(CodeTraceError):
    """Raised when an AI summary cannot be generated."""

    def __init__(self, reason: str, status: Optional[int] = None):
        details = {"reason": reason}
        if status is not None:
            details["status"] = str(status)

        super().__init__(f"Failed to generate summary: {reason}", details=details)
        self.reason = reason
        self.status = status
