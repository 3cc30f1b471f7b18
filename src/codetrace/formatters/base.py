"""Base formatter interface for session output rendering."""

from abc import ABC, abstractmethod

from ..models import Session


class BaseFormatter(ABC):
    """Abstract base class for session formatters."""

    @abstractmethod
    def render(self, session: Session) -> None:
        """Render a session to the terminal."""

    @abstractmethod
    def format(self, session: Session) -> str:
        """Return formatted string representation of a session."""
