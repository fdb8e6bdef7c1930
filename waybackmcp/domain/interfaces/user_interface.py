"""Interface for presenting results to the user.

Defines the contract for displaying operation results, errors, warnings
and progress, allowing different UI implementations (e.g., console, tests).
"""

import abc
from typing import Any, ContextManager, Mapping, Sequence

from waybackmcp.domain.models.archive import ArchiveSnapshot


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays standard output (Markdown) to the user.

        Args:
            output: The text to display.
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_fields(self, title: str, fields: Mapping[str, Any]) -> None:
        """Displays labelled values, skipping those that are None.

        Args:
            title: Heading for the group of fields.
            fields: Label -> value, in display order.
        """
        pass

    @abc.abstractmethod
    def display_snapshots(self, snapshots: Sequence[ArchiveSnapshot]) -> None:
        """Displays a list of archive captures."""
        pass

    @abc.abstractmethod
    def status(self, message: str) -> ContextManager[Any]:
        """Returns a context manager showing progress while a request runs."""
        pass
