"""Interface for interacting with the user (output only).

Defines the contract for displaying results, errors, warnings, transcript
lines and enablement state, allowing different UI implementations
(e.g., console, GUI).
"""

import abc
from typing import Any, Sequence

from pdfcheck.domain.models.analysis import UiState
from pdfcheck.domain.models.file_record import FileRecord


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays a result document to the user.

        Args:
            output: The text (markdown) to display.
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
    def append_log(self, message: str, level: str) -> None:
        """Appends one line to the transcript view.

        Args:
            message: The transcript line.
            level: One of "info", "wave", "success", "error".
        """
        pass

    @abc.abstractmethod
    def clear_result_view(self) -> None:
        """Invalidates whatever result is currently shown."""
        pass

    @abc.abstractmethod
    def apply_ui_state(self, state: UiState) -> None:
        """Applies freshly derived enable/disable decisions."""
        pass

    def display_records(self, records: Sequence[FileRecord], **kwargs: Any) -> None:
        """Displays the tracked files and their state.

        Args:
            records: The store's records, in display order.
        """
        pass

    def display_ui_state(self, state: UiState) -> None:
        """Displays the enablement table (diagnostic view)."""
        pass

    def display_result(self, record: FileRecord) -> None:
        """Shows a single record's result."""
        if record.result is None:
            return
        if record.result_is_error:
            self.display_error(f"{record.name}: {record.result}")
        else:
            self.display_output(record.result, title=record.name)
