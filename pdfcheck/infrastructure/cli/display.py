import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pdfcheck.domain.interfaces.user_interface import UserInterface
from pdfcheck.domain.models.analysis import UiState
from pdfcheck.domain.models.common import (
    LOG_LEVEL_ERROR,
    LOG_LEVEL_INFO,
    LOG_LEVEL_SUCCESS,
    LOG_LEVEL_WAVE,
)
from pdfcheck.domain.models.file_record import FileRecord

logger = logging.getLogger(__name__)

LOG_LEVEL_STYLES = {
    LOG_LEVEL_INFO: "blue",
    LOG_LEVEL_WAVE: "cyan",
    LOG_LEVEL_SUCCESS: "green",
    LOG_LEVEL_ERROR: "bold red",
}


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self.console = console or Console()
        self.ui_state: Optional[UiState] = None
        self.result_view_valid = False

    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays a result document, rendering Markdown inside a panel.

        Args:
            output: The text to display.
            **kwargs: ``title`` for the panel header (default: "Result").
        """
        title = kwargs.get("title", "Result")
        timestamp = datetime.now().strftime("%H:%M:%S")
        header = f"[bold white]{title}[/bold white] [dim]·[/dim] [dim white]{timestamp}[/dim white]"
        try:
            panel = Panel(
                Markdown(str(output)),
                title=header,
                title_align="left",
                border_style="blue",
                box=ROUNDED,
                padding=(0, 1),
            )
            self.console.print(panel)
        except Exception as e:
            # Fallback if Rich formatting fails
            logger.error(f"Error displaying formatted output: {e}")
            self.console.print(f"\n{title} ({timestamp}):\n{output}\n", markup=False)
        self.result_view_valid = True

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def append_log(self, message: str, level: str) -> None:
        """Prints one transcript line, styled by level."""
        style = LOG_LEVEL_STYLES.get(level, "white")
        timestamp = datetime.now().strftime("%H:%M:%S")
        line = Text.assemble((f"[{timestamp}] ", "dim"), (message, style))
        self.console.print(line)

    def clear_result_view(self) -> None:
        self.result_view_valid = False

    def apply_ui_state(self, state: UiState) -> None:
        self.ui_state = state
        logger.debug(f"UI state applied: {state.as_dict()}")

    def display_records(self, records: Sequence[FileRecord], **kwargs: Any) -> None:
        """Displays tracked files as a table."""
        title = kwargs.get("title", "Files")
        table = Table(title=title, show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("#", style="cyan", justify="right")
        table.add_column("", justify="center")
        table.add_column("File", style="bold")
        table.add_column("Status")
        table.add_column("Analyzed", style="dim")
        table.add_column("Type", style="dim")

        for index, record in enumerate(records, 1):
            table.add_row(
                str(index),
                "[green]✓[/green]" if record.checked else "",
                record.name,
                self._status_text(record),
                record.analyzed_at or "",
                record.document_type or "",
            )
        self.console.print(table)

    @staticmethod
    def _status_text(record: FileRecord) -> str:
        if record.analyzing:
            return "[cyan]analyzing…[/cyan]"
        if record.result is None:
            return "[dim]not analyzed[/dim]"
        if record.result_is_error:
            return "[red]error[/red]"
        if record.compare_mode:
            return "[green]compared[/green]"
        if record.embedded:
            return "[green]analyzed (embedded)[/green]"
        return "[green]analyzed[/green]"

    def display_result(self, record: FileRecord) -> None:
        """Shows one record's result, or its error in an error panel."""
        if record.result is None:
            self.display_info(f"{record.name}: no result")
            return
        if record.result_is_error:
            self.display_error(f"{record.name}: {record.result}")
            return
        self.display_output(record.result, title=record.name)

    def display_ui_state(self, state: UiState) -> None:
        table = Table(show_header=True, box=SIMPLE, border_style="cyan", padding=(0, 1))
        table.add_column("Action", style="bold")
        table.add_column("State")
        for action, disabled in state.as_dict().items():
            table.add_row(action, "[red]disabled[/red]" if disabled else "[green]enabled[/green]")
        self.console.print(table)
