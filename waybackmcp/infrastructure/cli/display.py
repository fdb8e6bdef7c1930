import logging
from typing import Any, ContextManager, Mapping, Optional, Sequence

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from waybackmcp.domain.interfaces.user_interface import UserInterface
from waybackmcp.domain.models.archive import ArchiveSnapshot

logger = logging.getLogger(__name__)


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console.

        Args:
            console: Console to print to; a stdout console is created if omitted.
        """
        self.console = console or Console()

    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays output text to the user, rendering Markdown.

        Args:
            output: The text to display.
            **kwargs: Additional arguments including:
                - title: Panel title (default: no panel, plain Markdown)
        """
        title = kwargs.get("title")
        logger.debug(f"display_output called: title={title}, content_length={len(output)}")
        if title is None:
            self.console.print(Markdown(output))
            return
        panel = Panel(
            Markdown(output),
            title=f"[bold white]{title}[/bold white]",
            title_align="left",
            border_style="blue",
            box=ROUNDED,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message.

        Args:
            info_message: The informational message to display.
        """
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message.

        Args:
            warning_message: The warning message to display.
        """
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_fields(self, title: str, fields: Mapping[str, Any]) -> None:
        """Displays labelled values as a two-column table; None values are skipped."""
        table = Table(show_header=False, box=SIMPLE, padding=(0, 1), title=title, title_justify="left")
        table.add_column("Field", style="bold cyan", no_wrap=True)
        table.add_column("Value", style="white")
        for label, value in fields.items():
            if value is None:
                continue
            table.add_row(label, str(value))
        self.console.print(table)

    def display_snapshots(self, snapshots: Sequence[ArchiveSnapshot]) -> None:
        """Displays archive captures, one row each."""
        if not snapshots:
            return
        table = Table(show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Date", style="bold white", no_wrap=True)
        table.add_column("Status", justify="center")
        table.add_column("Type", style="dim")
        table.add_column("Archived URL", style="blue", overflow="fold")
        for snapshot in snapshots:
            table.add_row(snapshot.date, snapshot.status_code, snapshot.mime_type, snapshot.archived_url)
        self.console.print(table)

    def status(self, message: str) -> ContextManager[Any]:
        """Shows a spinner while the wrapped block runs."""
        return self.console.status(f"[bold cyan]{message}[/bold cyan]", spinner="dots")
