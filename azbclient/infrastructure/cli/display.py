import json
import logging
from datetime import datetime
from typing import Optional, Any

from rich.console import Console
from rich.panel import Panel
from rich.box import ROUNDED, HEAVY, SIMPLE
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from azbclient.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a response payload; JSON values are pretty-printed.

        Args:
            output: Parsed response body.
            **kwargs: Additional arguments including:
                - title: Panel title (default: "Response")
        """
        title = kwargs.get("title", "Response")
        timestamp = datetime.now().strftime("%H:%M:%S")
        if isinstance(output, (dict, list)):
            body = Syntax(json.dumps(output, indent=2, ensure_ascii=False), "json", word_wrap=True)
        else:
            body = Text(str(output))
        logger.debug(f"display_output called: title={title}, type={type(output).__name__}")
        self.console.print(Panel(
            body,
            title=f"[bold cyan]{title}[/bold cyan] [dim]{timestamp}[/dim]",
            border_style="cyan",
            box=ROUNDED,
            padding=(0, 1),
        ))

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
            **kwargs: Additional arguments including:
                - status: HTTP status code shown in the title, if any.
        """
        status = kwargs.get("status")
        title = f"[bold red]Error {status}[/bold red]" if status else "[bold red]Error[/bold red]"
        self.console.print(Panel(
            Text(error_message, style="white"),
            title=title,
            border_style="red",
            box=HEAVY,
            padding=(0, 1),
        ))

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self.console.print(Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1),
        ))

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        self.console.print(Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1),
        ))

    def display_health(self, is_awake: bool, health_url: str) -> None:
        table = Table(show_header=False, box=ROUNDED, border_style="green" if is_awake else "red", padding=(0, 1))
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Endpoint", health_url)
        table.add_row("Status", "[bold green]awake[/bold green]" if is_awake else "[bold red]asleep[/bold red]")
        table.add_row("Checked", datetime.now().strftime("%Y-%m-%d %H:%M:%S"))
        self.console.print(table)
