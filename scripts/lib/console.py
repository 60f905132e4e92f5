"""Colored console output utilities using Rich."""

from rich.console import Console
from rich.markup import escape

console = Console()
err_console = Console(stderr=True)


def print_warning(message: str) -> None:
    """Print warning message with yellow indicator."""
    console.print(f"[yellow]![/yellow] {escape(message)}")


def print_error(message: str) -> None:
    """Print error message with red X to stderr."""
    err_console.print(f"[red]✗[/red] {escape(message)}", highlight=False, soft_wrap=True)


def print_plain(message: str) -> None:
    """Print untrusted text (secret keys and values) without markup."""
    console.print(message, markup=False, highlight=False, soft_wrap=True)


def ask(question: str) -> str:
    """Prompt the operator for one line of input."""
    return console.input(question)

