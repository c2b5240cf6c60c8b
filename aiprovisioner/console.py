"""Shared Rich console."""
from rich.console import Console

console = Console()


def debug(enabled: bool, message: str) -> None:
    """Print a debug line when ``enabled`` is set."""
    if enabled:
        console.print(f"[blue]Debug: {message}[/]", highlight=False)
