"""Component-tagged diagnostics written to stderr through the safe console.

Every message is prefixed with the emitting component, e.g.
``[DependencyRegistry] Warning: package.json is not valid JSON``.
"""
from rich.markup import escape
from .safe_console import SafeConsole

# Diagnostics never mix with rendered highlights on stdout
_console = SafeConsole(stderr=True, highlight=False)
_debug_enabled = False


def get_console() -> SafeConsole:
    """Return the shared diagnostics console."""
    return _console


def set_debug(enabled: bool) -> None:
    """Turn debug lines on or off for the whole process."""
    global _debug_enabled
    _debug_enabled = bool(enabled)


def is_debug_enabled() -> bool:
    return _debug_enabled


def log_warning(component: str, message: str) -> None:
    _console.print(f"[yellow]\\[{escape(component)}] Warning:[/yellow] {escape(message)}")


def log_error(component: str, message: str) -> None:
    _console.print(f"[bold red]\\[{escape(component)}] Error:[/bold red] {escape(message)}")


def log_debug(component: str, message: str) -> None:
    if _debug_enabled:
        _console.print(f"[dim]\\[{escape(component)}] {escape(message)}[/dim]")
