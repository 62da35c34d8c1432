"""Unicode-safe Rich console.

Wraps Rich's Console to replace the few non-ASCII glyphs LibLinker prints
when the terminal cannot render UTF-8 (legacy Windows consoles, piped
cp1252 output).
"""
import sys
import locale
from typing import Any
from rich.console import Console


# Glyphs used in LibLinker output and their ASCII stand-ins
ICON_MAP = {
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '←': '<-',
    '…': '...',
    '•': '*',
    '│': '|',
    '─': '-',
}


def detect_terminal_encoding(stream=None) -> str:
    """Detect the encoding of a stream, falling back to the locale.

    Args:
        stream: Stream to inspect (defaults to sys.stdout)

    Returns:
        str: Lower-cased encoding name ('utf-8', 'cp1252', 'ascii', ...)
    """
    stream = stream if stream is not None else sys.stdout
    encoding = getattr(stream, 'encoding', None)
    if encoding:
        return encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except Exception:
        return 'ascii'


def is_utf8_capable(stream=None) -> bool:
    """Check whether a stream can take UTF-8 glyphs."""
    return detect_terminal_encoding(stream).replace('-', '').replace('_', '') == 'utf8'


def sanitize_for_terminal(text: str, stream=None) -> str:
    """Replace known glyphs with ASCII when the stream is not UTF-8.

    Args:
        text: Text potentially containing glyphs from ICON_MAP
        stream: Target stream (defaults to sys.stdout)

    Returns:
        str: Text safe to write to the stream
    """
    if is_utf8_capable(stream):
        return text

    for glyph, replacement in ICON_MAP.items():
        text = text.replace(glyph, replacement)
    return text


class SafeConsole(Console):
    """Rich Console that sanitizes string renderables on non-UTF-8 terminals."""

    def __init__(self, *args, **kwargs):
        stream = sys.stderr if kwargs.get('stderr') else kwargs.get('file')
        self._needs_sanitization = not is_utf8_capable(stream)

        if self._needs_sanitization:
            kwargs['legacy_windows'] = True

        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        if self._needs_sanitization:
            objects = tuple(
                sanitize_for_terminal(obj, self.file) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)
