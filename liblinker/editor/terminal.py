"""Terminal host: files on disk as documents, Rich output as decorations."""
from pathlib import Path
from typing import Dict, List, Optional
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from ..analyzer.models import SourceRange


class FileDocument:
    """A file shown in the terminal; text is re-read on every access."""

    SUPPORTED_EXTENSIONS = {
        '.js': 'javascript',
        '.jsx': 'jsx',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.ts': 'typescript',
        '.tsx': 'tsx',
    }

    def __init__(self, path: str | Path, base: Optional[Path] = None):
        self.path = Path(path).resolve()
        try:
            self.name = str(self.path.relative_to(base.resolve())) if base else str(self.path)
        except ValueError:
            self.name = str(self.path)

    @property
    def text(self) -> str:
        """Current file contents; unreadable files read as empty text."""
        try:
            return self.path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError):
            return ''

    @property
    def lexer(self) -> str:
        return self.SUPPORTED_EXTENSIONS.get(self.path.suffix.lower(), 'text')

    @classmethod
    def is_supported(cls, path: str | Path) -> bool:
        return Path(path).suffix.lower() in cls.SUPPORTED_EXTENSIONS


class TerminalSink:
    """DecorationSink that prints each document with its ranges highlighted."""

    def __init__(self, console: Console, style: str = "on grey27", as_table: bool = False):
        """
        :param console: Where rendered documents go.
        :param style: Rich style applied to every highlighted range.
        :param as_table: Print a range table instead of the highlighted source.
        """
        self.console = console
        self.style = style
        self.as_table = as_table
        self.documents: Dict[str, FileDocument] = {}
        self.applied: Dict[str, List[SourceRange]] = {}

    def register(self, document: FileDocument) -> None:
        self.documents[document.name] = document

    def clear(self, document_name: str) -> None:
        self.applied.pop(document_name, None)

    def apply(self, document_name: str, ranges: List[SourceRange]) -> None:
        self.applied[document_name] = list(ranges)
        document = self.documents.get(document_name)
        text = document.text if document is not None else ''

        self.console.rule(f"[bold blue]{document_name}[/bold blue]")
        if self.as_table:
            self.console.print(self._table(text, ranges))
        else:
            self.console.print(self._syntax(text, ranges, document))

    def _syntax(self, text: str, ranges: List[SourceRange], document: Optional[FileDocument]) -> Syntax:
        lexer = document.lexer if document is not None else 'text'
        syntax = Syntax(text, lexer, line_numbers=True, word_wrap=False)
        for source_range in ranges:
            # Rich counts lines from 1 and columns from 0
            syntax.stylize_range(
                self.style,
                (source_range.start.line + 1, source_range.start.column),
                (source_range.end.line + 1, source_range.end.column),
            )
        return syntax

    def _table(self, text: str, ranges: List[SourceRange]) -> Table:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Line", justify="right", style="green")
        table.add_column("Columns", style="yellow")
        table.add_column("Text", style="cyan")
        for source_range in ranges:
            table.add_row(
                str(source_range.start.line + 1),
                f"{source_range.start.column}-{source_range.end.column}",
                source_range.slice(text),
            )
        return table
