"""The narrow surface LibLinker needs from an editor host."""
from dataclasses import dataclass
from typing import List, Protocol
from ..analyzer.models import SourceRange


class Document(Protocol):
    """An open document: identified by name, read as plain text."""
    name: str
    text: str


class DecorationSink(Protocol):
    """Paints highlight ranges. Rendering (colour, style) belongs to the host."""

    def clear(self, document_name: str) -> None:
        ...

    def apply(self, document_name: str, ranges: List[SourceRange]) -> None:
        ...


@dataclass(frozen=True)
class TextDocument:
    """In-memory document snapshot."""
    name: str
    text: str


class RecordingSink:
    """DecorationSink that keeps the current ranges per document in memory."""

    def __init__(self):
        self.decorations = {}
        self.history = []

    def clear(self, document_name: str) -> None:
        self.decorations.pop(document_name, None)
        self.history.append(('clear', document_name))

    def apply(self, document_name: str, ranges: List[SourceRange]) -> None:
        self.decorations[document_name] = list(ranges)
        self.history.append(('apply', document_name))
