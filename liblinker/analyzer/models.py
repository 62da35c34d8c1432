"""Value types shared by the scanners, the registry and the editor session."""
import json
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based (line, column) location inside one document snapshot."""
    line: int
    column: int


@dataclass(frozen=True)
class SourceRange:
    """Half-open span between two positions of the same document snapshot."""
    start: Position
    end: Position

    @classmethod
    def on_line(cls, line: int, start_column: int, end_column: int) -> 'SourceRange':
        """Build a single-line range."""
        return cls(Position(line, start_column), Position(line, end_column))

    @property
    def is_valid(self) -> bool:
        """True when the range is non-empty and does not run backwards."""
        return self.start < self.end

    def slice(self, text: str) -> str:
        """Return the text covered by this range.

        Args:
            text: The same document text the range was computed from

        Returns:
            Substring between start and end (may span lines)
        """
        lines = text.split('\n')
        if self.start.line == self.end.line:
            return lines[self.start.line][self.start.column:self.end.column]
        parts = [lines[self.start.line][self.start.column:]]
        parts.extend(lines[self.start.line + 1:self.end.line])
        parts.append(lines[self.end.line][:self.end.column])
        return '\n'.join(parts)


@dataclass(frozen=True)
class DependencySet:
    """Immutable, ordered snapshot of dependency names read from a manifest."""
    names: Tuple[str, ...] = ()

    @classmethod
    def from_names(cls, names: Iterable[str]) -> 'DependencySet':
        """Create a set keeping the first occurrence of every name."""
        seen = []
        for name in names:
            if name not in seen:
                seen.append(name)
        return cls(tuple(seen))

    def fingerprint(self) -> str:
        """Canonical serialization used for order-insensitive comparison."""
        return json.dumps(sorted(self.names))

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)


@dataclass(frozen=True)
class ImportedSymbol:
    """A named binding imported from a known dependency."""
    name: str  # local binding, the name used in tags
    module: str  # module specifier as written (e.g. 'react-icons/fa')
    range: SourceRange
    imported_name: Optional[str] = None  # exported name when aliased with 'as'


@dataclass(frozen=True)
class UsageMatch:
    """A tag-shaped usage of a candidate name after a return site."""
    name: str
    opening: SourceRange
    closing: Optional[SourceRange] = None
    self_closing: bool = False

    def ranges(self) -> List[SourceRange]:
        """Opening range followed by the closing range when present."""
        if self.closing is None:
            return [self.opening]
        return [self.opening, self.closing]


@dataclass
class HighlightResult:
    """Everything one scan of one text snapshot produced."""
    symbols: List[ImportedSymbol] = field(default_factory=list)
    matches: List[UsageMatch] = field(default_factory=list)
    matched_names: FrozenSet[str] = frozenset()
    ranges: List[SourceRange] = field(default_factory=list)

    @property
    def unused_symbols(self) -> List[ImportedSymbol]:
        """Imported symbols never rendered as a tag."""
        return [s for s in self.symbols if s.name not in self.matched_names]
