"""Tag-shaped usage scan of candidate names in returned markup.

For every ``return`` keyword in a file the text that follows is searched
for ``<Name ...>``, ``<Name ... />`` and the matching ``</Name>``. This is
a substring scan, not a JSX parser: strings, comments and generics are not
told apart from markup.
"""
import re
from bisect import bisect_right
from typing import FrozenSet, Iterable, List, Optional, Tuple
from .models import Position, SourceRange, UsageMatch

_RETURN_KEYWORD = re.compile(r'(?<![\w$.])return(?![\w$])')


def _is_identifier_char(char: str) -> bool:
    return char.isalnum() or char in '_$'


class UsageScanner:
    """Finds opening, closing and self-closing tag usages of candidate names."""

    def __init__(self, text: str):
        self.text = text
        self._line_starts = [0] + [m.end() for m in re.finditer('\n', text)]

    def return_sites(self) -> List[int]:
        """Offsets immediately after every 'return' keyword."""
        return [m.end() for m in _RETURN_KEYWORD.finditer(self.text)]

    def position(self, offset: int) -> Position:
        """Translate a text offset into a zero-based (line, column) position."""
        line = bisect_right(self._line_starts, offset) - 1
        return Position(line, offset - self._line_starts[line])

    def span(self, start: int, end: int) -> SourceRange:
        return SourceRange(self.position(start), self.position(end))

    def scan(self, candidate_names: Iterable[str]) -> Tuple[List[UsageMatch], FrozenSet[str]]:
        """Scan every return site for every candidate.

        Opening tags are looked up between a return site and the next one,
        so each tag is reported once; closing tags may lie anywhere after.

        Args:
            candidate_names: Names to look for (normally the imported symbols)

        Returns:
            Tuple of (usage matches, names matched at least once)
        """
        sites = self.return_sites()
        bounds = list(zip(sites, sites[1:] + [len(self.text)]))

        matches: List[UsageMatch] = []
        matched = set()
        for name in dict.fromkeys(candidate_names):
            if not name:
                continue
            for site, site_end in bounds:
                found = self._scan_site(name, site, site_end)
                if found:
                    matches.extend(found)
                    matched.add(name)

        return matches, frozenset(matched)

    def _scan_site(self, name: str, cursor: int, limit: int) -> List[UsageMatch]:
        matches = []
        while True:
            start = self._find_opening(name, cursor, limit)
            if start == -1:
                break

            name_start = start + 1
            name_end = name_start + len(name)
            tag_end = self._find_tag_end(name_end)
            if tag_end == -1:
                # Unterminated tag: nothing more to find at this return site
                break

            self_closing = self.text[tag_end - 1] == '/'
            closing = None
            if not self_closing:
                close_start = self._find_closing(name, tag_end + 1)
                if close_start != -1:
                    closing = self.span(close_start + 2, close_start + 2 + len(name))

            matches.append(UsageMatch(
                name=name,
                opening=self.span(name_start, name_end),
                closing=closing,
                self_closing=self_closing,
            ))
            cursor = tag_end + 1

        return matches

    def _find_opening(self, name: str, start: int, limit: Optional[int] = None) -> int:
        """Offset of the next '<Name' token that is not a longer identifier."""
        token = '<' + name
        limit = len(self.text) if limit is None else limit
        while True:
            index = self.text.find(token, start, limit)
            if index == -1:
                return -1
            after = index + len(token)
            if after >= len(self.text) or not _is_identifier_char(self.text[after]):
                return index
            start = index + 1

    def _find_tag_end(self, start: int) -> int:
        """Offset of the '>' closing a tag, skipping arrow functions ('=>')."""
        index = self.text.find('>', start)
        while index > 0 and self.text[index - 1] == '=':
            index = self.text.find('>', index + 1)
        return index

    def _find_closing(self, name: str, start: int) -> int:
        """Offset of the '</Name>' balancing an opening tag that ends before start.

        Same-named tags opened in between must be closed first; returns -1
        when the opening tag is never balanced.
        """
        token = '</' + name + '>'
        depth = 1
        cursor = start
        while True:
            close = self.text.find(token, cursor)
            if close == -1:
                return -1

            nested = self._find_opening(name, cursor, close)
            if nested == -1:
                depth -= 1
                if depth == 0:
                    return close
                cursor = close + len(token)
                continue

            nested_end = self._find_tag_end(nested + 1 + len(name))
            if nested_end == -1 or nested_end > close:
                cursor = nested + 1 + len(name)
                continue
            if self.text[nested_end - 1] != '/':
                depth += 1
            cursor = nested_end + 1


def scan_usages(text: str, candidate_names: Iterable[str]) -> Tuple[List[UsageMatch], FrozenSet[str]]:
    """Module-level shortcut for UsageScanner(text).scan(candidate_names)."""
    return UsageScanner(text).scan(candidate_names)
