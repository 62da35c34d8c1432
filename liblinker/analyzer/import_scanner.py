"""Line-based scan of ES named imports coming from known dependencies.

Only single-line statements of the form

    import { A, B as C } from "dependency";

are recognised. Default and namespace imports are not extracted.
"""
import re
from typing import Iterable, List, Optional, Tuple
from .models import ImportedSymbol, SourceRange

_IMPORT_PREFIX = re.compile(r'import(?=[\s{*])')
_FROM_CLAUSE = re.compile(r'\bfrom\s*(?=[\'"`])')
_SPECIFIER_STRIP = re.compile(r'[\'"`;]')
_ALIAS = re.compile(r'^(?P<imported>[\w$]+)\s+as\s+(?P<local>[\w$]+)$')


def package_root(specifier: str) -> str:
    """Reduce a module specifier to its package name.

    'react-icons/fa' -> 'react-icons', '@mui/material/Button' -> '@mui/material'
    """
    parts = specifier.split('/')
    if specifier.startswith('@') and len(parts) >= 2:
        return '/'.join(parts[:2])
    return parts[0]


def _find_identifier(line: str, name: str, start: int) -> int:
    """Column of the first whole-identifier occurrence of name at or after start."""
    pattern = re.compile(r'(?<![\w$])' + re.escape(name) + r'(?![\w$])')
    match = pattern.search(line, start)
    return match.start() if match else -1


class ImportScanner:
    """Extracts named imports whose source module is a known dependency."""

    def __init__(self, match_subpaths: bool = False):
        """
        :param match_subpaths: Treat 'pkg/sub' specifiers as imports from 'pkg'.
        """
        self.match_subpaths = match_subpaths

    def is_known(self, specifier: str, dependency_names) -> bool:
        if specifier in dependency_names:
            return True
        return self.match_subpaths and package_root(specifier) in dependency_names

    def scan(self, text: str, dependency_names: Iterable[str]) -> Tuple[List[ImportedSymbol], List[str]]:
        """Scan text for named imports from the given dependencies.

        Args:
            text: Full document text
            dependency_names: Known dependency names

        Returns:
            Tuple of (symbols in statement order, the document's lines)
        """
        known = frozenset(dependency_names)
        lines = text.split('\n')
        symbols: List[ImportedSymbol] = []

        for line_index, line in enumerate(lines):
            if not _IMPORT_PREFIX.match(line.strip()):
                continue
            symbols.extend(self._scan_line(line, line_index, known))

        return symbols, lines

    def _scan_line(self, line: str, line_index: int, known: frozenset) -> List[ImportedSymbol]:
        specifier = self._module_specifier(line)
        if specifier is None or not self.is_known(specifier, known):
            return []

        open_brace = line.find('{')
        close_brace = line.find('}', open_brace + 1)
        if open_brace == -1 or close_brace == -1:
            return []

        symbols = []
        cursor = open_brace + 1
        for item in line[open_brace + 1:close_brace].split(','):
            name, imported_name = self._binding(item.strip())
            if not name:
                continue

            column = _find_identifier(line, name, cursor)
            if column == -1 or column >= close_brace:
                continue
            cursor = column + len(name)

            symbols.append(ImportedSymbol(
                name=name,
                module=specifier,
                range=SourceRange.on_line(line_index, column, column + len(name)),
                imported_name=imported_name,
            ))

        return symbols

    @staticmethod
    def _module_specifier(line: str) -> Optional[str]:
        """Text of the quoted specifier after 'from', without quotes or ';'."""
        match = _FROM_CLAUSE.search(line)
        if not match:
            return None
        rest = line[match.end():]
        closing_quote = rest.find(rest[0], 1)
        if closing_quote != -1:
            rest = rest[:closing_quote + 1]
        specifier = _SPECIFIER_STRIP.sub('', rest).strip()
        return specifier or None

    @staticmethod
    def _binding(item: str) -> Tuple[Optional[str], Optional[str]]:
        """Split one named-import item into (local name, exported name)."""
        if item.startswith('type '):
            item = item[len('type '):].strip()
        if not item:
            return None, None

        alias = _ALIAS.match(item)
        if alias:
            return alias.group('local'), alias.group('imported')
        return item, None


def scan_imports(text: str, dependency_names: Iterable[str],
                 match_subpaths: bool = False) -> Tuple[List[ImportedSymbol], List[str]]:
    """Module-level shortcut for ImportScanner(...).scan(...)."""
    return ImportScanner(match_subpaths=match_subpaths).scan(text, dependency_names)
