"""Intersection of imported symbols with their tag usages, and the scan pipeline."""
from typing import AbstractSet, Iterable, List
from .import_scanner import ImportScanner
from .models import DependencySet, HighlightResult, ImportedSymbol, SourceRange, UsageMatch
from .usage_scanner import UsageScanner


def cross_reference(symbols: Iterable[ImportedSymbol], matched_names: AbstractSet[str],
                    matches: Iterable[UsageMatch] = ()) -> List[SourceRange]:
    """Build the final highlight ranges.

    Import ranges are kept, in statement order, only for symbols that were
    rendered as a tag; every usage range (opening, then closing) follows.
    Invalid or empty ranges are dropped.

    Args:
        symbols: Imported symbols from ImportScanner
        matched_names: Names UsageScanner matched at least once
        matches: Usage matches from UsageScanner

    Returns:
        List of ranges to decorate
    """
    ranges = [s.range for s in symbols if s.name in matched_names]
    for match in matches:
        if match.name in matched_names:
            ranges.extend(match.ranges())
    return [r for r in ranges if r.is_valid]


def highlight(text: str, dependency_names: DependencySet | Iterable[str],
              match_subpaths: bool = False) -> HighlightResult:
    """Run the import scan, the usage scan and the cross reference on one snapshot.

    Args:
        text: Document text
        dependency_names: Known dependency names, read at scan time
        match_subpaths: Forwarded to ImportScanner

    Returns:
        HighlightResult for this text and dependency snapshot
    """
    symbols, _lines = ImportScanner(match_subpaths=match_subpaths).scan(text, dependency_names)
    if not symbols:
        return HighlightResult()

    matches, matched_names = UsageScanner(text).scan(s.name for s in symbols)
    return HighlightResult(
        symbols=symbols,
        matches=matches,
        matched_names=matched_names,
        ranges=cross_reference(symbols, matched_names, matches),
    )
