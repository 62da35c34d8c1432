"""Incremental tracking of which visible documents were already scanned."""
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, Set
from .host import Document
from ..utils.logger import log_debug, log_error

_COMPONENT = "VisibilityTracker"


@dataclass(frozen=True)
class VisibilityDiff:
    """Outcome of one visibility notification."""
    added: FrozenSet[str] = frozenset()
    removed: FrozenSet[str] = frozenset()
    unchanged: FrozenSet[str] = frozenset()
    failed: FrozenSet[str] = frozenset()


class VisibilityTracker:
    """Scans newly shown documents once and forgets hidden ones.

    Switching between documents that are already tracked costs nothing: only
    names absent from the tracked set trigger the scan callback.
    """

    def __init__(self, scan: Callable[[Document], None],
                 on_removed: Callable[[str], None] = None):
        """
        :param scan: Called for every newly visible document.
        :param on_removed: Called with the name of every document dropped.
        """
        self._scan = scan
        self._on_removed = on_removed
        self._tracked: Set[str] = set()

    @property
    def tracked(self) -> FrozenSet[str]:
        return frozenset(self._tracked)

    def is_tracked(self, name: str) -> bool:
        return name in self._tracked

    def mark_tracked(self, name: str) -> None:
        self._tracked.add(name)

    def forget(self, name: str) -> None:
        self._tracked.discard(name)

    def reset(self) -> None:
        self._tracked.clear()

    def update(self, visible: Iterable[Document]) -> VisibilityDiff:
        """Apply a visibility notification carrying every visible document.

        A document is added to the tracked set only after its scan returned;
        a scan that raises is logged and retried on the next notification.

        Args:
            visible: All documents currently shown, in any order

        Returns:
            VisibilityDiff describing what happened
        """
        by_name = {}
        for document in visible:
            by_name.setdefault(document.name, document)
        names = set(by_name)

        removed = self._tracked - names
        for name in removed:
            self._tracked.discard(name)
            if self._on_removed is not None:
                self._on_removed(name)

        unchanged = self._tracked & names
        added = set()
        failed = set()
        for name in sorted(names - self._tracked):
            try:
                self._scan(by_name[name])
            except Exception as e:
                log_error(_COMPONENT, f"Scan of {name} failed: {e}")
                failed.add(name)
                continue
            self._tracked.add(name)
            added.add(name)

        log_debug(_COMPONENT, f"+{len(added)} -{len(removed)} ={len(unchanged)}")
        return VisibilityDiff(
            added=frozenset(added),
            removed=frozenset(removed),
            unchanged=frozenset(unchanged),
            failed=frozenset(failed),
        )
