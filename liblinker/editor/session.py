"""Editor session: wires host events to the highlight pipeline.

Every handler runs to completion synchronously on the host's thread. The
registry is read at the moment a scan runs, so a scan never uses an older
dependency list than the one current when it starts.

Manifest notifications arrive on the file watcher's thread. The session
only queues them; the host drains the queue with process_pending() from
the same thread that delivers its other events.
"""
import queue
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
from .host import DecorationSink, Document
from .visibility import VisibilityDiff, VisibilityTracker
from ..analyzer.cross_reference import highlight
from ..analyzer.dependency_registry import DependencyRegistry
from ..analyzer.models import DependencySet, HighlightResult, SourceRange
from ..utils.logger import log_debug

_COMPONENT = "EditorSession"


@dataclass
class DocumentScanState:
    """Last scan of one document and the dependency list it used."""
    document: Document
    fingerprint: str
    result: HighlightResult = field(default_factory=HighlightResult)

    @property
    def ranges(self) -> List[SourceRange]:
        return self.result.ranges


class EditorSession:
    """Host-neutral counterpart of an editor extension's activation scope."""

    def __init__(self, registry: DependencyRegistry, sink: DecorationSink,
                 match_subpaths: bool = False):
        """Create a session.

        Args:
            registry: Source of dependency names (injected, owns the file watch)
            sink: Host decoration surface
            match_subpaths: Treat 'pkg/sub' imports as imports from 'pkg'
        """
        self.registry = registry
        self.sink = sink
        self.match_subpaths = match_subpaths
        self.states: Dict[str, DocumentScanState] = {}
        self.tracker = VisibilityTracker(self._scan, on_removed=self._drop)
        self.active_name: Optional[str] = None
        self._pending: "queue.Queue[DependencySet]" = queue.Queue()
        self._unsubscribe = None

    def activate(self, active_document: Optional[Document] = None) -> None:
        """Queue registry changes for process_pending() and scan the active document."""
        if self._unsubscribe is None:
            self._unsubscribe = self.registry.add_listener(self._pending.put)
        self.on_active_document_changed(active_document)

    def deactivate(self) -> None:
        """Unsubscribe, stop the manifest watch and forget every document."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.registry.close()
        self._pending = queue.Queue()
        for name in list(self.states):
            self._drop(name)
        self.tracker.reset()
        self.active_name = None

    def process_pending(self, timeout: Optional[float] = None) -> Optional[List[str]]:
        """Apply queued manifest changes on the calling thread.

        Only the newest queued dependency list is applied; older ones are
        superseded by it.

        Args:
            timeout: Seconds to wait for a change (None returns at once)

        Returns:
            Names of rescanned documents, or None when nothing was queued
        """
        try:
            names = self._pending.get(block=timeout is not None, timeout=timeout)
        except queue.Empty:
            return None
        while True:
            try:
                names = self._pending.get_nowait()
            except queue.Empty:
                break
        return self.on_manifest_changed(names)

    def on_active_document_changed(self, document: Optional[Document]) -> Optional[HighlightResult]:
        """Scan the newly focused document; no document is a no-op.

        The previously focused document is forgotten unless it is visible.
        """
        previous = self.active_name
        self.active_name = document.name if document is not None else None
        if previous is not None and previous != self.active_name and not self.tracker.is_tracked(previous):
            self._drop(previous)

        if document is None:
            return None
        return self._scan(document)

    def on_visible_documents_changed(self, documents: Iterable[Document]) -> VisibilityDiff:
        """Scan newly visible documents and drop hidden ones."""
        return self.tracker.update(documents)

    def on_manifest_changed(self, dependency_names: DependencySet) -> List[str]:
        """Rescan the active and tracked documents computed against other dependencies.

        Must run on the host's event thread; process_pending() calls it.

        Returns:
            Names of the documents that were rescanned
        """
        fingerprint = dependency_names.fingerprint()
        stale = [
            name for name, state in self.states.items()
            if (name == self.active_name or self.tracker.is_tracked(name))
            and state.fingerprint != fingerprint
        ]
        for name in stale:
            self._scan(self.states[name].document)
        return stale

    def check_imports(self, document: Optional[Document]) -> Optional[HighlightResult]:
        """Command: recompute highlights now, whether or not already tracked."""
        if document is None:
            return None
        result = self._scan(document)
        self.tracker.mark_tracked(document.name)
        return result

    def _scan(self, document: Document) -> HighlightResult:
        dependency_names = self.registry.get_dependency_names()
        result = highlight(document.text, dependency_names, match_subpaths=self.match_subpaths)
        self.states[document.name] = DocumentScanState(
            document=document,
            fingerprint=dependency_names.fingerprint(),
            result=result,
        )

        self.sink.clear(document.name)
        if result.ranges:
            self.sink.apply(document.name, result.ranges)

        log_debug(_COMPONENT, f"{document.name}: {len(result.ranges)} ranges")
        return result

    def _drop(self, name: str) -> None:
        if self.states.pop(name, None) is not None:
            self.sink.clear(name)
