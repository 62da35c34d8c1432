"""File watch on the project manifest, backed by watchdog."""
import os
from pathlib import Path
from typing import Callable, Optional
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer


class ManifestEventHandler(FileSystemEventHandler):
    """Forwards events touching exactly one file to a callback.

    The parent directory is what gets watched, so the manifest may be
    created, replaced (atomic rename by editors) or deleted and the
    callback still fires.
    """

    def __init__(self, manifest_path: Path, on_change: Callable[[], None]):
        super().__init__()
        self.manifest_path = Path(manifest_path)
        self.on_change = on_change

    def _is_manifest(self, path) -> bool:
        if not path:
            return False
        return os.path.normcase(os.path.abspath(os.fsdecode(path))) == \
            os.path.normcase(os.path.abspath(str(self.manifest_path)))

    def _dispatch_if_manifest(self, event) -> None:
        if event.is_directory:
            return
        if self._is_manifest(event.src_path) or self._is_manifest(getattr(event, 'dest_path', None)):
            self.on_change()

    def on_modified(self, event) -> None:
        self._dispatch_if_manifest(event)

    def on_created(self, event) -> None:
        self._dispatch_if_manifest(event)

    def on_deleted(self, event) -> None:
        self._dispatch_if_manifest(event)

    def on_moved(self, event) -> None:
        self._dispatch_if_manifest(event)


class ManifestWatcher:
    """Owns one watchdog Observer scheduled on the manifest's directory."""

    def __init__(self, manifest_path: Path, on_change: Callable[[], None]):
        self.manifest_path = Path(manifest_path)
        self.handler = ManifestEventHandler(self.manifest_path, on_change)
        self._observer: Optional[Observer] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Start watching.

        Raises:
            OSError: If the manifest's directory cannot be watched
        """
        if self._observer is not None:
            return
        observer = Observer()
        observer.daemon = True
        observer.schedule(self.handler, str(self.manifest_path.parent), recursive=False)
        observer.start()
        self._observer = observer

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=2.0)
        self._observer = None
