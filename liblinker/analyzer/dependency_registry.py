"""Dependency name registry backed by the project manifest (package.json).

The registry reads the manifest lazily, caches the declared dependency
names and keeps one file watch on the manifest for its whole lifetime.
A change notification only replaces the cache when the *set* of names
differs, so version bumps or script edits do not trigger rescans.
"""
import json
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence
from .manifest_watcher import ManifestWatcher
from .models import DependencySet
from ..utils.logger import log_debug, log_error, log_warning

ChangeListener = Callable[[DependencySet], None]
WatcherFactory = Callable[[Path, Callable[[], None]], ManifestWatcher]

_COMPONENT = "DependencyRegistry"


class ManifestError(Exception):
    """Raised internally when the manifest cannot be used."""


class DependencyRegistry:
    """Caches dependency names and notifies listeners when they change."""

    def __init__(self, project_root: str | Path = ".",
                 manifest_name: str = "package.json",
                 dependency_fields: Sequence[str] = ("dependencies",),
                 watcher_factory: Optional[WatcherFactory] = None,
                 watch: bool = True):
        """Initialize the registry. Nothing is read until first use.

        Args:
            project_root: Directory holding the manifest
            manifest_name: Manifest file name
            dependency_fields: Manifest sections whose keys are collected
            watcher_factory: Builds the file watch (defaults to ManifestWatcher)
            watch: False for one-shot use; no file watch is ever installed
        """
        self.project_root = Path(project_root)
        self.manifest_path = self.project_root / manifest_name
        self.dependency_fields = tuple(dependency_fields)
        self._watcher_factory = watcher_factory or ManifestWatcher
        self.watch = watch

        self._cache: Optional[DependencySet] = None
        self._watcher: Optional[ManifestWatcher] = None
        self._watch_installed = False
        self._closed = False
        self._listeners: List[ChangeListener] = []
        self._lock = threading.Lock()

    @property
    def is_watching(self) -> bool:
        return self._watcher is not None

    def get_dependency_names(self) -> DependencySet:
        """Return the cached dependency names, reading the manifest on first use.

        Never raises: a missing or malformed manifest yields the last known
        names, or an empty set when nothing was ever read.

        Returns:
            DependencySet snapshot
        """
        with self._lock:
            cached = self._cache

        if cached is None:
            try:
                loaded = self._read_manifest()
            except ManifestError as e:
                log_warning(_COMPONENT, str(e))
            else:
                with self._lock:
                    if self._cache is None:
                        self._cache = loaded
                    cached = self._cache

        self._ensure_watch()
        return cached if cached is not None else DependencySet()

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Subscribe to dependency changes.

        Args:
            listener: Called with the new DependencySet after a replacement

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reload(self) -> bool:
        """Re-read the manifest and replace the cache if the names changed.

        Returns:
            True if the cache was replaced and listeners were notified
        """
        try:
            fresh = self._read_manifest()
        except ManifestError as e:
            log_warning(_COMPONENT, f"{e}; keeping previous dependency list")
            return False

        with self._lock:
            previous = self._cache
            if previous is not None and previous.fingerprint() == fresh.fingerprint():
                log_debug(_COMPONENT, "Manifest changed but dependency names did not")
                return False
            self._cache = fresh

        log_debug(_COMPONENT, f"Dependency list replaced ({len(fresh)} names)")
        for listener in list(self._listeners):
            # Runs on the watcher thread; one failing listener must not stop the watch
            try:
                listener(fresh)
            except Exception as e:
                log_error(_COMPONENT, f"Dependency listener failed: {e}")
        return True

    def close(self) -> None:
        """Stop the file watch. The registry keeps serving cached names."""
        self._closed = True
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    def _on_manifest_event(self) -> None:
        self.reload()

    def _ensure_watch(self) -> None:
        """Install the single file watch, once per registry lifetime."""
        if self._watch_installed or self._closed or not self.watch:
            return
        self._watch_installed = True

        watcher = self._watcher_factory(self.manifest_path, self._on_manifest_event)
        try:
            watcher.start()
        except OSError as e:
            log_warning(_COMPONENT, f"Cannot watch {self.manifest_path}: {e}")
            return
        self._watcher = watcher

    def _read_manifest(self) -> DependencySet:
        """Parse the manifest and collect the configured sections' keys.

        Raises:
            ManifestError: If the file is missing, unreadable or malformed
        """
        if not self.manifest_path.is_file():
            raise ManifestError(f"Manifest not found: {self.manifest_path}")

        try:
            with open(self.manifest_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(f"Cannot read {self.manifest_path.name}: {e}") from e
        except json.JSONDecodeError as e:
            raise ManifestError(f"{self.manifest_path.name} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(
                f"{self.manifest_path.name} is malformed "
                f"(expected object, got {type(data).__name__})"
            )

        names = []
        for field in self.dependency_fields:
            section = data.get(field)
            if section is None:
                continue
            if not isinstance(section, dict):
                raise ManifestError(
                    f"'{field}' in {self.manifest_path.name} is malformed "
                    f"(expected object, got {type(section).__name__})"
                )
            names.extend(section.keys())

        return DependencySet.from_names(names)
