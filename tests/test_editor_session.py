"""Tests for the editor session event handlers and the re-check command."""

import json
import threading
import pytest
from liblinker.analyzer.dependency_registry import DependencyRegistry
from liblinker.analyzer.models import SourceRange
from liblinker.editor.host import RecordingSink, TextDocument
from liblinker.editor.session import EditorSession


APP = TextDocument("App.jsx", (
    'import { FaBeer, FaCar } from "react-icons";\n'
    "function App() {\n"
    "  return <FaBeer />;\n"
    "}\n"
))

BUTTONS = TextDocument("Buttons.jsx", (
    'import { Button } from "@mui/material";\n'
    "export function Save() {\n"
    "  return <Button>Save</Button>;\n"
    "}\n"
))


class FakeWatcher:
    def __init__(self, manifest_path, on_change):
        self.on_change = on_change
        self.stopped = False

    def start(self):
        pass

    def stop(self):
        self.stopped = True


def write_manifest(root, names):
    (root / "package.json").write_text(
        json.dumps({"dependencies": {name: "*" for name in names}}), encoding="utf-8",
    )


@pytest.fixture
def watchers():
    return []


@pytest.fixture
def registry(tmp_path, watchers):
    write_manifest(tmp_path, ["react", "react-icons"])

    def factory(path, on_change):
        watcher = FakeWatcher(path, on_change)
        watchers.append(watcher)
        return watcher

    return DependencyRegistry(tmp_path, watcher_factory=factory)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def session(registry, sink):
    return EditorSession(registry, sink)


def scans_of(sink, name):
    return sink.history.count(("clear", name))


class TestActiveDocument:
    """Focus changes and activation."""

    def test_activate_scans_active_document(self, session, sink):
        session.activate(APP)

        assert sink.decorations["App.jsx"] == [
            SourceRange.on_line(0, 9, 15),
            SourceRange.on_line(2, 10, 16),
        ]

    def test_no_active_document_is_a_noop(self, session, sink):
        assert session.on_active_document_changed(None) is None
        assert sink.history == []

    def test_focus_change_rescans(self, session, sink):
        session.on_active_document_changed(APP)
        session.on_active_document_changed(APP)
        assert scans_of(sink, "App.jsx") == 2

    def test_document_without_highlights_is_cleared_but_not_painted(self, session, sink):
        session.on_active_document_changed(BUTTONS)

        assert sink.history == [("clear", "Buttons.jsx")]
        assert "Buttons.jsx" not in sink.decorations


class TestVisibleDocuments:
    """Visibility notifications go through the tracker."""

    def test_only_newly_visible_document_is_scanned(self, session, sink):
        session.on_visible_documents_changed([APP])
        session.on_visible_documents_changed([APP, BUTTONS])

        assert scans_of(sink, "App.jsx") == 1
        assert scans_of(sink, "Buttons.jsx") == 1

    def test_hidden_document_loses_state_and_decorations(self, session, sink):
        session.on_visible_documents_changed([APP, BUTTONS])
        session.on_visible_documents_changed([BUTTONS])

        assert "App.jsx" not in session.states
        assert "App.jsx" not in sink.decorations
        assert scans_of(sink, "Buttons.jsx") == 1


class TestCommand:
    """check_imports bypasses the tracker."""

    def test_command_rescans_tracked_document(self, session, sink):
        session.on_visible_documents_changed([APP])
        result = session.check_imports(APP)

        assert scans_of(sink, "App.jsx") == 2
        assert len(result.ranges) == 2

    def test_command_marks_document_tracked(self, session, sink):
        session.check_imports(APP)
        session.on_visible_documents_changed([APP])

        assert scans_of(sink, "App.jsx") == 1

    def test_command_without_document(self, session):
        assert session.check_imports(None) is None


class TestManifestChanges:
    """A new dependency list rescans stale documents only."""

    def test_new_dependency_rescans_visible_documents(self, tmp_path, session, sink, watchers):
        session.activate()
        session.on_visible_documents_changed([APP, BUTTONS])
        assert "Buttons.jsx" not in sink.decorations

        write_manifest(tmp_path, ["react", "react-icons", "@mui/material"])
        watchers[0].on_change()
        session.process_pending()

        assert len(sink.decorations["Buttons.jsx"]) == 3
        assert scans_of(sink, "App.jsx") == 2

    def test_unchanged_dependency_names_do_not_rescan(self, tmp_path, session, sink, watchers):
        session.activate()
        session.on_visible_documents_changed([APP])

        (tmp_path / "package.json").write_text(
            json.dumps({"version": "2.0.0", "dependencies": {"react": "19", "react-icons": "5"}}),
            encoding="utf-8",
        )
        watchers[0].on_change()
        session.process_pending()

        assert scans_of(sink, "App.jsx") == 1

    def test_removed_dependency_clears_highlights(self, tmp_path, session, sink, watchers):
        session.activate(APP)

        write_manifest(tmp_path, ["react"])
        watchers[0].on_change()
        session.process_pending()

        assert "App.jsx" not in sink.decorations
        assert session.states["App.jsx"].ranges == []

    def test_up_to_date_documents_are_skipped(self, registry, session):
        session.on_visible_documents_changed([APP])
        assert session.on_manifest_changed(registry.get_dependency_names()) == []

    def test_change_waits_for_process_pending(self, tmp_path, session, sink, watchers):
        session.activate(APP)

        write_manifest(tmp_path, ["react"])
        watchers[0].on_change()
        assert scans_of(sink, "App.jsx") == 1

        assert session.process_pending() == ["App.jsx"]
        assert scans_of(sink, "App.jsx") == 2
        assert session.process_pending() is None

    def test_queued_changes_collapse_to_newest(self, tmp_path, session, sink, watchers):
        session.activate()
        session.on_visible_documents_changed([BUTTONS])

        write_manifest(tmp_path, ["react"])
        watchers[0].on_change()
        write_manifest(tmp_path, ["@mui/material"])
        watchers[0].on_change()
        session.process_pending()

        assert scans_of(sink, "Buttons.jsx") == 2
        assert len(sink.decorations["Buttons.jsx"]) == 3


class ThreadRecordingSink(RecordingSink):
    """Remembers which thread every decoration call ran on."""

    def __init__(self):
        super().__init__()
        self.threads = []

    def clear(self, document_name):
        self.threads.append(threading.current_thread().name)
        super().clear(document_name)


class TestRealWatcher:
    """Manifest edits seen by watchdog are applied on the calling thread."""

    def test_rescan_runs_on_host_thread(self, tmp_path):
        write_manifest(tmp_path, ["react", "react-icons"])
        registry = DependencyRegistry(tmp_path)
        sink = ThreadRecordingSink()
        session = EditorSession(registry, sink)
        try:
            session.on_visible_documents_changed([APP])
            session.activate(APP)
            assert registry.is_watching

            write_manifest(tmp_path, ["react"])
            rescanned = session.process_pending(timeout=5.0)
        finally:
            session.deactivate()

        assert rescanned == ["App.jsx"]
        assert set(sink.threads) == {threading.current_thread().name}


class TestLifecycle:
    """Activation and deactivation."""

    def test_deactivate_stops_watch_and_clears(self, session, sink, watchers):
        session.activate(APP)
        session.on_visible_documents_changed([APP])
        session.deactivate()

        assert watchers[0].stopped
        assert session.states == {}
        assert session.tracker.tracked == frozenset()
        assert sink.decorations == {}

    def test_activate_twice_subscribes_once(self, tmp_path, registry, session, sink, watchers):
        session.activate()
        session.activate()
        session.on_visible_documents_changed([BUTTONS])

        write_manifest(tmp_path, ["@mui/material"])
        watchers[0].on_change()
        session.process_pending()

        assert scans_of(sink, "Buttons.jsx") == 2
        assert len(registry._listeners) == 1


class TestFocusOnlyDocuments:
    """Documents seen only through focus changes do not linger."""

    def test_untracked_previous_document_is_dropped(self, session, sink):
        session.on_active_document_changed(APP)
        session.on_active_document_changed(BUTTONS)

        assert "App.jsx" not in session.states
        assert "App.jsx" not in sink.decorations

    def test_visible_previous_document_is_kept(self, session, sink):
        session.on_visible_documents_changed([APP, BUTTONS])
        session.on_active_document_changed(APP)
        session.on_active_document_changed(BUTTONS)

        assert "App.jsx" in session.states
        assert len(sink.decorations["App.jsx"]) == 2

    def test_losing_focus_entirely_drops_untracked_document(self, session):
        session.on_active_document_changed(APP)
        session.on_active_document_changed(None)
        assert session.states == {}

    def test_dropped_document_is_not_rescanned_on_manifest_change(self, tmp_path, session, sink, watchers):
        session.activate(APP)
        session.on_active_document_changed(BUTTONS)

        write_manifest(tmp_path, ["react"])
        watchers[0].on_change()

        assert session.process_pending() == ["Buttons.jsx"]
