"""Unit tests for zettel.app.Zettelkasten."""

import json
from pathlib import Path

import pytest

from zettel.app import Zettelkasten
from zettel.config import Settings
from zettel.note import Draft, Note
from zettel.storage import DirectoryBackend, KeyValueBackend


@pytest.fixture()
def zk():
    app = Zettelkasten(Settings(store_path=":memory:")).initialize()
    yield app
    app.close()


@pytest.fixture()
def notes_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "notes"
    directory.mkdir()
    (directory / "cats.md").write_text("# Cats\n\nI like #cats.", encoding="utf-8")
    (directory / "dogs.md").write_text("# Dogs\n\nSee [[Cats]].", encoding="utf-8")
    return directory


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


class TestInitialize:
    def test_starts_on_key_value_backend(self, zk: Zettelkasten):
        assert isinstance(zk.backend, KeyValueBackend)
        assert zk.directory is None
        assert zk.notes == []

    def test_reloads_key_value_store_between_sessions(self, tmp_path: Path):
        settings = Settings(store_path=str(tmp_path / "store.duckdb"))
        with Zettelkasten(settings).initialize() as first:
            first.new_note("Persisted", "#kept")
        with Zettelkasten(settings).initialize() as second:
            assert [n.title for n in second.notes] == ["Persisted"]
            assert second.notes[0].tags == ["kept"]

    def test_configured_directory_is_granted(self, notes_dir: Path):
        with Zettelkasten(Settings(notes_dir=notes_dir, store_path=":memory:")).initialize() as app:
            assert app.directory == notes_dir
            assert isinstance(app.backend, DirectoryBackend)
            assert sorted(n.title for n in app.notes) == ["Cats", "Dogs"]


# ---------------------------------------------------------------------------
# Directory grant
# ---------------------------------------------------------------------------


class TestSelectDirectory:
    def test_no_picker_is_unsupported(self, zk: Zettelkasten):
        zk.new_note("Local", "")
        assert zk.select_directory() is None
        assert zk.status_message == "Directory access is not supported on this platform."
        assert isinstance(zk.backend, KeyValueBackend)
        assert [n.title for n in zk.notes] == ["Local"]

    def test_cancelled_picker_changes_nothing(self):
        with Zettelkasten(Settings(store_path=":memory:"), picker=lambda: None).initialize() as app:
            app.new_note("Local", "")
            assert app.select_directory() is None
            assert app.status_message == "Directory selection was canceled or failed."
            assert app.directory is None
            assert [n.title for n in app.notes] == ["Local"]

    def test_missing_path_fails(self, zk: Zettelkasten, tmp_path: Path):
        assert zk.select_directory(tmp_path / "nope") is None
        assert zk.status_message == "Directory selection was canceled or failed."

    def test_picker_grant_replaces_notes(self, notes_dir: Path):
        with Zettelkasten(Settings(store_path=":memory:"), picker=lambda: notes_dir).initialize() as app:
            app.new_note("Local only", "")
            assert app.select_directory() == notes_dir
            assert sorted(n.id for n in app.notes) == ["cats", "dogs"]
            assert app.status_message == "Loaded 2 notes."
            assert isinstance(app.repository.backend, DirectoryBackend)

    def test_unreadable_files_mentioned(self, zk: Zettelkasten, notes_dir: Path):
        (notes_dir / "broken.md").write_bytes(b"\xff\xfe")
        zk.select_directory(notes_dir)
        assert zk.status_message == "Loaded 2 notes. 1 files could not be read."

    def test_writes_go_to_files_after_grant(self, zk: Zettelkasten, notes_dir: Path):
        zk.select_directory(notes_dir)
        note = zk.new_note("Birds", "Tweet")
        assert (notes_dir / f"{note.id}.md").read_text(encoding="utf-8") == "# Birds\n\nTweet"
        assert zk.fallback.load() == []


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class TestNotes:
    def test_default_title(self, zk: Zettelkasten):
        zk.new_note("First", "")
        assert zk.new_note().title == "Note 2"

    def test_edit_selects_note(self, zk: Zettelkasten):
        note = zk.new_note("A", "")
        edited = zk.edit_note(note.id, "A", "#x")
        assert zk.repository.selected_note == edited
        assert edited.tags == ["x"]

    def test_edit_unknown(self, zk: Zettelkasten):
        assert zk.edit_note("missing", "A", "") is None

    def test_view_and_delete(self, zk: Zettelkasten):
        note = zk.new_note("A", "")
        assert zk.view_note(note.id) == note
        zk.delete_note(note.id)
        assert zk.repository.selected_note is None
        assert zk.fallback.load() == []

    def test_deleted_note_absent_from_directory_load(self, zk: Zettelkasten, notes_dir: Path):
        zk.select_directory(notes_dir)
        zk.delete_note("cats")
        assert [n.id for n in DirectoryBackend(notes_dir).load()] == ["dogs"]
        assert zk.search("cats") == []

    def test_delete_file_failure_surfaces_status(self, zk: Zettelkasten, notes_dir: Path):
        zk.select_directory(notes_dir)
        (notes_dir / "cats.md").unlink()
        zk.delete_note("cats")
        assert zk.status_message == 'Failed to delete file for note "Cats".'
        assert "cats" not in zk.repository

    def test_search(self, zk: Zettelkasten):
        zk.new_note("Cats", "")
        zk.new_note("Other", "#cats")
        zk.new_note("Dogs", "")
        assert [n.title for n in zk.search("CAT")] == ["Cats", "Other"]


class TestLinks:
    def test_follow_existing_link_selects(self, zk: Zettelkasten):
        target = zk.new_note("Cats", "")
        assert zk.follow_link("Cats") == target
        assert zk.repository.selected == target.id
        assert zk.draft is None

    def test_follow_missing_link_stages_draft(self, zk: Zettelkasten):
        draft = zk.follow_link("Birds")
        assert draft == Draft("Birds", "This is a new note about Birds")
        assert zk.notes == []
        assert zk.fallback.load() == []

    def test_save_draft_persists(self, zk: Zettelkasten):
        zk.follow_link("Birds")
        note = zk.save_draft(content="Tweet #birds")
        assert note.title == "Birds"
        assert note.tags == ["birds"]
        assert zk.draft is None
        assert zk.repository.selected == note.id
        assert [n.title for n in zk.fallback.load()] == ["Birds"]

    def test_save_without_draft(self, zk: Zettelkasten):
        assert zk.save_draft() is None

    def test_discard_draft(self, zk: Zettelkasten):
        zk.follow_link("Birds")
        zk.discard_draft()
        assert zk.save_draft() is None


# ---------------------------------------------------------------------------
# Bulk save
# ---------------------------------------------------------------------------


class TestSaveAllToFiles:
    def test_requires_directory(self, zk: Zettelkasten):
        assert zk.save_all_to_files() == 0
        assert zk.status_message == "No directory selected for saving notes."

    def test_reports_count(self, zk: Zettelkasten, notes_dir: Path):
        zk.select_directory(notes_dir)
        assert zk.save_all_to_files() == 2
        assert zk.status_message == "Saved 2 of 2 notes to files."
        assert zk.is_loading is False

    def test_ignored_while_loading(self, zk: Zettelkasten, notes_dir: Path):
        zk.select_directory(notes_dir)
        zk.is_loading = True
        assert zk.save_all_to_files() is None
        assert zk.status_message == "Loaded 2 notes."


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------


class TestImportExport:
    def test_json_import_replaces_collection(self, zk: Zettelkasten):
        zk.new_note("Old", "")
        payload = json.dumps([{"id": "x", "title": "New", "content": "#fresh"}])
        imported = zk.import_json(payload)
        assert [n.title for n in imported] == ["New"]
        assert [n.title for n in zk.notes] == ["New"]
        assert zk.status_message == "Imported 1 notes."
        assert [n.id for n in zk.fallback.load()] == ["x"]

    def test_json_object_rejected_without_change(self, zk: Zettelkasten):
        existing = zk.new_note("Keep", "")
        assert zk.import_json(json.dumps({"id": "x"})) is None
        assert zk.notes == [existing]
        assert zk.status_message == "Invalid notes format in the imported file."

    def test_json_import_writes_files_when_directory_active(self, zk: Zettelkasten, notes_dir: Path):
        zk.select_directory(notes_dir)
        zk.import_json(json.dumps([{"id": "x", "title": "New", "content": ""}]))
        assert (notes_dir / "x.md").is_file()

    def test_json_import_with_traversal_id_writes_nothing_outside(self, zk: Zettelkasten, notes_dir: Path):
        zk.select_directory(notes_dir)
        payload = json.dumps([{"id": "../escaped", "title": "Escaped", "content": ""}])
        assert zk.import_json(payload) is None
        assert zk.status_message == "Invalid notes format in the imported file."
        assert not (notes_dir.parent / "escaped.md").exists()
        assert sorted(p.name for p in notes_dir.parent.iterdir()) == ["notes"]
        assert sorted(p.name for p in notes_dir.iterdir()) == ["cats.md", "dogs.md"]

    def test_json_file_import(self, zk: Zettelkasten, tmp_path: Path):
        path = tmp_path / "in.json"
        path.write_text(json.dumps([{"id": "x", "title": "New", "content": ""}]), encoding="utf-8")
        assert [n.id for n in zk.import_json_file(path)] == ["x"]

    def test_json_file_missing(self, zk: Zettelkasten, tmp_path: Path):
        assert zk.import_json_file(tmp_path / "missing.json") is None
        assert zk.status_message == "Failed to import notes."

    def test_markdown_import_appends(self, zk: Zettelkasten, notes_dir: Path):
        zk.new_note("Existing", "")
        added = zk.import_markdown([notes_dir / "cats.md", notes_dir / "dogs.md"])
        assert [n.title for n in added] == ["Cats", "Dogs"]
        assert [n.title for n in zk.notes] == ["Existing", "Cats", "Dogs"]
        assert zk.status_message == "Imported 2 notes."

    def test_markdown_import_with_punctuated_stem_saves_in_directory(
        self, zk: Zettelkasten, notes_dir: Path, tmp_path: Path
    ):
        incoming = tmp_path / "incoming"
        incoming.mkdir()
        (incoming / "My Note (draft).md").write_text("# Draft\n\n#wip", encoding="utf-8")
        zk.select_directory(notes_dir)
        (added,) = zk.import_markdown([incoming / "My Note (draft).md"])
        assert added.id == "My Note (draft)"
        zk.save_all_to_files()
        assert sorted(p.name for p in notes_dir.iterdir()) == ["My Note (draft).md", "cats.md", "dogs.md"]
        assert (notes_dir / "My Note (draft).md").read_text(encoding="utf-8") == "# Draft\n\n#wip"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["incoming", "notes"]

    def test_markdown_import_failure(self, zk: Zettelkasten, tmp_path: Path):
        assert zk.import_markdown([tmp_path / "missing.md"]) is None
        assert zk.status_message == "Failed to import some markdown notes."
        assert zk.notes == []

    def test_export_json_to_directory_uses_default_name(self, zk: Zettelkasten, tmp_path: Path):
        zk.new_note("A", "#x")
        text = zk.export_json(tmp_path)
        assert (tmp_path / "zettelkasten-notes.json").read_text(encoding="utf-8") == text
        assert zk.status_message == "Notes exported as JSON."
        assert Note.from_dict(json.loads(text)[0]).tags == ["x"]

    def test_export_markdown_to_file(self, zk: Zettelkasten, tmp_path: Path):
        zk.new_note("A", "body")
        target = tmp_path / "out.md"
        zk.export_markdown(target)
        assert target.read_text(encoding="utf-8") == "# A\n\nbody\n\n---\n\n"
        assert zk.status_message == "Notes exported as markdown."

    def test_export_failure_reported(self, zk: Zettelkasten, tmp_path: Path):
        zk.export_json(tmp_path / "missing-dir" / "out.json")
        assert zk.status_message.startswith("Failed to export notes")
