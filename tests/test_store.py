"""Tests for the active document list and its host backends."""

import os

import pytest

from agendafiles.store import ActiveSetStore, AgendaList, FileAgendaList, MemoryAgendaList
from agendafiles.types import canonical_id


@pytest.fixture
def store(agenda_list):
    return ActiveSetStore(agenda_list)


class TestCanonicalId:
    def test_relative_becomes_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert canonical_id("a.org") == os.path.realpath(tmp_path / "a.org")

    def test_symlink_resolved(self, tmp_path):
        target = tmp_path / "real.org"
        target.write_text("")
        link = tmp_path / "link.org"
        link.symlink_to(target)
        assert canonical_id(link) == canonical_id(target)

    def test_dot_segments_removed(self, tmp_path):
        assert canonical_id(tmp_path / "x" / ".." / "a.org") == canonical_id(tmp_path / "a.org")

    def test_home_expanded(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert canonical_id("~/a.org") == canonical_id(tmp_path / "a.org")


class TestActiveSetStore:
    def test_add_pushes_to_front(self, store, tmp_path):
        a, b = str(tmp_path / "a.org"), str(tmp_path / "b.org")
        store.add(a)
        store.add(b)
        assert store.current() == [canonical_id(b), canonical_id(a)]

    def test_add_is_idempotent(self, store, agenda_list, tmp_path):
        a = tmp_path / "a.org"
        assert store.add(a) is True
        assert store.add(a) is False
        assert store.current() == [canonical_id(a)]

    def test_add_existing_keeps_position(self, store, tmp_path):
        a, b = tmp_path / "a.org", tmp_path / "b.org"
        store.add(a)
        store.add(b)
        store.add(a)
        assert store.current() == [canonical_id(b), canonical_id(a)]

    def test_add_recognizes_non_canonical_entry(self, tmp_path):
        target = tmp_path / "real.org"
        target.write_text("")
        link = tmp_path / "link.org"
        link.symlink_to(target)
        host = MemoryAgendaList([str(link)])
        store = ActiveSetStore(host)
        assert store.add(target) is False
        assert host.files == [str(link)]

    def test_remove_drops_every_occurrence(self, tmp_path):
        a = canonical_id(tmp_path / "a.org")
        b = canonical_id(tmp_path / "b.org")
        host = MemoryAgendaList([a, b, a, str(tmp_path / "x" / ".." / "a.org")])
        store = ActiveSetStore(host)
        assert store.remove(a) is True
        assert host.files == [b]

    def test_remove_absent_is_noop(self, store, agenda_list, tmp_path):
        assert store.remove(tmp_path / "missing.org") is False
        assert store.current() == []

    def test_every_mutation_writes_back(self, store, agenda_list, tmp_path):
        a = tmp_path / "a.org"
        store.add(a)
        store.add(a)
        store.remove(a)
        store.remove(a)
        assert agenda_list.writes == 4

    def test_current_collapses_duplicates(self):
        store = ActiveSetStore(MemoryAgendaList(["/a", "/b", "/a"]))
        assert store.current() == ["/a", "/b"]

    def test_current_collapses_link_and_target(self, tmp_path):
        target = tmp_path / "real.org"
        target.write_text("")
        link = tmp_path / "link.org"
        link.symlink_to(target)
        host = MemoryAgendaList([str(link), str(target), str(tmp_path / "b.org")])
        store = ActiveSetStore(host)
        assert store.current() == [str(link), str(tmp_path / "b.org")]
        store.replace_all([str(target), str(link)])
        assert host.files == [str(target)]

    def test_replace_all_overwrites(self, store, agenda_list):
        store.replace_all(["/x", "/y", "/x"])
        assert agenda_list.files == ["/x", "/y"]
        store.replace_all([])
        assert agenda_list.files == []

    def test_sees_changes_made_by_others(self, store, agenda_list, tmp_path):
        store.add(tmp_path / "a.org")
        agenda_list.files.append("/elsewhere/b.org")
        store.add(tmp_path / "c.org")
        assert "/elsewhere/b.org" in store.current()

    def test_contains(self, store, tmp_path):
        store.add(tmp_path / "a.org")
        assert tmp_path / "a.org" in store
        assert tmp_path / "b.org" not in store


class TestFileAgendaList:
    def test_missing_file_reads_empty(self, tmp_path):
        assert FileAgendaList(tmp_path / "nope").get_files() == []

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "lists" / "agenda-files"
        FileAgendaList(path).set_files(["/a.org", "/b.org"])
        assert FileAgendaList(path).get_files() == ["/a.org", "/b.org"]
        assert path.read_text() == "/a.org\n/b.org\n"

    def test_comments_and_blank_lines_ignored(self, tmp_path):
        path = tmp_path / "agenda-files"
        path.write_text("# tracked files\n\n/a.org\n  /b.org  \n")
        assert FileAgendaList(path).get_files() == ["/a.org", "/b.org"]

    def test_no_temp_file_left_behind(self, tmp_path):
        path = tmp_path / "agenda-files"
        FileAgendaList(path).set_files(["/a.org"])
        assert sorted(p.name for p in tmp_path.iterdir()) == ["agenda-files"]

    def test_protocol(self, tmp_path):
        assert isinstance(FileAgendaList(tmp_path / "f"), AgendaList)
        assert isinstance(MemoryAgendaList(), AgendaList)
