"""
Shared pytest fixtures for agendafiles tests.

Provides a stub query engine so membership logic can be tested without
depending on the outline query language.
"""

from pathlib import Path

import pytest

from agendafiles.config import TrackerConfig
from agendafiles.predicates import BlockSpec, CommandDef, ViewDef
from agendafiles.store import MemoryAgendaList
from agendafiles.types import Buffer


class SubstringEngine:
    """
    Query engine where a predicate matches if it occurs in the document text.

    Records every evaluation so tests can observe short-circuiting.
    """

    def __init__(self):
        self.calls: list[tuple[str, object]] = []

    def evaluate(self, predicate, document_ref) -> bool:
        self.calls.append((predicate, document_ref))
        if isinstance(document_ref, Buffer):
            text = document_ref.text
        else:
            text = Path(document_ref).read_text(encoding="utf-8")
        return predicate in text

    def evaluated(self) -> list[str]:
        return [p for p, _ in self.calls]


class FailingEngine:
    """Query engine that raises on one specific predicate."""

    def __init__(self, bad: str, inner=None):
        self.bad = bad
        self.inner = inner or SubstringEngine()

    def evaluate(self, predicate, document_ref) -> bool:
        if predicate == self.bad:
            raise ValueError(f"malformed query: {predicate}")
        return self.inner.evaluate(predicate, document_ref)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config and error logs out of the real home directory."""
    home = tmp_path / "agendafiles-home"
    monkeypatch.setenv("AGENDAFILES_HOME", str(home))
    monkeypatch.delenv("AGENDAFILES_VERBOSE", raising=False)
    return home


@pytest.fixture
def engine():
    return SubstringEngine()


@pytest.fixture
def agenda_list():
    return MemoryAgendaList()


@pytest.fixture
def org_dir(tmp_path) -> Path:
    """Directory with one outline that has a TODO heading and one that does not."""
    d = tmp_path / "org"
    d.mkdir()
    (d / "d1.org").write_text("* TODO Write report\nDraft the summary.\n")
    (d / "d2.org").write_text("* Meeting notes\nNothing to do.\n")
    return d


def make_config(tmp_path: Path, queries=("TODO",), views=(), **kwargs) -> TrackerConfig:
    """Config whose single command has one query block per query."""
    commands = []
    if queries:
        commands.append(CommandDef(
            name="agenda",
            blocks=[BlockSpec(kind="query", query=q) for q in queries],
        ))
    return TrackerConfig(
        path=tmp_path / "config",
        commands=commands,
        views=[ViewDef(name=f"v{i}", query=q) for i, q in enumerate(views)],
        **kwargs,
    )


@pytest.fixture
def config(tmp_path):
    return make_config(tmp_path)
