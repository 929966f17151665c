"""Tests for OR matching over a predicate list."""

import logging

import pytest

from agendafiles.evaluator import matches
from agendafiles.types import Buffer

from conftest import FailingEngine, SubstringEngine


@pytest.fixture
def doc():
    return Buffer(path="/tmp/x.org", text="* Meeting\n* NEXT call Bob\n")


class TestMatches:
    def test_second_predicate_matches(self, doc, engine):
        assert matches(doc, ["TODO", "NEXT"], engine) is True

    def test_no_predicate_matches(self, doc, engine):
        assert matches(doc, ["TODO", "WAITING"], engine) is False

    def test_empty_sequence_is_false(self, doc, engine):
        assert matches(doc, [], engine) is False
        assert engine.calls == []

    def test_short_circuits_on_first_match(self, doc, engine):
        assert matches(doc, ["Meeting", "NEXT", "TODO"], engine) is True
        assert engine.evaluated() == ["Meeting"]

    def test_evaluates_left_to_right_until_match(self, doc, engine):
        matches(doc, ["TODO", "WAITING", "NEXT", "Meeting"], engine)
        assert engine.evaluated() == ["TODO", "WAITING", "NEXT"]

    def test_document_ref_passed_through_unchanged(self, doc, engine, tmp_path):
        matches(doc, ["x"], engine)
        assert engine.calls[0][1] is doc

        path = tmp_path / "f.org"
        path.write_text("x")
        matches(path, ["x"], engine)
        assert engine.calls[1][1] is path

    def test_generator_predicates_consumed_lazily(self, doc, engine):
        produced = []

        def gen():
            for p in ["NEXT", "TODO"]:
                produced.append(p)
                yield p

        assert matches(doc, gen(), engine)
        assert produced == ["NEXT"]


class TestErrorPolicy:
    def test_raise_propagates(self, doc):
        engine = FailingEngine(bad="oops")
        with pytest.raises(ValueError, match="malformed"):
            matches(doc, ["oops", "NEXT"], engine)

    def test_error_after_match_never_reached(self, doc):
        engine = FailingEngine(bad="oops")
        assert matches(doc, ["NEXT", "oops"], engine) is True

    def test_skip_treats_failure_as_no_match(self, doc, caplog):
        engine = FailingEngine(bad="oops")
        with caplog.at_level(logging.WARNING, logger="agendafiles"):
            assert matches(doc, ["oops", "NEXT"], engine, on_error="skip") is True
        assert "oops" in caplog.text

    def test_skip_all_failing_is_false(self, doc):
        engine = FailingEngine(bad="oops")
        assert matches(doc, ["oops"], engine, on_error="skip") is False


def test_engine_protocol_satisfied():
    from agendafiles.providers.base import QueryEngine
    from agendafiles.providers.outline import OutlineQueryEngine

    assert isinstance(SubstringEngine(), QueryEngine)
    assert isinstance(OutlineQueryEngine(), QueryEngine)
