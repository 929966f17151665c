"""
Outline query engine for org and markdown notes.

Understands just enough outline structure to answer agenda queries:
headings with an optional TODO keyword, ``[#A]`` priority and trailing
``:tag1:tag2:`` tags, each followed by a body that runs to the next heading.

A query is a string of terms; an entry matches when every term holds for
it, and a document matches when any entry does::

    todo                 entry has any TODO keyword
    todo:NEXT,WAITING    entry keyword is one of these
    tags:work,home       entry has at least one of these tags
    heading:"weekly"     heading contains text (case-insensitive)
    priority:A           entry priority is one of these
    level:2              heading depth
    regexp:PATTERN       pattern found in heading or body
    meeting              bare word: same as heading:meeting
    -tags:archive        leading '-' negates a term
"""

import functools
import re
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from ..errors import PredicateError
from ..types import Buffer, DocumentRef
from .base import get_registry

DEFAULT_TODO_KEYWORDS = ("TODO", "NEXT", "WAITING", "DONE", "CANCELLED")

_ORG_HEADING_RE = re.compile(r"^(\*+)\s+(.*?)\s*$")
_MD_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*$")
MARKDOWN_SUFFIXES = (".md", ".markdown")
_PRIORITY_RE = re.compile(r'^\[#([A-Z0-9])\]\s*')
_TAGS_RE = re.compile(r'\s+:([\w@#%:]+):$')
# In-file keyword declarations: "#+TODO: TODO NEXT | DONE"
_TODO_DECL_RE = re.compile(r'^#\+(?:TODO|SEQ_TODO|TYP_TODO):\s*(.*)$', re.IGNORECASE)
# Fast-access key suffix on a declared keyword: "STARTED(s)", "WAIT(w@/!)"
_KEY_SUFFIX_RE = re.compile(r"\([^()]*\)$")

TERM_KEYS = ("todo", "tags", "heading", "priority", "level", "regexp")


@dataclass
class Entry:
    """One outline heading and the body beneath it."""
    level: int
    title: str
    todo: Optional[str] = None
    priority: Optional[str] = None
    tags: frozenset[str] = frozenset()
    body: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join([self.title, *self.body])


def _file_todo_keywords(lines: list[str]) -> set[str]:
    keywords = set()
    for line in lines:
        m = _TODO_DECL_RE.match(line)
        if m:
            for word in m.group(1).split():
                word = _KEY_SUFFIX_RE.sub("", word)
                if word and word != "|":
                    keywords.add(word)
    return keywords


def parse_outline(
    text: str,
    todo_keywords=DEFAULT_TODO_KEYWORDS,
    markdown: bool = False,
) -> list[Entry]:
    """Split outline text into entries. Text before the first heading is ignored.

    Org headings start with stars; markdown headings (``markdown=True``) with
    hashes. Org comment lines (``# ...``) are never headings.
    """
    heading_re = _MD_HEADING_RE if markdown else _ORG_HEADING_RE
    lines = text.splitlines()
    keywords = set(todo_keywords) | _file_todo_keywords(lines)
    entries: list[Entry] = []
    current: Optional[Entry] = None
    for line in lines:
        m = heading_re.match(line)
        if m is None:
            if current is not None:
                current.body.append(line)
            continue

        title = m.group(2)
        todo = None
        first, _, rest = title.partition(" ")
        if first in keywords:
            todo, title = first, rest.lstrip()

        priority = None
        pm = _PRIORITY_RE.match(title)
        if pm:
            priority, title = pm.group(1), title[pm.end():]

        tags: frozenset[str] = frozenset()
        tm = _TAGS_RE.search(title)
        if tm:
            tags = frozenset(t for t in tm.group(1).split(":") if t)
            title = title[:tm.start()]

        current = Entry(
            level=len(m.group(1)), title=title.strip(),
            todo=todo, priority=priority, tags=tags,
        )
        entries.append(current)
    return entries


Term = Callable[[Entry], bool]


def _values(key: str, value: str, predicate: str) -> list[str]:
    values = [v for v in value.split(",") if v]
    if not values:
        raise PredicateError(f"Query term '{key}:' needs a value in {predicate!r}", predicate)
    return values


def _compile_term(token: str, predicate: str) -> Term:
    negate = token.startswith("-") and len(token) > 1
    if negate:
        token = token[1:]

    key, sep, value = token.partition(":")
    if not sep:
        if key == "todo":
            term: Term = lambda e: e.todo is not None
        else:
            needle = token.lower()
            term = lambda e: needle in e.title.lower()
    elif key == "todo":
        wanted = set(_values(key, value, predicate))
        term = lambda e: e.todo in wanted
    elif key == "tags":
        wanted = set(_values(key, value, predicate))
        term = lambda e: bool(e.tags & wanted)
    elif key == "heading":
        if not value:
            raise PredicateError(f"Query term 'heading:' needs a value in {predicate!r}", predicate)
        needle = value.lower()
        term = lambda e: needle in e.title.lower()
    elif key == "priority":
        wanted = set(_values(key, value, predicate))
        term = lambda e: e.priority in wanted
    elif key == "level":
        try:
            level = int(value)
        except ValueError:
            raise PredicateError(f"level must be a number in {predicate!r}", predicate) from None
        term = lambda e: e.level == level
    elif key == "regexp":
        try:
            pattern = re.compile(value, re.MULTILINE)
        except re.error as e:
            raise PredicateError(f"Bad regexp {value!r} in {predicate!r}: {e}", predicate) from e
        term = lambda e: pattern.search(e.text) is not None
    else:
        raise PredicateError(
            f"Unknown query term {key!r} in {predicate!r} "
            f"(expected one of: {', '.join(TERM_KEYS)})",
            predicate,
        )

    if negate:
        return lambda e: not term(e)
    return term


@functools.lru_cache(maxsize=256)
def compile_query(predicate: str) -> tuple[Term, ...]:
    """Parse a query string into a tuple of entry tests."""
    try:
        tokens = shlex.split(predicate)
    except ValueError as e:
        raise PredicateError(f"Cannot parse query {predicate!r}: {e}", predicate) from e
    if not tokens:
        raise PredicateError("Empty query", predicate)
    return tuple(_compile_term(t, predicate) for t in tokens)


class OutlineQueryEngine:
    """
    Query engine over org/markdown outlines.

    Buffers are evaluated on their in-memory text; paths are read from disk.
    """

    def __init__(self, todo_keywords: Optional[list[str]] = None):
        self.todo_keywords = tuple(todo_keywords or DEFAULT_TODO_KEYWORDS)

    def _read(self, document_ref: DocumentRef) -> tuple[str, Optional[Path]]:
        if isinstance(document_ref, Buffer):
            return document_ref.text, document_ref.path
        path = Path(document_ref).expanduser()
        return path.read_text(encoding="utf-8", errors="replace"), path

    def evaluate(self, predicate: Any, document_ref: DocumentRef) -> bool:
        if not isinstance(predicate, str):
            raise PredicateError(
                f"Outline queries must be strings, got {type(predicate).__name__}",
                predicate,
            )
        terms = compile_query(predicate)
        text, path = self._read(document_ref)
        markdown = path is not None and path.suffix.lower() in MARKDOWN_SUFFIXES
        entries = parse_outline(text, self.todo_keywords, markdown=markdown)
        return any(all(t(e) for t in terms) for e in entries)


get_registry().register("outline", OutlineQueryEngine)
