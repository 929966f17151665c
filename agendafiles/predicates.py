"""
Query extraction from agenda command and view declarations.

Two independently shaped sources declare the queries that make a document
worth visiting:

- commands: named agenda commands, each a list of blocks. Only blocks of
  kind ``query`` carry a query, and that query may be a lazy expression
  that has to be evaluated to obtain the predicate.
- views: named views, each optionally carrying a static ``query``. Views
  that build their query with a function are skipped, since the query is
  only known when the view itself is built.

The result is a flat list of opaque predicates, commands first, in
declaration order. Duplicates are kept.
"""

import importlib
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Block kind whose query is handled by the query engine
QUERY_BLOCK_KIND = "query"


class ImportRef:
    """
    A ``module:attribute`` reference, imported only when called.

    Calling an ImportRef imports the target and calls it with the given
    arguments. Used for query factories and query builders declared in TOML.
    """

    def __init__(self, spec: str):
        module, sep, attr = spec.partition(":")
        if not sep or not module or not attr:
            raise ValueError(f"Import reference must look like 'module:attr': {spec!r}")
        self.spec = spec
        self.module = module
        self.attr = attr

    def load(self) -> Any:
        target = importlib.import_module(self.module)
        for part in self.attr.split("."):
            target = getattr(target, part)
        return target

    def __call__(self, *args, **kwargs):
        return self.load()(*args, **kwargs)

    def __eq__(self, other):
        return isinstance(other, ImportRef) and other.spec == self.spec

    def __hash__(self):
        return hash(self.spec)

    def __repr__(self):
        return f"ImportRef({self.spec!r})"


@dataclass
class BlockSpec:
    """One block of an agenda command."""
    kind: str
    query: Any = None


@dataclass
class CommandDef:
    """A named agenda command made of blocks."""
    name: str
    blocks: list[BlockSpec] = field(default_factory=list)


@dataclass
class ViewDef:
    """
    A named agenda view.

    ``query`` is either a ready predicate or a callable that builds one at
    view time. Only the former contributes to extraction.
    """
    name: str
    query: Any = None

    @property
    def is_dynamic(self) -> bool:
        return callable(self.query)


def resolve(raw: Any) -> Any:
    """
    Turn a declared query expression into a predicate.

    Callables are invoked with no arguments and their result is the
    predicate; anything else already is one. Invoking a callable may have
    arbitrary side effects and may raise; errors propagate to the caller.
    """
    if callable(raw):
        return raw()
    return raw


def command_predicates(
    commands: Iterable[CommandDef],
    resolve: Callable[[Any], Any] = resolve,
) -> list[Any]:
    """Predicates from query blocks of agenda commands, in declaration order."""
    predicates = []
    for command in commands:
        for block in command.blocks:
            if block.kind != QUERY_BLOCK_KIND:
                continue
            predicates.append(resolve(block.query))
    return predicates


def view_predicates(views: Iterable[ViewDef]) -> list[Any]:
    """Static predicates from views; views with a query builder are skipped."""
    predicates = []
    for view in views:
        if view.query is None:
            continue
        if view.is_dynamic:
            logger.debug("Skipping view %r: query is built at view time", view.name)
            continue
        predicates.append(view.query)
    return predicates


def extract_predicates(
    commands: Iterable[CommandDef] = (),
    views: Iterable[ViewDef] = (),
    resolve: Callable[[Any], Any] = resolve,
) -> list[Any]:
    """
    Collect every predicate declared by commands and views.

    Args:
        commands: Agenda command declarations
        views: Agenda view declarations
        resolve: Evaluates a command block's query expression

    Returns:
        Command predicates followed by view predicates. May be empty.
    """
    return command_predicates(commands, resolve) + view_predicates(views)
