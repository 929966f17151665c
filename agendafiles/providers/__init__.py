"""
Query engine interfaces.

A query engine evaluates one predicate against one document. The engine
is an external capability: agendafiles only decides which predicates to
run and what to do with the answers.

Built-in engines are auto-registered when this module is imported.
"""

from .base import (
    QueryEngine,
    EngineRegistry,
    get_registry,
)

# Import concrete engines to trigger registration
from . import outline

__all__ = [
    "QueryEngine",
    "EngineRegistry",
    "get_registry",
]
