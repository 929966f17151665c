"""
Base query engine protocol.

A query engine answers one question: does running a predicate against a
document yield at least one match? The predicate language belongs to the
engine; the rest of agendafiles treats predicates as opaque values.
Using Protocol for structural subtyping - no explicit inheritance required.
"""

from typing import Any, Protocol, runtime_checkable

from ..types import DocumentRef


@runtime_checkable
class QueryEngine(Protocol):
    """
    Evaluates predicates against documents.

    Example implementation:
        class GrepEngine:
            def evaluate(self, predicate, document_ref) -> bool:
                text = Path(document_ref).read_text()
                return predicate in text
    """

    def evaluate(self, predicate: Any, document_ref: DocumentRef) -> bool:
        """
        Check whether a document matches a predicate.

        Args:
            predicate: An engine-specific query expression
            document_ref: A live Buffer or a file path, passed through unchanged

        Returns:
            True if the predicate yields at least one match in the document

        Raises:
            PredicateError: If the predicate is malformed for this engine
            OSError: If a file path cannot be read
        """
        ...


# -----------------------------------------------------------------------------
# Engine Registry
# -----------------------------------------------------------------------------

class EngineRegistry:
    """
    Registry for discovering and instantiating query engines.

    Engines are registered by name and can be instantiated from configuration,
    so the TOML config can choose an engine without code changes.

    Example:
        registry = EngineRegistry()
        registry.register("outline", OutlineQueryEngine)

        # Later, from config:
        engine = registry.create("outline", {"todo_keywords": ["TODO", "DONE"]})
    """

    def __init__(self):
        self._engines: dict[str, type] = {}
        self._lazy_loaded = False

    def _ensure_engines_loaded(self) -> None:
        """Lazily load built-in engine modules."""
        if self._lazy_loaded:
            return
        self._lazy_loaded = True
        # Importing registers the engine classes
        from . import outline  # noqa: F401

    def register(self, name: str, engine_class: type) -> None:
        """Register a query engine class."""
        self._engines[name] = engine_class

    def create(self, name: str, params: dict | None = None) -> QueryEngine:
        """Create a query engine instance."""
        self._ensure_engines_loaded()
        if name not in self._engines:
            available = ", ".join(self._engines.keys()) or "none"
            raise ValueError(
                f"Unknown query engine: '{name}'. "
                f"Available engines: {available}."
            )
        try:
            return self._engines[name](**(params or {}))
        except TypeError as e:
            raise ValueError(f"Failed to create query engine '{name}': {e}") from e

    def list_engines(self) -> list[str]:
        """List registered engine names."""
        self._ensure_engines_loaded()
        return list(self._engines.keys())


# Global registry instance
# Concrete engines register themselves on import
_registry = EngineRegistry()


def get_registry() -> EngineRegistry:
    """Get the global engine registry."""
    return _registry
