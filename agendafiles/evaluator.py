"""
Match a document against a list of predicates.

A document matches when any predicate matches it. Predicates are tried
left to right and evaluation stops at the first match, so cheap, commonly
matching predicates are best declared first.
"""

import logging
from collections.abc import Iterable
from typing import Any

from .providers.base import QueryEngine
from .types import DocumentRef

logger = logging.getLogger(__name__)


def matches(
    document_ref: DocumentRef,
    predicates: Iterable[Any],
    engine: QueryEngine,
    on_error: str = "raise",
) -> bool:
    """
    Check whether a document satisfies at least one predicate.

    Args:
        document_ref: Live Buffer or file path, handed to the engine unchanged
        predicates: Predicates in evaluation order
        engine: Query engine that evaluates a single predicate
        on_error: "raise" propagates engine errors to the caller;
            "skip" logs them and counts the predicate as not matching

    Returns:
        True on the first matching predicate; False if none match
        (including when there are no predicates at all).
    """
    for predicate in predicates:
        try:
            if engine.evaluate(predicate, document_ref):
                return True
        except Exception as e:
            if on_error != "skip":
                raise
            logger.warning("Query %r failed, treating as no match: %s", predicate, e)
    return False
