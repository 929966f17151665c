"""
Document lifecycle hooks.

The host announces two events: a document was opened, and a document is
about to be written. HostEvents is the narrow interface agendafiles needs
from the host; EventHub is an in-process implementation for embedding
and tests.

LifecycleHooks wires a Tracker to those events: every structured document
opened under the tracked root gets a pre-save handler that re-checks its
membership in the active list before the write goes through.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, Union, runtime_checkable

from .types import Buffer, is_structured, is_under

logger = logging.getLogger(__name__)

Handler = Callable[[Buffer], None]


@runtime_checkable
class HostEvents(Protocol):
    """Document lifecycle events offered by the host."""

    def on_document_opened(self, handler: Handler) -> None: ...

    def remove_document_opened(self, handler: Handler) -> None: ...

    def on_before_persist(self, buffer: Buffer, handler: Handler) -> None: ...

    def remove_before_persist(self, buffer: Buffer, handler: Handler) -> None: ...


class EventHub:
    """
    In-process document host.

    open() loads a buffer and announces it; save() runs the buffer's
    pre-save handlers and then writes it. A handler that raises aborts
    the save and the file on disk is left untouched.

    Handlers run synchronously in registration order on the calling thread.
    """

    def __init__(self):
        self._opened: list[Handler] = []
        # Keyed by buffer identity; buffers are mutable and unhashable
        self._before_persist: dict[int, tuple[Buffer, list[Handler]]] = {}

    def on_document_opened(self, handler: Handler) -> None:
        if handler not in self._opened:
            self._opened.append(handler)

    def remove_document_opened(self, handler: Handler) -> None:
        if handler in self._opened:
            self._opened.remove(handler)

    def on_before_persist(self, buffer: Buffer, handler: Handler) -> None:
        _, handlers = self._before_persist.setdefault(id(buffer), (buffer, []))
        if handler not in handlers:
            handlers.append(handler)

    def remove_before_persist(self, buffer: Buffer, handler: Handler) -> None:
        entry = self._before_persist.get(id(buffer))
        if entry is None:
            return
        _, handlers = entry
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            del self._before_persist[id(buffer)]

    def before_persist_handlers(self, buffer: Buffer) -> list[Handler]:
        entry = self._before_persist.get(id(buffer))
        return list(entry[1]) if entry else []

    def open(self, path: Union[str, Path]) -> Buffer:
        """Load a document and announce it to opened-handlers."""
        buffer = Buffer.from_file(path)
        for handler in list(self._opened):
            handler(buffer)
        return buffer

    def save(self, buffer: Buffer) -> None:
        """Run pre-save handlers, then write the buffer to disk."""
        for handler in self.before_persist_handlers(buffer):
            handler(buffer)
        buffer.write()


class LifecycleHooks:
    """
    Attaches a tracker to host document events.

    Args:
        tracker: Object with ``update(buffer)`` and a ``config`` carrying
            ``root`` and ``extensions``
        events: The host's event interface
    """

    def __init__(self, tracker, events: HostEvents):
        self.tracker = tracker
        self.events = events
        self._hooked: list[Buffer] = []
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def _wants(self, buffer: Buffer) -> bool:
        if buffer.path is None:
            return False
        config = self.tracker.config
        return is_structured(buffer.path, config.extensions) and is_under(buffer.path, config.root)

    def _before_persist(self, buffer: Buffer) -> None:
        self.tracker.update(buffer)

    def _document_opened(self, buffer: Buffer) -> None:
        if not self._wants(buffer):
            return
        if any(b is buffer for b in self._hooked):
            return
        self.events.on_before_persist(buffer, self._before_persist)
        self._hooked.append(buffer)
        logger.debug("Watching saves of %s", buffer.path)

    def install(self) -> None:
        """Start watching newly opened documents."""
        if self._installed:
            return
        self.events.on_document_opened(self._document_opened)
        self._installed = True

    def uninstall(self) -> None:
        """Stop watching opens and detach every pre-save handler attached so far."""
        if not self._installed:
            return
        self.events.remove_document_opened(self._document_opened)
        for buffer in self._hooked:
            self.events.remove_before_persist(buffer, self._before_persist)
        self._hooked = []
        self._installed = False
