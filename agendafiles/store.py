"""
The active document list.

The list itself belongs to the host (the agenda builder reads it); other
code may change it too. ActiveSetStore never caches it: every operation
reads the host's current list, edits a copy, and hands the whole list back.

Entries are canonical paths. The host may hold non-canonical or duplicate
entries written by someone else; reads collapse duplicates, and add/remove
compare canonical forms.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, Union, runtime_checkable

from .types import canonical_id

logger = logging.getLogger(__name__)


@runtime_checkable
class AgendaList(Protocol):
    """Host storage for the active document list."""

    def get_files(self) -> list[str]:
        """Current list, in host order."""
        ...

    def set_files(self, files: list[str]) -> None:
        """Replace the whole list."""
        ...


class MemoryAgendaList:
    """An agenda list held in process memory."""

    def __init__(self, files: Iterable[str] = ()):
        self.files = list(files)
        self.writes = 0

    def get_files(self) -> list[str]:
        return list(self.files)

    def set_files(self, files: list[str]) -> None:
        self.files = list(files)
        self.writes += 1


class FileAgendaList:
    """
    An agenda list stored as a text file, one path per line.

    Blank lines and lines starting with '#' are ignored on read and
    dropped on write. A missing file reads as an empty list.
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def get_files(self) -> list[str]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        files = []
        for line in text.splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                files.append(line)
        return files

    def set_files(self, files: list[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text("".join(f"{f}\n" for f in files), encoding="utf-8")
        os.replace(tmp, self.path)


def _collapse(files: Iterable[str]) -> list[str]:
    """Drop entries naming a document already seen, keeping the first spelling."""
    seen = set()
    kept = []
    for f in files:
        key = canonical_id(f)
        if key not in seen:
            seen.add(key)
            kept.append(f)
    return kept


class ActiveSetStore:
    """
    Ordered set of tracked document identifiers.

    Every mutation ends with replace_all(), the host's unit of durability.
    """

    def __init__(self, agenda_list: AgendaList):
        self._agenda_list = agenda_list

    def current(self) -> list[str]:
        """Current identifiers in host order, duplicates collapsed."""
        return _collapse(self._agenda_list.get_files())

    def replace_all(self, ids: Iterable[str]) -> None:
        """Hand the host a new list. Duplicates are collapsed, order kept."""
        self._agenda_list.set_files(_collapse(ids))

    def __contains__(self, id: Union[str, os.PathLike]) -> bool:
        target = canonical_id(id)
        return any(canonical_id(f) == target for f in self.current())

    def add(self, id: Union[str, os.PathLike]) -> bool:
        """
        Track a document, newest first.

        Returns:
            True if the document was not tracked before
        """
        target = canonical_id(id)
        files = self.current()
        added = not any(canonical_id(f) == target for f in files)
        if added:
            files.insert(0, target)
            logger.debug("Tracking %s", target)
        self.replace_all(files)
        return added

    def remove(self, id: Union[str, os.PathLike]) -> bool:
        """
        Stop tracking a document. Every entry naming it is dropped.

        Returns:
            True if the document was tracked before
        """
        target = canonical_id(id)
        files = self.current()
        kept = [f for f in files if canonical_id(f) != target]
        removed = len(kept) != len(files)
        if removed:
            logger.debug("Untracking %s", target)
        self.replace_all(kept)
        return removed
