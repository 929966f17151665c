"""
Data types for agenda tracking.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


# Outline formats recognized as structured documents by default
DEFAULT_EXTENSIONS = (".org",)


@dataclass
class Buffer:
    """
    A live, in-memory document.

    The text may differ from what is on disk: pre-save handlers see the
    contents that are about to be written, not the previous file.

    Attributes:
        path: Backing file, or None for a document that was never saved
        text: Current contents
        modified: True if text has changed since it was last read or written
    """
    path: Optional[Path] = None
    text: str = ""
    modified: bool = False

    def __post_init__(self):
        if self.path is not None:
            self.path = Path(self.path).expanduser()

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike]) -> "Buffer":
        """Load a buffer from disk. A missing file yields an empty buffer.

        Bytes that are not valid UTF-8 are replaced with U+FFFD.
        """
        p = Path(path).expanduser()
        try:
            text = p.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            text = ""
        return cls(path=p, text=text)

    def set_text(self, text: str) -> None:
        self.text = text
        self.modified = True

    def write(self) -> None:
        """Persist text to the backing file."""
        if self.path is None:
            raise ValueError("Buffer has no file to write to")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.text, encoding="utf-8")
        self.modified = False


# Either a live buffer or something naming a file
DocumentRef = Union[Buffer, str, os.PathLike]


def canonical_id(path: Union[str, os.PathLike]) -> str:
    """Canonical document identifier: absolute, ``~`` expanded, symlinks resolved.

    Two identifiers name the same document iff their canonical strings are equal.
    Works for paths that do not exist (the unresolvable tail is kept as-is).
    """
    return os.path.realpath(os.path.expanduser(os.fspath(path)))


def ref_path(document_ref: DocumentRef) -> Optional[Path]:
    """File path behind a document reference, if any."""
    if isinstance(document_ref, Buffer):
        return document_ref.path
    if document_ref is None:
        return None
    return Path(os.fspath(document_ref))


def is_readable(path: Union[str, os.PathLike]) -> bool:
    """True if path names a regular file this process can read."""
    try:
        return os.path.isfile(path) and os.access(path, os.R_OK)
    except (OSError, ValueError):
        return False


def is_structured(path: Union[str, os.PathLike], extensions=DEFAULT_EXTENSIONS) -> bool:
    """Check whether a file is an outline document by its suffix."""
    suffix = Path(os.fspath(path)).suffix.lower()
    return suffix in {e.lower() for e in extensions}


def is_under(path: Union[str, os.PathLike], root: Optional[Union[str, os.PathLike]]) -> bool:
    """True if path lives under root (both compared canonically). No root means everywhere."""
    if root is None:
        return True
    return Path(canonical_id(path)).is_relative_to(canonical_id(root))
