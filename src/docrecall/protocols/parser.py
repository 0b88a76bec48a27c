"""Protocol for document format parsers."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from docrecall.models import Chunk


@runtime_checkable
class DocumentParser(Protocol):
    """Protocol for format parsers.

    A parser turns one file into an ordered list of chunks carrying
    provisional structural metadata. Parsers never touch storage.
    """

    @property
    def element(self) -> str:
        """Return the element tag stamped on produced chunks (e.g. 'pdf')."""
        ...

    def parse(self, path: Path) -> list[Chunk]:
        """Parse the file at ``path`` into chunks in document order."""
        ...
