"""Exception types raised by docrecall."""


class DocRecallError(Exception):
    """Base class for all docrecall errors."""


class FileNotFound(DocRecallError):
    """The path to index does not exist."""

    def __init__(self, path: str):
        super().__init__(f"File not found: {path}")
        self.path = path


class UnsupportedFormat(DocRecallError):
    """No parser handles the file's extension."""

    def __init__(self, extension: str, supported: list[str]):
        shown = extension or "(none)"
        super().__init__(
            f"Unsupported file type: {shown}. Supported: {', '.join(supported)}"
        )
        self.extension = extension
        self.supported = supported


class ParseFailure(DocRecallError):
    """A format parser failed on a document."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to parse {path}: {reason}")
        self.path = path


class StorageFailure(DocRecallError):
    """The chunk store rejected a read or write."""
