class LinkPageError(Exception):
    """Base class for link page failures."""


class FrontMatterError(LinkPageError):
    """Raised when a page's front matter block cannot be read."""

    def __init__(self, message: str, line: int = 1):
        super().__init__(f"line {line}: {message}")
        self.line = line
