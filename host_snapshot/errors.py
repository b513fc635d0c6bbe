"""Error types raised while collecting and rendering a snapshot."""

from __future__ import annotations


class CollectionError(Exception):
    """An adapter could not obtain its metric."""

    def __init__(self, category: str, cause: BaseException | str) -> None:
        self.category = category
        self.cause = cause
        super().__init__(f"{category}: {cause}")


class RenderError(Exception):
    """The report assembler received malformed or missing input."""
