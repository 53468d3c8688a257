"""Conversion of plain text into structured rich-text blocks."""

import re
import uuid
from typing import Any, Protocol


class TextFormatter(Protocol):
    """Converts plain text into a list of rich-text blocks."""

    def to_blocks(self, text: str) -> list[dict[str, Any]]: ...


def new_key() -> str:
    """Generate a block/span key."""
    return uuid.uuid4().hex[:12]


class ParagraphFormatter:
    """
    Default formatter: one ``normal`` block per paragraph.

    Paragraphs are separated by blank lines. Inline markup is kept verbatim;
    plug in a richer ``TextFormatter`` to interpret it.
    """

    PARAGRAPH_SEPARATOR = re.compile(r"\n\s*\n")

    def to_blocks(self, text: str) -> list[dict[str, Any]]:
        paragraphs = [p.strip() for p in self.PARAGRAPH_SEPARATOR.split(text)]
        return [self._block(p) for p in paragraphs if p]

    @staticmethod
    def _block(text: str) -> dict[str, Any]:
        return {
            "_type": "block",
            "_key": new_key(),
            "style": "normal",
            "markDefs": [],
            "children": [
                {"_type": "span", "_key": new_key(), "text": text, "marks": []}
            ],
        }


def to_block_list(value: Any, formatter: TextFormatter) -> list[Any]:
    """Convert an edit value to a list of blocks.

    Text goes through ``formatter``; structured values pass through unchanged
    (a single block is wrapped in a list).
    """
    if isinstance(value, str):
        return formatter.to_blocks(value)
    if isinstance(value, list):
        return list(value)
    return [value]
