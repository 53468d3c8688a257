"""Positional edit operations on an array-valued rich-text field."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class FieldOperationType(str, Enum):
    INSERT = "insert"
    REPLACE = "replace"
    REMOVE = "remove"


class FieldPosition(str, Enum):
    BEGINNING = "beginning"
    END = "end"
    AT = "at"


@dataclass
class FieldOperation:
    """One edit in a field-edit call.

    ``value`` is plain text (converted by the text formatter) or already
    structured blocks (a block dict or a list of them).
    """

    type: FieldOperationType
    position: Optional[FieldPosition] = None
    at_index: Optional[int] = None
    value: Any = None

    @property
    def is_indexed(self) -> bool:
        return self.position == FieldPosition.AT and self.at_index is not None

    @property
    def is_whole_field_replace(self) -> bool:
        """Whole-field replaces don't depend on the stored value."""
        return self.type == FieldOperationType.REPLACE and not self.is_indexed
