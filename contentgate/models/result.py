"""Uniform result shape returned by service operations."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class OperationResult:
    """Outcome of a successful operation.

    ``data`` holds operation-specific fields (ids, counts); ``result`` holds
    the raw repository response.
    """

    message: str
    data: dict[str, Any] = field(default_factory=dict)
    result: Any = None
    success: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            **self.data,
            "result": self.result,
        }
