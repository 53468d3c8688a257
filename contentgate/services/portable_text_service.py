"""Positional editing of array-valued rich-text (Portable Text) fields."""

import logging
from typing import Any

from contentgate.config import get_settings
from contentgate.exceptions import ConflictError, NotFoundError, RepositoryError, ValidationError
from contentgate.models.field_edit import FieldOperation, FieldOperationType, FieldPosition
from contentgate.models.result import OperationResult
from contentgate.services.formatting import ParagraphFormatter, TextFormatter, to_block_list

logger = logging.getLogger(__name__)

POSITION_ALIASES = {"atIndex": FieldPosition.AT, "at_index": FieldPosition.AT}


class PortableTextService:
    """Applies insert/replace/remove edits to one rich-text field of one document.

    Every positional operation re-reads the document right before it is
    applied. The revision seen by the first read (or the caller-supplied
    ``if_revision_id``) guards both the later reads and the final commit, so a
    concurrent writer causes a ``ConflictError`` instead of a lost update.
    """

    def __init__(
        self,
        client: Any,
        formatter: TextFormatter | None = None,
        strict: bool | None = None,
    ):
        """
        Initialize the field editor.

        Args:
            client: Repository client exposing get_document() and patch()
            formatter: Converts plain-text values into blocks
            strict: Reject malformed or unknown operations (True) or log and
                    skip them (False). If None, reads from settings.
        """
        self.client = client
        self.formatter = formatter or ParagraphFormatter()
        self.strict = get_settings().strict_field_operations if strict is None else strict

    def modify_field(
        self,
        document_id: str,
        field_path: str,
        operations: list[dict[str, Any]],
        if_revision_id: str | None = None,
    ) -> OperationResult:
        """
        Apply a list of edit operations to a field and commit them in one patch.

        Args:
            document_id: Document ID (exact, drafts are not implied)
            field_path: Path of the array field (e.g. "body" or "content.body")
            operations: Operations, each {type, position?, atIndex?, value?}
            if_revision_id: Optional revision the document must still be at

        Returns:
            Result with the number of applied operations

        Raises:
            ValidationError: If arguments or (in strict mode) any operation are invalid
            NotFoundError: If the document does not exist
            ConflictError: If the document changes while the edit is in progress
            RepositoryError: If a read or the commit fails
        """
        if not isinstance(document_id, str) or not document_id.strip():
            raise ValidationError("Document ID cannot be empty", "document_id")
        if not isinstance(field_path, str) or not field_path.strip():
            raise ValidationError("Field path cannot be empty", "field_path")

        parsed = self.parse_operations(operations)
        skipped = len(operations) - len(parsed)
        if not parsed:
            return OperationResult(
                message=f"No applicable operations for field '{field_path}'",
                data={"documentId": document_id, "fieldPath": field_path, "operations": 0, "skipped": skipped},
            )

        try:
            pending: list[Any] | None = None
            expected_revision = if_revision_id
            for operation in parsed:
                if operation.is_whole_field_replace:
                    pending = to_block_list(operation.value, self.formatter)
                    continue

                document = self.client.get_document(document_id)
                if document is None:
                    raise NotFoundError("Document", document_id)
                revision = document.get("_rev")
                if expected_revision is None:
                    expected_revision = revision
                elif revision is not None and revision != expected_revision:
                    raise ConflictError(
                        f"Document {document_id} changed during edit "
                        f"(expected revision {expected_revision}, found {revision})",
                        status_code=409,
                    )

                current = pending if pending is not None else self._read_field(document, field_path)
                pending = self._apply(operation, current)

            patch = self.client.patch(document_id)
            if expected_revision:
                patch.if_revision_id(expected_revision)
            patch.set({field_path: pending})
            result = patch.commit()
        except RepositoryError as e:
            logger.error(f"Error modifying Portable Text field {field_path} on {document_id}: {e}")
            raise e.with_context("Failed to modify Portable Text field") from e

        return OperationResult(
            message=f"Modified Portable Text field '{field_path}' in document {document_id}",
            data={
                "documentId": document_id,
                "fieldPath": field_path,
                "operations": len(parsed),
                "skipped": skipped,
            },
            result=result,
        )

    def parse_operations(self, operations: Any) -> list[FieldOperation]:
        """
        Parse raw operations, rejecting or skipping invalid ones per ``strict``.

        Raises:
            ValidationError: If the list is empty, or an operation is invalid in strict mode
        """
        if not isinstance(operations, list) or not operations:
            raise ValidationError("At least one operation is required", "operations")

        parsed = []
        for index, raw in enumerate(operations):
            try:
                parsed.append(self._parse_operation(raw, index))
            except ValidationError as e:
                if self.strict:
                    raise
                logger.warning(f"Skipping operation {index}: {e}")
        return parsed

    @staticmethod
    def _parse_operation(raw: Any, index: int) -> FieldOperation:
        if isinstance(raw, FieldOperation):
            return raw
        if not isinstance(raw, dict):
            raise ValidationError(f"Operation {index} must be an object", "operations")

        try:
            op_type = FieldOperationType(raw.get("type"))
        except ValueError:
            raise ValidationError(
                f"Unknown operation type: {raw.get('type')!r}", "operations"
            ) from None

        position = raw.get("position")
        if position is not None:
            position = POSITION_ALIASES.get(position, position)
            try:
                position = FieldPosition(position)
            except ValueError:
                raise ValidationError(
                    f"Operation {index} has unknown position {raw.get('position')!r}", "position"
                ) from None

        at_index = raw.get("atIndex", raw.get("at_index"))
        if at_index is not None and (isinstance(at_index, bool) or not isinstance(at_index, int)):
            raise ValidationError(f"Operation {index} atIndex must be an integer", "atIndex")
        if at_index is not None and position is None:
            position = FieldPosition.AT

        operation = FieldOperation(
            type=op_type, position=position, at_index=at_index, value=raw.get("value")
        )

        if op_type in (FieldOperationType.INSERT, FieldOperationType.REPLACE) and not operation.value:
            raise ValidationError(f"Operation {index} ({op_type.value}) requires a value", "value")
        if op_type == FieldOperationType.INSERT and position is None:
            raise ValidationError(
                f"Operation {index} (insert) requires a position: beginning, end or at", "position"
            )
        if position == FieldPosition.AT and at_index is None:
            raise ValidationError(f"Operation {index} position 'at' requires atIndex", "atIndex")
        if op_type == FieldOperationType.REMOVE and not operation.is_indexed:
            raise ValidationError(f"Operation {index} (remove) requires atIndex", "atIndex")
        return operation

    def _apply(self, operation: FieldOperation, current: list[Any]) -> list[Any]:
        content = list(current)
        if operation.type == FieldOperationType.REMOVE:
            index = self._normalize_index(operation.at_index, len(content))
            del content[index:index + 1]
            return content

        blocks = to_block_list(operation.value, self.formatter)
        if operation.type == FieldOperationType.INSERT:
            if operation.position == FieldPosition.BEGINNING:
                return blocks + content
            if operation.position == FieldPosition.END:
                return content + blocks
            index = self._normalize_index(operation.at_index, len(content))
            content[index:index] = blocks
            return content

        index = self._normalize_index(operation.at_index, len(content))
        content[index:index + 1] = blocks
        return content

    @staticmethod
    def _normalize_index(index: int, length: int) -> int:
        """Negative indexes count from the end; out-of-range indexes clamp."""
        if index < 0:
            return max(length + index, 0)
        return min(index, length)

    @staticmethod
    def _read_field(document: dict[str, Any], field_path: str) -> list[Any]:
        value: Any = document
        for part in field_path.split("."):
            if not isinstance(value, dict):
                value = None
                break
            value = value.get(part)
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValidationError(f"Field '{field_path}' is not an array", "field_path")
        return list(value)
