"""Parsing of raw mutation payloads into the tagged mutation union."""

from typing import Any

from contentgate.exceptions import ValidationError
from contentgate.models.mutation import (
    MUTATION_TYPES,
    CreateIfNotExistsMutation,
    CreateMutation,
    CreateOrReplaceMutation,
    DeleteByIdMutation,
    DeleteByQueryMutation,
    InsertOperation,
    InsertPosition,
    Mutation,
    PatchByIdMutation,
    PatchByQueryMutation,
    PatchOperations,
)

MUTATION_KEYS = ("create", "createOrReplace", "createIfNotExists", "delete", "patch")

# Patch wire key -> PatchOperations field
PATCH_FIELDS = {
    "set": "set",
    "setIfMissing": "set_if_missing",
    "unset": "unset",
    "inc": "inc",
    "dec": "dec",
    "insert": "insert",
    "diffMatchPatch": "diff_match_patch",
}


class MutationParser:
    """Validates raw mutation payloads and converts them to typed mutations."""

    @staticmethod
    def parse_mutations(raw_mutations: Any) -> list[Mutation]:
        """
        Parse a list of raw mutations.

        Args:
            raw_mutations: List of mutation payloads or typed mutations

        Returns:
            Typed mutations in input order

        Raises:
            ValidationError: If the list is empty or any mutation is malformed
        """
        if not isinstance(raw_mutations, list) or not raw_mutations:
            raise ValidationError("At least one mutation is required", "mutations")
        return [
            MutationParser.parse_mutation(raw, index)
            for index, raw in enumerate(raw_mutations)
        ]

    @staticmethod
    def parse_mutation(raw: Any, index: int = 0) -> Mutation:
        if isinstance(raw, MUTATION_TYPES):
            return raw
        if not isinstance(raw, dict):
            raise ValidationError(f"Mutation {index} must be an object", "mutations")

        keys = [key for key in MUTATION_KEYS if key in raw]
        if len(keys) != 1:
            raise ValidationError(
                f"Mutation {index} must contain exactly one of: {', '.join(MUTATION_KEYS)}",
                "mutations",
            )
        key = keys[0]
        body = raw[key]
        if not isinstance(body, dict):
            raise ValidationError(f"Mutation {index} '{key}' must be an object", "mutations")

        if key == "create":
            MutationParser._validate_document(body, index, require_id=False)
            return CreateMutation(document=body)
        if key == "createOrReplace":
            MutationParser._validate_document(body, index, require_id=True)
            return CreateOrReplaceMutation(document=body)
        if key == "createIfNotExists":
            MutationParser._validate_document(body, index, require_id=True)
            return CreateIfNotExistsMutation(document=body)
        if key == "delete":
            return MutationParser._parse_delete(body, index)
        return MutationParser._parse_patch(body, index)

    @staticmethod
    def parse_patch_operations(body: dict[str, Any]) -> PatchOperations:
        """
        Parse the sub-operations of a patch body.

        ``unset`` is normalized to a list of paths and ``insert.items`` to a
        list of items. Keys that are not patch operations are ignored.

        Raises:
            ValidationError: If a sub-operation has the wrong shape
        """
        values: dict[str, Any] = {}
        for wire_key, field_name in PATCH_FIELDS.items():
            value = body.get(wire_key)
            if value is None:
                continue
            if wire_key == "unset":
                values[field_name] = MutationParser._parse_unset(value)
            elif wire_key == "insert":
                values[field_name] = MutationParser._parse_insert(value)
            else:
                if not isinstance(value, dict):
                    raise ValidationError(f"'{wire_key}' must be an object", wire_key)
                values[field_name] = value
        return PatchOperations(**values)

    @staticmethod
    def _parse_delete(body: dict[str, Any], index: int) -> Mutation:
        if body.get("query"):
            return DeleteByQueryMutation(query=body["query"], params=body.get("params") or {})
        if body.get("id"):
            MutationParser._validate_id(body["id"])
            return DeleteByIdMutation(id=body["id"])
        raise ValidationError(f"Delete mutation {index} requires 'id' or 'query'", "delete")

    @staticmethod
    def _parse_patch(body: dict[str, Any], index: int) -> Mutation:
        operations = MutationParser.parse_patch_operations(body)
        if operations.is_empty():
            raise ValidationError(
                f"Patch mutation {index} must contain at least one operation", "patch"
            )
        if body.get("query"):
            return PatchByQueryMutation(
                query=body["query"],
                params=body.get("params") or {},
                operations=operations,
            )
        if body.get("id"):
            MutationParser._validate_id(body["id"])
            return PatchByIdMutation(
                id=body["id"],
                operations=operations,
                if_revision_id=body.get("ifRevisionID") or body.get("ifRevisionId"),
            )
        raise ValidationError(f"Patch mutation {index} requires 'id' or 'query'", "patch")

    @staticmethod
    def _parse_unset(value: Any) -> list[str]:
        paths = value if isinstance(value, list) else [value]
        if not all(isinstance(path, str) and path for path in paths):
            raise ValidationError("'unset' must be a field path or list of field paths", "unset")
        return paths

    @staticmethod
    def _parse_insert(value: Any) -> InsertOperation:
        if not isinstance(value, dict):
            raise ValidationError("'insert' must be an object", "insert")

        position = value.get("position")
        at = value.get("at")
        if position is None:
            # Wire form: {"after": "<selector>", "items": [...]}
            for candidate in InsertPosition:
                if candidate.value in value:
                    position, at = candidate.value, value[candidate.value]
                    break
        try:
            position = InsertPosition(position)
        except ValueError:
            raise ValidationError(
                "'insert.position' must be one of: before, after, replace", "insert"
            ) from None
        if not isinstance(at, str) or not at:
            raise ValidationError("'insert.at' must be a path selector", "insert")
        if "items" not in value:
            raise ValidationError("'insert.items' is required", "insert")

        items = value["items"]
        if not isinstance(items, list):
            items = [items]
        return InsertOperation(items=tuple(items), position=position, at=at)

    @staticmethod
    def _validate_document(document: dict[str, Any], index: int, require_id: bool) -> None:
        if not document.get("_type"):
            raise ValidationError(f"Document in mutation {index} must have a _type field", "_type")
        if require_id:
            if not document.get("_id"):
                raise ValidationError(
                    f"Document in mutation {index} must have an _id field", "_id"
                )
            MutationParser._validate_id(document["_id"])

    @staticmethod
    def _validate_id(document_id: Any) -> None:
        if not isinstance(document_id, str) or not document_id.strip():
            raise ValidationError("Document ID must be a non-empty string", "id")
