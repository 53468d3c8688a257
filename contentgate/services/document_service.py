"""Document service layer: reads, draft edits and publish transitions."""

import logging
from typing import Any

from contentgate.exceptions import NotFoundError, RepositoryError, ValidationError
from contentgate.identity import draft_id, normalize_base_id, normalize_draft_id
from contentgate.models.action import publish_action, unpublish_action
from contentgate.models.result import OperationResult
from contentgate.services.mutation.parsing import MutationParser
from contentgate.services.mutation.patch_sequencer import apply_patch_operations
from contentgate.storage.actions import ActionDispatcher

logger = logging.getLogger(__name__)


def _as_list(value: Any, name: str) -> list[Any]:
    """Accept a single item or a non-empty list of items."""
    items = value if isinstance(value, list) else [value]
    if not items or any(item is None or item == "" for item in items):
        raise ValidationError(f"At least one {name} is required", name)
    return items


class DocumentService:
    """Service layer for document CRUD and draft/publish transitions."""

    IF_EXISTS_MODES = ("fail", "ignore")

    def __init__(self, client: Any, dispatcher: ActionDispatcher | None = None):
        """
        Initialize document service with a repository client.

        Args:
            client: Repository client
            dispatcher: Action dispatcher. If None, one is created over ``client``.
        """
        self.client = client
        self.dispatcher = dispatcher or ActionDispatcher(client)

    def get_document(self, document_id: str) -> dict[str, Any]:
        """
        Get a document by exact ID.

        Raises:
            ValidationError: If the ID is empty
            NotFoundError: If the document doesn't exist
            RepositoryError: If the read fails
        """
        self._validate_id(document_id)
        try:
            document = self.client.get_document(document_id)
        except RepositoryError as e:
            raise e.with_context(f"Failed to get document {document_id}") from e
        if document is None:
            raise NotFoundError("Document", document_id)
        return document

    def get_documents(self, document_ids: list[str]) -> list[dict[str, Any]]:
        """Get the documents that exist among ``document_ids`` (missing ids are omitted)."""
        ids = _as_list(document_ids, "document_ids")
        for document_id in ids:
            self._validate_id(document_id)
        try:
            return self.client.get_documents(ids)
        except RepositoryError as e:
            raise e.with_context("Failed to get documents") from e

    def query_documents(self, query: str, params: dict[str, Any] | None = None) -> Any:
        """
        Run a query against the repository.

        Args:
            query: Query string
            params: Optional query parameters (referenced as ``$name``)

        Returns:
            Raw query result
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query cannot be empty", "query")
        if params is not None and not isinstance(params, dict):
            raise ValidationError("Query params must be an object", "params")
        try:
            return self.client.fetch(query, params or {})
        except RepositoryError as e:
            raise e.with_context("Failed to query documents") from e

    def create_document(
        self, documents: dict[str, Any] | list[dict[str, Any]], if_exists: str = "fail"
    ) -> OperationResult:
        """
        Create one or more documents as drafts.

        Args:
            documents: Document body or list of bodies. Each needs ``_type``.
                       A supplied ``_id`` is rewritten to its draft id.
            if_exists: "fail" to error on an existing id, "ignore" to skip it
                       (requires ``_id``)

        Returns:
            Result with the created draft ids

        Raises:
            ValidationError: If any document is invalid
            RepositoryError: If the transaction fails
        """
        bodies = _as_list(documents, "documents")
        if if_exists not in self.IF_EXISTS_MODES:
            raise ValidationError(
                f"if_exists must be one of: {', '.join(self.IF_EXISTS_MODES)}", "if_exists"
            )

        transaction = self.client.transaction()
        for index, body in enumerate(bodies):
            document = self._draft_body(body, index, require_id=(if_exists == "ignore"))
            if if_exists == "ignore":
                transaction.create_if_not_exists(document)
            else:
                transaction.create(document)

        result = self._commit(transaction, "Failed to create document")
        return OperationResult(
            message=f"Created {len(bodies)} draft document(s)",
            data={"documentIds": self._result_ids(result)},
            result=result,
        )

    def edit_document(
        self, document_ids: str | list[str], patch: dict[str, Any]
    ) -> OperationResult:
        """
        Patch the draft form of one or more documents in one transaction.

        Args:
            document_ids: Document ID or list of IDs (either form)
            patch: Patch operations {set?, setIfMissing?, unset?, inc?, dec?,
                   insert?, diffMatchPatch?, ifRevisionID?}

        Raises:
            ValidationError: If no ID is given or the patch is empty or malformed
            RepositoryError: If the transaction fails
        """
        ids = _as_list(document_ids, "document_ids")
        if not isinstance(patch, dict):
            raise ValidationError("Patch must be an object", "patch")
        operations = MutationParser.parse_patch_operations(patch)
        if operations.is_empty():
            raise ValidationError("Patch must contain at least one operation", "patch")
        revision_id = patch.get("ifRevisionID") or patch.get("ifRevisionId")

        transaction = self.client.transaction()
        draft_ids = []
        for document_id in ids:
            self._validate_id(document_id)
            target = normalize_draft_id(document_id)
            builder = self.client.patch(target)
            if revision_id:
                builder.if_revision_id(revision_id)
            apply_patch_operations(operations, builder)
            transaction.patch(builder)
            draft_ids.append(target)

        result = self._commit(transaction, "Failed to edit document")
        return OperationResult(
            message=f"Edited {len(draft_ids)} draft document(s)",
            data={"documentIds": draft_ids},
            result=result,
        )

    def replace_draft_document(
        self, documents: dict[str, Any] | list[dict[str, Any]]
    ) -> OperationResult:
        """Replace the full body of one or more drafts (``_id`` and ``_type`` required)."""
        bodies = _as_list(documents, "documents")
        transaction = self.client.transaction()
        for index, body in enumerate(bodies):
            transaction.create_or_replace(self._draft_body(body, index, require_id=True))

        result = self._commit(transaction, "Failed to replace draft document")
        return OperationResult(
            message=f"Replaced {len(bodies)} draft document(s)",
            data={"documentIds": self._result_ids(result)},
            result=result,
        )

    def delete_document(
        self,
        document_ids: str | list[str],
        include_drafts: list[str] | None = None,
        purge: bool = False,
    ) -> OperationResult:
        """
        Delete the published and draft forms of documents in one transaction.

        Args:
            document_ids: Document ID or list of IDs (either form)
            include_drafts: Additional exact IDs to delete in the same transaction
            purge: Commit with asynchronous visibility (history is purged by
                   the repository)

        Raises:
            ValidationError: If no ID is given
            RepositoryError: If the transaction fails
        """
        ids = _as_list(document_ids, "document_ids")
        targets: list[str] = []
        for document_id in ids:
            self._validate_id(document_id)
            base_id = normalize_base_id(document_id)
            targets.extend([base_id, draft_id(base_id)])
        for extra_id in include_drafts or []:
            self._validate_id(extra_id)
            targets.append(extra_id)

        transaction = self.client.transaction()
        # Dedupe while keeping order
        for target in dict.fromkeys(targets):
            transaction.delete(target)

        try:
            result = transaction.commit(visibility="async" if purge else "sync")
        except RepositoryError as e:
            logger.error(f"Error deleting documents {ids}: {e}")
            raise e.with_context("Failed to delete document") from e
        return OperationResult(
            message=f"Deleted {len(ids)} document(s)",
            data={"documentIds": list(dict.fromkeys(targets))},
            result=result,
        )

    def publish_document(self, document_ids: str | list[str]) -> OperationResult:
        """Publish the drafts of one or more documents in a single dispatcher call."""
        ids = self._base_ids(document_ids)
        result = self._perform([publish_action(base_id) for base_id in ids], "Failed to publish document")
        return OperationResult(
            message=f"Published {len(ids)} document(s)",
            data={"documentIds": ids},
            result=result,
        )

    def unpublish_document(self, document_ids: str | list[str]) -> OperationResult:
        """Move published documents back to draft in a single dispatcher call."""
        ids = self._base_ids(document_ids)
        result = self._perform(
            [unpublish_action(base_id) for base_id in ids], "Failed to unpublish document"
        )
        return OperationResult(
            message=f"Unpublished {len(ids)} document(s)",
            data={"documentIds": ids},
            result=result,
        )

    def _perform(self, actions: list[Any], context: str) -> Any:
        try:
            return self.dispatcher.perform(actions)
        except RepositoryError as e:
            logger.error(f"{context}: {e}")
            raise e.with_context(context) from e

    def _commit(self, transaction: Any, context: str) -> Any:
        try:
            return transaction.commit()
        except RepositoryError as e:
            logger.error(f"{context}: {e}")
            raise e.with_context(context) from e

    def _base_ids(self, document_ids: str | list[str]) -> list[str]:
        ids = _as_list(document_ids, "document_ids")
        for document_id in ids:
            self._validate_id(document_id)
        return [normalize_base_id(document_id) for document_id in ids]

    def _draft_body(self, body: Any, index: int, require_id: bool) -> dict[str, Any]:
        if not isinstance(body, dict):
            raise ValidationError(f"Document {index} must be an object", "documents")
        if not body.get("_type"):
            raise ValidationError(f"Document {index} must have a _type field", "_type")
        document = dict(body)
        if document.get("_id"):
            self._validate_id(document["_id"])
            document["_id"] = normalize_draft_id(document["_id"])
        elif require_id:
            raise ValidationError(f"Document {index} must have an _id field", "_id")
        return document

    @staticmethod
    def _result_ids(result: Any) -> list[str]:
        return [item.get("id") for item in (result or {}).get("results", [])]

    def _validate_id(self, document_id: Any) -> None:
        if not isinstance(document_id, str) or not document_id.strip():
            raise ValidationError("Document ID must be a non-empty string", "document_id")
