"""Mutation service: builds and commits atomic mutation transactions."""

import logging
from typing import Any, Callable

from contentgate.exceptions import RepositoryError, ValidationError
from contentgate.models.mutation import (
    CreateIfNotExistsMutation,
    CreateMutation,
    CreateOrReplaceMutation,
    DeleteByIdMutation,
    DeleteByQueryMutation,
    Mutation,
    PatchByIdMutation,
    PatchByQueryMutation,
)
from contentgate.models.result import OperationResult
from contentgate.services.mutation.parsing import MutationParser
from contentgate.services.mutation.patch_sequencer import apply_patch_operations
from contentgate.storage.transaction import Transaction

logger = logging.getLogger(__name__)


def _add_create(client: Any, transaction: Transaction, mutation: CreateMutation) -> None:
    transaction.create(mutation.document)


def _add_create_or_replace(
    client: Any, transaction: Transaction, mutation: CreateOrReplaceMutation
) -> None:
    transaction.create_or_replace(mutation.document)


def _add_create_if_not_exists(
    client: Any, transaction: Transaction, mutation: CreateIfNotExistsMutation
) -> None:
    transaction.create_if_not_exists(mutation.document)


def _add_delete_by_id(client: Any, transaction: Transaction, mutation: DeleteByIdMutation) -> None:
    transaction.delete(mutation.id)


def _add_delete_by_query(
    client: Any, transaction: Transaction, mutation: DeleteByQueryMutation
) -> None:
    transaction.delete({"query": mutation.query, "params": mutation.params})


def _add_patch_by_id(client: Any, transaction: Transaction, mutation: PatchByIdMutation) -> None:
    patch = client.patch(mutation.id)
    # Revision guard goes on before any sub-operation
    if mutation.if_revision_id:
        patch.if_revision_id(mutation.if_revision_id)
    apply_patch_operations(mutation.operations, patch)
    transaction.patch(patch)


def _add_patch_by_query(
    client: Any, transaction: Transaction, mutation: PatchByQueryMutation
) -> None:
    patch = client.patch({"query": mutation.query, "params": mutation.params})
    apply_patch_operations(mutation.operations, patch)
    transaction.patch(patch)


MUTATION_APPLIERS: dict[type, Callable[[Any, Transaction, Any], None]] = {
    CreateMutation: _add_create,
    CreateOrReplaceMutation: _add_create_or_replace,
    CreateIfNotExistsMutation: _add_create_if_not_exists,
    DeleteByIdMutation: _add_delete_by_id,
    DeleteByQueryMutation: _add_delete_by_query,
    PatchByIdMutation: _add_patch_by_id,
    PatchByQueryMutation: _add_patch_by_query,
}


class MutationService:
    """Service layer for atomic, multi-document mutations."""

    def __init__(self, client: Any):
        """
        Initialize mutation service with a repository client.

        Args:
            client: Repository client exposing patch(), transaction() and mutate()
        """
        self.client = client

    def modify_documents(self, mutations: list[Any]) -> OperationResult:
        """
        Apply a list of mutations as one atomic transaction.

        Args:
            mutations: Raw mutation payloads (create, createOrReplace,
                       createIfNotExists, delete, patch) or typed mutations.
                       Input order is preserved in the transaction.

        Returns:
            Result with the number of applied mutations and affected ids

        Raises:
            ValidationError: If the list is empty or a mutation is malformed.
                             Raised before any repository call.
            RepositoryError: If the transaction fails; nothing is applied
        """
        parsed = MutationParser.parse_mutations(mutations)
        transaction = self.build_transaction(parsed)
        logger.info(f"Applying mutations: {', '.join(m.kind.value for m in parsed)}")

        try:
            result = transaction.commit()
        except RepositoryError as e:
            logger.error(f"Error modifying documents: {e}")
            raise e.with_context("Failed to modify documents") from e

        return OperationResult(
            message=f"Successfully applied {len(parsed)} mutations",
            data={
                "mutationCount": len(parsed),
                "documentIds": [item.get("id") for item in (result or {}).get("results", [])],
            },
            result=result,
        )

    def build_transaction(self, mutations: list[Mutation]) -> Transaction:
        """Translate typed mutations into a transaction, preserving order."""
        transaction = self.client.transaction()
        for mutation in mutations:
            applier = MUTATION_APPLIERS.get(type(mutation))
            if applier is None:
                raise ValidationError(
                    f"Unsupported mutation type: {type(mutation).__name__}", "mutations"
                )
            applier(self.client, transaction, mutation)
        return transaction
