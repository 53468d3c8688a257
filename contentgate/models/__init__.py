"""Domain models for Content-Gate."""

from contentgate.models.action import Action, ActionType
from contentgate.models.field_edit import FieldOperation, FieldOperationType, FieldPosition
from contentgate.models.mutation import (
    CreateIfNotExistsMutation,
    CreateMutation,
    CreateOrReplaceMutation,
    DeleteByIdMutation,
    DeleteByQueryMutation,
    InsertOperation,
    InsertPosition,
    Mutation,
    MutationKind,
    PatchByIdMutation,
    PatchByQueryMutation,
    PatchOperations,
)
from contentgate.models.release import (
    Release,
    ReleaseDocument,
    ReleaseDocumentList,
    ReleaseState,
    ReleaseType,
)
from contentgate.models.result import OperationResult

__all__ = [
    "Action",
    "ActionType",
    "CreateIfNotExistsMutation",
    "CreateMutation",
    "CreateOrReplaceMutation",
    "DeleteByIdMutation",
    "DeleteByQueryMutation",
    "FieldOperation",
    "FieldOperationType",
    "FieldPosition",
    "InsertOperation",
    "InsertPosition",
    "Mutation",
    "MutationKind",
    "OperationResult",
    "PatchByIdMutation",
    "PatchByQueryMutation",
    "PatchOperations",
    "Release",
    "ReleaseDocument",
    "ReleaseDocumentList",
    "ReleaseState",
    "ReleaseType",
]
