"""Mutation models: a tagged union of content-level writes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Union


class MutationKind(str, Enum):
    """Discriminator for the mutation union."""

    CREATE = "create"
    CREATE_OR_REPLACE = "createOrReplace"
    CREATE_IF_NOT_EXISTS = "createIfNotExists"
    DELETE_BY_ID = "deleteById"
    DELETE_BY_QUERY = "deleteByQuery"
    PATCH_BY_ID = "patchById"
    PATCH_BY_QUERY = "patchByQuery"


class InsertPosition(str, Enum):
    """Where array items are inserted relative to the selector."""

    BEFORE = "before"
    AFTER = "after"
    REPLACE = "replace"


@dataclass(frozen=True)
class InsertOperation:
    """Array insertion: ``items`` placed ``position`` the element matched by ``at``."""

    items: tuple[Any, ...]
    position: InsertPosition
    at: str


@dataclass
class PatchOperations:
    """
    Bag of optional patch sub-operations.

    Field order here is the order the sub-operations are applied in, whatever
    order the caller supplied them in.
    """

    set: Optional[dict[str, Any]] = None
    set_if_missing: Optional[dict[str, Any]] = None
    unset: Optional[list[str]] = None
    inc: Optional[dict[str, float]] = None
    dec: Optional[dict[str, float]] = None
    insert: Optional[InsertOperation] = None
    diff_match_patch: Optional[dict[str, str]] = None

    ORDER: ClassVar[tuple[str, ...]] = (
        "set",
        "set_if_missing",
        "unset",
        "inc",
        "dec",
        "insert",
        "diff_match_patch",
    )

    def present(self) -> list[str]:
        """Names of the supplied sub-operations, in application order."""
        return [name for name in self.ORDER if getattr(self, name)]

    def is_empty(self) -> bool:
        return not self.present()


@dataclass
class CreateMutation:
    document: dict[str, Any]
    kind: ClassVar[MutationKind] = MutationKind.CREATE


@dataclass
class CreateOrReplaceMutation:
    document: dict[str, Any]
    kind: ClassVar[MutationKind] = MutationKind.CREATE_OR_REPLACE


@dataclass
class CreateIfNotExistsMutation:
    document: dict[str, Any]
    kind: ClassVar[MutationKind] = MutationKind.CREATE_IF_NOT_EXISTS


@dataclass
class DeleteByIdMutation:
    id: str
    kind: ClassVar[MutationKind] = MutationKind.DELETE_BY_ID


@dataclass
class DeleteByQueryMutation:
    query: str
    params: dict[str, Any] = field(default_factory=dict)
    kind: ClassVar[MutationKind] = MutationKind.DELETE_BY_QUERY


@dataclass
class PatchByIdMutation:
    id: str
    operations: PatchOperations
    if_revision_id: Optional[str] = None
    kind: ClassVar[MutationKind] = MutationKind.PATCH_BY_ID


@dataclass
class PatchByQueryMutation:
    query: str
    operations: PatchOperations
    params: dict[str, Any] = field(default_factory=dict)
    kind: ClassVar[MutationKind] = MutationKind.PATCH_BY_QUERY


Mutation = Union[
    CreateMutation,
    CreateOrReplaceMutation,
    CreateIfNotExistsMutation,
    DeleteByIdMutation,
    DeleteByQueryMutation,
    PatchByIdMutation,
    PatchByQueryMutation,
]

MUTATION_TYPES: tuple[type, ...] = (
    CreateMutation,
    CreateOrReplaceMutation,
    CreateIfNotExistsMutation,
    DeleteByIdMutation,
    DeleteByQueryMutation,
    PatchByIdMutation,
    PatchByQueryMutation,
)
