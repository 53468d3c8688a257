"""Deterministic ordering of patch sub-operations."""

from contentgate.models.mutation import PatchOperations
from contentgate.storage.transaction import Patch


def apply_patch_operations(operations: PatchOperations, patch: Patch) -> Patch:
    """
    Apply a bag of sub-operations to a patch builder.

    Sub-operations are always applied in the order set, setIfMissing, unset,
    inc, dec, insert, diffMatchPatch, so that later operations observe the
    effect of earlier ones within the same patch.

    Args:
        operations: Sub-operations to apply
        patch: Patch builder receiving them

    Returns:
        The same patch builder
    """
    for name in operations.present():
        value = getattr(operations, name)
        if name == "insert":
            patch.insert(value.position.value, value.at, list(value.items))
        else:
            getattr(patch, name)(value)
    return patch
