"""Mutation service module with payload parsing and patch sequencing components."""

from contentgate.services.mutation.parsing import MutationParser
from contentgate.services.mutation.patch_sequencer import apply_patch_operations

__all__ = ["MutationParser", "apply_patch_operations"]
