"""Action dispatcher: sends lifecycle actions to the repository."""

import logging
from typing import Any, Protocol

from contentgate.exceptions import ValidationError
from contentgate.models.action import Action

logger = logging.getLogger(__name__)


class ActionSink(Protocol):
    def perform_actions(self, actions: list[dict[str, Any]]) -> dict[str, Any]: ...


class ActionDispatcher:
    """Serializes actions and performs them in a single repository call."""

    def __init__(self, client: ActionSink):
        self.client = client

    def perform(self, actions: list[Action]) -> dict[str, Any]:
        """
        Perform a batch of actions.

        Args:
            actions: Actions to perform, in order

        Returns:
            Repository response for the whole batch

        Raises:
            ValidationError: If no actions are given
            RepositoryError: If the repository rejects the batch
        """
        if not actions:
            raise ValidationError("At least one action is required", "actions")
        payloads = [action.to_payload() for action in actions]
        action_types = ", ".join(sorted({action.action_type.value for action in actions}))
        logger.info(f"Dispatching {len(payloads)} action(s): {action_types}")
        return self.client.perform_actions(payloads)
