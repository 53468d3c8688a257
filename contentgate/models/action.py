"""Action models: imperative lifecycle instructions sent to the action dispatcher."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from contentgate.identity import draft_id, normalize_base_id, normalize_release_id


class ActionType(str, Enum):
    """Action types understood by the repository's actions endpoint."""

    DOCUMENT_PUBLISH = "sanity.action.document.publish"
    DOCUMENT_UNPUBLISH = "sanity.action.document.unpublish"
    VERSION_CREATE = "sanity.action.document.version.create"
    VERSION_DISCARD = "sanity.action.document.version.discard"
    VERSION_UNPUBLISH = "sanity.action.document.version.unpublish"
    RELEASE_CREATE = "sanity.action.release.create"
    RELEASE_EDIT = "sanity.action.release.edit"
    RELEASE_PUBLISH = "sanity.action.release.publish"
    RELEASE_SCHEDULE = "sanity.action.release.schedule"
    RELEASE_UNSCHEDULE = "sanity.action.release.unschedule"
    RELEASE_ARCHIVE = "sanity.action.release.archive"
    RELEASE_UNARCHIVE = "sanity.action.release.unarchive"
    RELEASE_DELETE = "sanity.action.release.delete"


@dataclass
class Action:
    """A single action with its type-specific payload fields."""

    action_type: ActionType
    fields: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {"actionType": self.action_type.value, **self.fields}


def publish_action(document_id: str) -> Action:
    base_id = normalize_base_id(document_id)
    return Action(
        ActionType.DOCUMENT_PUBLISH,
        {"draftId": draft_id(base_id), "publishedId": base_id},
    )


def unpublish_action(document_id: str) -> Action:
    base_id = normalize_base_id(document_id)
    return Action(
        ActionType.DOCUMENT_UNPUBLISH,
        {"draftId": draft_id(base_id), "publishedId": base_id},
    )


def version_create_action(published_id: str, attributes: dict[str, Any]) -> Action:
    return Action(
        ActionType.VERSION_CREATE,
        {"publishedId": published_id, "attributes": attributes},
    )


def version_discard_action(version_id: str, purge: bool = False) -> Action:
    return Action(ActionType.VERSION_DISCARD, {"versionId": version_id, "purge": purge})


def version_unpublish_action(version_id: str, published_id: str) -> Action:
    return Action(
        ActionType.VERSION_UNPUBLISH,
        {"versionId": version_id, "publishedId": published_id},
    )


def release_create_action(release_id: str, metadata: dict[str, Any]) -> Action:
    return Action(
        ActionType.RELEASE_CREATE,
        {"releaseId": normalize_release_id(release_id), "metadata": metadata},
    )


def release_edit_action(release_id: str, set_fields: dict[str, Any]) -> Action:
    return Action(
        ActionType.RELEASE_EDIT,
        {"releaseId": normalize_release_id(release_id), "patch": {"set": set_fields}},
    )


def release_action(action_type: ActionType, release_id: str, **extra: Any) -> Action:
    """Build a release action that only needs the release id (plus optional extras)."""
    return Action(action_type, {"releaseId": normalize_release_id(release_id), **extra})
