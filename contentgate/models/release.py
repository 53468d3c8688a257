"""Release models for staged, multi-document publication."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from contentgate.identity import normalize_release_id


class ReleaseType(str, Enum):
    """How a release is intended to be published."""

    ASAP = "asap"
    SCHEDULED = "scheduled"
    UNDECIDED = "undecided"


class ReleaseState(str, Enum):
    """Release lifecycle states as reported by the repository.

    ``CREATED`` is reported as ``active``. The ``*ING`` states are transient
    while the repository processes the corresponding action.
    """

    CREATED = "active"
    SCHEDULING = "scheduling"
    SCHEDULED = "scheduled"
    PUBLISHING = "publishing"
    PUBLISHED = "published"
    ARCHIVING = "archiving"
    UNARCHIVING = "unarchiving"
    ARCHIVED = "archived"
    DELETED = "deleted"


TERMINAL_STATES = frozenset(
    {ReleaseState.PUBLISHED, ReleaseState.ARCHIVED, ReleaseState.DELETED}
)


@dataclass
class Release:
    """A named bundle of document versions staged for publication."""

    id: str
    title: str
    state: ReleaseState = ReleaseState.CREATED
    release_type: ReleaseType = ReleaseType.UNDECIDED
    description: Optional[str] = None
    intended_publish_at: Optional[str] = None
    publish_at: Optional[str] = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Release":
        """Build a release from its system document (``_.releases.<id>``)."""
        metadata = document.get("metadata") or {}
        release_id = document.get("name") or normalize_release_id(document.get("_id", ""))
        try:
            state = ReleaseState(document.get("state", ReleaseState.CREATED.value))
        except ValueError:
            state = ReleaseState.CREATED
        try:
            release_type = ReleaseType(metadata.get("releaseType", ReleaseType.UNDECIDED.value))
        except ValueError:
            release_type = ReleaseType.UNDECIDED
        return cls(
            id=release_id,
            title=metadata.get("title") or f"Release: {release_id}",
            state=state,
            release_type=release_type,
            description=metadata.get("description"),
            intended_publish_at=metadata.get("intendedPublishAt"),
            publish_at=document.get("publishAt"),
        )

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def to_dict(self) -> dict[str, Any]:
        return {
            "releaseId": self.id,
            "title": self.title,
            "state": self.state.value,
            "releaseType": self.release_type.value,
            "description": self.description,
            "intendedPublishAt": self.intended_publish_at,
            "publishAt": self.publish_at,
        }


@dataclass
class ReleaseDocument:
    """A version attached to a release, mapped back to its base document."""

    version_id: str
    document_id: str
    type: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "versionId": self.version_id,
            "documentId": self.document_id,
            "type": self.type,
            "title": self.title,
        }


@dataclass
class ReleaseDocumentList:
    release_id: str
    documents: list[ReleaseDocument] = field(default_factory=list)

    @property
    def document_count(self) -> int:
        return len(self.documents)

    def to_dict(self) -> dict[str, Any]:
        return {
            "releaseId": self.release_id,
            "documentCount": self.document_count,
            "documents": [doc.to_dict() for doc in self.documents],
        }
