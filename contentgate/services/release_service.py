"""Release service layer: staging document versions and publishing them together."""

import logging
import re
from datetime import datetime
from typing import Any

from contentgate.config import get_settings
from contentgate.exceptions import (
    ConfigurationError,
    LimitExceededError,
    NotFoundError,
    RepositoryError,
    ValidationError,
)
from contentgate.identity import (
    base_id_from_version,
    draft_id,
    is_version_id,
    normalize_base_id,
    normalize_release_id,
    release_document_id,
    split_version_id,
    version_id,
    version_prefix,
)
from contentgate.models.action import (
    Action,
    ActionType,
    release_action,
    release_create_action,
    release_edit_action,
    version_create_action,
    version_discard_action,
    version_unpublish_action,
)
from contentgate.models.release import Release, ReleaseDocument, ReleaseDocumentList, ReleaseType
from contentgate.models.result import OperationResult
from contentgate.storage.actions import ActionDispatcher

logger = logging.getLogger(__name__)

REQUIRED_API_VERSION = "2024-05-23"
RELEASE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")

RELEASE_DOCUMENTS_QUERY = "*[_id in path($pattern)]{_id, _type, title}"
RELEASE_QUERY = "*[_id == $id][0]"
ALL_RELEASES_QUERY = "releases::all()"


def is_sufficient_api_version(version: str, required: str = REQUIRED_API_VERSION) -> bool:
    """
    Check whether a dated API version supports releases.

    ``X`` (experimental) always passes. Versions may carry a leading ``v``.
    """
    version = version.strip()
    if version.lower().startswith("v"):
        version = version[1:]
    if version.upper() == "X":
        return True
    try:
        return datetime.strptime(version, "%Y-%m-%d") >= datetime.strptime(required, "%Y-%m-%d")
    except ValueError:
        return False


class ReleaseService:
    """Service layer for the release lifecycle.

    A release is created empty, collects document versions
    (``versions.<releaseId>.<baseId>``) and is then published, scheduled,
    archived or deleted through repository actions. The repository owns the
    state machine; deleting a release that isn't archived is rejected there,
    not here.
    """

    def __init__(
        self,
        client: Any,
        dispatcher: ActionDispatcher | None = None,
        document_limit: int | None = None,
        api_version: str | None = None,
    ):
        """
        Initialize release service.

        Args:
            client: Repository client exposing fetch(), get_document() and
                    perform_actions()
            dispatcher: Action dispatcher. If None, one is created over ``client``.
            document_limit: Maximum versions a release may hold when published.
                            If None, reads from settings.
            api_version: API version in use. If None, reads from settings.
        """
        settings = get_settings()
        self.client = client
        self.dispatcher = dispatcher or ActionDispatcher(client)
        self.document_limit = (
            document_limit if document_limit is not None else settings.release_document_limit
        )
        self.api_version = api_version or settings.get_api_version()

    # Release CRUD

    def create_release(
        self,
        release_id: str,
        title: str | None = None,
        description: str | None = None,
        release_type: str | None = None,
        intended_publish_at: str | None = None,
    ) -> OperationResult:
        """
        Create a new, empty release.

        Args:
            release_id: Caller-chosen release ID. Must be unique; a collision is
                        reported by the repository as a conflict.
            title: Display title. Defaults to "Release: <release_id>".
            description: Optional description
            release_type: "asap", "scheduled" or "undecided"
            intended_publish_at: ISO-8601 timestamp, required for scheduled releases

        Returns:
            Result with releaseId

        Raises:
            ValidationError: If the ID, type or timestamp is invalid
            ConfigurationError: If the API version predates releases
            ConflictError: If the release ID is already taken
            RepositoryError: If the action fails
        """
        self._check_api_version()
        rid = self._validate_release_id(release_id)

        metadata: dict[str, Any] = {"title": title or f"Release: {rid}"}
        if description:
            metadata["description"] = description
        if release_type is not None:
            release_type = self._validate_release_type(release_type)
            metadata["releaseType"] = release_type
        if intended_publish_at is not None:
            metadata["intendedPublishAt"] = self._validate_timestamp(
                intended_publish_at, "intended_publish_at"
            )
        if release_type == ReleaseType.SCHEDULED.value and "intendedPublishAt" not in metadata:
            raise ValidationError(
                "Scheduled releases require intended_publish_at", "intended_publish_at"
            )

        result = self._perform([release_create_action(rid, metadata)], "Failed to create release")
        return OperationResult(
            message=f"Release {rid} created",
            data={"releaseId": rid, "metadata": metadata},
            result=result,
        )

    def get_release(self, release_id: str) -> Release:
        """
        Get a release by ID.

        Raises:
            NotFoundError: If the release doesn't exist
        """
        self._check_api_version()
        rid = self._validate_release_id(release_id)
        document = self._fetch(
            RELEASE_QUERY, {"id": release_document_id(rid)}, "Failed to get release"
        )
        if not document:
            raise NotFoundError("Release", rid)
        return Release.from_document(document)

    def list_releases(self, include_all: bool = False) -> list[Release]:
        """
        List releases.

        Args:
            include_all: If False, only releases that are not published,
                         archived or deleted are returned

        Returns:
            Releases in repository order
        """
        self._check_api_version()
        documents = self._fetch(ALL_RELEASES_QUERY, {}, "Failed to list releases") or []
        releases = [Release.from_document(document) for document in documents]
        if include_all:
            return releases
        return [release for release in releases if not release.is_terminal]

    def update_release(
        self,
        release_id: str,
        title: str | None = None,
        description: str | None = None,
        release_type: str | None = None,
        intended_publish_at: str | None = None,
    ) -> OperationResult:
        """
        Update release metadata.

        Raises:
            ValidationError: If no field is given or a value is invalid
        """
        self._check_api_version()
        rid = self._validate_release_id(release_id)

        set_fields: dict[str, Any] = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("Release title cannot be empty", "title")
            set_fields["metadata.title"] = title
        if description is not None:
            set_fields["metadata.description"] = description
        if release_type is not None:
            set_fields["metadata.releaseType"] = self._validate_release_type(release_type)
        if intended_publish_at is not None:
            set_fields["metadata.intendedPublishAt"] = self._validate_timestamp(
                intended_publish_at, "intended_publish_at"
            )
        if not set_fields:
            raise ValidationError(
                "At least one of title, description, release_type or intended_publish_at is required",
                "release",
            )

        result = self._perform([release_edit_action(rid, set_fields)], "Failed to update release")
        return OperationResult(
            message=f"Release {rid} updated",
            data={"releaseId": rid, "updatedFields": sorted(set_fields)},
            result=result,
        )

    # Release membership

    def add_document_to_release(
        self,
        release_id: str,
        document_ids: str | list[str],
        content: dict[str, Any] | None = None,
    ) -> OperationResult:
        """
        Attach documents to a release as versions.

        Each document is resolved first (explicit ``content``, else the
        published document, else its draft); then a single dispatcher call
        creates every version. If any document can't be resolved, no action
        is sent.

        Args:
            release_id: Release ID
            document_ids: Base document ID or list of IDs
            content: Optional explicit version body, used verbatim for every
                     document instead of reading the repository

        Returns:
            Result with releaseId, documentIds and versionIds

        Raises:
            ValidationError: If an ID is empty or is itself a version ID
            NotFoundError: If neither a published nor a draft document exists
            RepositoryError: If a read or the action fails
        """
        self._check_api_version()
        rid = self._validate_release_id(release_id)
        ids = self._as_id_list(document_ids, "document_ids")
        if content is not None and not isinstance(content, dict):
            raise ValidationError("Version content must be an object", "content")

        actions: list[Action] = []
        version_ids = []
        base_ids = []
        for document_id in ids:
            if is_version_id(document_id):
                raise ValidationError(
                    f"'{document_id}' is already a version; pass the base document ID",
                    "document_ids",
                )
            base_id = normalize_base_id(document_id)
            attributes = dict(content) if content is not None else self._resolve_source(base_id)
            target_id = version_id(rid, base_id)
            attributes["_id"] = target_id
            attributes.pop("_rev", None)
            actions.append(version_create_action(base_id, attributes))
            version_ids.append(target_id)
            base_ids.append(base_id)

        result = self._perform(actions, "Failed to add document to release")
        return OperationResult(
            message=f"Added {len(base_ids)} document(s) to release {rid}",
            data={"releaseId": rid, "documentIds": base_ids, "versionIds": version_ids},
            result=result,
        )

    def remove_document_from_release(
        self, release_id: str, document_id: str, purge: bool = False
    ) -> OperationResult:
        """
        Discard a document's version from a release.

        Raises:
            NotFoundError: If the document has no version in the release
        """
        self._check_api_version()
        rid = self._validate_release_id(release_id)
        self._validate_document_id(document_id)
        base_id = base_id_from_version(rid, normalize_base_id(document_id))
        target_id = version_id(rid, base_id)

        try:
            existing = self.client.get_document(target_id)
        except RepositoryError as e:
            raise e.with_context("Failed to remove document from release") from e
        if existing is None:
            raise NotFoundError("Version", target_id)

        result = self._perform(
            [version_discard_action(target_id, purge=purge)],
            "Failed to remove document from release",
        )
        return OperationResult(
            message=f"Removed document {base_id} from release {rid}",
            data={"releaseId": rid, "documentId": base_id, "versionId": target_id},
            result=result,
        )

    def unpublish_document_with_release(self, version_ids: str | list[str]) -> OperationResult:
        """
        Mark published documents to be unpublished when their release publishes.

        Args:
            version_ids: Version ID (``versions.<releaseId>.<baseId>``) or list of them

        Raises:
            ValidationError: If an ID is not a version ID
        """
        self._check_api_version()
        ids = self._as_id_list(version_ids, "version_ids")
        actions = []
        published_ids = []
        for vid in ids:
            try:
                _, base_id = split_version_id(vid)
            except ValueError as e:
                raise ValidationError(str(e), "version_ids") from None
            actions.append(version_unpublish_action(vid, base_id))
            published_ids.append(base_id)

        result = self._perform(actions, "Failed to unpublish document with release")
        return OperationResult(
            message=f"Marked {len(ids)} document(s) for unpublishing with release",
            data={"versionIds": ids, "documentIds": published_ids},
            result=result,
        )

    def list_release_documents(self, release_id: str) -> ReleaseDocumentList:
        """
        List the versions attached to a release.

        Returns:
            ReleaseDocumentList mapping each version back to its base document
        """
        self._check_api_version()
        rid = self._validate_release_id(release_id)
        documents = self._fetch(
            RELEASE_DOCUMENTS_QUERY,
            {"pattern": f"{version_prefix(rid)}**"},
            "Failed to list release documents",
        ) or []

        entries = []
        for document in documents:
            vid = document.get("_id", "")
            entries.append(
                ReleaseDocument(
                    version_id=vid,
                    document_id=base_id_from_version(rid, vid),
                    type=document.get("_type", ""),
                    title=document.get("title") or "Untitled",
                )
            )
        return ReleaseDocumentList(release_id=rid, documents=entries)

    # Release transitions

    def publish_release(self, release_id: str) -> OperationResult:
        """
        Publish every version in a release.

        Raises:
            LimitExceededError: If the release holds more versions than the
                                limit; no publish action is sent
            RepositoryError: If listing or the action fails
        """
        self._check_api_version()
        rid = self._validate_release_id(release_id)
        listing = self.list_release_documents(rid)
        if listing.document_count > self.document_limit:
            raise LimitExceededError("Release", rid, self.document_limit, listing.document_count)

        result = self._perform(
            [release_action(ActionType.RELEASE_PUBLISH, rid)], "Failed to publish release"
        )
        return OperationResult(
            message=f"Release {rid} published with {listing.document_count} document(s)",
            data={"releaseId": rid, "documentCount": listing.document_count},
            result=result,
        )

    def schedule_release(self, release_id: str, publish_at: str) -> OperationResult:
        """Schedule a release to publish at an ISO-8601 timestamp."""
        self._check_api_version()
        rid = self._validate_release_id(release_id)
        publish_at = self._validate_timestamp(publish_at, "publish_at")
        result = self._perform(
            [release_action(ActionType.RELEASE_SCHEDULE, rid, publishAt=publish_at)],
            "Failed to schedule release",
        )
        return OperationResult(
            message=f"Release {rid} scheduled for {publish_at}",
            data={"releaseId": rid, "scheduledTime": publish_at},
            result=result,
        )

    def unschedule_release(self, release_id: str) -> OperationResult:
        return self._transition(ActionType.RELEASE_UNSCHEDULE, release_id, "unscheduled")

    def archive_release(self, release_id: str) -> OperationResult:
        return self._transition(ActionType.RELEASE_ARCHIVE, release_id, "archived")

    def unarchive_release(self, release_id: str) -> OperationResult:
        return self._transition(ActionType.RELEASE_UNARCHIVE, release_id, "unarchived")

    def delete_release(self, release_id: str) -> OperationResult:
        """Delete a release. The repository rejects this unless it is archived."""
        return self._transition(ActionType.RELEASE_DELETE, release_id, "deleted")

    def _transition(self, action_type: ActionType, release_id: str, verb: str) -> OperationResult:
        self._check_api_version()
        rid = self._validate_release_id(release_id)
        context = f"Failed to {verb.removesuffix('d')} release"
        result = self._perform([release_action(action_type, rid)], context)
        return OperationResult(
            message=f"Release {rid} {verb}",
            data={"releaseId": rid},
            result=result,
        )

    # Helpers

    def _resolve_source(self, base_id: str) -> dict[str, Any]:
        """Read the published document, falling back to its draft."""
        try:
            document = self.client.get_document(base_id)
            if document is None:
                document = self.client.get_document(draft_id(base_id))
        except RepositoryError as e:
            raise e.with_context("Failed to add document to release") from e
        if document is None:
            raise NotFoundError("Document", base_id)
        return dict(document)

    def _perform(self, actions: list[Action], context: str) -> Any:
        try:
            return self.dispatcher.perform(actions)
        except RepositoryError as e:
            logger.error(f"{context}: {e}")
            raise e.with_context(context) from e

    def _fetch(self, query: str, params: dict[str, Any], context: str) -> Any:
        try:
            return self.client.fetch(query, params)
        except RepositoryError as e:
            logger.error(f"{context}: {e}")
            raise e.with_context(context) from e

    def _check_api_version(self) -> None:
        if not is_sufficient_api_version(self.api_version):
            raise ConfigurationError(
                f"API version {self.api_version} does not support releases. "
                f"Set SANITY_API_VERSION to {REQUIRED_API_VERSION} or later."
            )

    @staticmethod
    def _validate_release_id(release_id: Any) -> str:
        if not isinstance(release_id, str) or not release_id.strip():
            raise ValidationError("Release ID cannot be empty", "release_id")
        rid = normalize_release_id(release_id.strip())
        if not RELEASE_ID_PATTERN.match(rid):
            raise ValidationError(
                f"Invalid release ID '{release_id}': use letters, digits, '-' or '_'",
                "release_id",
            )
        return rid

    @staticmethod
    def _validate_release_type(release_type: str) -> str:
        try:
            return ReleaseType(release_type).value
        except ValueError:
            allowed = ", ".join(t.value for t in ReleaseType)
            raise ValidationError(
                f"Invalid release type '{release_type}': must be one of {allowed}", "release_type"
            ) from None

    @staticmethod
    def _validate_timestamp(value: Any, field: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{field} must be an ISO-8601 timestamp", field)
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(
                f"{field} must be an ISO-8601 timestamp, got '{value}'", field
            ) from None
        return value

    @staticmethod
    def _validate_document_id(document_id: Any) -> None:
        if not isinstance(document_id, str) or not document_id.strip():
            raise ValidationError("Document ID must be a non-empty string", "document_id")

    @staticmethod
    def _as_id_list(value: Any, field: str) -> list[str]:
        ids = value if isinstance(value, list) else [value]
        if not ids:
            raise ValidationError("At least one document ID is required", field)
        for item in ids:
            if not isinstance(item, str) or not item.strip():
                raise ValidationError("Document ID must be a non-empty string", field)
        return ids
