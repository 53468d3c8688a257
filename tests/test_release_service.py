"""Tests for the release lifecycle."""

import pytest

pytestmark = pytest.mark.unit

from contentgate.exceptions import (
    ConfigurationError,
    ConflictError,
    LimitExceededError,
    NotFoundError,
    RepositoryError,
    ValidationError,
)
from contentgate.models.release import ReleaseState
from contentgate.services.release_service import ReleaseService, is_sufficient_api_version


def attach_documents(lake, release_id, count):
    for index in range(count):
        lake.put({"_id": f"versions.{release_id}.doc-{index:03d}", "_type": "post", "title": f"Doc {index}"})


class TestCreateRelease:
    """Test release creation."""

    def test_create_release_action(self, release_service, lake):
        result = release_service.create_release("rel-1", "Spring Launch", release_type="asap")

        assert lake.actions == [[{
            "actionType": "sanity.action.release.create",
            "releaseId": "rel-1",
            "metadata": {"title": "Spring Launch", "releaseType": "asap"},
        }]]
        assert result.to_dict()["releaseId"] == "rel-1"
        assert result.success

    def test_default_title(self, release_service, lake):
        release_service.create_release("rel-2")
        assert lake.actions[0][0]["metadata"] == {"title": "Release: rel-2"}

    def test_system_form_id_is_normalized(self, release_service, lake):
        release_service.create_release("_.releases.rel-3", "T")
        assert lake.actions[0][0]["releaseId"] == "rel-3"

    def test_scheduled_requires_intended_publish_at(self, release_service, lake):
        with pytest.raises(ValidationError, match="intended_publish_at"):
            release_service.create_release("rel-1", "T", release_type="scheduled")
        assert lake.actions == []

    def test_scheduled_with_timestamp(self, release_service, lake):
        release_service.create_release(
            "rel-1", "T", release_type="scheduled", intended_publish_at="2026-03-01T09:00:00Z"
        )
        assert lake.actions[0][0]["metadata"]["intendedPublishAt"] == "2026-03-01T09:00:00Z"

    @pytest.mark.parametrize("release_id", ["", "   ", "rel 1", "rel/1"])
    def test_invalid_release_id(self, release_service, release_id):
        with pytest.raises(ValidationError):
            release_service.create_release(release_id, "T")

    def test_invalid_release_type(self, release_service):
        with pytest.raises(ValidationError, match="release type"):
            release_service.create_release("rel-1", "T", release_type="someday")

    def test_duplicate_id_surfaces_conflict(self, release_service):
        release_service.create_release("rel-1", "T")
        with pytest.raises(ConflictError, match="Failed to create release"):
            release_service.create_release("rel-1", "T")


class TestApiVersion:
    """Test the release API version requirement."""

    @pytest.mark.parametrize(
        "version, expected",
        [
            ("2024-05-23", True),
            ("v2025-02-19", True),
            ("X", True),
            ("vX", True),
            ("2023-08-01", False),
            ("v1", False),
            ("garbage", False),
        ],
    )
    def test_is_sufficient_api_version(self, version, expected):
        assert is_sufficient_api_version(version) is expected

    def test_old_version_fails_before_network(self, lake):
        service = ReleaseService(lake, api_version="2023-08-01")

        with pytest.raises(ConfigurationError, match="2024-05-23"):
            service.create_release("rel-1", "T")
        with pytest.raises(ConfigurationError):
            service.publish_release("rel-1")

        assert lake.actions == []
        assert lake.fetches == []

    def test_listing_documents_checks_version(self, lake):
        lake.put({"_id": "versions.rel-1.post-42", "_type": "post"})
        service = ReleaseService(lake, api_version="2021-06-07")

        with pytest.raises(ConfigurationError):
            service.list_release_documents("rel-1")

        assert lake.fetches == []

    def test_version_from_settings(self, lake, monkeypatch):
        monkeypatch.setenv("SANITY_API_VERSION", "v2021-10-21")
        from contentgate.config import get_settings

        get_settings.cache_clear()
        with pytest.raises(ConfigurationError):
            ReleaseService(lake).list_releases()


class TestAddDocumentToRelease:
    """Test attaching documents as release versions."""

    def test_explicit_content_never_reads(self, release_service, lake):
        release_service.add_document_to_release(
            "rel-1", "post-42", content={"_type": "post", "title": "Override"}
        )

        assert lake.reads == []
        action = lake.actions[0][0]
        assert action["actionType"] == "sanity.action.document.version.create"
        assert action["publishedId"] == "post-42"
        assert action["attributes"] == {
            "_id": "versions.rel-1.post-42",
            "_type": "post",
            "title": "Override",
        }

    def test_published_document_is_used(self, release_service, lake, published_post):
        release_service.add_document_to_release("rel-1", "post-42")

        assert lake.reads == ["post-42"]
        attributes = lake.actions[0][0]["attributes"]
        assert attributes["_id"] == "versions.rel-1.post-42"
        assert attributes["title"] == "Hello"
        assert "_rev" not in attributes

    def test_falls_back_to_draft(self, release_service, lake):
        lake.put({"_id": "drafts.post-7", "_type": "post", "title": "Draft only"})

        release_service.add_document_to_release("rel-1", "post-7")

        assert lake.reads == ["post-7", "drafts.post-7"]
        assert lake.actions[0][0]["attributes"]["title"] == "Draft only"

    def test_missing_everywhere(self, release_service, lake):
        with pytest.raises(NotFoundError, match="post-404"):
            release_service.add_document_to_release("rel-1", "post-404")
        assert lake.reads == ["post-404", "drafts.post-404"]
        assert lake.actions == []

    def test_draft_id_input_is_normalized(self, release_service, lake, published_post):
        result = release_service.add_document_to_release("rel-1", "drafts.post-42")
        assert result.to_dict()["versionIds"] == ["versions.rel-1.post-42"]

    def test_batch_is_one_dispatch(self, release_service, lake, published_post):
        lake.put({"_id": "post-43", "_type": "post", "title": "Other"})

        result = release_service.add_document_to_release("rel-1", ["post-42", "post-43"])

        assert len(lake.actions) == 1
        assert [a["publishedId"] for a in lake.actions[0]] == ["post-42", "post-43"]
        assert result.to_dict()["documentIds"] == ["post-42", "post-43"]

    def test_batch_failure_sends_nothing(self, release_service, lake, published_post):
        with pytest.raises(NotFoundError):
            release_service.add_document_to_release("rel-1", ["post-42", "missing"])
        assert lake.actions == []

    def test_version_id_rejected(self, release_service, lake):
        with pytest.raises(ValidationError, match="already a version"):
            release_service.add_document_to_release("rel-1", "versions.rel-0.post-42")

    def test_empty_batch_rejected(self, release_service):
        with pytest.raises(ValidationError):
            release_service.add_document_to_release("rel-1", [])

    def test_read_failure_gets_context(self, release_service, lake):
        def fail(document_id):
            raise RepositoryError("timeout")

        lake.read_hook = fail
        with pytest.raises(RepositoryError, match="Failed to add document to release: timeout"):
            release_service.add_document_to_release("rel-1", "post-42")


class TestReleaseDocuments:
    """Test listing and removing release documents."""

    def test_list_release_documents(self, release_service, lake):
        lake.put({"_id": "versions.rel-1.post-42", "_type": "post", "title": "Hello"})
        lake.put({"_id": "versions.rel-1.author.jane", "_type": "author"})
        lake.put({"_id": "versions.rel-10.other", "_type": "post"})
        lake.put({"_id": "post-42", "_type": "post"})

        listing = release_service.list_release_documents("rel-1")

        query, params = lake.fetches[0]
        assert params == {"pattern": "versions.rel-1.**"}
        assert listing.to_dict() == {
            "releaseId": "rel-1",
            "documentCount": 2,
            "documents": [
                {
                    "versionId": "versions.rel-1.author.jane",
                    "documentId": "author.jane",
                    "type": "author",
                    "title": "Untitled",
                },
                {
                    "versionId": "versions.rel-1.post-42",
                    "documentId": "post-42",
                    "type": "post",
                    "title": "Hello",
                },
            ],
        }

    def test_remove_document_from_release(self, release_service, lake):
        lake.put({"_id": "versions.rel-1.post-42", "_type": "post"})

        release_service.remove_document_from_release("rel-1", "post-42")

        assert lake.actions == [[{
            "actionType": "sanity.action.document.version.discard",
            "versionId": "versions.rel-1.post-42",
            "purge": False,
        }]]
        assert "versions.rel-1.post-42" not in lake.documents

    def test_remove_accepts_version_id(self, release_service, lake):
        lake.put({"_id": "versions.rel-1.post-42", "_type": "post"})
        result = release_service.remove_document_from_release("rel-1", "versions.rel-1.post-42", purge=True)

        assert result.to_dict()["documentId"] == "post-42"
        assert lake.actions[0][0]["purge"] is True

    def test_remove_missing_version(self, release_service, lake):
        with pytest.raises(NotFoundError):
            release_service.remove_document_from_release("rel-1", "post-42")
        assert lake.actions == []

    @pytest.mark.parametrize("document_id", [["post-42"], "", None])
    def test_remove_requires_single_id(self, release_service, lake, document_id):
        lake.put({"_id": "versions.rel-1.post-42", "_type": "post"})

        with pytest.raises(ValidationError):
            release_service.remove_document_from_release("rel-1", document_id)

        assert lake.reads == []
        assert lake.actions == []

    def test_unpublish_document_with_release(self, release_service, lake):
        release_service.unpublish_document_with_release(
            ["versions.rel-1.post-42", "versions.rel-1.author.jane"]
        )

        assert lake.actions == [[
            {
                "actionType": "sanity.action.document.version.unpublish",
                "versionId": "versions.rel-1.post-42",
                "publishedId": "post-42",
            },
            {
                "actionType": "sanity.action.document.version.unpublish",
                "versionId": "versions.rel-1.author.jane",
                "publishedId": "author.jane",
            },
        ]]

    def test_unpublish_requires_version_ids(self, release_service, lake):
        with pytest.raises(ValidationError):
            release_service.unpublish_document_with_release("post-42")
        assert lake.actions == []


class TestPublishRelease:
    """Test the release document limit on publish."""

    def test_over_limit_never_publishes(self, release_service, lake):
        attach_documents(lake, "rel-1", 51)

        with pytest.raises(LimitExceededError) as exc_info:
            release_service.publish_release("rel-1")

        assert exc_info.value.limit == 50
        assert exc_info.value.actual == 51
        assert "51 documents" in str(exc_info.value)
        assert lake.actions == []

    def test_at_limit_publishes_once(self, release_service, lake):
        attach_documents(lake, "rel-1", 50)

        result = release_service.publish_release("rel-1")

        assert lake.actions == [[{"actionType": "sanity.action.release.publish", "releaseId": "rel-1"}]]
        assert result.to_dict()["documentCount"] == 50

    def test_limit_from_settings(self, lake, monkeypatch):
        monkeypatch.setenv("RELEASE_DOCUMENT_LIMIT", "2")
        from contentgate.config import get_settings

        get_settings.cache_clear()
        attach_documents(lake, "rel-1", 3)

        with pytest.raises(LimitExceededError):
            ReleaseService(lake, api_version="2024-05-23").publish_release("rel-1")


class TestReleaseTransitions:
    """Test metadata edits and state transitions."""

    def test_update_release_uses_dotted_paths(self, release_service, lake):
        release_service.update_release("rel-1", title="New", description="Desc")

        action = lake.actions[0][0]
        assert action["actionType"] == "sanity.action.release.edit"
        assert action["patch"] == {"set": {"metadata.title": "New", "metadata.description": "Desc"}}

    def test_update_requires_a_field(self, release_service, lake):
        with pytest.raises(ValidationError):
            release_service.update_release("rel-1")
        assert lake.actions == []

    def test_schedule_release(self, release_service, lake):
        result = release_service.schedule_release("rel-1", "2026-06-01T12:00:00+02:00")

        assert lake.actions[0][0] == {
            "actionType": "sanity.action.release.schedule",
            "releaseId": "rel-1",
            "publishAt": "2026-06-01T12:00:00+02:00",
        }
        assert result.to_dict()["scheduledTime"] == "2026-06-01T12:00:00+02:00"

    def test_schedule_rejects_bad_timestamp(self, release_service, lake):
        with pytest.raises(ValidationError):
            release_service.schedule_release("rel-1", "next tuesday")
        assert lake.actions == []

    @pytest.mark.parametrize(
        "method, action_type",
        [
            ("unschedule_release", "sanity.action.release.unschedule"),
            ("archive_release", "sanity.action.release.archive"),
            ("unarchive_release", "sanity.action.release.unarchive"),
            ("delete_release", "sanity.action.release.delete"),
        ],
    )
    def test_simple_transitions(self, release_service, lake, method, action_type):
        release_service.create_release("rel-1", "T")
        getattr(release_service, method)("rel-1")

        assert lake.actions[-1] == [{"actionType": action_type, "releaseId": "rel-1"}]

    def test_delete_is_not_checked_locally(self, release_service, lake):
        """Deleting an unarchived release is left to the repository."""
        release_service.create_release("rel-1", "T")
        release_service.delete_release("rel-1")
        assert lake.action_types()[-1] == "sanity.action.release.delete"

    def test_transition_failure_gets_context(self, release_service, lake):
        lake.fail_with = RepositoryError("release must be archived", status_code=400)
        with pytest.raises(RepositoryError, match="Failed to delete release: release must be archived"):
            release_service.delete_release("rel-1")


class TestReadingReleases:
    """Test get_release and list_releases."""

    def test_get_release(self, release_service, lake):
        release_service.create_release("rel-1", "Spring", description="Launch", release_type="asap")

        release = release_service.get_release("rel-1")

        assert release.id == "rel-1"
        assert release.title == "Spring"
        assert release.description == "Launch"
        assert release.state == ReleaseState.CREATED
        assert lake.fetches[-1][1] == {"id": "_.releases.rel-1"}

    def test_get_missing_release(self, release_service):
        with pytest.raises(NotFoundError):
            release_service.get_release("nope")

    def test_list_releases_hides_terminal(self, release_service, lake):
        release_service.create_release("rel-1", "A")
        release_service.create_release("rel-2", "B")
        release_service.archive_release("rel-2")

        assert [r.id for r in release_service.list_releases()] == ["rel-1"]
        assert [r.id for r in release_service.list_releases(include_all=True)] == ["rel-1", "rel-2"]
