"""Document identity derivation for drafts, release versions and releases.

A document at rest is addressed by its base id. The same document has a draft
form (``drafts.<baseId>``) and zero or more release-scoped versions
(``versions.<releaseId>.<baseId>``). Release system documents live under
``_.releases.<releaseId>``.
"""

DRAFTS_PREFIX = "drafts."
VERSIONS_PREFIX = "versions."
RELEASES_PREFIX = "_.releases."


def is_draft_id(document_id: str) -> bool:
    return document_id.startswith(DRAFTS_PREFIX)


def normalize_base_id(document_id: str) -> str:
    """Strip a leading draft prefix, returning the base id."""
    if is_draft_id(document_id):
        return document_id[len(DRAFTS_PREFIX):]
    return document_id


def draft_id(base_id: str) -> str:
    """Return the draft id for a base id."""
    return f"{DRAFTS_PREFIX}{base_id}"


def normalize_draft_id(document_id: str) -> str:
    """Return the draft id for a document id given in either form."""
    return draft_id(normalize_base_id(document_id))


def version_prefix(release_id: str) -> str:
    """Return the id prefix shared by every version in a release."""
    return f"{VERSIONS_PREFIX}{release_id}."


def version_id(release_id: str, base_id: str) -> str:
    """Return the id of a document's version inside a release."""
    return f"{version_prefix(release_id)}{base_id}"


def is_version_id(document_id: str) -> bool:
    return document_id.startswith(VERSIONS_PREFIX)


def split_version_id(document_id: str) -> tuple[str, str]:
    """
    Decompose a version id into ``(release_id, base_id)``.

    Release ids never contain dots, so the release segment ends at the first
    dot after the prefix and everything after it is the base id.

    Raises:
        ValueError: If the id is not a version id
    """
    if not is_version_id(document_id):
        raise ValueError(f"'{document_id}' is not a version id")
    release_id, sep, base_id = document_id[len(VERSIONS_PREFIX):].partition(".")
    if not release_id or not sep or not base_id:
        raise ValueError(f"'{document_id}' is not a version id")
    return release_id, base_id


def base_id_from_version(release_id: str, document_id: str) -> str:
    """Strip the version prefix of ``release_id`` from a version id."""
    prefix = version_prefix(release_id)
    if document_id.startswith(prefix):
        return document_id[len(prefix):]
    return document_id


def normalize_release_id(release_id: str) -> str:
    """Accept a release id in plain or system form (``_.releases.<id>``)."""
    return release_id.rsplit(".", 1)[-1]


def release_document_id(release_id: str) -> str:
    """Return the id of a release's system document."""
    return f"{RELEASES_PREFIX}{normalize_release_id(release_id)}"
