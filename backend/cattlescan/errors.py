"""Typed failures raised by the scan, review and moderation services."""

from __future__ import annotations

STAGE_INFERENCE = "inference"
STAGE_UPLOAD = "upload"
STAGE_PERSISTENCE = "persistence"


class ScanError(RuntimeError):
    """Base class for every failure the core services raise on purpose."""


class StageFailure(ScanError):
    """A pipeline stage failed; ``stage`` names which one.

    ``orphaned_artifact_urls`` lists objects that were stored before the failure
    and are now referenced by no record. They are never cleaned up here.
    """

    stage: str = ""

    def __init__(self, message: str, *, orphaned_artifact_urls: list[str] | None = None) -> None:
        super().__init__(message)
        self.orphaned_artifact_urls = list(orphaned_artifact_urls or [])


class InferenceFailure(StageFailure):
    """Classifier unreachable, non-success response, or an empty/garbled result."""

    stage = STAGE_INFERENCE


class StorageFailure(StageFailure):
    """Artifact upload rejected or the object store could not be reached."""

    stage = STAGE_UPLOAD


class PersistenceFailure(StageFailure):
    """Scan record store rejected the write (constraint violation, outage)."""

    stage = STAGE_PERSISTENCE

    def __init__(
        self,
        message: str,
        *,
        orphaned_artifact_url: str | None = None,
        orphaned_artifact_urls: list[str] | None = None,
    ) -> None:
        urls = list(orphaned_artifact_urls or [])
        if orphaned_artifact_url and orphaned_artifact_url not in urls:
            urls.insert(0, orphaned_artifact_url)
        super().__init__(message, orphaned_artifact_urls=urls)

    @property
    def orphaned_artifact_url(self) -> str | None:
        return self.orphaned_artifact_urls[0] if self.orphaned_artifact_urls else None


class PreconditionFailure(ScanError):
    """A required identity or selection is missing, or the state forbids the call."""

    def __init__(self, message: str, *, login_required: bool = False) -> None:
        super().__init__(message)
        self.login_required = login_required


class ValidationFailure(ScanError):
    """Out-of-range numeric input or an unknown vocabulary value."""


class SubmissionCancelled(ScanError):
    """A stage result arrived after the pipeline was reset and was discarded.

    ``orphaned_artifact_urls`` lists uploads the cancelled attempt left behind.
    ``scan_id`` is set when the scan record was already committed.
    """

    def __init__(
        self,
        message: str,
        *,
        orphaned_artifact_urls: list[str] | None = None,
        scan_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.orphaned_artifact_urls = list(orphaned_artifact_urls or [])
        self.scan_id = scan_id
