"""Staged submission pipeline: inference, artifact upload, location and persistence.

Each stage runs at most once per attempt and in strict order, because every
stage consumes the previous stage's output. The pipeline never retries on its
own: an upload that succeeded before persistence failed is reported as an
orphaned artifact and can only be reused through ``resume_persistence``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from time import perf_counter
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cattlescan.errors import (
    STAGE_INFERENCE,
    STAGE_PERSISTENCE,
    STAGE_UPLOAD,
    InferenceFailure,
    PersistenceFailure,
    PreconditionFailure,
    StageFailure,
    SubmissionCancelled,
    ValidationFailure,
)
from cattlescan.inference.classifier_interface import ImageClassifier
from cattlescan.inference.http_classifier import rank_predictions
from cattlescan.inference.types import ImagePayload, Prediction
from cattlescan.services.location import Coordinates, LocationResolver, resolve_location_or_none
from cattlescan.services.scans import create_scan
from cattlescan.services.storage import ArtifactStore, build_artifact_path

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineState(str, Enum):
    IDLE = "idle"
    INFERRING = "inferring"
    UPLOADING = "uploading"
    PERSISTING = "persisting"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class PipelineSnapshot:
    """Immutable view of the pipeline at one instant."""

    state: PipelineState
    failed_stage: str | None = None
    error: str | None = None
    predictions: tuple[Prediction, ...] = ()
    artifact_url: str | None = None
    location: Coordinates | None = None
    scan_id: str | None = None


@dataclass(slots=True, frozen=True)
class SubmissionOutcome:
    """Successful submission result."""

    scan_id: str
    image_url: str
    predictions: tuple[Prediction, ...]
    location: Coordinates | None

    @property
    def headline(self) -> Prediction:
        return self.predictions[0]


class SubmissionPipeline:
    """One submission at a time: ``IDLE -> INFERRING -> UPLOADING -> PERSISTING -> COMPLETE``.

    Any stage failure moves to ``FAILED`` with ``failed_stage`` set and a new
    submission then requires ``reset()``. ``reset()`` is valid from every state;
    a stage result that comes back after a reset is discarded and reported as
    ``SubmissionCancelled`` instead of being recorded as that stage's success.
    """

    def __init__(
        self,
        db: Session,
        classifier: ImageClassifier,
        store: ArtifactStore,
        *,
        location_resolver: LocationResolver | None = None,
        artifact_prefix: str | None = None,
    ) -> None:
        self._db = db
        self._classifier = classifier
        self._store = store
        self._location_resolver = location_resolver
        self._artifact_prefix = artifact_prefix
        self._lock = Lock()
        self._generation = 0
        self._clear()

    @property
    def state(self) -> PipelineState:
        return self._state

    def snapshot(self) -> PipelineSnapshot:
        with self._lock:
            return PipelineSnapshot(
                state=self._state,
                failed_stage=self._failed_stage,
                error=self._error,
                predictions=self._predictions,
                artifact_url=self._artifact_url,
                location=self._location,
                scan_id=self._scan_id,
            )

    def reset(self) -> None:
        """Return to ``IDLE`` and drop every retained or in-flight result."""

        with self._lock:
            self._generation += 1
            previous = self._state
            self._clear()
        logger.info("submission.reset previous_state=%s", previous.value)

    def submit(self, image: ImagePayload, submitter_id: str | None = None) -> SubmissionOutcome:
        """Run every stage in order and return the persisted scan id."""

        started = perf_counter()
        with self._lock:
            if self._state is not PipelineState.IDLE:
                raise PreconditionFailure(
                    f"Pipeline is {self._state.value}; reset it before starting a new submission"
                )
            attempt = self._generation
            self._state = PipelineState.INFERRING
            self._submitter_id = submitter_id

        predictions = self._run_stage(attempt, STAGE_INFERENCE, lambda: self._classify(image))
        self._advance(attempt, STAGE_INFERENCE, PipelineState.UPLOADING, predictions=predictions)

        path = build_artifact_path(image.filename, prefix=self._artifact_prefix)
        artifact_url = self._run_stage(
            attempt,
            STAGE_UPLOAD,
            lambda: self._store.upload(path, image.content, image.content_type),
        )
        self._advance(attempt, STAGE_UPLOAD, PipelineState.PERSISTING, artifact_url=artifact_url)

        return self._persist(attempt, started, artifact_url)

    def resume_persistence(
        self,
        *,
        image_url: str | None = None,
        predictions: list[Prediction] | None = None,
        submitter_id: str | None = None,
    ) -> SubmissionOutcome:
        """Retry only the persistence stage for an artifact that is already uploaded.

        From ``FAILED(persistence)`` the retained artifact URL and predictions are
        reused. From ``IDLE`` the caller supplies both; nothing is re-uploaded.
        """

        started = perf_counter()
        with self._lock:
            if self._state is PipelineState.FAILED and self._failed_stage == STAGE_PERSISTENCE:
                if image_url is not None and image_url != self._artifact_url:
                    raise PreconditionFailure("Retry must reuse the artifact that was already uploaded")
                if submitter_id is not None:
                    self._submitter_id = submitter_id
            elif self._state is PipelineState.IDLE:
                if not image_url or not predictions:
                    raise PreconditionFailure("image_url and predictions are required to resume persistence")
                try:
                    self._predictions = _normalize_predictions(predictions)
                except InferenceFailure as exc:
                    raise ValidationFailure(str(exc)) from exc
                self._artifact_url = image_url
                self._submitter_id = submitter_id
            else:
                raise PreconditionFailure(f"Cannot resume persistence from state {self._state.value}")
            attempt = self._generation
            artifact_url = self._artifact_url
            self._state = PipelineState.PERSISTING
            self._failed_stage = None
            self._error = None

        return self._persist(attempt, started, artifact_url)

    def _persist(self, attempt: int, started: float, artifact_url: str) -> SubmissionOutcome:
        with self._lock:
            self._ensure_current(attempt, STAGE_PERSISTENCE, orphaned_artifact_url=artifact_url)
            predictions = self._predictions
            submitter_id = self._submitter_id

        location = resolve_location_or_none(self._location_resolver)
        with self._lock:
            self._ensure_current(attempt, STAGE_PERSISTENCE, orphaned_artifact_url=artifact_url)
            self._location = location

        stage_started = perf_counter()
        try:
            scan = create_scan(
                self._db,
                image_url=artifact_url,
                predictions=predictions,
                location=location,
                submitter_id=submitter_id,
            )
        except SQLAlchemyError as exc:
            self._db.rollback()
            failure = PersistenceFailure(f"Saving scan failed: {exc}", orphaned_artifact_url=artifact_url)
            logger.error(
                "submission.orphaned_artifact image_url=%s reason=%s",
                artifact_url,
                exc.__class__.__name__,
            )
            self._record_failure(attempt, STAGE_PERSISTENCE, failure)
            raise failure from exc

        with self._lock:
            if self._generation != attempt:
                logger.warning("submission.persisted_after_reset scan_id=%s image_url=%s", scan.id, artifact_url)
                raise SubmissionCancelled(
                    f"Submission was reset while persistence was in flight; scan {scan.id} was saved",
                    scan_id=scan.id,
                )
            self._state = PipelineState.COMPLETE
            self._scan_id = scan.id

        logger.info(
            "submission.complete scan_id=%s headline=%s location=%s persist_ms=%.2f total_ms=%.2f",
            scan.id,
            predictions[0].label,
            "yes" if location else "no",
            (perf_counter() - stage_started) * 1000.0,
            (perf_counter() - started) * 1000.0,
        )
        return SubmissionOutcome(
            scan_id=scan.id,
            image_url=artifact_url,
            predictions=predictions,
            location=location,
        )

    def _classify(self, image: ImagePayload) -> tuple[Prediction, ...]:
        return _normalize_predictions(self._classifier.classify(image))

    def _run_stage(self, attempt: int, stage: str, call: Callable[[], T]) -> T:
        stage_started = perf_counter()
        try:
            result = call()
        except StageFailure as exc:
            self._record_failure(attempt, stage, exc)
            raise
        logger.info(
            "submission.stage_complete stage=%s elapsed_ms=%.2f",
            stage,
            (perf_counter() - stage_started) * 1000.0,
        )
        return result

    def _advance(self, attempt: int, stage: str, next_state: PipelineState, **fields: object) -> None:
        with self._lock:
            self._ensure_current(attempt, stage, orphaned_artifact_url=fields.get("artifact_url"))  # type: ignore[arg-type]
            if "predictions" in fields:
                self._predictions = fields["predictions"]  # type: ignore[assignment]
            if "artifact_url" in fields:
                self._artifact_url = fields["artifact_url"]  # type: ignore[assignment]
            self._state = next_state

    def _record_failure(self, attempt: int, stage: str, exc: Exception) -> None:
        with self._lock:
            if self._generation != attempt:
                orphans = exc.orphaned_artifact_urls if isinstance(exc, StageFailure) else []
                raise SubmissionCancelled(
                    f"Submission was reset while {stage} was in flight",
                    orphaned_artifact_urls=orphans,
                ) from exc
            self._state = PipelineState.FAILED
            self._failed_stage = stage
            self._error = str(exc)
        logger.warning("submission.stage_failed stage=%s error=%s", stage, exc)

    def _ensure_current(self, attempt: int, stage: str, orphaned_artifact_url: str | None = None) -> None:
        if self._generation == attempt:
            return
        if orphaned_artifact_url:
            logger.error(
                "submission.orphaned_artifact image_url=%s reason=reset_during_%s",
                orphaned_artifact_url,
                stage,
            )
        raise SubmissionCancelled(
            f"Submission was reset while {stage} was in flight; result discarded",
            orphaned_artifact_urls=[orphaned_artifact_url] if orphaned_artifact_url else None,
        )

    def _clear(self) -> None:
        self._state = PipelineState.IDLE
        self._failed_stage: str | None = None
        self._error: str | None = None
        self._predictions: tuple[Prediction, ...] = ()
        self._artifact_url: str | None = None
        self._location: Coordinates | None = None
        self._scan_id: str | None = None
        self._submitter_id: str | None = None


def _normalize_predictions(predictions: list[Prediction] | tuple[Prediction, ...]) -> tuple[Prediction, ...]:
    """Collapse duplicate labels to their best score and re-rank deterministically."""

    if not predictions:
        raise InferenceFailure("Classifier returned no predictions")
    best: dict[str, float] = {}
    for prediction in predictions:
        if prediction.label not in best or prediction.confidence > best[prediction.label]:
            best[prediction.label] = prediction.confidence
    return tuple(rank_predictions(best))
