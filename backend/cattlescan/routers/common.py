"""Request identity and error translation shared by the API routers."""

import ipaddress

from fastapi import File, Header, HTTPException, Request, UploadFile

from cattlescan.errors import (
    PreconditionFailure,
    ScanError,
    StageFailure,
    SubmissionCancelled,
    ValidationFailure,
)
from cattlescan.inference.classifier_interface import ImageClassifier
from cattlescan.inference.http_classifier import get_default_classifier
from cattlescan.inference.types import ImagePayload
from cattlescan.schemas.common import CancelledDetail, StageFailureDetail
from cattlescan.services.location import LocationResolver, get_default_location_resolver
from cattlescan.services.storage import ArtifactStore, get_default_artifact_store

ADMIN_ROLE = "admin"


def current_user_id(x_user_id: str | None = Header(default=None)) -> str | None:
    """Return the caller's identity, or ``None`` for anonymous requests."""

    return (x_user_id or "").strip() or None


def require_admin(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> str:
    """Return the moderator id; reject callers without the admin role."""

    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Login required")
    if (x_user_role or "").strip().lower() != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user_id


def read_upload(image: UploadFile = File(...)) -> ImagePayload:
    """Read the multipart ``image`` field."""

    return to_image_payload(image)


def to_image_payload(upload: UploadFile) -> ImagePayload:
    content = upload.file.read()
    if not content:
        raise HTTPException(status_code=422, detail=f"Uploaded file {upload.filename or ''!r} is empty")
    return ImagePayload(
        content=content,
        filename=upload.filename or "scan.jpg",
        content_type=upload.content_type or "image/jpeg",
    )


def to_http_error(exc: ScanError) -> HTTPException:
    """Translate a service failure into the matching HTTP error."""

    if isinstance(exc, StageFailure):
        detail = StageFailureDetail(
            stage=exc.stage,
            message=str(exc),
            orphaned_artifact_urls=exc.orphaned_artifact_urls,
        )
        return HTTPException(status_code=502, detail=detail.model_dump())
    if isinstance(exc, PreconditionFailure):
        return HTTPException(status_code=401 if exc.login_required else 409, detail=str(exc))
    if isinstance(exc, ValidationFailure):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, SubmissionCancelled):
        detail = CancelledDetail(
            message=str(exc),
            orphaned_artifact_urls=exc.orphaned_artifact_urls,
            scan_id=exc.scan_id,
        )
        return HTTPException(status_code=409, detail=detail.model_dump())
    return HTTPException(status_code=500, detail=str(exc))


def get_classifier() -> ImageClassifier:
    return get_default_classifier()


def get_artifact_store() -> ArtifactStore:
    return get_default_artifact_store()


def get_location_resolver(
    request: Request,
    x_forwarded_for: str | None = Header(default=None),
) -> LocationResolver:
    """Resolve against the caller's public address when one is known."""

    return get_default_location_resolver(ip_address=client_ip(request, x_forwarded_for))


def client_ip(request: Request, forwarded_for: str | None = None) -> str | None:
    """First public address from ``X-Forwarded-For`` or the socket peer."""

    candidates = [part.strip() for part in (forwarded_for or "").split(",") if part.strip()]
    if request.client is not None:
        candidates.append(request.client.host)
    for candidate in candidates:
        try:
            address = ipaddress.ip_address(candidate)
        except ValueError:
            continue
        if address.is_global:
            return str(address)
    return None


def require_store_artifact_url(store: ArtifactStore, image_url: str, prefix: str) -> str:
    """Reject image URLs that do not point into the store under ``prefix``."""

    allowed = store.public_url(prefix)
    if not image_url.startswith(allowed) or ".." in image_url[len(allowed):]:
        raise HTTPException(status_code=422, detail=f"image_url must be an uploaded artifact under {allowed}")
    return image_url
