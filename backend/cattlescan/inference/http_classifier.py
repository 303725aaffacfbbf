"""HTTP-backed breed classifier client."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from http import client as http_client
from typing import Any
from urllib import error as urllib_error
from urllib import request as urllib_request
from uuid import uuid4

from cattlescan.config import get_settings
from cattlescan.errors import InferenceFailure
from cattlescan.inference.classifier_interface import ImageClassifier
from cattlescan.inference.types import ImagePayload, Prediction


_IMAGE_FIELD_NAME = "image"


@dataclass(slots=True)
class HttpImageClassifier(ImageClassifier):
    """Posts the image as multipart form data using stdlib HTTP."""

    url: str
    timeout_seconds: int = 60

    def classify(self, image: ImagePayload) -> list[Prediction]:
        if not image.content:
            raise InferenceFailure("Image payload is empty")

        boundary = f"----cattlescan{uuid4().hex}"
        req = urllib_request.Request(
            url=self.url,
            data=_encode_multipart(boundary, image),
            method="POST",
            headers={
                "Content-Type": f"multipart/form-data; boundary={boundary}",
                "Accept": "application/json",
            },
        )

        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise InferenceFailure(f"Classifier HTTP {exc.code}: {detail}") from exc
        except urllib_error.URLError as exc:
            raise InferenceFailure(f"Classifier request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise InferenceFailure(f"Classifier timed out after {self.timeout_seconds}s") from exc
        except (OSError, http_client.HTTPException) as exc:
            raise InferenceFailure(f"Classifier connection failed: {exc!r}") from exc
        except UnicodeDecodeError as exc:
            raise InferenceFailure("Classifier response was not valid UTF-8") from exc

        return parse_classifier_response(raw)


def get_default_classifier() -> ImageClassifier:
    """Return the classifier configured for this deployment."""

    settings = get_settings()
    return HttpImageClassifier(url=settings.inference_url, timeout_seconds=settings.inference_timeout_seconds)


def parse_classifier_response(raw: str) -> list[Prediction]:
    """Decode a classifier body into a ranked prediction list.

    Accepts either the ``{"data": {...}, "error": ...}`` envelope or a bare
    ``{label: confidence}`` mapping. Confidences may arrive as numeric strings.
    """

    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InferenceFailure("Classifier response was not valid JSON") from exc

    if not isinstance(decoded, dict):
        raise InferenceFailure("Classifier response must be a JSON object")

    if "data" in decoded or "error" in decoded:
        error = decoded.get("error")
        if error:
            raise InferenceFailure(f"Classifier returned an error: {error}")
        scores = decoded.get("data")
    else:
        scores = decoded

    if not isinstance(scores, Mapping) or not scores:
        raise InferenceFailure("Classifier returned no predictions")
    return rank_predictions(scores)


def rank_predictions(scores: Mapping[str, Any]) -> list[Prediction]:
    """Sort by descending confidence, breaking ties by ascending label."""

    best: dict[str, float] = {}
    for raw_label, raw_confidence in scores.items():
        label = str(raw_label).strip()
        if not label:
            raise InferenceFailure("Classifier returned an empty label")
        confidence = _coerce_confidence(label, raw_confidence)
        if label not in best or confidence > best[label]:
            best[label] = confidence

    if not best:
        raise InferenceFailure("Classifier returned no predictions")
    ranked = sorted(best.items(), key=lambda item: (-item[1], item[0]))
    return [Prediction(label=label, confidence=confidence) for label, confidence in ranked]


def _coerce_confidence(label: str, raw_value: Any) -> float:
    if isinstance(raw_value, bool):
        raise InferenceFailure(f"Confidence for {label!r} is not numeric")
    try:
        value = float(raw_value)
    except (TypeError, ValueError) as exc:
        raise InferenceFailure(f"Confidence for {label!r} is not numeric: {raw_value!r}") from exc
    if math.isnan(value) or value < 0.0 or value > 100.0:
        raise InferenceFailure(f"Confidence for {label!r} is outside [0, 100]: {raw_value!r}")
    return value


def _encode_multipart(boundary: str, image: ImagePayload) -> bytes:
    filename = image.filename.replace('"', "")
    head = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{_IMAGE_FIELD_NAME}"; filename="{filename}"\r\n'
        f"Content-Type: {image.content_type}\r\n\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head + image.content + tail
