"""Breed inference client package."""

from cattlescan.inference.classifier_interface import ImageClassifier
from cattlescan.inference.http_classifier import (
    HttpImageClassifier,
    get_default_classifier,
    parse_classifier_response,
    rank_predictions,
)
from cattlescan.inference.types import ImagePayload, Prediction

__all__ = [
    "HttpImageClassifier",
    "ImageClassifier",
    "ImagePayload",
    "Prediction",
    "get_default_classifier",
    "parse_classifier_response",
    "rank_predictions",
]
