"""Classifier interface for pluggable inference backends."""

from abc import ABC, abstractmethod

from cattlescan.inference.types import ImagePayload, Prediction


class ImageClassifier(ABC):
    """Abstract image classifier."""

    @abstractmethod
    def classify(self, image: ImagePayload) -> list[Prediction]:
        """Return predictions ranked by descending confidence.

        Implementations raise ``InferenceFailure`` for every transport, status or
        payload problem, including timeouts.
        """
