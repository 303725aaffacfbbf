"""Typed classifier inputs and outputs independent of transport."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ImagePayload:
    """Raw image submitted for classification and archiving."""

    content: bytes
    filename: str = "scan.jpg"
    content_type: str = "image/jpeg"


@dataclass(slots=True, frozen=True)
class Prediction:
    """One label from a ranked classifier result; ``confidence`` is in [0, 100]."""

    label: str
    confidence: float

    def as_dict(self) -> dict[str, object]:
        return {"label": self.label, "confidence": self.confidence}
