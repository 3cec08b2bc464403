"""
YOLO-backed cat detector.

The analyzer is intentionally lightweight so it can operate with either the
real Ultralytics model or a stubbed predictor during unit tests.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import imageio.v3 as iio
import numpy as np

from ..core.contracts import ImageAnalyzerError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionCandidate:
    """Represents a single detection result from the predictor."""

    label: str
    confidence: float
    bbox: tuple[float, float, float, float]


class PredictorProtocol:
    """Small protocol so we can swap predictor implementations."""

    def predict(self, image: np.ndarray) -> list[DetectionCandidate]:  # pragma: no cover - protocol
        raise NotImplementedError


class UltralyticsPredictor(PredictorProtocol):
    """Adapter that wraps an Ultralytics YOLO model."""

    def __init__(self, model_path: str | None = None) -> None:
        try:
            from ultralytics import YOLO
        except ModuleNotFoundError as exc:  # pragma: no cover - import guard
            raise ImageAnalyzerError(
                "Ultralytics is not installed; install the 'yolo' extra."
            ) from exc
        self._model = YOLO(model_path or "yolov8n.pt")

    def predict(self, image: np.ndarray) -> list[DetectionCandidate]:  # pragma: no cover - heavy
        results = self._model(image, verbose=False)
        candidates: list[DetectionCandidate] = []
        for result in results:
            boxes = getattr(result, "boxes", None)
            names = getattr(result, "names", {})
            if boxes is None:
                continue
            for xyxy, cls_id, conf in zip(boxes.xyxy, boxes.cls, boxes.conf, strict=False):
                label = names.get(int(cls_id), str(int(cls_id)))
                bbox = tuple(float(value) for value in xyxy.tolist())  # type: ignore[assignment]
                candidates.append(
                    DetectionCandidate(label=label, confidence=float(conf), bbox=bbox)  # type: ignore[arg-type]
                )
        return candidates


class YoloImageAnalyzer:
    """Report a cat when the predictor finds one at or above the confidence threshold."""

    def __init__(
        self,
        *,
        model_path: str | None = None,
        predictor_factory: Callable[[str | None], PredictorProtocol] | None = None,
        target_labels: Iterable[str] = ("cat",),
    ) -> None:
        self._model_path = model_path
        self._predictor_factory = predictor_factory or UltralyticsPredictor
        self._predictor: PredictorProtocol | None = None
        self._target_labels = {label.lower() for label in target_labels}

    def contains_cat(self, image: Any, confidence_threshold: float) -> bool:
        """``confidence_threshold`` is expressed in percent (0-100)."""
        if self._predictor is None:
            self._predictor = self._predictor_factory(self._model_path)
        image_array = self._as_array(image)
        candidates = self._predictor.predict(image_array)
        matches = self._matching(candidates, confidence_threshold / 100.0)
        logger.debug(
            "YOLO found %d candidates, %d matching %s",
            len(candidates),
            len(matches),
            sorted(self._target_labels),
        )
        return bool(matches)

    def _matching(
        self, candidates: Sequence[DetectionCandidate], min_confidence: float
    ) -> list[DetectionCandidate]:
        return [
            candidate
            for candidate in candidates
            if candidate.label.lower() in self._target_labels
            and candidate.confidence >= min_confidence
        ]

    def _as_array(self, image: Any) -> np.ndarray:
        if isinstance(image, bytes | bytearray):
            with io.BytesIO(image) as buffer:
                return iio.imread(buffer)
        return np.asarray(image)


__all__ = [
    "DetectionCandidate",
    "PredictorProtocol",
    "UltralyticsPredictor",
    "YoloImageAnalyzer",
]
