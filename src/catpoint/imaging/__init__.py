"""Image analyzer implementations answering "is there a cat in this picture?"."""

from .fake import FakeImageAnalyzer
from .rekognition import RekognitionImageAnalyzer
from .yolo import DetectionCandidate, UltralyticsPredictor, YoloImageAnalyzer

__all__ = [
    "DetectionCandidate",
    "FakeImageAnalyzer",
    "RekognitionImageAnalyzer",
    "UltralyticsPredictor",
    "YoloImageAnalyzer",
]
