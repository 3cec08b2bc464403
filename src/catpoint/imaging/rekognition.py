"""
Cat detector backed by AWS Rekognition label detection.

Images are PNG-encoded with imageio and sent inline to ``detect_labels``;
the client is created lazily through boto3 unless a factory is injected.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable
from typing import Any

import imageio.v3 as iio
import numpy as np

from ..core.contracts import ImageAnalyzerError

logger = logging.getLogger(__name__)

CAT_LABEL = "cat"


class RekognitionImageAnalyzer:
    """Ask Rekognition for labels and report whether ``Cat`` is among them."""

    def __init__(
        self,
        *,
        client_factory: Callable[[], Any] | None = None,
        region_name: str | None = None,
        endpoint_url: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        aws_session_token: str | None = None,
        max_labels: int = 10,
    ) -> None:
        self._client_factory = client_factory or self._default_client_factory
        self._client: Any | None = None
        self._region_name = region_name
        self._endpoint_url = endpoint_url
        self._aws_access_key_id = aws_access_key_id
        self._aws_secret_access_key = aws_secret_access_key
        self._aws_session_token = aws_session_token
        self._max_labels = max_labels

    def contains_cat(self, image: Any, confidence_threshold: float) -> bool:
        if self._client is None:
            self._client = self._client_factory()
        response = self._client.detect_labels(
            Image={"Bytes": self._encode(image)},
            MaxLabels=self._max_labels,
            MinConfidence=float(confidence_threshold),
        )
        labels = response.get("Labels", [])
        names = [str(label.get("Name", "")) for label in labels]
        logger.debug("Rekognition returned labels %s", names)
        return any(name.lower() == CAT_LABEL for name in names)

    def _encode(self, image: Any) -> bytes:
        if isinstance(image, bytes | bytearray):
            return bytes(image)
        with io.BytesIO() as buffer:
            iio.imwrite(buffer, np.asarray(image), extension=".png")
            return buffer.getvalue()

    def _default_client_factory(self) -> Any:
        try:
            from boto3.session import Session
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise ImageAnalyzerError(
                "boto3 is required for RekognitionImageAnalyzer; install the 'aws' extra."
            ) from exc
        session = Session(
            aws_access_key_id=self._aws_access_key_id,
            aws_secret_access_key=self._aws_secret_access_key,
            aws_session_token=self._aws_session_token,
            region_name=self._region_name,
        )
        return session.client("rekognition", endpoint_url=self._endpoint_url)


__all__ = ["RekognitionImageAnalyzer"]
