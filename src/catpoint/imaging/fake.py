"""
Image analyzer returning random verdicts.

Handy for demos and manual runs where no model or cloud account is available.
"""

from __future__ import annotations

import logging
import random
from typing import Any

logger = logging.getLogger(__name__)


class FakeImageAnalyzer:
    """Report a cat for roughly half of the images, independent of their content."""

    def __init__(self, *, seed: int | None = None, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random(seed)

    def contains_cat(self, image: Any, confidence_threshold: float) -> bool:
        verdict = self._rng.random() >= 0.5
        logger.debug("FakeImageAnalyzer verdict=%s (threshold %.1f)", verdict, confidence_threshold)
        return verdict


__all__ = ["FakeImageAnalyzer"]
