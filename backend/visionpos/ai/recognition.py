"""
Product recognition from camera frames.

The checkout engine only depends on the ``Recognizer`` interface: a frame
goes in, scored product candidates come out. ``SimulatedRecognizer`` stands
in for a trained model and draws seeded pseudo-random scores, so results are
reproducible in tests.
"""

import logging
import random
from typing import Protocol

from visionpos.schemas.product import Product
from visionpos.schemas.vision import BoundingBox, Candidate

logger = logging.getLogger(__name__)

# Default cut-off used when the store has no threshold setting
CONFIDENCE_THRESHOLD = 0.7
# Most candidates a single frame can yield
TOP_K_RESULTS = 3


class Recognizer(Protocol):
    async def recognize(self, image_data: str, products: list[Product]) -> list[Candidate]: ...


class SimulatedRecognizer:
    """Scores every product in ``[0.5, 1.0)`` and keeps the best few."""

    def __init__(self, seed: int | None = None, top_k: int = TOP_K_RESULTS):
        self._random = random.Random(seed)
        self.top_k = top_k

    async def recognize(self, image_data: str, products: list[Product]) -> list[Candidate]:
        if not image_data:
            return []

        scored = [
            Candidate(
                product_id=product.id,
                confidence=round(0.5 + self._random.random() * 0.5, 4),
                bounding_box=self._bounding_box(),
            )
            for product in products
        ]
        scored.sort(key=lambda c: c.confidence, reverse=True)
        logger.debug(f"Recognizer scored {len(scored)} products")
        return scored[: self.top_k]

    def _bounding_box(self) -> BoundingBox:
        x = 0.1 + self._random.random() * 0.4
        y = 0.1 + self._random.random() * 0.4
        return BoundingBox(
            x=round(x, 4),
            y=round(y, 4),
            width=round(0.2 + self._random.random() * 0.3, 4),
            height=round(0.2 + self._random.random() * 0.3, 4),
        )


def filter_candidates(candidates: list[Candidate], threshold: float) -> list[Candidate]:
    """Drop candidates scoring below ``threshold``, best first."""
    kept = [c for c in candidates if c.confidence >= threshold]
    return sorted(kept, key=lambda c: c.confidence, reverse=True)
