# kemetic_mirror/mirror_engine/landmarks/provider.py
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

import numpy as np

from ..common.models import LandmarkSet

logger = logging.getLogger(__name__)


class LandmarkProvider(ABC):
    """Abstract base for any face landmark model."""

    @abstractmethod
    async def detect(self, frame: np.ndarray) -> List[LandmarkSet]:
        """Returns at most one LandmarkSet for a BGR frame, in frame pixel coordinates."""
        ...

    def close(self) -> None:
        pass


async def load_landmark_provider(
    factory: Callable[[], LandmarkProvider],
    attempts: int = 10,
    retry_delay_s: float = 0.5,
) -> Optional[LandmarkProvider]:
    """Builds a provider, retrying while the model runtime is not ready yet.

    Returns None once ``attempts`` are exhausted so the camera feed keeps
    running without overlays instead of waiting on the model forever.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            provider = await asyncio.to_thread(factory)
        except (ImportError, AttributeError, RuntimeError, OSError) as e:
            logger.info("Landmark model not ready (attempt %d/%d): %s", attempt, attempts, e)
        else:
            logger.info("Landmark model loaded after %d attempt(s).", attempt)
            return provider
        if attempt < attempts:
            await asyncio.sleep(retry_delay_s)

    logger.warning("Landmark model unavailable after %d attempts; overlays disabled.", attempts)
    return None
