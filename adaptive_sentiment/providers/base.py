"""
Base inference backend interface.

Defines the common interface every sentiment backend implements so the
orchestrator can walk its fallback chain without knowing which backend
it is talking to.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from adaptive_sentiment.core.models import BackendKind, ModelInfo, SentimentResult
from adaptive_sentiment.utils.logger import get_logger

logger = get_logger(__name__)

NOT_INITIALIZED_MESSAGE = "model not initialized"


class SentimentBackend(ABC):
    """
    Abstract base class for inference backends.

    ``initialize`` reports failure by returning False and ``analyze`` reports
    failure as an error result; neither raises.
    """

    def __init__(self, kind: BackendKind, name: Optional[str] = None):
        self.kind = kind
        self.name = name or kind.value

    async def __aenter__(self):
        """Async context manager entry"""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.cleanup()

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether analyze can produce real results"""
        pass

    @abstractmethod
    async def initialize(self) -> bool:
        """
        Bring the backend up (load assets, build sessions).

        Idempotent: returns True at once when already ready.
        """
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Release backend resources; safe to call more than once"""
        pass

    @abstractmethod
    async def _analyze_text(self, text: str) -> SentimentResult:
        """
        Analyze sentiment for a single non-blank text.

        May raise; ``analyze`` converts exceptions into error results.
        """
        pass

    async def analyze(self, text: str) -> SentimentResult:
        """
        Public interface for analyzing sentiment with error handling and timing.

        Args:
            text: The text to analyze

        Returns:
            SentimentResult; an error result when the backend is not ready or
            inference fails
        """
        if not self.is_ready():
            return SentimentResult.error(NOT_INITIALIZED_MESSAGE)

        if not text or not text.strip():
            return SentimentResult.neutral()

        start_time = time.perf_counter()
        try:
            result = await self._analyze_text(text)
        except Exception as e:
            logger.warning("Inference failed", backend=self.name, error=str(e))
            return SentimentResult.error(f"inference failed: {e}")

        if result.processing_time_ms is None:
            elapsed_ms = int((time.perf_counter() - start_time) * 1000)
            result = result.with_processing_time(elapsed_ms)
        return result

    def model_info(self) -> Optional[ModelInfo]:
        """Descriptor of the loaded model, if any"""
        return None

    def get_capabilities(self) -> Dict[str, Any]:
        info = self.model_info()
        return {
            "kind": self.kind.value,
            "name": self.name,
            "is_ready": self.is_ready(),
            "model_version": info.version if info else None,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value}, name={self.name})"
