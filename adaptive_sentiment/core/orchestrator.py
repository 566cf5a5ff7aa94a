"""
Adaptive sentiment orchestrator.

Owns the backend chain for the runtime: detects the host's capabilities,
brings up the best backend it can reach for the recommended tier, and
serves analyses through accelerated neural, CPU neural and keyword
backends in turn, caching accepted results per exact input text.
"""

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

from adaptive_sentiment.hardware.detection import HardwareCapabilityDetector
from adaptive_sentiment.monitoring.metrics import FALLBACKS_TOTAL, RUNTIME_TIER_RANK
from adaptive_sentiment.monitoring.performance import PerformanceMonitor
from adaptive_sentiment.providers.base import SentimentBackend
from adaptive_sentiment.utils.logger import get_logger

from .cache import ResultCache
from .config import SentimentSettings, get_sentiment_settings
from .models import (
    BackendKind,
    HardwareCapabilities,
    RuntimeTier,
    SentimentResult,
)

logger = get_logger(__name__)

NOT_INITIALIZED_MESSAGE = "runtime not initialized"

CPU_TIERS = (RuntimeTier.CPU_GPU, RuntimeTier.CPU_VECTOR, RuntimeTier.CPU_BASIC)

BackendFactory = Callable[
    [BackendKind, SentimentSettings, HardwareCapabilities], SentimentBackend
]


def default_backend_factory(
    kind: BackendKind,
    settings: SentimentSettings,
    capabilities: HardwareCapabilities,
) -> SentimentBackend:
    """Construct the backend for a kind; neural backends are imported lazily"""
    if kind == BackendKind.KEYWORD:
        from adaptive_sentiment.providers.keyword_provider import KeywordFallbackBackend
        from adaptive_sentiment.providers.lexicon import create_model_for_profile

        return KeywordFallbackBackend(
            lexicon_path=settings.lexicon_path,
            model=create_model_for_profile(settings.keyword_profile),
        )

    from adaptive_sentiment.providers.neural_provider import (
        AcceleratedNeuralBackend,
        CpuNeuralBackend,
    )

    if kind == BackendKind.ACCELERATED_NEURAL:
        return AcceleratedNeuralBackend(settings, capabilities)
    return CpuNeuralBackend(settings, capabilities)


class SentimentOrchestrator:
    """
    Adaptive sentiment runtime with tiered fallback.

    Features:
    - Hardware-aware runtime tier selection
    - Lazy construction of neural backends, only as deep as needed
    - Confidence-gated fallback ending at the keyword backend
    - Exact-text result caching
    - Performance monitoring of every computed analysis

    Not a singleton: construct one per application and own its lifecycle,
    either explicitly or as an async context manager.
    """

    def __init__(
        self,
        settings: Optional[SentimentSettings] = None,
        detector: Optional[HardwareCapabilityDetector] = None,
        backend_factory: Optional[BackendFactory] = None,
        cache: Optional[ResultCache] = None,
        monitor: Optional[PerformanceMonitor] = None,
    ):
        self.settings = settings or get_sentiment_settings()
        self.detector = detector or HardwareCapabilityDetector(
            forced_tier=self.settings.forced_tier
        )
        self.backend_factory = backend_factory or default_backend_factory
        if cache is None and self.settings.enable_caching:
            cache = ResultCache(max_entries=self.settings.cache_max_entries)
        self.cache = cache
        self.monitor = monitor or PerformanceMonitor(
            log_interval=self.settings.performance_log_interval
        )

        self.backends: Dict[BackendKind, SentimentBackend] = {}
        self.capabilities: Optional[HardwareCapabilities] = None
        self.recommended_tier: Optional[RuntimeTier] = None
        self.achieved_tier: Optional[RuntimeTier] = None
        self._initialized = False
        self._lock = asyncio.Lock()

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> bool:
        """
        Detect capabilities and bring up the backend chain.

        Concurrent callers share a single initialization. Always ends ready
        with at least the keyword backend.
        """
        async with self._lock:
            if self._initialized:
                return True

            loop = asyncio.get_running_loop()
            self.capabilities = await loop.run_in_executor(None, self.detector.detect)
            self.recommended_tier = self.capabilities.recommended_tier
            logger.info(
                "Initializing sentiment runtime",
                recommended_tier=self.recommended_tier.value,
                performance_score=self.capabilities.performance_score,
            )

            keyword = self._construct(BackendKind.KEYWORD)
            await keyword.initialize()

            self.achieved_tier = RuntimeTier.KEYWORD_FALLBACK
            for kind in self._neural_chain(self.recommended_tier):
                backend = self._construct(kind)
                if await backend.initialize():
                    self.achieved_tier = self._achieved_tier(kind, backend)
                    break
                logger.info("Backend unavailable, falling back", backend=kind.value)

            RUNTIME_TIER_RANK.set(self.achieved_tier.rank)
            self._initialized = True
            logger.info(
                "Sentiment runtime initialized",
                recommended_tier=self.recommended_tier.value,
                achieved_tier=self.achieved_tier.value,
                backends=[kind.value for kind in self.backends],
            )
            return True

    def _construct(self, kind: BackendKind) -> SentimentBackend:
        backend = self.backend_factory(kind, self.settings, self.capabilities)
        self.backends[kind] = backend
        return backend

    @staticmethod
    def _neural_chain(tier: RuntimeTier) -> List[BackendKind]:
        """
        Neural backend to try for a tier.

        The accelerated backend falls back to its own CPU delegate, so a
        failed accelerated tier goes straight to the keyword backend.
        """
        start = BackendKind.for_tier(tier)
        if start == BackendKind.KEYWORD:
            return []
        return [start]

    def _achieved_tier(self, kind: BackendKind, backend: SentimentBackend) -> RuntimeTier:
        if kind == BackendKind.ACCELERATED_NEURAL and getattr(
            backend, "is_accelerated", True
        ):
            return self.recommended_tier
        if self.recommended_tier in CPU_TIERS:
            return self.recommended_tier
        return RuntimeTier.CPU_BASIC

    async def analyze(self, text: str) -> SentimentResult:
        """
        Analyze sentiment for a single text.

        Args:
            text: Text to analyze

        Returns:
            The first result accepted along the backend chain, or the cached
            result for the same text
        """
        if not self._initialized:
            return SentimentResult.error(NOT_INITIALIZED_MESSAGE)

        if not text or not text.strip():
            return SentimentResult.neutral()

        if self.cache is not None:
            cached = self.cache.get(text)
            if cached is not None:
                return cached

        start_time = time.perf_counter()
        result, backend_name = await self._analyze_with_chain(text)
        if result.processing_time_ms is None:
            elapsed_ms = int((time.perf_counter() - start_time) * 1000)
            result = result.with_processing_time(elapsed_ms)

        if self.cache is not None and result.is_success:
            self.cache.put(text, result)

        self.monitor.record_analysis(
            text_length=len(text),
            processing_time_ms=result.processing_time_ms,
            is_success=result.is_success,
            label=result.label,
            backend=backend_name,
        )
        return result

    async def _analyze_with_chain(self, text: str):
        threshold = self.settings.acceptance_threshold
        for kind in BackendKind.walk_order():
            backend = self.backends.get(kind)
            if backend is None or not backend.is_ready():
                continue

            result = await backend.analyze(text)
            if kind == BackendKind.KEYWORD:
                return result, backend.name
            if result.is_success and result.confidence > threshold:
                return result, backend.name

            FALLBACKS_TOTAL.labels(backend=backend.name).inc()
            logger.debug(
                "Result rejected, trying next backend",
                backend=backend.name,
                confidence=result.confidence,
                error=result.error_message,
            )

        return SentimentResult.error("no backend available"), "none"

    async def analyze_batch(self, texts: List[str]) -> List[SentimentResult]:
        """Analyze texts one after another, in input order"""
        results = []
        for text in texts:
            results.append(await self.analyze(text))
        return results

    async def cleanup(self) -> None:
        """Release every backend and the cache; back to uninitialized"""
        async with self._lock:
            if not self._initialized and not self.backends:
                return

            logger.info("Cleaning up sentiment runtime")
            cleanup_results = await asyncio.gather(
                *(backend.cleanup() for backend in self.backends.values()),
                return_exceptions=True,
            )
            for kind, outcome in zip(list(self.backends), cleanup_results):
                if isinstance(outcome, Exception):
                    logger.warning(
                        "Backend cleanup failed", backend=kind.value, error=str(outcome)
                    )

            self.backends.clear()
            if self.cache is not None:
                self.cache.clear()
            self.capabilities = None
            self.recommended_tier = None
            self.achieved_tier = None
            self._initialized = False
            logger.info("Sentiment runtime cleanup completed")

    def get_status(self) -> Dict[str, Any]:
        """Get runtime status and performance statistics"""
        return {
            "initialized": self._initialized,
            "recommended_tier": (
                self.recommended_tier.value if self.recommended_tier else None
            ),
            "achieved_tier": self.achieved_tier.value if self.achieved_tier else None,
            "capabilities": self.capabilities.to_dict() if self.capabilities else None,
            "backends": {
                kind.value: backend.get_capabilities()
                for kind, backend in self.backends.items()
            },
            "acceptance_threshold": self.settings.acceptance_threshold,
            "cache": self.cache.stats() if self.cache is not None else None,
            "performance": self.monitor.get_stats().to_dict(),
        }
