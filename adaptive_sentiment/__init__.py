"""
Adaptive Sentiment Runtime

Classifies free-form text as positive, negative or neutral using the best
inference backend the host can run, with a deterministic keyword scorer as
the last resort.

Key Features:
- Hardware capability detection and runtime tier selection
- ONNX neural backends for accelerated and CPU execution
- Multilingual keyword fallback with intensity modifiers and context boosters
- Confidence-gated fallback chain
- Result caching and performance monitoring
"""

from .core.config import SentimentSettings, get_sentiment_settings
from .core.errors import AssetLoadError, InferenceError, SentimentRuntimeError
from .core.models import (
    BackendKind,
    HardwareCapabilities,
    RuntimeTier,
    SentimentLabel,
    SentimentResult,
)
from .core.orchestrator import SentimentOrchestrator
from .hardware.detection import HardwareCapabilityDetector
from .providers.base import SentimentBackend
from .providers.keyword_provider import KeywordFallbackBackend
from .providers.neural_provider import AcceleratedNeuralBackend, CpuNeuralBackend

__version__ = "0.1.0"

__all__ = [
    "SentimentOrchestrator",
    "SentimentSettings",
    "get_sentiment_settings",
    "SentimentResult",
    "SentimentLabel",
    "RuntimeTier",
    "BackendKind",
    "HardwareCapabilities",
    "HardwareCapabilityDetector",
    "SentimentBackend",
    "KeywordFallbackBackend",
    "CpuNeuralBackend",
    "AcceleratedNeuralBackend",
    "SentimentRuntimeError",
    "AssetLoadError",
    "InferenceError",
]
