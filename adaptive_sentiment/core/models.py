"""
Sentiment runtime data models and types.

Value types shared by the backends, the hardware detector and the
orchestrator. Results and capability snapshots are immutable; they are built
once and passed around freely between tasks and threads.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Sequence, Tuple

DEFAULT_NEUTRAL_CONFIDENCE = 0.5


class SentimentLabel(str, Enum):
    """Sentiment classes produced by every backend"""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class RuntimeTier(str, Enum):
    """Inference runtime tiers, declared in order of preference"""

    ACCELERATED_TOP = "accelerated_top"  # accelerated runtime on GPU
    ACCELERATED_SECONDARY = "accelerated_secondary"  # accelerated runtime on NPU
    CPU_GPU = "cpu_gpu"  # GPU present, no accelerated runtime distribution
    CPU_VECTOR = "cpu_vector"
    CPU_BASIC = "cpu_basic"
    KEYWORD_FALLBACK = "keyword_fallback"

    @property
    def rank(self) -> int:
        """Position in the preference order; lower is better"""
        return list(RuntimeTier).index(self)

    def __lt__(self, other):
        if not isinstance(other, RuntimeTier):
            return NotImplemented
        return self.rank < other.rank

    def next_lower(self) -> Optional[RuntimeTier]:
        """The next tier down the preference order, or None at the bottom"""
        tiers = list(RuntimeTier)
        if self.rank + 1 >= len(tiers):
            return None
        return tiers[self.rank + 1]

    @property
    def is_accelerated(self) -> bool:
        return self in (RuntimeTier.ACCELERATED_TOP, RuntimeTier.ACCELERATED_SECONDARY)


class BackendKind(str, Enum):
    """Closed set of inference backends, in fallback-walk order"""

    ACCELERATED_NEURAL = "accelerated_neural"
    CPU_NEURAL = "cpu_neural"
    KEYWORD = "keyword"

    @classmethod
    def for_tier(cls, tier: RuntimeTier) -> BackendKind:
        """Backend that serves a runtime tier"""
        if tier.is_accelerated:
            return cls.ACCELERATED_NEURAL
        if tier == RuntimeTier.KEYWORD_FALLBACK:
            return cls.KEYWORD
        return cls.CPU_NEURAL

    @classmethod
    def walk_order(cls) -> Tuple[BackendKind, ...]:
        return (cls.ACCELERATED_NEURAL, cls.CPU_NEURAL, cls.KEYWORD)


@dataclass(frozen=True)
class SentimentResult:
    """Result of sentiment analysis for a single text"""

    label: SentimentLabel
    confidence: float
    matched_terms: Tuple[str, ...] = ()
    processing_time_ms: Optional[int] = None
    error_message: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.confidence, (int, float)) or not math.isfinite(
            self.confidence
        ):
            raise ValueError(f"Confidence must be a finite number, got {self.confidence!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence {self.confidence} outside [0, 1]")
        object.__setattr__(self, "confidence", float(self.confidence))
        object.__setattr__(self, "matched_terms", tuple(self.matched_terms))

    @property
    def is_success(self) -> bool:
        return self.error_message is None

    @classmethod
    def positive(cls, confidence: float, terms: Sequence[str] = ()) -> SentimentResult:
        return cls(SentimentLabel.POSITIVE, confidence, tuple(terms))

    @classmethod
    def negative(cls, confidence: float, terms: Sequence[str] = ()) -> SentimentResult:
        return cls(SentimentLabel.NEGATIVE, confidence, tuple(terms))

    @classmethod
    def neutral(
        cls,
        confidence: float = DEFAULT_NEUTRAL_CONFIDENCE,
        terms: Sequence[str] = (),
    ) -> SentimentResult:
        return cls(SentimentLabel.NEUTRAL, confidence, tuple(terms))

    @classmethod
    def error(cls, message: str) -> SentimentResult:
        return cls(SentimentLabel.NEUTRAL, 0.0, error_message=message)

    @classmethod
    def for_label(
        cls, label: SentimentLabel, confidence: float, terms: Sequence[str] = ()
    ) -> SentimentResult:
        return cls(label, confidence, tuple(terms))

    def with_processing_time(self, processing_time_ms: int) -> SentimentResult:
        return dataclasses.replace(self, processing_time_ms=int(processing_time_ms))

    def describe(self) -> str:
        """Human-readable one-line summary"""
        if not self.is_success:
            return f"Error: {self.error_message}"
        if self.label == SentimentLabel.POSITIVE:
            return f"Positive ({int(self.confidence * 100)}%)"
        if self.label == SentimentLabel.NEGATIVE:
            return f"Negative ({int(self.confidence * 100)}%)"
        return "Neutral"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "label": self.label.value,
            "confidence": self.confidence,
            "matched_terms": list(self.matched_terms),
            "processing_time_ms": self.processing_time_ms,
            "error_message": self.error_message,
            "is_success": self.is_success,
        }


@dataclass(frozen=True)
class HardwareCapabilities:
    """Snapshot of the acceleration features found on this host"""

    has_gpu: bool = False
    has_neural_accelerator: bool = False
    has_vector_cpu: bool = False
    has_accelerated_runtime: bool = False
    has_distribution_service: bool = False
    performance_score: int = 0
    recommended_tier: RuntimeTier = RuntimeTier.KEYWORD_FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_gpu": self.has_gpu,
            "has_neural_accelerator": self.has_neural_accelerator,
            "has_vector_cpu": self.has_vector_cpu,
            "has_accelerated_runtime": self.has_accelerated_runtime,
            "has_distribution_service": self.has_distribution_service,
            "performance_score": self.performance_score,
            "recommended_tier": self.recommended_tier.value,
        }


@dataclass(frozen=True)
class ModelInfo:
    type: str
    version: str
    language: str
    accuracy: str
    speed: str


@dataclass(frozen=True)
class AlgorithmConfig:
    """Scoring parameters of the keyword model"""

    base_confidence: float
    neutral_threshold: float
    min_confidence: float
    max_confidence: float
    keyword_weight: float = 1.0
    context_weight: float = 0.3
    modifier_weight: float = 0.4
    # Added once per matching context term; see DESIGN.md
    context_bonus: float = 0.8

    def __post_init__(self):
        if not self.min_confidence <= self.base_confidence <= self.max_confidence:
            raise ValueError(
                "Algorithm confidences must satisfy min <= base <= max, got "
                f"{self.min_confidence} / {self.base_confidence} / {self.max_confidence}"
            )
        if self.min_confidence < 0.0 or self.max_confidence > 1.0:
            raise ValueError("Algorithm confidences must lie within [0, 1]")


@dataclass(frozen=True)
class ContextBoosters:
    movie_terms: Optional[Tuple[str, ...]] = None
    positive_context: Optional[Tuple[str, ...]] = None
    negative_context: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class KeywordSentimentModel:
    """Data model for keyword-based analysis"""

    model_info: ModelInfo
    positive_keywords: FrozenSet[str]
    negative_keywords: FrozenSet[str]
    algorithm: AlgorithmConfig
    neutral_indicators: FrozenSet[str] = frozenset()
    # Insertion order is the application order of the modifiers
    intensity_modifiers: Mapping[str, float] = field(default_factory=dict)
    context_boosters: Optional[ContextBoosters] = None
