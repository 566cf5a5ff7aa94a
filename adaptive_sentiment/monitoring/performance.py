"""
Performance monitoring for computed sentiment analyses.

Tracks analysis counts, latency and error rate, grouped by input length,
alongside the Prometheus metrics exported from ``monitoring.metrics``.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import psutil

from adaptive_sentiment.core.models import SentimentLabel
from adaptive_sentiment.utils.logger import get_logger

from .metrics import ANALYSIS_ERRORS_TOTAL, ANALYSIS_LATENCY_SECONDS, ANALYSES_TOTAL

logger = get_logger(__name__)

SHORT_TEXT_THRESHOLD = 50
MEDIUM_TEXT_THRESHOLD = 200

BUCKET_SHORT = "short"
BUCKET_MEDIUM = "medium"
BUCKET_LONG = "long"


def length_bucket(text_length: int) -> str:
    if text_length <= SHORT_TEXT_THRESHOLD:
        return BUCKET_SHORT
    if text_length <= MEDIUM_TEXT_THRESHOLD:
        return BUCKET_MEDIUM
    return BUCKET_LONG


@dataclass
class PerformanceMetric:
    """Latency aggregate for one text-length bucket"""

    count: int = 0
    total_time_ms: int = 0
    min_time_ms: Optional[int] = None
    max_time_ms: Optional[int] = None

    @property
    def average_time_ms(self) -> float:
        return self.total_time_ms / self.count if self.count else 0.0

    def record(self, processing_time_ms: int) -> None:
        self.count += 1
        self.total_time_ms += processing_time_ms
        if self.min_time_ms is None or processing_time_ms < self.min_time_ms:
            self.min_time_ms = processing_time_ms
        if self.max_time_ms is None or processing_time_ms > self.max_time_ms:
            self.max_time_ms = processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "total_time_ms": self.total_time_ms,
            "min_time_ms": self.min_time_ms,
            "max_time_ms": self.max_time_ms,
            "average_time_ms": self.average_time_ms,
        }


@dataclass
class PerformanceStats:
    total_analyses: int
    average_processing_time_ms: float
    error_rate: float
    label_distribution: Dict[str, int] = field(default_factory=dict)
    detailed_metrics: Dict[str, PerformanceMetric] = field(default_factory=dict)
    process_memory_mb: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_analyses": self.total_analyses,
            "average_processing_time_ms": self.average_processing_time_ms,
            "error_rate": self.error_rate,
            "label_distribution": dict(self.label_distribution),
            "detailed_metrics": {
                bucket: metric.to_dict()
                for bucket, metric in self.detailed_metrics.items()
            },
            "process_memory_mb": self.process_memory_mb,
        }


class PerformanceMonitor:
    """Records every computed analysis; safe to share between threads"""

    def __init__(self, log_interval: int = 10):
        if log_interval < 1:
            raise ValueError("log_interval must be positive")
        self.log_interval = log_interval
        self._lock = threading.Lock()
        self._reset_counters()

    def _reset_counters(self) -> None:
        self._analysis_count = 0
        self._total_processing_time_ms = 0
        self._error_count = 0
        self._label_counts: Dict[str, int] = {label.value: 0 for label in SentimentLabel}
        self._buckets: Dict[str, PerformanceMetric] = {}

    def record_analysis(
        self,
        text_length: int,
        processing_time_ms: int,
        is_success: bool,
        label: SentimentLabel,
        backend: str = "unknown",
    ) -> None:
        """Record one computed analysis"""
        processing_time_ms = max(0, int(processing_time_ms))
        bucket = length_bucket(text_length)

        with self._lock:
            self._analysis_count += 1
            self._total_processing_time_ms += processing_time_ms
            if not is_success:
                self._error_count += 1
            self._label_counts[label.value] = self._label_counts.get(label.value, 0) + 1
            self._buckets.setdefault(bucket, PerformanceMetric()).record(
                processing_time_ms
            )
            should_log = self._analysis_count % self.log_interval == 0

        ANALYSES_TOTAL.labels(backend=backend, label=label.value).inc()
        ANALYSIS_LATENCY_SECONDS.labels(length_bucket=bucket).observe(
            processing_time_ms / 1000.0
        )
        if not is_success:
            ANALYSIS_ERRORS_TOTAL.labels(backend=backend).inc()

        if should_log:
            self._log_stats()

    def get_stats(self) -> PerformanceStats:
        with self._lock:
            count = self._analysis_count
            stats = PerformanceStats(
                total_analyses=count,
                average_processing_time_ms=(
                    self._total_processing_time_ms / count if count else 0.0
                ),
                error_rate=self._error_count / count if count else 0.0,
                label_distribution=dict(self._label_counts),
                detailed_metrics={
                    bucket: PerformanceMetric(
                        metric.count,
                        metric.total_time_ms,
                        metric.min_time_ms,
                        metric.max_time_ms,
                    )
                    for bucket, metric in self._buckets.items()
                },
            )
        stats.process_memory_mb = self._process_memory_mb()
        return stats

    def reset(self) -> None:
        with self._lock:
            self._reset_counters()

    def _process_memory_mb(self) -> Optional[float]:
        try:
            return psutil.Process().memory_info().rss / 1024**2
        except psutil.Error as e:
            logger.debug("Process memory unavailable", error=str(e))
            return None

    def _log_stats(self) -> None:
        stats = self.get_stats()
        logger.debug(
            "Sentiment performance stats",
            total_analyses=stats.total_analyses,
            average_time_ms=round(stats.average_processing_time_ms, 2),
            error_rate=round(stats.error_rate, 4),
            buckets={
                bucket: round(metric.average_time_ms, 2)
                for bucket, metric in stats.detailed_metrics.items()
            },
        )
