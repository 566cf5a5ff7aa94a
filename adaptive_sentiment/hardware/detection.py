"""
Hardware capability detection and runtime tier selection.

Probes the host for acceleration features (GPU, neural accelerator, CPU
vector kernels, an accelerated inference runtime and a model distribution
service), scores them and recommends the runtime tier the orchestrator
should try first. Detection never raises: a failing probe counts as absent.
"""

import importlib.metadata
import importlib.util
import os
import platform
import threading
from typing import Callable, Dict, Iterable, List, Optional

import onnxruntime as ort

from adaptive_sentiment.core.models import HardwareCapabilities, RuntimeTier
from adaptive_sentiment.monitoring.metrics import HARDWARE_PERFORMANCE_SCORE
from adaptive_sentiment.utils.logger import get_logger

logger = get_logger(__name__)

GPU_PROVIDERS = (
    "TensorrtExecutionProvider",
    "CUDAExecutionProvider",
    "ROCMExecutionProvider",
    "MIGraphXExecutionProvider",
    "DmlExecutionProvider",
)
ACCELERATOR_PROVIDERS = (
    "CoreMLExecutionProvider",
    "QNNExecutionProvider",
    "NnapiExecutionProvider",
    "OpenVINOExecutionProvider",
)
VECTOR_PROVIDERS = ("XnnpackExecutionProvider", "DnnlExecutionProvider")

# onnxruntime builds shipping hardware execution providers
ACCELERATED_RUNTIME_DISTRIBUTIONS = (
    "onnxruntime-gpu",
    "onnxruntime-directml",
    "onnxruntime-openvino",
    "onnxruntime-qnn",
    "onnxruntime-silicon",
    "onnxruntime-rocm",
)

SIMD_MACHINES = ("x86_64", "amd64", "arm64", "aarch64")

Probe = Callable[[], bool]

PROBE_NAMES = (
    "gpu",
    "neural_accelerator",
    "vector_cpu",
    "accelerated_runtime",
    "distribution_service",
)


def available_providers() -> List[str]:
    """Execution providers compiled into the installed onnxruntime"""
    return list(ort.get_available_providers())


def _any_provider(candidates: Iterable[str]) -> bool:
    providers = set(available_providers())
    return any(provider in providers for provider in candidates)


def probe_gpu() -> bool:
    try:
        import torch

        if torch.cuda.is_available():
            return True
    except ImportError:
        pass
    return _any_provider(GPU_PROVIDERS)


def probe_neural_accelerator() -> bool:
    try:
        import torch

        mps = getattr(torch.backends, "mps", None)
        if mps is not None and mps.is_available():
            return True
    except ImportError:
        pass
    return _any_provider(ACCELERATOR_PROVIDERS)


def probe_vector_cpu() -> bool:
    try:
        import torch

        if torch.backends.mkldnn.is_available():
            return True
    except ImportError:
        pass
    if _any_provider(VECTOR_PROVIDERS):
        return True
    # The default CPU provider ships SIMD kernels for these architectures
    return (
        "CPUExecutionProvider" in available_providers()
        and platform.machine().lower() in SIMD_MACHINES
    )


def probe_accelerated_runtime() -> bool:
    for distribution in ACCELERATED_RUNTIME_DISTRIBUTIONS:
        try:
            importlib.metadata.version(distribution)
            return True
        except importlib.metadata.PackageNotFoundError:
            continue
    return False


def probe_distribution_service() -> bool:
    """Model hub client installed and not forced offline"""
    if importlib.util.find_spec("huggingface_hub") is None:
        return False
    offline = os.environ.get("HF_HUB_OFFLINE", "").strip().lower()
    return offline not in ("1", "true", "yes", "on")


DEFAULT_PROBES: Dict[str, Probe] = {
    "gpu": probe_gpu,
    "neural_accelerator": probe_neural_accelerator,
    "vector_cpu": probe_vector_cpu,
    "accelerated_runtime": probe_accelerated_runtime,
    "distribution_service": probe_distribution_service,
}


def calculate_performance_score(
    has_gpu: bool,
    has_neural_accelerator: bool,
    has_vector_cpu: bool,
    has_accelerated_runtime: bool,
    has_distribution_service: bool,
) -> int:
    """Additive 0-100 score; accelerated runtime only counts with hardware behind it"""
    score = 10
    if has_gpu:
        score += 30
    if has_neural_accelerator:
        score += 25
    if has_vector_cpu:
        score += 15
    if has_accelerated_runtime and has_gpu:
        score += 40
    if has_accelerated_runtime and has_neural_accelerator:
        score += 35
    if has_distribution_service:
        score += 5
    return max(0, min(100, score))


def select_runtime_tier(
    has_gpu: bool,
    has_neural_accelerator: bool,
    has_vector_cpu: bool,
    has_accelerated_runtime: bool,
    has_distribution_service: bool,
) -> RuntimeTier:
    """First matching rule wins"""
    if has_accelerated_runtime and has_gpu and has_distribution_service:
        return RuntimeTier.ACCELERATED_TOP
    if has_accelerated_runtime and has_neural_accelerator and has_distribution_service:
        return RuntimeTier.ACCELERATED_SECONDARY
    if has_gpu:
        return RuntimeTier.CPU_GPU
    if has_neural_accelerator:
        return RuntimeTier.CPU_VECTOR
    if has_vector_cpu:
        return RuntimeTier.CPU_BASIC
    return RuntimeTier.KEYWORD_FALLBACK


class HardwareCapabilityDetector:
    """
    Detects hardware capabilities once and reuses the snapshot.

    Probes can be replaced per instance, which is how tests pin a host
    profile without touching the real hardware.
    """

    def __init__(
        self,
        probes: Optional[Dict[str, Probe]] = None,
        forced_tier: Optional[RuntimeTier] = None,
    ):
        unknown = set(probes or {}) - set(PROBE_NAMES)
        if unknown:
            raise ValueError(f"Unknown hardware probes: {sorted(unknown)}")
        self.probes: Dict[str, Probe] = {**DEFAULT_PROBES, **(probes or {})}
        self.forced_tier = forced_tier
        self._capabilities: Optional[HardwareCapabilities] = None
        self._lock = threading.Lock()

    def detect(self, refresh: bool = False) -> HardwareCapabilities:
        """Return the capability snapshot, probing on first use or on refresh"""
        with self._lock:
            if self._capabilities is None or refresh:
                self._capabilities = self._detect()
            return self._capabilities

    def _run_probe(self, name: str) -> bool:
        try:
            return bool(self.probes[name]())
        except Exception as e:
            logger.debug("Hardware probe failed", probe=name, error=str(e))
            return False

    def _detect(self) -> HardwareCapabilities:
        flags = {name: self._run_probe(name) for name in PROBE_NAMES}
        flag_args = dict(
            has_gpu=flags["gpu"],
            has_neural_accelerator=flags["neural_accelerator"],
            has_vector_cpu=flags["vector_cpu"],
            has_accelerated_runtime=flags["accelerated_runtime"],
            has_distribution_service=flags["distribution_service"],
        )

        score = calculate_performance_score(**flag_args)
        tier = select_runtime_tier(**flag_args)
        if self.forced_tier is not None and self.forced_tier != tier:
            logger.info(
                "Runtime tier overridden",
                detected_tier=tier.value,
                forced_tier=self.forced_tier.value,
            )
            tier = self.forced_tier

        capabilities = HardwareCapabilities(
            **flag_args, performance_score=score, recommended_tier=tier
        )
        HARDWARE_PERFORMANCE_SCORE.set(score)
        logger.info(
            "Hardware capabilities detected",
            performance_score=score,
            recommended_tier=tier.value,
            **flags,
        )
        return capabilities
