"""
ONNX neural sentiment backends.

Two variants share preprocessing, tokenization and postprocessing and differ
only in the execution providers their inference session binds:

- CpuNeuralBackend: optional CPU vector delegate (XNNPACK / DNNL), then the
  default CPU provider
- AcceleratedNeuralBackend: the first usable GPU / NPU provider; when none
  binds it hands every call to an internal CpuNeuralBackend
"""

import asyncio
import re
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np
import onnxruntime as ort

from adaptive_sentiment.core.assets import (
    DEFAULT_CLASS_LABELS,
    IntegrationConfig,
    ModelAssets,
    PreprocessingConfig,
    Vocabulary,
    load_model_assets,
)
from adaptive_sentiment.core.config import SentimentSettings, get_sentiment_settings
from adaptive_sentiment.core.errors import AssetLoadError, InferenceError
from adaptive_sentiment.core.models import (
    BackendKind,
    HardwareCapabilities,
    ModelInfo,
    SentimentLabel,
    SentimentResult,
)
from adaptive_sentiment.hardware.detection import (
    ACCELERATOR_PROVIDERS,
    GPU_PROVIDERS,
    VECTOR_PROVIDERS,
    available_providers,
)
from adaptive_sentiment.utils.logger import add_backend_context, get_logger

from .base import SentimentBackend

logger = get_logger(__name__)

CPU_PROVIDER = "CPUExecutionProvider"

# Preference order for the accelerated variant
ACCELERATED_PROVIDER_ORDER = (
    "TensorrtExecutionProvider",
    "CUDAExecutionProvider",
    "ROCMExecutionProvider",
    "CoreMLExecutionProvider",
    "DmlExecutionProvider",
    "QNNExecutionProvider",
    "NnapiExecutionProvider",
    "OpenVINOExecutionProvider",
)

PUNCTUATION = re.compile(r"[^a-zA-Z0-9\s]")

# Class index order used when the config labels are not sentiment names
INDEX_LABELS = (SentimentLabel.NEGATIVE, SentimentLabel.NEUTRAL, SentimentLabel.POSITIVE)

SessionFactory = Callable[..., Any]


def preprocess_text(text: str, preprocessing: PreprocessingConfig) -> str:
    if preprocessing.lowercase:
        text = text.lower()
    if preprocessing.remove_punctuation:
        text = PUNCTUATION.sub("", text)
    return text[: preprocessing.max_length]


def encode_text(
    text: str, vocabulary: Vocabulary, max_length: int
) -> Dict[str, np.ndarray]:
    """
    Encode text as [CLS] words [SEP], padded to max_length.

    Returns int64 arrays of shape (1, max_length) for input ids, attention
    mask and token type ids.
    """
    words = text.split()[: max_length - 2]
    token_ids = [vocabulary.cls_id]
    token_ids.extend(vocabulary.token_id(word) for word in words)
    token_ids.append(vocabulary.sep_id)

    padding = max_length - len(token_ids)
    input_ids = token_ids + [vocabulary.pad_id] * padding
    attention_mask = [1] * len(token_ids) + [0] * padding

    return {
        "input_ids": np.asarray([input_ids], dtype=np.int64),
        "attention_mask": np.asarray([attention_mask], dtype=np.int64),
        "token_type_ids": np.zeros((1, max_length), dtype=np.int64),
    }


def softmax(logits: np.ndarray) -> np.ndarray:
    """Numerically stable softmax over a 1-D logit vector"""
    logits = np.asarray(logits, dtype=np.float64)
    exp_logits = np.exp(logits - np.max(logits))
    return exp_logits / exp_logits.sum()


def label_for_index(index: int, class_labels: Sequence[str]) -> SentimentLabel:
    if index < len(class_labels):
        try:
            return SentimentLabel(class_labels[index].strip().lower())
        except ValueError:
            pass
    if index < len(INDEX_LABELS):
        return INDEX_LABELS[index]
    raise InferenceError("neural", f"no sentiment label for class index {index}")


def _default_session_factory(model: bytes, **kwargs) -> ort.InferenceSession:
    return ort.InferenceSession(model, **kwargs)


class NeuralInferenceBackend(SentimentBackend):
    """
    Shared ONNX inference pipeline.

    Subclasses choose the execution providers; everything from asset loading
    to the confidence threshold lives here.
    """

    backend_tag = "neural"

    def __init__(
        self,
        kind: BackendKind,
        settings: Optional[SentimentSettings] = None,
        capabilities: Optional[HardwareCapabilities] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        super().__init__(kind, name=self.backend_tag)
        self.settings = settings or get_sentiment_settings()
        self.capabilities = capabilities or HardwareCapabilities()
        self.session_factory = session_factory or _default_session_factory

        # Initialized in initialize()
        self.assets: Optional[ModelAssets] = None
        self.session = None
        self.bound_providers: List[str] = []
        self._input_names: frozenset = frozenset()
        self._ready = False

    def is_ready(self) -> bool:
        return self._ready

    @property
    def config(self) -> IntegrationConfig:
        if self.assets is None:
            raise InferenceError(self.backend_tag, "model assets not loaded")
        return self.assets.config

    def _log_context(self) -> Dict[str, Any]:
        return add_backend_context(self.backend_tag, self.kind.value)

    async def _load_assets(self) -> ModelAssets:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: load_model_assets(
                self.settings.model_dir,
                config_file=self.settings.config_file,
                vocab_file=self.settings.vocab_file,
                model_file=self.settings.model_file,
            ),
        )

    def _session_options(self, config: IntegrationConfig) -> ort.SessionOptions:
        options = ort.SessionOptions()
        options.intra_op_num_threads = config.performance.num_threads
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        return options

    def _create_session(self, assets: ModelAssets, providers: List[str]):
        """Blocking session construction; run from an executor"""
        return self.session_factory(
            assets.model_bytes(),
            sess_options=self._session_options(assets.config),
            providers=providers,
        )

    async def _build_session(self, assets: ModelAssets, providers: List[str]):
        loop = asyncio.get_running_loop()
        session = await loop.run_in_executor(
            None, self._create_session, assets, providers
        )
        self._attach_session(session)
        return session

    def _attach_session(self, session) -> None:
        self.session = session
        self._input_names = frozenset(i.name for i in session.get_inputs())
        try:
            self.bound_providers = list(session.get_providers())
        except AttributeError:
            self.bound_providers = []

    def _vector_delegate(self, config: IntegrationConfig) -> Optional[str]:
        if not (config.performance.use_vector_delegate and self.capabilities.has_vector_cpu):
            return None
        installed = set(available_providers())
        for provider in VECTOR_PROVIDERS:
            if provider in installed:
                return provider
        return None

    def _cpu_providers(self, config: IntegrationConfig) -> List[str]:
        providers = []
        delegate = self._vector_delegate(config)
        if delegate:
            providers.append(delegate)
        providers.append(CPU_PROVIDER)
        return providers

    async def cleanup(self) -> None:
        """Release the session and the model map"""
        was_ready = self._ready
        self._ready = False
        self.session = None
        self.bound_providers = []
        self._input_names = frozenset()
        if self.assets is not None:
            self.assets.close()
            self.assets = None
        if was_ready:
            logger.info("Neural backend resources cleaned up", **self._log_context())

    def _build_feeds(self, encoded: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """Map encoded arrays onto the inputs the model declares"""
        names = self._input_names
        if "input_ids" in names or not names:
            feeds = {"input_ids": encoded["input_ids"]}
        else:
            first_input = self.session.get_inputs()[0].name
            feeds = {first_input: encoded["input_ids"]}
        if "attention_mask" in names:
            feeds["attention_mask"] = encoded["attention_mask"]
        if "token_type_ids" in names:
            feeds["token_type_ids"] = encoded["token_type_ids"]
        return feeds

    def _run(self, feeds: Dict[str, np.ndarray]) -> np.ndarray:
        outputs = self.session.run(None, feeds)
        return np.asarray(outputs[0]).reshape(-1)

    def _postprocess(self, logits: np.ndarray, config: IntegrationConfig) -> SentimentResult:
        num_classes = config.output_config.num_classes
        if logits.shape[0] != num_classes:
            raise InferenceError(
                self.backend_tag,
                f"expected {num_classes} logits, model returned {logits.shape[0]}",
            )

        probabilities = softmax(logits)
        index = int(np.argmax(probabilities))
        probability = min(1.0, max(0.0, float(probabilities[index])))

        if probability >= config.output_config.confidence_threshold:
            label = label_for_index(index, config.output_config.class_labels)
            return SentimentResult.for_label(
                label, probability, [f"{self.backend_tag}:{label.value}"]
            )
        # Uncertain predictions stay neutral; the orchestrator gate decides on fallback
        return SentimentResult.neutral(
            probability, [f"{self.backend_tag}:low_confidence"]
        )

    async def _analyze_text(self, text: str) -> SentimentResult:
        start_time = time.perf_counter()
        config = self.config
        max_length = config.preprocessing.max_length

        cleaned = preprocess_text(text, config.preprocessing)
        encoded = encode_text(cleaned, self.assets.vocabulary, max_length)
        feeds = self._build_feeds(encoded)

        loop = asyncio.get_running_loop()
        logits = await loop.run_in_executor(None, self._run, feeds)

        result = self._postprocess(logits, config)
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        return result.with_processing_time(elapsed_ms)

    def model_info(self) -> Optional[ModelInfo]:
        if self.assets is None:
            return None
        config = self.assets.config
        return ModelInfo(
            type=config.model_type,
            version=config.version,
            language="en",
            accuracy="unknown",
            speed=self.backend_tag,
        )

    def get_capabilities(self) -> Dict[str, Any]:
        capabilities = super().get_capabilities()
        capabilities["providers"] = list(self.bound_providers)
        return capabilities


class CpuNeuralBackend(NeuralInferenceBackend):
    """Neural backend bound to the CPU execution provider"""

    backend_tag = "cpu"

    def __init__(
        self,
        settings: Optional[SentimentSettings] = None,
        capabilities: Optional[HardwareCapabilities] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        super().__init__(BackendKind.CPU_NEURAL, settings, capabilities, session_factory)

    async def initialize(self) -> bool:
        if self._ready:
            return True

        try:
            self.assets = await self._load_assets()
            providers = self._cpu_providers(self.assets.config)
            await self._build_session(self.assets, providers)
        except AssetLoadError as e:
            logger.warning("Neural model assets unavailable", error=str(e), **self._log_context())
            await self.cleanup()
            return False
        except Exception as e:
            logger.error(
                "Failed to initialize neural backend",
                error=str(e),
                exc_info=True,
                **self._log_context(),
            )
            await self.cleanup()
            return False

        self._ready = True
        logger.info(
            "Neural backend initialized",
            providers=self.bound_providers,
            model_path=str(self.assets.model_path),
            **self._log_context(),
        )
        return True


class AcceleratedNeuralBackend(NeuralInferenceBackend):
    """
    Neural backend bound to a GPU or NPU execution provider.

    When no hardware provider is usable (none installed, session build fails,
    or onnxruntime silently binds only the CPU) it constructs a
    CpuNeuralBackend and delegates to it.
    """

    backend_tag = "accelerated"

    def __init__(
        self,
        settings: Optional[SentimentSettings] = None,
        capabilities: Optional[HardwareCapabilities] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        super().__init__(
            BackendKind.ACCELERATED_NEURAL, settings, capabilities, session_factory
        )
        self.cpu_delegate: Optional[CpuNeuralBackend] = None

    @property
    def is_accelerated(self) -> bool:
        return self._ready and self.cpu_delegate is None

    def is_ready(self) -> bool:
        if self.cpu_delegate is not None:
            return self.cpu_delegate.is_ready()
        return self._ready

    def _hardware_provider(self, config: IntegrationConfig) -> Optional[str]:
        if not config.performance.use_accelerator_delegate:
            return None
        installed = set(available_providers())
        for provider in ACCELERATED_PROVIDER_ORDER:
            if provider not in installed:
                continue
            if provider in GPU_PROVIDERS and self.capabilities.has_gpu:
                return provider
            if provider in ACCELERATOR_PROVIDERS and self.capabilities.has_neural_accelerator:
                return provider
        return None

    async def initialize(self) -> bool:
        if self.is_ready():
            return True

        try:
            self.assets = await self._load_assets()
        except AssetLoadError as e:
            logger.warning("Neural model assets unavailable", error=str(e), **self._log_context())
            await self.cleanup()
            return False
        except Exception as e:
            logger.error(
                "Failed to load neural model assets",
                error=str(e),
                exc_info=True,
                **self._log_context(),
            )
            await self.cleanup()
            return False

        provider = self._hardware_provider(self.assets.config)
        if provider is None:
            logger.info("No hardware execution provider usable", **self._log_context())
            return await self._fall_back_to_cpu()

        try:
            await self._build_session(self.assets, [provider, CPU_PROVIDER])
        except Exception as e:
            logger.warning(
                "Hardware session build failed",
                provider=provider,
                error=str(e),
                **self._log_context(),
            )
            return await self._fall_back_to_cpu()

        if provider not in self.bound_providers:
            logger.warning(
                "Runtime bound only CPU providers",
                requested=provider,
                bound=self.bound_providers,
                **self._log_context(),
            )
            return await self._fall_back_to_cpu()

        self._ready = True
        logger.info(
            "Neural backend initialized",
            providers=self.bound_providers,
            model_path=str(self.assets.model_path),
            **self._log_context(),
        )
        return True

    async def _fall_back_to_cpu(self) -> bool:
        await super().cleanup()
        self.cpu_delegate = CpuNeuralBackend(
            self.settings, self.capabilities, self.session_factory
        )
        ready = await self.cpu_delegate.initialize()
        if not ready:
            self.cpu_delegate = None
        return ready

    async def analyze(self, text: str) -> SentimentResult:
        if self.cpu_delegate is not None:
            return await self.cpu_delegate.analyze(text)
        return await super().analyze(text)

    async def cleanup(self) -> None:
        if self.cpu_delegate is not None:
            await self.cpu_delegate.cleanup()
            self.cpu_delegate = None
        await super().cleanup()

    def model_info(self) -> Optional[ModelInfo]:
        if self.cpu_delegate is not None:
            return self.cpu_delegate.model_info()
        return super().model_info()

    def get_capabilities(self) -> Dict[str, Any]:
        capabilities = super().get_capabilities()
        capabilities["is_accelerated"] = self.is_accelerated
        if self.cpu_delegate is not None:
            capabilities["providers"] = list(self.cpu_delegate.bound_providers)
        return capabilities
