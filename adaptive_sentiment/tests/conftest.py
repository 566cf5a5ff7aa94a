"""
Shared fixtures for the sentiment runtime tests.

Neural backends run against fake onnxruntime sessions; model assets are
written to a temporary directory.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest

from adaptive_sentiment.core.config import SentimentSettings
from adaptive_sentiment.core.models import HardwareCapabilities, RuntimeTier
from adaptive_sentiment.hardware.detection import HardwareCapabilityDetector

DEFAULT_VOCAB = {
    "[PAD]": 0,
    "[UNK]": 100,
    "[CLS]": 101,
    "[SEP]": 102,
    "great": 2307,
    "movie": 3185,
    "terrible": 6659,
}

DEFAULT_INTEGRATION_CONFIG = {
    "modelFile": "model.onnx",
    "modelType": "BERT",
    "version": "1.2.0",
    "inputConfig": {
        "preprocessing": {"lowercase": True, "removePunctuation": True, "maxLength": 16}
    },
    "outputConfig": {
        "outputShape": [1, 3],
        "classLabels": ["negative", "neutral", "positive"],
        "confidenceThreshold": 0.6,
    },
    "performance": {"numThreads": 2, "useNnapi": True, "useXnnpack": True},
}


class FakeInput:
    def __init__(self, name: str):
        self.name = name


class FakeSession:
    """Stands in for onnxruntime.InferenceSession"""

    def __init__(
        self,
        model: bytes,
        providers: Sequence[str],
        logits: Sequence[float],
        input_names: Sequence[str],
        bound_providers: Optional[Sequence[str]] = None,
        run_error: Optional[Exception] = None,
    ):
        self.model = model
        self.requested_providers = list(providers)
        self.bound = list(bound_providers if bound_providers is not None else providers)
        self.logits = list(logits)
        self.input_names = list(input_names)
        self.run_error = run_error
        self.feeds: List[Dict[str, np.ndarray]] = []

    def get_inputs(self):
        return [FakeInput(name) for name in self.input_names]

    def get_providers(self):
        return self.bound

    def run(self, output_names, feeds):
        self.feeds.append(feeds)
        if self.run_error is not None:
            raise self.run_error
        return [np.asarray([self.logits], dtype=np.float32)]


class FakeSessionFactory:
    """Records every session it builds; can be told to fail or bind only CPU"""

    def __init__(
        self,
        logits: Sequence[float] = (0.1, 0.2, 3.0),
        input_names: Sequence[str] = ("input_ids", "attention_mask"),
        bind_only_cpu: bool = False,
        fail_for: Sequence[str] = (),
        run_error: Optional[Exception] = None,
    ):
        self.logits = logits
        self.input_names = input_names
        self.bind_only_cpu = bind_only_cpu
        self.fail_for = set(fail_for)
        self.run_error = run_error
        self.sessions: List[FakeSession] = []
        self.calls: List[Dict] = []

    def __call__(self, model: bytes, sess_options=None, providers=()):
        self.calls.append({"sess_options": sess_options, "providers": list(providers)})
        if self.fail_for.intersection(providers):
            raise RuntimeError("provider failed to initialize")
        bound = ["CPUExecutionProvider"] if self.bind_only_cpu else None
        session = FakeSession(
            model, providers, self.logits, self.input_names, bound, self.run_error
        )
        self.sessions.append(session)
        return session


class StubDetector(HardwareCapabilityDetector):
    """Detector reporting a fixed capability snapshot"""

    def __init__(self, tier: RuntimeTier = RuntimeTier.KEYWORD_FALLBACK, **flags):
        super().__init__()
        self.snapshot = HardwareCapabilities(recommended_tier=tier, **flags)
        self.detect_calls = 0

    def detect(self, refresh: bool = False) -> HardwareCapabilities:
        self.detect_calls += 1
        return self.snapshot


def write_model_assets(
    model_dir: Path,
    config: Optional[Dict] = None,
    vocab: Optional[Dict] = None,
    model_bytes: Optional[bytes] = b"fake-onnx-model",
) -> Path:
    model_dir.mkdir(parents=True, exist_ok=True)
    if config is not False:
        (model_dir / "integration_config.json").write_text(
            json.dumps(config or DEFAULT_INTEGRATION_CONFIG), encoding="utf-8"
        )
    if vocab is not False:
        (model_dir / "vocab.json").write_text(
            json.dumps(vocab or DEFAULT_VOCAB), encoding="utf-8"
        )
    if model_bytes is not None:
        (model_dir / "model.onnx").write_bytes(model_bytes)
    return model_dir


@pytest.fixture
def asset_writer():
    """Callable writing config, vocabulary and model into a directory"""
    return write_model_assets


@pytest.fixture
def model_dir(tmp_path):
    """Directory holding a complete default asset set"""
    return write_model_assets(tmp_path / "model")


@pytest.fixture
def settings_for():
    """Callable building isolated settings for a model directory"""

    def _settings(model_dir: Path, **overrides) -> SentimentSettings:
        return SentimentSettings(_env_file=None, model_dir=model_dir, **overrides)

    return _settings


@pytest.fixture
def neural_settings(model_dir, settings_for):
    return settings_for(model_dir)


@pytest.fixture
def session_factory():
    return FakeSessionFactory()


@pytest.fixture
def make_session_factory():
    return FakeSessionFactory


@pytest.fixture
def stub_detector():
    return StubDetector
