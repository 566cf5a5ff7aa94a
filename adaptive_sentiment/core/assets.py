"""
Neural model assets: integration config, vocabulary and the compiled model.

Assets are read once at initialization and never mutated afterwards, so a
loaded ``ModelAssets`` can be shared by concurrent analyses without locking.
"""

import json
import mmap
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from adaptive_sentiment.utils.logger import get_logger

from .errors import AssetLoadError

logger = get_logger(__name__)

PAD_TOKEN = "[PAD]"
UNK_TOKEN = "[UNK]"
CLS_TOKEN = "[CLS]"
SEP_TOKEN = "[SEP]"
SPECIAL_TOKENS = (PAD_TOKEN, UNK_TOKEN, CLS_TOKEN, SEP_TOKEN)

DEFAULT_CLASS_LABELS = ["negative", "neutral", "positive"]


class PreprocessingConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    lowercase: bool = True
    remove_punctuation: bool = Field(default=False, alias="removePunctuation")
    max_length: int = Field(default=512, alias="maxLength", ge=2)


class InputConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)


class OutputConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    output_shape: List[int] = Field(default_factory=lambda: [1, 3], alias="outputShape")
    class_labels: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CLASS_LABELS), alias="classLabels"
    )
    confidence_threshold: float = Field(
        default=0.6, alias="confidenceThreshold", ge=0.0, le=1.0
    )

    @property
    def num_classes(self) -> int:
        return self.output_shape[-1] if self.output_shape else len(self.class_labels)


class PerformanceConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    num_threads: int = Field(default=4, alias="numThreads", ge=1)
    # Hardware accelerator delegate (GPU / NPU providers)
    use_accelerator_delegate: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "useAcceleratorA", "useNnapi", "use_accelerator_delegate"
        ),
    )
    # CPU vector-optimization delegate (XNNPACK / DNNL providers)
    use_vector_delegate: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "useAcceleratorB", "useXnnpack", "use_vector_delegate"
        ),
    )


class IntegrationConfig(BaseModel):
    """Integration config shipped next to the compiled model"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    model_file: Optional[str] = Field(default=None, alias="modelFile")
    model_type: str = Field(default="sentiment_classifier", alias="modelType")
    version: str = "unknown"
    input_config: InputConfig = Field(default_factory=InputConfig, alias="inputConfig")
    output_config: OutputConfig = Field(
        default_factory=OutputConfig, alias="outputConfig"
    )
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)

    @property
    def preprocessing(self) -> PreprocessingConfig:
        return self.input_config.preprocessing


class Vocabulary:
    """Read-only token -> id mapping with the four required special tokens"""

    def __init__(self, token_ids: Mapping[str, int]):
        missing = [token for token in SPECIAL_TOKENS if token not in token_ids]
        if missing:
            raise ValueError(f"Vocabulary is missing special tokens: {missing}")
        self._token_ids = MappingProxyType(dict(token_ids))

    @property
    def pad_id(self) -> int:
        return self._token_ids[PAD_TOKEN]

    @property
    def unk_id(self) -> int:
        return self._token_ids[UNK_TOKEN]

    @property
    def cls_id(self) -> int:
        return self._token_ids[CLS_TOKEN]

    @property
    def sep_id(self) -> int:
        return self._token_ids[SEP_TOKEN]

    def token_id(self, token: str) -> int:
        return self._token_ids.get(token, self.unk_id)

    def __contains__(self, token: str) -> bool:
        return token in self._token_ids

    def __len__(self) -> int:
        return len(self._token_ids)


class ModelAssets:
    """Loaded config, vocabulary and memory-mapped model buffer"""

    def __init__(
        self,
        config: IntegrationConfig,
        vocabulary: Vocabulary,
        model_buffer: mmap.mmap,
        model_path: Path,
    ):
        self.config = config
        self.vocabulary = vocabulary
        self.model_path = model_path
        self._model_buffer: Optional[mmap.mmap] = model_buffer

    @property
    def model_buffer(self) -> mmap.mmap:
        if self._model_buffer is None:
            raise ValueError("Model buffer has been released")
        return self._model_buffer

    @property
    def is_closed(self) -> bool:
        return self._model_buffer is None

    def model_bytes(self) -> bytes:
        """Copy of the model for runtimes that only accept bytes"""
        return bytes(self.model_buffer)

    def close(self) -> None:
        """Release the memory map; safe to call more than once"""
        buffer, self._model_buffer = self._model_buffer, None
        if buffer is not None:
            buffer.close()


def _read_json(path: Path, step: str) -> Union[Dict, List]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise AssetLoadError(step, "file not found", str(path))
    except (OSError, ValueError) as e:
        # ValueError covers malformed JSON and undecodable bytes
        raise AssetLoadError(step, str(e), str(path))


def load_integration_config(path: Path) -> IntegrationConfig:
    data = _read_json(path, "config")
    try:
        return IntegrationConfig.model_validate(data)
    except ValidationError as e:
        raise AssetLoadError("config", str(e), str(path))


def load_vocabulary(path: Path) -> Vocabulary:
    data = _read_json(path, "vocabulary")
    if not isinstance(data, dict):
        raise AssetLoadError("vocabulary", "expected a token -> id object", str(path))
    try:
        return Vocabulary({str(token): int(token_id) for token, token_id in data.items()})
    except (TypeError, ValueError) as e:
        raise AssetLoadError("vocabulary", str(e), str(path))


def map_model_file(path: Path) -> mmap.mmap:
    """Memory-map the compiled model read-only"""
    try:
        with open(path, "rb") as f:
            return mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
    except FileNotFoundError:
        raise AssetLoadError("model", "file not found", str(path))
    except (OSError, ValueError) as e:
        # mmap raises ValueError for an empty file
        raise AssetLoadError("model", str(e), str(path))


def load_model_assets(
    model_dir: Union[str, Path],
    config_file: str = "integration_config.json",
    vocab_file: str = "vocab.json",
    model_file: str = "model.onnx",
) -> ModelAssets:
    """
    Load config, vocabulary and model, in that order.

    Blocking; call from an executor.

    Raises:
        AssetLoadError: naming the step that failed
    """
    model_dir = Path(model_dir)

    config = load_integration_config(model_dir / config_file)
    vocabulary = load_vocabulary(model_dir / vocab_file)

    model_path = model_dir / (config.model_file or model_file)
    model_buffer = map_model_file(model_path)

    logger.debug(
        "Model assets loaded",
        model_path=str(model_path),
        vocabulary_size=len(vocabulary),
        max_length=config.preprocessing.max_length,
        num_classes=config.output_config.num_classes,
    )
    return ModelAssets(config, vocabulary, model_buffer, model_path)
