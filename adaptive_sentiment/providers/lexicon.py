"""
Keyword lexicon for the fallback sentiment backend.

Built-in multilingual (English, Spanish, Russian) word lists, intensity
modifiers and movie-domain context boosters, plus a loader for lexicon JSON
files in the enhanced keyword-model format:

    {
      "model_info": {"type": ..., "version": ..., "language": ...,
                     "accuracy": ..., "speed": ...},
      "positive_keywords": [...],
      "negative_keywords": [...],
      "neutral_indicators": [...],
      "intensity_modifiers": {"very": 1.2, "not": -1.0},
      "context_patterns": {"strong_positive": [...], "strong_negative": [...]},
      "algorithm": {"base_confidence": 0.6, "neutral_threshold": 0.5,
                    "min_confidence": 0.3, "max_confidence": 0.9}
    }
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from adaptive_sentiment.core.models import (
    AlgorithmConfig,
    ContextBoosters,
    KeywordSentimentModel,
    ModelInfo,
    SentimentLabel,
)
from adaptive_sentiment.utils.logger import get_logger

logger = get_logger(__name__)

POSITIVE_KEYWORDS = (
    # English
    "amazing", "fantastic", "great", "excellent", "wonderful", "brilliant",
    "outstanding", "superb", "magnificent", "perfect", "incredible", "awesome",
    "beautiful", "lovely", "good", "nice", "best", "favorite", "love", "enjoy",
    "phenomenal", "spectacular", "remarkable", "exceptional", "marvelous",
    "stunning", "impressive", "captivating", "engaging", "compelling",
    # Spanish
    "increíble", "fantástico", "excelente", "maravilloso", "brillante",
    "sobresaliente", "magnífico", "perfecto", "asombroso", "impresionante",
    "hermoso", "encantador", "bueno", "mejor", "favorito", "amar", "disfrutar",
    # Russian
    "потрясающий", "фантастический", "отличный", "замечательный", "блестящий",
    "выдающийся", "великолепный", "идеальный", "невероятный", "впечатляющий",
    "красивый", "прекрасный", "хороший", "лучший", "любимый", "любить", "наслаждаться",
)  # fmt: skip

NEGATIVE_KEYWORDS = (
    # English
    "terrible", "awful", "horrible", "bad", "worst", "hate", "disgusting",
    "boring", "stupid", "dumb", "annoying", "frustrating", "disappointing",
    "waste", "rubbish", "garbage", "trash", "sucks", "pathetic", "lame",
    "atrocious", "dreadful", "appalling", "mediocre", "unwatchable",
    "cringe", "cheesy", "predictable", "cliché", "overrated",
    # Spanish
    "malo", "peor", "odiar", "asqueroso", "aburrido", "estúpido", "molesto",
    "frustrante", "decepcionante", "basura", "patético", "atroz", "espantoso",
    # Russian
    "ужасный", "отвратительный", "плохой", "худший", "ненавидеть", "мерзкий",
    "скучный", "глупый", "раздражающий", "разочаровывающий",
    "мусор", "жалкий", "посредственный",
)  # fmt: skip

NEUTRAL_INDICATORS = (
    # English
    "okay", "decent", "average", "fine", "acceptable", "reasonable",
    "standard", "typical", "normal", "ordinary", "so-so",
    # Spanish
    "bien", "decente", "promedio", "aceptable", "razonable",
    "estándar", "típico", "ordinario",
    # Russian
    "нормально", "приличный", "средний", "приемлемый", "разумный",
    "стандартный", "типичный", "обычный",
)  # fmt: skip

# Applied in this order
INTENSITY_MODIFIERS = (
    ("absolutely", 1.5),
    ("completely", 1.4),
    ("totally", 1.3),
    ("extremely", 1.3),
    ("incredibly", 1.3),
    ("very", 1.2),
    ("really", 1.1),
    ("pretty", 0.8),
    ("somewhat", 0.7),
    ("slightly", 0.6),
    ("not", -1.0),
    ("never", -1.0),
    ("barely", -0.5),
)

MOVIE_TERMS = (
    "cinematography", "acting", "plot", "story", "director", "performance",
    "script", "dialogue", "visuals", "effects", "soundtrack", "editing",
)  # fmt: skip

POSITIVE_CONTEXT = (
    "masterpiece", "artistry", "brilliant", "genius", "innovative",
    "groundbreaking", "revolutionary", "timeless", "classic",
)  # fmt: skip

NEGATIVE_CONTEXT = (
    "flop", "disaster", "failure", "ruined", "destroyed", "butchered",
    "mangled", "torture", "nightmare",
)  # fmt: skip

DEFAULT_MODEL_INFO = ModelInfo(
    type="keyword_sentiment_analysis",
    version="2.0.0",
    language="multilingual",
    accuracy="85%+",
    speed="very_fast",
)

DEFAULT_ALGORITHM = AlgorithmConfig(
    base_confidence=0.6,
    keyword_weight=1.0,
    context_weight=0.3,
    modifier_weight=0.4,
    neutral_threshold=0.5,
    min_confidence=0.3,
    max_confidence=0.9,
)

# Higher-confidence profile for curated production lexicons
PRODUCTION_ALGORITHM = AlgorithmConfig(
    base_confidence=0.8,
    keyword_weight=1.0,
    context_weight=0.4,
    modifier_weight=0.5,
    neutral_threshold=0.5,
    min_confidence=0.4,
    max_confidence=0.95,
)

ALGORITHM_PROFILES = {
    "default": DEFAULT_ALGORITHM,
    "production": PRODUCTION_ALGORITHM,
}


def create_keywords(kind: Union[SentimentLabel, str]) -> List[str]:
    """Built-in keywords for one sentiment class; unknown kinds get none"""
    try:
        kind = SentimentLabel(kind)
    except ValueError:
        return []
    if kind == SentimentLabel.POSITIVE:
        return list(POSITIVE_KEYWORDS)
    if kind == SentimentLabel.NEGATIVE:
        return list(NEGATIVE_KEYWORDS)
    return list(NEUTRAL_INDICATORS)


def create_intensity_modifiers() -> Dict[str, float]:
    return dict(INTENSITY_MODIFIERS)


def create_context_boosters() -> ContextBoosters:
    return ContextBoosters(
        movie_terms=MOVIE_TERMS,
        positive_context=POSITIVE_CONTEXT,
        negative_context=NEGATIVE_CONTEXT,
    )


def create_default_model(
    algorithm: AlgorithmConfig = DEFAULT_ALGORITHM,
) -> KeywordSentimentModel:
    """The built-in lexicon, used whenever no valid lexicon file is configured"""
    return KeywordSentimentModel(
        model_info=DEFAULT_MODEL_INFO,
        positive_keywords=frozenset(create_keywords(SentimentLabel.POSITIVE)),
        negative_keywords=frozenset(create_keywords(SentimentLabel.NEGATIVE)),
        neutral_indicators=frozenset(create_keywords(SentimentLabel.NEUTRAL)),
        intensity_modifiers=create_intensity_modifiers(),
        context_boosters=create_context_boosters(),
        algorithm=algorithm,
    )


def create_model_for_profile(profile: str) -> KeywordSentimentModel:
    """Built-in lexicon scored with a named algorithm profile"""
    try:
        algorithm = ALGORITHM_PROFILES[profile]
    except KeyError:
        raise ValueError(f"Unknown keyword profile: {profile}")
    return create_default_model(algorithm)


class _ModelInfoData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    version: str
    language: str
    accuracy: str
    speed: str


class _ContextPatternsData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    strong_positive: Optional[List[str]] = None
    strong_negative: Optional[List[str]] = None


class _AlgorithmData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    base_confidence: float = Field(ge=0.0, le=1.0)
    neutral_threshold: float
    min_confidence: float = Field(ge=0.0, le=1.0)
    max_confidence: float = Field(ge=0.0, le=1.0)
    context_bonus: float = Field(default=DEFAULT_ALGORITHM.context_bonus, ge=0.0)


class LexiconFile(BaseModel):
    """Schema of a lexicon JSON file"""

    model_config = ConfigDict(extra="ignore")

    model_info: _ModelInfoData
    positive_keywords: List[str]
    negative_keywords: List[str]
    neutral_indicators: List[str] = Field(default_factory=list)
    intensity_modifiers: Dict[str, float] = Field(default_factory=dict)
    context_patterns: Optional[_ContextPatternsData] = None
    algorithm: _AlgorithmData

    def to_model(self) -> KeywordSentimentModel:
        patterns = self.context_patterns or _ContextPatternsData()
        return KeywordSentimentModel(
            model_info=ModelInfo(**self.model_info.model_dump()),
            positive_keywords=frozenset(w.lower() for w in self.positive_keywords),
            negative_keywords=frozenset(w.lower() for w in self.negative_keywords),
            neutral_indicators=frozenset(w.lower() for w in self.neutral_indicators),
            intensity_modifiers={k.lower(): v for k, v in self.intensity_modifiers.items()},
            context_boosters=ContextBoosters(
                movie_terms=None,
                positive_context=(
                    tuple(p.lower() for p in patterns.strong_positive)
                    if patterns.strong_positive
                    else None
                ),
                negative_context=(
                    tuple(p.lower() for p in patterns.strong_negative)
                    if patterns.strong_negative
                    else None
                ),
            ),
            algorithm=AlgorithmConfig(
                base_confidence=self.algorithm.base_confidence,
                keyword_weight=DEFAULT_ALGORITHM.keyword_weight,
                context_weight=DEFAULT_ALGORITHM.context_weight,
                modifier_weight=DEFAULT_ALGORITHM.modifier_weight,
                neutral_threshold=self.algorithm.neutral_threshold,
                min_confidence=self.algorithm.min_confidence,
                max_confidence=self.algorithm.max_confidence,
                context_bonus=self.algorithm.context_bonus,
            ),
        )


def load_lexicon(
    path: Optional[Union[str, Path]],
    fallback: Optional[KeywordSentimentModel] = None,
) -> KeywordSentimentModel:
    """
    Load a lexicon file, falling back to the built-in lexicon.

    Never raises; a missing, unreadable or invalid file is logged and
    ``fallback`` (the default model when not given) is returned instead.
    """
    if fallback is None:
        fallback = create_default_model()
    if path is None:
        return fallback

    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        model = LexiconFile.model_validate(data).to_model()
    except FileNotFoundError:
        logger.warning("Lexicon file not found, using built-in lexicon", path=str(path))
        return fallback
    except (OSError, json.JSONDecodeError, ValidationError, ValueError) as e:
        logger.warning(
            "Invalid lexicon file, using built-in lexicon", path=str(path), error=str(e)
        )
        return fallback

    logger.info(
        "Lexicon loaded",
        path=str(path),
        version=model.model_info.version,
        positive_keywords=len(model.positive_keywords),
        negative_keywords=len(model.negative_keywords),
    )
    return model
