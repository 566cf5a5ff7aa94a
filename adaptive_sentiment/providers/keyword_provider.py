"""
Keyword-based sentiment backend.

Deterministic lexicon scorer and the terminal fallback of the runtime: it is
ready as soon as it is constructed and answers every string input.
"""

import asyncio
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from adaptive_sentiment.core.models import (
    BackendKind,
    KeywordSentimentModel,
    ModelInfo,
    SentimentResult,
)
from adaptive_sentiment.utils.logger import get_logger

from .base import SentimentBackend
from .lexicon import create_default_model, load_lexicon

logger = get_logger(__name__)

WORD_SPLIT = re.compile(r"\W+")

NEUTRAL_INDICATOR_SCORE = 0.5
ENHANCED_MARGIN_FACTOR = 0.15
SIMPLE_MARGIN_FACTOR = 0.1


def tokenize(text: str) -> Tuple[str, List[str]]:
    """Lowercased text and its non-empty word tokens"""
    text_lower = text.lower()
    return text_lower, [word for word in WORD_SPLIT.split(text_lower) if word]


def score_enhanced(text: str, model: KeywordSentimentModel) -> SentimentResult:
    """Keyword scoring with intensity modifiers and context boosters"""
    text_lower, words = tokenize(text)
    algorithm = model.algorithm

    positive_score = 0.0
    negative_score = 0.0
    neutral_score = 0.0
    found_terms: List[str] = []

    for word in words:
        if word in model.positive_keywords:
            positive_score += algorithm.keyword_weight
            found_terms.append(f"+{word}")
        elif word in model.negative_keywords:
            negative_score += algorithm.keyword_weight
            found_terms.append(f"-{word}")
        elif word in model.neutral_indicators:
            neutral_score += NEUTRAL_INDICATOR_SCORE
            found_terms.append(f"~{word}")

    # Substring containment, each modifier at most once, in lexicon order
    for modifier, multiplier in model.intensity_modifiers.items():
        if modifier not in text_lower:
            continue
        if multiplier < 0:
            positive_score, negative_score = (
                negative_score * abs(multiplier),
                positive_score * abs(multiplier),
            )
        else:
            positive_score *= multiplier
            negative_score *= multiplier
        found_terms.append(f"*{modifier}")

    boosters = model.context_boosters
    if boosters is not None:
        for term in boosters.movie_terms or ():
            if term in text_lower:
                found_terms.append(f"#{term}")
        for term in boosters.positive_context or ():
            if term in text_lower:
                positive_score += algorithm.context_bonus
                found_terms.append(f"^{term}")
        for term in boosters.negative_context or ():
            if term in text_lower:
                negative_score += algorithm.context_bonus
                found_terms.append(f"!{term}")

    if positive_score + negative_score + neutral_score == 0:
        return SentimentResult.neutral()

    if positive_score > negative_score and positive_score > neutral_score:
        margin = positive_score - max(negative_score, neutral_score)
        confidence = min(
            algorithm.max_confidence,
            algorithm.base_confidence + margin * ENHANCED_MARGIN_FACTOR,
        )
        return SentimentResult.positive(confidence, found_terms)

    if negative_score > positive_score and negative_score > neutral_score:
        margin = negative_score - max(positive_score, neutral_score)
        confidence = min(
            algorithm.max_confidence,
            algorithm.base_confidence + margin * ENHANCED_MARGIN_FACTOR,
        )
        return SentimentResult.negative(confidence, found_terms)

    return SentimentResult.neutral(algorithm.base_confidence, found_terms)


def score_simple(text: str, model: KeywordSentimentModel) -> SentimentResult:
    """Plain keyword counting, used when the enhanced scorer fails"""
    _, words = tokenize(text)
    algorithm = model.algorithm

    positive_count = 0
    negative_count = 0
    found_terms: List[str] = []
    for word in words:
        if word in model.positive_keywords:
            positive_count += 1
            found_terms.append(f"+{word}")
        if word in model.negative_keywords:
            negative_count += 1
            found_terms.append(f"-{word}")

    if positive_count == negative_count:
        return SentimentResult.neutral()

    confidence = min(
        algorithm.max_confidence,
        algorithm.base_confidence
        + abs(positive_count - negative_count) * SIMPLE_MARGIN_FACTOR,
    )
    if positive_count > negative_count:
        return SentimentResult.positive(confidence, found_terms)
    return SentimentResult.negative(confidence, found_terms)


class KeywordFallbackBackend(SentimentBackend):
    """Lexicon-driven sentiment scoring; never reports an error for text input"""

    def __init__(
        self,
        lexicon_path: Optional[Union[str, Path]] = None,
        model: Optional[KeywordSentimentModel] = None,
    ):
        super().__init__(BackendKind.KEYWORD, name="keyword")
        self.lexicon_path = lexicon_path
        self.model = model or create_default_model()

    def is_ready(self) -> bool:
        return True

    async def initialize(self) -> bool:
        """Swap in the configured lexicon file, if any"""
        if self.lexicon_path is not None:
            loop = asyncio.get_running_loop()
            self.model = await loop.run_in_executor(
                None, load_lexicon, self.lexicon_path, self.model
            )
        logger.info(
            "Keyword backend ready",
            lexicon_version=self.model.model_info.version,
            positive_keywords=len(self.model.positive_keywords),
            negative_keywords=len(self.model.negative_keywords),
        )
        return True

    async def cleanup(self) -> None:
        # Pure data, nothing to release
        pass

    async def _analyze_text(self, text: str) -> SentimentResult:
        return self.score(text)

    def score(self, text: str) -> SentimentResult:
        """Synchronous scoring entry point"""
        model = self.model
        try:
            return score_enhanced(text, model)
        except Exception as e:
            logger.warning("Enhanced keyword scoring failed, using simple mode", error=str(e))
            return score_simple(text, model)

    def model_info(self) -> Optional[ModelInfo]:
        return self.model.model_info
