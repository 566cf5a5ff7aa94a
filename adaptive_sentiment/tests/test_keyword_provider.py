"""
Test suite for the keyword backend and its lexicon.
"""

import json
from unittest.mock import patch

import pytest

from adaptive_sentiment.core.models import BackendKind, SentimentLabel
from adaptive_sentiment.providers.keyword_provider import KeywordFallbackBackend
from adaptive_sentiment.providers.lexicon import (
    DEFAULT_ALGORITHM,
    PRODUCTION_ALGORITHM,
    create_context_boosters,
    create_default_model,
    create_intensity_modifiers,
    create_keywords,
    create_model_for_profile,
    load_lexicon,
)

CUSTOM_LEXICON = {
    "model_info": {
        "type": "enhanced_keyword_sentiment",
        "version": "3.1.0",
        "language": "en",
        "accuracy": "90%",
        "speed": "fast",
    },
    "positive_keywords": ["splendid"],
    "negative_keywords": ["dire"],
    "neutral_indicators": ["meh"],
    "intensity_modifiers": {"truly": 1.5},
    "context_patterns": {"strong_positive": ["tour de force"]},
    "algorithm": {
        "base_confidence": 0.7,
        "keyword_threshold": 1,
        "context_weight": 0.3,
        "modifier_weight": 0.4,
        "neutral_threshold": 0.5,
        "min_confidence": 0.4,
        "max_confidence": 0.95,
    },
}


@pytest.fixture
def backend():
    return KeywordFallbackBackend()


@pytest.mark.asyncio
class TestKeywordScoring:
    """Test the enhanced keyword algorithm"""

    async def test_intensified_positive(self, backend):
        result = await backend.analyze("This movie is absolutely amazing!")

        assert result.label == SentimentLabel.POSITIVE
        assert result.confidence == pytest.approx(0.825)
        assert "+amazing" in result.matched_terms
        assert "*absolutely" in result.matched_terms
        assert result.processing_time_ms is not None

    async def test_negation_inverts(self, backend):
        result = await backend.analyze("This movie is not amazing")

        assert result.label == SentimentLabel.NEGATIVE
        assert result.confidence == pytest.approx(0.75)
        assert "*not" in result.matched_terms

    async def test_no_keywords_is_neutral(self, backend):
        result = await backend.analyze("xyz qqq")

        assert result.label == SentimentLabel.NEUTRAL
        assert result.confidence == 0.5
        assert result.matched_terms == ()
        assert result.is_success

    async def test_blank_text_is_neutral(self, backend):
        result = await backend.analyze("   ")
        assert result.label == SentimentLabel.NEUTRAL
        assert result.confidence == 0.5

    async def test_positive_context_bonus(self, backend):
        result = await backend.analyze("A masterpiece of cinematography")

        assert result.label == SentimentLabel.POSITIVE
        assert result.confidence == pytest.approx(0.72)
        assert "^masterpiece" in result.matched_terms
        assert "#cinematography" in result.matched_terms

    async def test_negative_context_bonus(self, backend):
        result = await backend.analyze("Total flop, a disaster")

        assert result.label == SentimentLabel.NEGATIVE
        assert result.confidence == pytest.approx(0.84)
        assert "!flop" in result.matched_terms
        assert "!disaster" in result.matched_terms

    async def test_neutral_indicator(self, backend):
        result = await backend.analyze("It was okay")

        assert result.label == SentimentLabel.NEUTRAL
        assert result.confidence == DEFAULT_ALGORITHM.base_confidence
        assert result.matched_terms == ("~okay",)

    async def test_tie_is_neutral_with_terms(self, backend):
        result = await backend.analyze("great but terrible")

        assert result.label == SentimentLabel.NEUTRAL
        assert result.confidence == DEFAULT_ALGORITHM.base_confidence
        assert set(result.matched_terms) == {"+great", "-terrible"}

    async def test_confidence_capped(self, backend):
        result = await backend.analyze("amazing fantastic great excellent wonderful")
        assert result.confidence == DEFAULT_ALGORITHM.max_confidence

    @pytest.mark.parametrize(
        "text,label",
        [
            ("una película increíble", SentimentLabel.POSITIVE),
            ("ужасный фильм", SentimentLabel.NEGATIVE),
            ("A truly awful, boring film", SentimentLabel.NEGATIVE),
        ],
    )
    async def test_multilingual_keywords(self, backend, text, label):
        result = await backend.analyze(text)
        assert result.label == label

    async def test_confidence_always_in_bounds(self, backend):
        texts = [
            "absolutely completely totally amazing fantastic masterpiece",
            "never not barely terrible",
            "slightly somewhat pretty good",
            "!!!",
        ]
        for text in texts:
            result = await backend.analyze(text)
            assert 0.0 <= result.confidence <= 1.0
            assert result.is_success

    async def test_simple_mode_when_enhanced_fails(self, backend):
        with patch(
            "adaptive_sentiment.providers.keyword_provider.score_enhanced",
            side_effect=RuntimeError("corrupt modifiers"),
        ):
            result = await backend.analyze("amazing amazing terrible")

        assert result.label == SentimentLabel.POSITIVE
        assert result.confidence == pytest.approx(0.7)
        assert result.is_success

    async def test_simple_mode_tie_is_neutral(self, backend):
        with patch(
            "adaptive_sentiment.providers.keyword_provider.score_enhanced",
            side_effect=RuntimeError("corrupt modifiers"),
        ):
            result = await backend.analyze("xyz")

        assert result.label == SentimentLabel.NEUTRAL
        assert result.confidence == 0.5


@pytest.mark.asyncio
class TestKeywordBackendLifecycle:
    """Test keyword backend readiness and lexicon loading"""

    async def test_ready_on_construction(self, backend):
        assert backend.is_ready()
        assert backend.kind == BackendKind.KEYWORD
        assert await backend.initialize()
        assert backend.model_info().type == "keyword_sentiment_analysis"

    async def test_initialize_swaps_in_lexicon(self, tmp_path):
        lexicon_path = tmp_path / "lexicon.json"
        lexicon_path.write_text(json.dumps(CUSTOM_LEXICON), encoding="utf-8")
        backend = KeywordFallbackBackend(lexicon_path=lexicon_path)

        assert await backend.initialize()
        assert backend.model_info().version == "3.1.0"

        result = await backend.analyze("a truly splendid tour de force")
        assert result.label == SentimentLabel.POSITIVE
        assert "+splendid" in result.matched_terms
        assert "*truly" in result.matched_terms
        assert "^tour de force" in result.matched_terms

    async def test_initialize_with_missing_lexicon_keeps_default(self, tmp_path):
        backend = KeywordFallbackBackend(lexicon_path=tmp_path / "missing.json")

        assert await backend.initialize()
        assert backend.model_info().version == "2.0.0"

    async def test_production_profile_scoring(self):
        backend = KeywordFallbackBackend(model=create_model_for_profile("production"))

        positive = await backend.analyze("great")
        assert positive.confidence == pytest.approx(0.95)

        tie = await backend.analyze("great but terrible")
        assert tie.label == SentimentLabel.NEUTRAL
        assert tie.confidence == pytest.approx(0.8)

    async def test_missing_lexicon_keeps_profile(self, tmp_path):
        backend = KeywordFallbackBackend(
            lexicon_path=tmp_path / "missing.json",
            model=create_model_for_profile("production"),
        )

        assert await backend.initialize()
        assert backend.model.algorithm == PRODUCTION_ALGORITHM

    async def test_mixed_case_context_pattern_matches(self, tmp_path):
        data = dict(CUSTOM_LEXICON, context_patterns={"strong_positive": ["Tour De Force"]})
        lexicon_path = tmp_path / "lexicon.json"
        lexicon_path.write_text(json.dumps(data), encoding="utf-8")
        backend = KeywordFallbackBackend(lexicon_path=lexicon_path)
        await backend.initialize()

        result = await backend.analyze("A Tour de Force")
        assert result.label == SentimentLabel.POSITIVE
        assert result.matched_terms == ("^tour de force",)

    async def test_cleanup_keeps_backend_usable(self, backend):
        await backend.cleanup()
        await backend.cleanup()
        result = await backend.analyze("great")
        assert result.label == SentimentLabel.POSITIVE


class TestLexicon:
    """Test lexicon factories and file loading"""

    def test_default_model(self):
        model = create_default_model()

        assert "amazing" in model.positive_keywords
        assert "increíble" in model.positive_keywords
        assert "плохой" in model.negative_keywords
        assert "okay" in model.neutral_indicators
        assert model.algorithm == DEFAULT_ALGORITHM
        assert model.context_boosters == create_context_boosters()

    def test_modifier_order(self):
        modifiers = list(create_intensity_modifiers().items())
        assert modifiers[0] == ("absolutely", 1.5)
        assert modifiers[-1] == ("barely", -0.5)
        assert len(modifiers) == 13

    def test_create_keywords(self):
        assert "terrible" in create_keywords("negative")
        assert "okay" in create_keywords(SentimentLabel.NEUTRAL)
        assert create_keywords("mixed") == []

    def test_model_for_profile(self):
        assert create_model_for_profile("default") == create_default_model()
        assert create_model_for_profile("production").algorithm == PRODUCTION_ALGORITHM
        with pytest.raises(ValueError):
            create_model_for_profile("aggressive")

    def test_context_patterns_are_lowercased(self, tmp_path):
        data = dict(
            CUSTOM_LEXICON,
            context_patterns={"strong_positive": ["Tour De Force"], "strong_negative": ["FLOP"]},
        )
        path = tmp_path / "lexicon.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        boosters = load_lexicon(path).context_boosters
        assert boosters.positive_context == ("tour de force",)
        assert boosters.negative_context == ("flop",)

    def test_load_missing_lexicon_keeps_given_fallback(self, tmp_path):
        production = create_model_for_profile("production")
        assert load_lexicon(tmp_path / "absent.json", production) is production

    def test_load_valid_lexicon(self, tmp_path):
        path = tmp_path / "lexicon.json"
        path.write_text(json.dumps(CUSTOM_LEXICON), encoding="utf-8")

        model = load_lexicon(path)

        assert model.positive_keywords == frozenset({"splendid"})
        assert model.algorithm.base_confidence == 0.7
        assert model.algorithm.context_bonus == DEFAULT_ALGORITHM.context_bonus
        assert model.context_boosters.movie_terms is None
        assert model.context_boosters.negative_context is None

    def test_load_missing_lexicon_falls_back(self, tmp_path):
        assert load_lexicon(tmp_path / "absent.json") == create_default_model()

    def test_load_invalid_lexicon_falls_back(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_lexicon(path) == create_default_model()

    def test_load_lexicon_with_inconsistent_algorithm_falls_back(self, tmp_path):
        data = dict(CUSTOM_LEXICON)
        data["algorithm"] = dict(CUSTOM_LEXICON["algorithm"], base_confidence=0.99)
        path = tmp_path / "lexicon.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        assert load_lexicon(path) == create_default_model()
