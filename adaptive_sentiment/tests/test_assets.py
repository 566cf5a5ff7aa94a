"""
Test suite for neural model asset loading.
"""

import pytest

from adaptive_sentiment.core.assets import IntegrationConfig, Vocabulary, load_model_assets
from adaptive_sentiment.core.errors import AssetLoadError


class TestLoadModelAssets:
    """Test the config -> vocabulary -> model loading sequence"""

    def test_load_complete_assets(self, model_dir):
        assets = load_model_assets(model_dir)
        try:
            assert assets.config.preprocessing.max_length == 16
            assert assets.config.output_config.class_labels == [
                "negative",
                "neutral",
                "positive",
            ]
            assert assets.vocabulary.cls_id == 101
            assert assets.model_bytes() == b"fake-onnx-model"
            assert assets.model_path == model_dir / "model.onnx"
        finally:
            assets.close()

    def test_config_failure_reported_first(self, tmp_path, asset_writer):
        model_dir = asset_writer(tmp_path / "m", config=False, vocab=False, model_bytes=None)

        with pytest.raises(AssetLoadError) as exc_info:
            load_model_assets(model_dir)
        assert exc_info.value.step == "config"

    def test_missing_special_tokens(self, tmp_path, asset_writer):
        model_dir = asset_writer(tmp_path / "m", vocab={"[PAD]": 0, "hello": 1})

        with pytest.raises(AssetLoadError) as exc_info:
            load_model_assets(model_dir)
        assert exc_info.value.step == "vocabulary"

    @pytest.mark.parametrize(
        "file_name,step",
        [("integration_config.json", "config"), ("vocab.json", "vocabulary")],
    )
    def test_undecodable_file(self, model_dir, file_name, step):
        (model_dir / file_name).write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(AssetLoadError) as exc_info:
            load_model_assets(model_dir)
        assert exc_info.value.step == step

    def test_missing_model_file(self, tmp_path, asset_writer):
        model_dir = asset_writer(tmp_path / "m", model_bytes=None)

        with pytest.raises(AssetLoadError) as exc_info:
            load_model_assets(model_dir)
        assert exc_info.value.step == "model"
        assert "model.onnx" in str(exc_info.value)

    def test_empty_model_file(self, tmp_path, asset_writer):
        model_dir = asset_writer(tmp_path / "m", model_bytes=b"")

        with pytest.raises(AssetLoadError) as exc_info:
            load_model_assets(model_dir)
        assert exc_info.value.step == "model"

    def test_close_is_idempotent(self, model_dir):
        assets = load_model_assets(model_dir)
        assets.close()
        assets.close()

        assert assets.is_closed
        with pytest.raises(ValueError):
            assets.model_bytes()


class TestIntegrationConfig:
    def test_defaults(self):
        config = IntegrationConfig.model_validate({})

        assert config.preprocessing.max_length == 512
        assert config.output_config.output_shape == [1, 3]
        assert config.output_config.confidence_threshold == 0.6
        assert config.performance.num_threads == 4
        assert config.performance.use_accelerator_delegate
        assert config.performance.use_vector_delegate

    def test_delegate_flag_aliases(self):
        config = IntegrationConfig.model_validate(
            {"performance": {"useAcceleratorA": False, "useXnnpack": False}}
        )
        assert not config.performance.use_accelerator_delegate
        assert not config.performance.use_vector_delegate

    def test_unknown_keys_ignored(self):
        config = IntegrationConfig.model_validate(
            {"fallback": {"useKeywordModel": True}, "outputConfig": {"outputType": "f32"}}
        )
        assert config.output_config.num_classes == 3


class TestVocabulary:
    def test_unknown_token_maps_to_unk(self):
        vocabulary = Vocabulary({"[PAD]": 0, "[UNK]": 100, "[CLS]": 101, "[SEP]": 102})
        assert vocabulary.token_id("zebra") == 100
        assert len(vocabulary) == 4

    def test_special_tokens_required(self):
        with pytest.raises(ValueError):
            Vocabulary({"[PAD]": 0})
