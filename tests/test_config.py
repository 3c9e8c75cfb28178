"""
Configuration Tests

OracleConfig validation, sectioned loading, coverage-based weight
redistribution and the computed (read-only) parameters.
"""

import pytest
from pydantic import ValidationError

from oracle.computed_params import compute_parameters
from oracle.models import DEFAULT_CONFIG, LAYER_NAMES, OracleConfig, resolve_config


class TestOracleConfig:
    def test_default_weights_sum_to_one(self):
        total = sum(getattr(DEFAULT_CONFIG, f"weight_{name}") for name in LAYER_NAMES)
        assert total == pytest.approx(1.0)

    def test_unbalanced_weights_rejected(self):
        with pytest.raises(ValidationError):
            OracleConfig(weight_content=0.5)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"recency_lambda": -0.01},
            {"shelf_size": 0},
            {"hidden_gem_min_quality": 1.5},
            {"deal_min_discount": 120},
            {"engagement_half_life_days": 0},
            {"trajectory_min": 1.3},
        ],
    )
    def test_out_of_range_settings_rejected(self, overrides):
        with pytest.raises(ValidationError):
            OracleConfig(**overrides)

    def test_resolve_config(self):
        assert resolve_config(None) is DEFAULT_CONFIG
        custom = OracleConfig(shelf_size=4)
        assert resolve_config(custom) is custom

    def test_from_dict_flattens_sections(self):
        config = OracleConfig.from_dict({
            "profile": {"engagement_half_life_days": 90},
            "shelves": {"shelf_size": 8, "not_a_setting": 1},
            "weights": {"content": 0.18, "graph": 0.09},
            "unknown_section": {"shelf_size": 99},
        })
        assert config.engagement_half_life_days == 90
        assert config.shelf_size == 8
        assert config.weight_content == pytest.approx(0.18)
        assert config.weight_graph == pytest.approx(0.09)

    @pytest.mark.parametrize("coverage", [0.0, 0.25, 0.5, 1.0])
    def test_layer_weights_keep_total(self, coverage):
        weights = DEFAULT_CONFIG.layer_weights(coverage)
        assert set(weights) == set(LAYER_NAMES)
        assert sum(weights.values()) == pytest.approx(1.0)

    def test_no_coverage_moves_embedding_share(self):
        weights = DEFAULT_CONFIG.layer_weights(0.0)
        assert weights["semantic"] == 0.0
        assert weights["cluster"] == 0.0
        assert weights["content"] == pytest.approx(0.13 + 0.15 * 0.6)
        assert weights["graph"] == pytest.approx(0.14 + 0.15 * 0.4)

    def test_full_coverage_is_unchanged(self):
        weights = DEFAULT_CONFIG.layer_weights(1.0)
        assert weights["semantic"] == pytest.approx(DEFAULT_CONFIG.weight_semantic)
        assert weights["content"] == pytest.approx(DEFAULT_CONFIG.weight_content)


class TestComputedParameters:
    def test_recency_half_life(self):
        assert compute_parameters()["recency_half_life_days"] == pytest.approx(730)

    def test_zero_lambda_has_no_half_life(self):
        config = OracleConfig(recency_lambda=0)
        assert compute_parameters(config)["recency_half_life_days"] is None

    def test_redistributed_weight(self):
        computed = compute_parameters(coverage=0.5)
        assert computed["redistributed_weight"] == pytest.approx(0.075)
        assert computed["effective_weight_total"] == pytest.approx(1.0)

    def test_coverage_is_clamped(self):
        assert compute_parameters(coverage=3)["embedding_coverage"] == 1.0
