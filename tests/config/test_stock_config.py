"""
Tests for stock-control configuration loading and validation.

Covers:
- Packaged defaults match the dataclass defaults
- Loading from YAML, with and without the ``stock_control`` section
- Rejection of unknown keys and invalid values
- Checksum stability and the config trace log
"""

from decimal import Decimal

import pytest
import yaml

from stock_config import (
    StockControlConfig,
    compute_checksum,
    get_default_config,
    load_config,
)
from stock_config.loader import parse_config
from stock_kernel.exceptions import ConfigurationError


class TestDefaults:

    def test_packaged_defaults_match_dataclass(self):
        assert get_default_config() == StockControlConfig()

    def test_default_values(self):
        config = StockControlConfig.with_defaults()

        assert config.ordering_cost == Decimal("50")
        assert config.holding_cost_rate == Decimal("0.20")
        assert config.service_level == Decimal("0.95")
        assert config.abc_a_threshold == Decimal("80")
        assert config.abc_b_threshold == Decimal("95")

    def test_eoq_parameters(self):
        params = StockControlConfig(ordering_cost="75", holding_cost_rate="0.3").eoq_parameters()

        assert params.ordering_cost == Decimal("75")
        assert params.holding_cost_rate == Decimal("0.3")


class TestLoading:

    def test_section_file(self, tmp_path):
        path = tmp_path / "stock.yaml"
        path.write_text(yaml.safe_dump({"stock_control": {"lead_time_days": 3}}))

        config = load_config(path)

        assert config.lead_time_days == 3
        assert config.safety_stock_days == 3

    def test_top_level_keys(self):
        config = parse_config({"service_level": "0.99", "ordering_cost": 20})

        assert config.service_level == Decimal("0.99")
        assert config.ordering_cost == Decimal("20")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(path) == StockControlConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_trace_logged(self, tmp_path, captured_logs):
        path = tmp_path / "stock.yaml"
        path.write_text("stock_control:\n  waste_window_days: 14\n")

        config = load_config(path)

        trace = next(r for r in captured_logs() if r["message"] == "STOCK_CONFIG_TRACE")
        assert trace["source"] == str(path)
        assert trace["checksum"] == compute_checksum(config.to_dict())


class TestValidation:

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({"lead_time": 3})

        assert exc_info.value.field == "lead_time"
        assert exc_info.value.code == "CONFIGURATION_INVALID"

    def test_unknown_top_level_key_beside_section(self):
        with pytest.raises(ConfigurationError):
            parse_config({"stock_control": {}, "extra": 1})

    @pytest.mark.parametrize(
        "overrides",
        [
            {"ordering_cost": "-1"},
            {"holding_cost_rate": "abc"},
            {"service_level": "1"},
            {"service_level": "0"},
            {"usage_window_days": 0},
            {"lead_time_days": -1},
            {"lead_time_days": 2.5},
            {"turnover_period_days": True},
            {"abc_class_a_percent": "90", "abc_class_b_percent": "20"},
            {"internal_barcode_prefix": "22"},
            {"internal_barcode_prefix": "X"},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigurationError):
            StockControlConfig(**overrides)

    def test_zero_lead_time_allowed(self):
        assert StockControlConfig(lead_time_days=0).lead_time_days == 0


class TestChecksum:

    def test_stable_across_key_order(self):
        assert compute_checksum({"a": 1, "b": Decimal("2")}) == compute_checksum(
            {"b": Decimal("2"), "a": 1}
        )

    def test_changes_with_values(self):
        base = StockControlConfig().to_dict()
        changed = StockControlConfig(lead_time_days=8).to_dict()

        assert compute_checksum(base) != compute_checksum(changed)
