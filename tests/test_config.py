"""
Tests for default configuration handling.
"""

import pytest

from pystrip.config import DEFAULT_CONFIG, merge_config


class TestMergeConfig:
    def test_overrides_applied(self):
        config = merge_config({"TARGET_POINTS": 500})
        assert config["TARGET_POINTS"] == 500
        assert config["BAUDRATE"] == 9600

    def test_defaults_not_mutated(self):
        merge_config({"REFRESH_PERIOD": 5.0})
        assert DEFAULT_CONFIG["REFRESH_PERIOD"] == 1.0

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            merge_config({"BAUD": 115200})
