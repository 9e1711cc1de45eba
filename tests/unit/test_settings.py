"""Unit tests for settings singleton"""

import pytest

from displayadjust.common.settings import Settings, settings


class TestSettingsSingleton:
    """Test Settings singleton pattern"""

    def test_singleton_same_instance(self, reset_settings):
        """Test that Settings() returns same instance"""
        s1 = Settings()
        s2 = Settings()
        assert s1 is s2

    def test_global_settings_is_singleton(self, reset_settings):
        """Test that global 'settings' is the singleton"""
        s = Settings()
        assert settings is s


class TestSettingsConstants:
    """Test that all constants are accessible"""

    def test_resolution_encoding_constants(self):
        """Test resolution encoding constants agree with each other"""
        assert settings.RESOLUTION_BIT_SHIFT == 16
        assert settings.RESOLUTION_LOWER_BITS_MASK == 0xFFFF
        assert settings.RESOLUTION_DIMENSION_LIMIT == 1 << settings.RESOLUTION_BIT_SHIFT

    def test_adjustment_constants(self):
        """Test adjustment constants exist"""
        assert settings.POLL_INTERVAL_DIVISOR == 1000.0
        assert settings.FALLBACK_DISPLAY_NAME == "Fake display"
        assert settings.CONFIRMATION_TICK_SEC == 1.0


class TestSettingsInitialization:
    """Test settings initialization with config"""

    def test_initialize_with_config(self, reset_settings, sample_config):
        """Test settings can be initialized with config"""
        settings.initialize(sample_config)

        assert settings.config is sample_config

    def test_config_property_before_init_raises(self, reset_settings):
        """Test accessing config before initialization raises error"""
        with pytest.raises(RuntimeError, match="Settings not initialized"):
            _ = settings.config
