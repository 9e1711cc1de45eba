"""Application settings singleton - single source of truth for configuration

This module provides a singleton Settings class that consolidates:
1. Resolution encoding constants (shared by the catalog and callers)
2. Adjustment tuning constants (poll intervals, fallbacks)
3. Runtime configuration from config.yml

Usage:
    from displayadjust.common.settings import settings

    # Initialize once at startup with loaded config
    config = ConfigLoader.config_load()
    settings.initialize(config)

    # Use anywhere in the application
    resolution_id = width << settings.RESOLUTION_BIT_SHIFT | height
"""

from typing import Optional

from displayadjust.common.config import Config


class Settings:
    """Singleton settings manager combining config.yml and encoding constants

    Adjustment state is never stored here: every orchestrator owns its own
    single-flight and abort flags.
    """

    _instance: Optional["Settings"] = None

    def __new__(cls) -> "Settings":
        """Ensure only one Settings instance exists"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize settings singleton (only runs once)"""
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._config: Optional[Config] = None

    def initialize(self, config: Config) -> None:
        """
        Initialize with loaded configuration

        Args:
            config: Loaded application configuration
        """
        self._config = config

    # =========================================================================
    # Resolution Encoding Constants
    # =========================================================================

    RESOLUTION_BIT_SHIFT: int = 16
    """Width is stored above this bit in an encoded resolution id"""

    RESOLUTION_LOWER_BITS_MASK: int = 0xFFFF
    """Mask extracting the height from an encoded resolution id"""

    RESOLUTION_DIMENSION_LIMIT: int = 1 << 16
    """Exclusive upper bound for width and height to round-trip the encoding"""

    # =========================================================================
    # Adjustment Constants
    # =========================================================================

    POLL_INTERVAL_DIVISOR: float = 1000.0
    """Convert poll_interval_ms from config to seconds for asyncio.sleep()"""

    FALLBACK_DISPLAY_NAME: str = "Fake display"
    """Name of the synthetic display used when the backend reports none"""

    CONFIRMATION_TICK_SEC: float = 1.0
    """Countdown granularity of the keep/revert confirmation window"""

    # =========================================================================
    # Runtime Configuration Access
    # =========================================================================

    @property
    def config(self) -> Config:
        """
        Get loaded configuration object

        Returns:
            Loaded configuration

        Raises:
            RuntimeError: If initialize() was not called
        """
        if self._config is None:
            raise RuntimeError("Settings not initialized. Call settings.initialize(config) first.")
        return self._config


# Global singleton instance
settings = Settings()
"""Global settings singleton instance

Import this anywhere in the application:
    from displayadjust.common.settings import settings
"""
