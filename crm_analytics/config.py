# crm_analytics/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Local .env support via python-dotenv
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Validation of analytics settings at load time
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any
from dataclasses import dataclass, asdict

# Initialize logger
logger = logging.getLogger(__name__)

ENTITY_DEDUP_MODES = ('name', 'id')


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class AnalyticsSettings:
    """Analytics engine settings container"""
    market_share_top_n: int = 10
    breakdown_top_n: int = 10
    max_product_columns: int = 12
    entity_dedup: str = 'name'
    debug_timing: bool = False

    def validate(self):
        for key in ('market_share_top_n', 'breakdown_top_n', 'max_product_columns'):
            if getattr(self, key) <= 0:
                raise ValueError(f"{key.upper()} must be positive, got {getattr(self, key)}")
        if self.entity_dedup not in ENTITY_DEDUP_MODES:
            raise ValueError(
                f"ENTITY_DEDUP must be one of {ENTITY_DEDUP_MODES}, got {self.entity_dedup!r}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {key.upper(): value for key, value in asdict(self).items()}


def load_analytics_settings() -> AnalyticsSettings:
    """
    Build settings from the current environment.

    Does not touch the module-level singleton, so callers (and tests)
    can inspect a fresh read of the environment.
    """
    settings = AnalyticsSettings(
        market_share_top_n=_env_int("MARKET_SHARE_TOP_N", 10),
        breakdown_top_n=_env_int("BREAKDOWN_TOP_N", 10),
        max_product_columns=_env_int("MAX_PRODUCT_COLUMNS", 12),
        entity_dedup=os.getenv("ENTITY_DEDUP", "name").strip().lower(),
        debug_timing=_env_bool("DEBUG_TIMING"),
    )
    settings.validate()
    return settings


class Config:
    """
    Centralized configuration management

    Usage:
        from crm_analytics.config import config

        top_n = config.get_setting("MARKET_SHARE_TOP_N", 10)

        if config.debug_timing:
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration from .env and environment"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._settings = load_analytics_settings()
        self._log_config_status()

    def _log_config_status(self):
        """Log configuration status"""
        logger.info(
            f"✅ Analytics: top_n={self._settings.market_share_top_n}, "
            f"entity_dedup={self._settings.entity_dedup}, "
            f"debug_timing={self._settings.debug_timing}"
        )

    def reload(self):
        """Re-read .env and environment variables."""
        self._load_config()

    # ==================== PUBLIC GETTERS ====================

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get analytics setting with default"""
        return self._settings.to_dict().get(key.upper(), default)

    @property
    def settings(self) -> AnalyticsSettings:
        return self._settings

    @property
    def debug_timing(self) -> bool:
        return self._settings.debug_timing


# ==================== SINGLETON INSTANCE ====================

config = Config()

__all__ = [
    'config',
    'Config',
    'AnalyticsSettings',
    'load_analytics_settings',
    'ENTITY_DEDUP_MODES',
]
