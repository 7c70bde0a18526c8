#!/usr/bin/env python3
"""
Centralized Configuration Manager

Provides a single source of truth for collection and analysis settings,
including environment variables, defaults, and validation.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, List

from .env_loader import load_env_file
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _env_number(key: str, default, cast):
    """
    Numeric environment variable.

    Raises:
        ConfigurationError: If the value cannot be converted
    """
    raw = os.getenv(key)
    if raw is None or raw.strip() == '':
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(key, f"expected a number, got '{raw}'")


DEFAULT_REDDIT_FEEDS: Dict[str, str] = {
    'r/Type1Diabetes': 'https://www.reddit.com/r/Type1Diabetes',
    'r/diabetes': 'https://www.reddit.com/r/diabetes',
    'r/diabetes_t1': 'https://www.reddit.com/r/diabetes_t1',
    'r/diabetes_t2': 'https://www.reddit.com/r/diabetes_t2',
    'r/dexcom': 'https://www.reddit.com/r/dexcom',
    'r/Omnipod': 'https://www.reddit.com/r/Omnipod',
    'r/CGM': 'https://www.reddit.com/r/CGM',
}

DEFAULT_MIN_GROUP_SIZES: Dict[str, int] = {
    'keyword_correlation': 1,
    'device_complaints': 1,
    'device_glucose': 10,
    'medication_effectiveness': 10,
    'environmental_impact': 5,
    'geographic_patterns': 5,
    'temporal_patterns': 5,
    'device_medication_interaction': 5,
    'lifestyle_factors': 5,
}


@dataclass
class CollectionConfig:
    """External record source configuration."""
    request_timeout: int = 10
    max_retries: int = 3
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 60.0
    max_concurrent_sources: int = 4
    max_concurrent_feeds: int = 5
    user_agent: str = "DiabetesInsightEngine/1.0 (+research dashboards)"
    reddit_feeds: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_REDDIT_FEEDS))
    pubmed_term: str = "type 1 diabetes"
    pubmed_max_results: int = 20
    openfda_device_terms: List[str] = field(default_factory=lambda: ['insulin pump', 'glucose monitor'])
    openfda_limit: int = 50


@dataclass
class AnalysisConfig:
    """Thresholds and execution settings for the insight pipeline."""
    # Glucose target range (mg/dL)
    target_low: float = 70.0
    target_high: float = 180.0

    # Scoring constants
    stability_cap: float = 10.0
    support_half_saturation: float = 5.0
    diversity_cap: int = 3
    positive_strength_threshold: float = 0.6
    negative_strength_threshold: float = 0.3
    sentiment_dominance_ratio: float = 1.5
    min_confidence: float = 0.3
    min_group_sizes: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_MIN_GROUP_SIZES))

    # Execution
    max_workers: int = 4
    analysis_timeout_seconds: float = 30.0

    # Supplementary reports
    emerging_window_days: int = 7
    emerging_min_mentions: int = 2
    emerging_growth_threshold: float = 1.5
    association_threshold: float = 0.6

    def min_group_size(self, dimension: str) -> int:
        """Minimum number of records a group needs for the given dimension."""
        return self.min_group_sizes.get(dimension, 1)


@dataclass
class Config:
    """Master configuration container."""
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)

    environment: str = field(default_factory=lambda: os.getenv('ENVIRONMENT', 'development'))
    log_level: str = "INFO"
    verbose_logging: bool = False

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() in ['dev', 'development', 'local']


class ConfigManager:
    """Manages application configuration with validation and environment loading."""

    def __init__(self, env_file_path: Optional[str] = ".env"):
        """
        Initialize configuration manager.

        Args:
            env_file_path: Path to .env file relative to project root, None to skip
        """
        self._config: Optional[Config] = None
        if env_file_path:
            load_env_file(env_file_path)

    def get_config(self, force_reload: bool = False) -> Config:
        """
        Get application configuration.

        Args:
            force_reload: Force reloading configuration from environment

        Returns:
            Complete configuration object
        """
        if self._config is None or force_reload:
            self._config = self._build_config()
        return self._config

    def _build_config(self) -> Config:
        """Build configuration from environment variables."""
        defaults = CollectionConfig()
        collection_config = CollectionConfig(
            request_timeout=_env_number('REQUEST_TIMEOUT', defaults.request_timeout, int),
            max_retries=_env_number('MAX_RETRIES', defaults.max_retries, int),
            backoff_base_seconds=_env_number('BACKOFF_BASE_SECONDS', defaults.backoff_base_seconds, float),
            backoff_max_seconds=_env_number('BACKOFF_MAX_SECONDS', defaults.backoff_max_seconds, float),
            max_concurrent_sources=_env_number('MAX_CONCURRENT_SOURCES', defaults.max_concurrent_sources, int),
            max_concurrent_feeds=_env_number('MAX_CONCURRENT_FEEDS', defaults.max_concurrent_feeds, int),
            user_agent=os.getenv('COLLECTOR_USER_AGENT', defaults.user_agent),
            pubmed_term=os.getenv('PUBMED_TERM', defaults.pubmed_term),
            pubmed_max_results=_env_number('PUBMED_MAX_RESULTS', defaults.pubmed_max_results, int),
            openfda_limit=_env_number('OPENFDA_LIMIT', defaults.openfda_limit, int),
        )

        analysis_defaults = AnalysisConfig()
        analysis_config = AnalysisConfig(
            target_low=_env_number('TARGET_LOW', analysis_defaults.target_low, float),
            target_high=_env_number('TARGET_HIGH', analysis_defaults.target_high, float),
            support_half_saturation=_env_number('SUPPORT_HALF_SATURATION', analysis_defaults.support_half_saturation, float),
            min_confidence=_env_number('MIN_CONFIDENCE', analysis_defaults.min_confidence, float),
            max_workers=_env_number('ANALYSIS_MAX_WORKERS', analysis_defaults.max_workers, int),
            analysis_timeout_seconds=_env_number('ANALYSIS_TIMEOUT', analysis_defaults.analysis_timeout_seconds, float),
            emerging_window_days=_env_number('EMERGING_WINDOW_DAYS', analysis_defaults.emerging_window_days, int),
            emerging_growth_threshold=_env_number('EMERGING_GROWTH_THRESHOLD', analysis_defaults.emerging_growth_threshold, float),
            association_threshold=_env_number('ASSOCIATION_THRESHOLD', analysis_defaults.association_threshold, float),
        )

        config = Config(
            collection=collection_config,
            analysis=analysis_config,
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            verbose_logging=os.getenv('VERBOSE_LOGGING', 'false').lower() == 'true'
        )

        validate_config(config)
        return config

    def update_logging(self) -> None:
        """Configure logging based on current configuration."""
        config = self.get_config()

        numeric_level = getattr(logging, config.log_level)
        logging.getLogger().setLevel(numeric_level)

        if config.verbose_logging or config.is_development():
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        else:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        for handler in logging.getLogger().handlers:
            handler.setLevel(numeric_level)
            handler.setFormatter(logging.Formatter(format_str, datefmt='%Y-%m-%d %H:%M:%S'))


def validate_config(config: Config) -> None:
    """
    Validate configuration values.

    Raises:
        ValueError: Listing every validation failure
    """
    errors = []
    analysis = config.analysis
    collection = config.collection

    if analysis.target_low <= 0 or analysis.target_low >= analysis.target_high:
        errors.append("TARGET_LOW must be positive and below TARGET_HIGH")

    if not 0 <= analysis.min_confidence <= 1:
        errors.append("MIN_CONFIDENCE must be between 0 and 1")

    if not 0 <= analysis.association_threshold <= 1:
        errors.append("ASSOCIATION_THRESHOLD must be between 0 and 1")

    if analysis.support_half_saturation <= 0:
        errors.append("SUPPORT_HALF_SATURATION must be positive")

    if analysis.max_workers < 1 or analysis.max_workers > 32:
        errors.append("ANALYSIS_MAX_WORKERS must be between 1 and 32")

    if analysis.analysis_timeout_seconds <= 0:
        errors.append("ANALYSIS_TIMEOUT must be positive")

    if analysis.emerging_window_days < 1:
        errors.append("EMERGING_WINDOW_DAYS must be at least 1")

    if collection.request_timeout < 1:
        errors.append("REQUEST_TIMEOUT must be at least 1 second")

    if collection.max_retries < 1:
        errors.append("MAX_RETRIES must be at least 1")

    if collection.max_concurrent_sources < 1 or collection.max_concurrent_sources > 20:
        errors.append("MAX_CONCURRENT_SOURCES must be between 1 and 20")

    if collection.max_concurrent_feeds < 1 or collection.max_concurrent_feeds > 20:
        errors.append("MAX_CONCURRENT_FEEDS must be between 1 and 20")

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config.log_level not in valid_log_levels:
        errors.append(f"LOG_LEVEL must be one of: {', '.join(valid_log_levels)}")

    if errors:
        raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    logger.debug("Configuration validation passed")
