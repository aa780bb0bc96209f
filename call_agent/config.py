"""
Centralized configuration with environment variable overrides.

Business identity, language-model provider settings, and dialog thresholds
are all configurable here. Nothing is hardcoded in dialog or provider logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from call_agent.logging_context import install_session_filter

load_dotenv()

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("en", "hi", "te")
APP_ENVIRONMENTS = ("development", "production", "test")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BusinessConfig:
    """Business identity loaded from environment or defaults."""

    name: str = os.getenv("BUSINESS_NAME", "Yuva Digital Studio")
    default_language: str = os.getenv("DEFAULT_LANGUAGE", "hi")
    phone: str = os.getenv("BUSINESS_PHONE", "+91-9876543210")
    address: str = os.getenv(
        "BUSINESS_ADDRESS", "Shop No. 12, First Floor, Begum Bazaar Road, Hyderabad"
    )
    hours: str = os.getenv("BUSINESS_HOURS", "9:30 AM to 8:30 PM, all days")


@dataclass(frozen=True)
class ProviderConfig:
    """External language-model provider settings."""

    api_key: str = os.getenv("OPENROUTER_API_KEY", "")
    model: str = os.getenv("OPENROUTER_MODEL", "meta-llama/llama-4-scout:free")
    api_url: str = os.getenv(
        "OPENROUTER_API_URL", "https://openrouter.ai/api/v1/chat/completions"
    )
    referer: str = os.getenv("BASE_URL", "http://localhost:3001")
    temperature: float = _safe_float("LLM_TEMPERATURE", "0.2")
    max_tokens: int = _safe_int("LLM_MAX_TOKENS", "100")
    timeout_seconds: float = _safe_float("LLM_TIMEOUT_SECONDS", "8.0")
    min_interval_ms: int = _safe_int("LLM_MIN_INTERVAL_MS", "1000")
    history_turns: int = _safe_int("LLM_HISTORY_TURNS", "3")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class DialogConfig:
    """Thresholds for session lifetime, retries, and input gathering."""

    history_cap: int = _safe_int("HISTORY_CAP", "10")
    max_unclear_per_state: int = _safe_int("MAX_UNCLEAR_PER_STATE", "2")
    session_max_age_minutes: int = _safe_int("SESSION_MAX_AGE_MINUTES", "30")
    sweep_interval_minutes: int = _safe_int("SWEEP_INTERVAL_MINUTES", "5")
    advance_booking_days: int = _safe_int("ADVANCE_BOOKING_DAYS", "30")
    speech_timeout_seconds: int = _safe_int("SPEECH_TIMEOUT_SECONDS", "10")
    contact_timeout_seconds: int = _safe_int("CONTACT_TIMEOUT_SECONDS", "15")
    keypad_timeout_seconds: int = _safe_int("KEYPAD_TIMEOUT_SECONDS", "8")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    dialog: DialogConfig = field(default_factory=DialogConfig)
    environment: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "studio-receptionist")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.business.default_language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"DEFAULT_LANGUAGE must be one of {SUPPORTED_LANGUAGES}, "
            f"got {config.business.default_language!r}"
        )
    if config.environment not in APP_ENVIRONMENTS:
        raise ValueError(
            f"APP_ENV must be one of {APP_ENVIRONMENTS}, got {config.environment!r}"
        )
    if not 0.0 <= config.provider.temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.provider.temperature}"
        )
    if config.provider.timeout_seconds <= 0:
        raise ValueError(
            f"LLM_TIMEOUT_SECONDS must be > 0, got {config.provider.timeout_seconds}"
        )
    if config.provider.min_interval_ms < 0:
        raise ValueError(
            f"LLM_MIN_INTERVAL_MS must be >= 0, got {config.provider.min_interval_ms}"
        )
    if config.provider.max_tokens < 1:
        raise ValueError(
            f"LLM_MAX_TOKENS must be >= 1, got {config.provider.max_tokens}"
        )

    for name, value in [
        ("HISTORY_CAP", config.dialog.history_cap),
        ("MAX_UNCLEAR_PER_STATE", config.dialog.max_unclear_per_state),
        ("SESSION_MAX_AGE_MINUTES", config.dialog.session_max_age_minutes),
        ("SWEEP_INTERVAL_MINUTES", config.dialog.sweep_interval_minutes),
        ("ADVANCE_BOOKING_DAYS", config.dialog.advance_booking_days),
    ]:
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_session_filter()
    logger.info(
        "Configuration loaded for '%s' (env=%s, llm=%s)",
        config.business.name,
        config.environment,
        "enabled" if config.provider.enabled else "disabled",
    )
    return config


# Singleton instance
settings = load_config()
