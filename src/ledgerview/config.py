"""Settings read from the environment (and a local ``.env`` file)."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .models import SectionLabels

load_dotenv()

ENV_PREFIX = "LEDGERVIEW_"


def _env_str(name: str, default: str) -> str:
    value = os.getenv(ENV_PREFIX + name)
    return default if value is None else value


def _env_int(name: str, default: int) -> int:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime settings for page sources, feeds and the CLI."""

    api_base_url: Optional[str] = None
    page_size: int = 20
    timeout: float = 10.0
    bank_type: str = "USER"
    currency_suffix: str = " đ"
    today_label: str = "Today"
    yesterday_label: str = "Yesterday"
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0
    retry_max_failures: int = 5
    filter_debounce: float = 0.3

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``LEDGERVIEW_*`` environment variables."""
        settings = cls(
            api_base_url=os.getenv(ENV_PREFIX + "API_BASE_URL") or None,
            page_size=_env_int("PAGE_SIZE", cls.page_size),
            timeout=_env_float("TIMEOUT", cls.timeout),
            bank_type=_env_str("BANK_TYPE", cls.bank_type),
            currency_suffix=_env_str("CURRENCY_SUFFIX", cls.currency_suffix),
            today_label=_env_str("TODAY_LABEL", cls.today_label),
            yesterday_label=_env_str("YESTERDAY_LABEL", cls.yesterday_label),
            retry_base_delay=_env_float("RETRY_BASE_DELAY", cls.retry_base_delay),
            retry_max_delay=_env_float("RETRY_MAX_DELAY", cls.retry_max_delay),
            retry_max_failures=_env_int("RETRY_MAX_FAILURES", cls.retry_max_failures),
            filter_debounce=_env_float("FILTER_DEBOUNCE", cls.filter_debounce),
        )
        if settings.page_size <= 0:
            raise ConfigurationError(f"{ENV_PREFIX}PAGE_SIZE must be positive")
        return settings

    @property
    def labels(self) -> SectionLabels:
        return SectionLabels(today=self.today_label, yesterday=self.yesterday_label)

    def require_base_url(self) -> str:
        if not self.api_base_url:
            raise ConfigurationError(f"{ENV_PREFIX}API_BASE_URL is not set")
        return self.api_base_url.rstrip("/")
