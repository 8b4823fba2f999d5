"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class SourceSettings(BaseSettings):
    """Upstream exchange access settings."""

    model_config = SettingsConfigDict(env_prefix="SOURCES_")

    enabled: list[str] = []  # empty = every registered source
    timeout_seconds: float = 45.0  # per-source budget for one phase
    request_timeout_ms: int = 30000  # ccxt per-request timeout
    targeted_concurrency: int = 10  # max in-flight requests per targeted source
    https_proxy: str = ""


class ScreenerSettings(BaseSettings):
    """Which instruments count as worth reporting."""

    model_config = SettingsConfigDict(env_prefix="SCREENER_")

    significance_threshold: Decimal = Decimal("0.0005")  # 0.05% per period
    lookahead_window_ms: int = 3_600_000  # settlements within the next hour


class CacheSettings(BaseSettings):
    """TTLs of the two single-slot caches."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    funding_rate_ttl_seconds: float = 60.0
    calendar_ttl_seconds: float = 300.0


class CalendarSettings(BaseSettings):
    """Economic calendar feed settings."""

    model_config = SettingsConfigDict(env_prefix="CALENDAR_")

    url: str = "https://nfs.faireconomy.media/ff_calendar_thisweek.json"
    country: str = "USD"
    request_timeout_seconds: float = 15.0


class AlertSettings(BaseSettings):
    """Alert gating: reference timezone, firing window and push schedule.

    All clock-of-day values are interpreted in ``timezone``.
    """

    model_config = SettingsConfigDict(env_prefix="ALERT_")

    timezone: str = "Asia/Shanghai"
    lower_bound_minutes: float = 15.0
    upper_bound_minutes: float = 35.0
    severity: Literal["high", "high_medium"] = "high"
    digest_severity: Literal["high", "high_medium"] = "high_medium"

    # Quiet window [start, end) during which no alerting work runs
    quiet_start_hour: int = 2
    quiet_end_hour: int = 6

    # Hourly funding push fires when minute-of-hour is in [start, end] (wraps)
    hourly_window_start_minute: int = 50
    hourly_window_end_minute: int = 2

    digest_hours: list[int] = [19, 21]  # evening calendar digest
    top_instruments: int = 3


class NotifierSettings(BaseSettings):
    """ServerChan push credentials."""

    model_config = SettingsConfigDict(env_prefix="SC_")

    sendkey: SecretStr = SecretStr("")
    base_url: str = "https://sctapi.ftqq.com"
    request_timeout_seconds: float = 20.0


class ApiSettings(BaseSettings):
    """HTTP host configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    sources: SourceSettings = SourceSettings()
    screener: ScreenerSettings = ScreenerSettings()
    cache: CacheSettings = CacheSettings()
    calendar: CalendarSettings = CalendarSettings()
    alerts: AlertSettings = AlertSettings()
    notifier: NotifierSettings = NotifierSettings()
    api: ApiSettings = ApiSettings()
