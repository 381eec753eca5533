from decimal import Decimal
from functools import lru_cache
from typing import Any

from pydantic import AnyUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_DEFAULT_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0 Safari/537.36"
)


def _default_revenue_estimates() -> dict[str, dict[str, float]]:
    # Manually verified figures; annual values are derived from the weekly ones.
    return {
        "PUMP": {"weekly_revenue": 33_000_000 / 4.33, "accrual_fraction": 1.0},
        "RLB": {"weekly_revenue": 277_489_012 / 52, "accrual_fraction": 0.1355},
        "HYPE": {"weekly_revenue": 20_000_000, "accrual_fraction": 0.99},
    }


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    lottery_results_url: AnyUrl = Field(
        default="https://shuffle.com/lottery",
        description="Rendered lottery results page driven by the draw navigator",
    )
    lottery_graphql_url: AnyUrl = Field(
        default="https://shuffle.com/main-api/graphql/lottery/graphql-lottery",
        description="Lottery GraphQL endpoint used by the structured prize source",
    )
    draw_cache_ttl_seconds: float = Field(
        default=600.0,
        description="Freshness window for resolved draw snapshots",
        gt=0,
    )
    revenue_cache_ttl_seconds: float = Field(
        default=1800.0,
        description="Freshness window for the combined revenue response",
        gt=0,
    )
    navigation_timeout_ms: int = Field(
        default=60_000, description="Page load timeout for scraped surfaces", ge=1
    )
    draw_read_timeout_ms: int = Field(
        default=30_000,
        description="How long to wait for a 'Draw #N' marker to render",
        ge=1,
    )
    settle_wait_ms: int = Field(
        default=3_000,
        description="Extra wait after a page load for client-side rendering",
        ge=0,
    )
    interaction_wait_ms: int = Field(
        default=1_500,
        description="Wait after each previous/next interaction",
        ge=0,
    )
    poll_interval_ms: int = Field(
        default=500,
        description="Polling interval while waiting for rendered text",
        ge=1,
    )
    browser_acquire_timeout_seconds: float = Field(
        default=120.0,
        description="Maximum wait for the single browser slot before giving up",
        gt=0,
    )
    http_timeout_seconds: float = Field(
        default=20.0, description="Timeout for structured HTTP sources", gt=0
    )
    browser_headless: bool = Field(True, description="Launch Chromium headless")
    browser_args: list[str] | str = Field(
        default_factory=lambda: list(_DEFAULT_BROWSER_ARGS),
        description="Chromium launch flags (list or comma-separated string)",
    )
    user_agent: str = Field(
        default=_DEFAULT_USER_AGENT,
        description="User agent presented by the browser and HTTP sources",
    )
    prize_min_amount: Decimal = Field(
        default=Decimal("100"),
        description="Smallest table amount accepted as a division prize pool",
        ge=0,
    )
    max_winner_count: int = Field(
        default=1_000_000,
        description="Largest integer accepted as a division winner count",
        ge=1,
    )
    pump_fees_url: AnyUrl = Field(
        default="https://fees.pump.fun/",
        description="Daily fee table with amount and revenue-share columns",
    )
    rollbit_revenue_url: AnyUrl = Field(
        default="https://rollbit.com/rlb/buy-and-burn",
        description="Buy-and-burn page with combined and per-category revenue",
    )
    hype_revenue_api_url: AnyUrl = Field(
        default="https://api.llama.fi/summary/fees/hyperliquid?dataType=dailyRevenue",
        description="JSON endpoint returning a daily revenue series",
    )
    revenue_api_key: str | None = Field(
        default=None,
        description="Optional key for the structured revenue API",
    )
    revenue_api_key_header: str = Field(
        default="x-api-key",
        description="Header name carrying revenue_api_key when configured",
    )
    hype_accrual_fraction: float = Field(
        default=0.99,
        description="Share of protocol revenue redirected to HYPE holders",
    )
    rollbit_category_accruals: dict[str, float] = Field(
        default_factory=lambda: {"casino": 0.10, "trading": 0.30, "sports": 0.20},
        description="Per-category accrual fractions for RLB buy-and-burn",
    )
    rollbit_default_accrual: float = Field(
        default=0.1355,
        description="Flat RLB accrual used when categories cannot be extracted",
    )
    pump_default_accrual: float = Field(
        default=1.0,
        description="PUMP accrual used when the revenue-share column is empty",
    )
    revenue_estimates: dict[str, dict[str, float]] = Field(
        default_factory=_default_revenue_estimates,
        description="Per-token weekly revenue and accrual used when a source fails",
    )

    @field_validator("browser_args", mode="before")
    @classmethod
    def _parse_browser_args(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item for item in (part.strip() for part in value.split(",")) if item]
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        raise ValueError(
            "BROWSER_ARGS must be provided as a list or comma-separated string"
        )

    @field_validator("hype_accrual_fraction", "rollbit_default_accrual", "pump_default_accrual")
    @classmethod
    def _validate_fraction(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("accrual fractions must be between 0 and 1")
        return value

    @field_validator("rollbit_category_accruals")
    @classmethod
    def _validate_category_fractions(cls, value: dict[str, float]) -> dict[str, float]:
        normalized: dict[str, float] = {}
        for category, fraction in value.items():
            if not 0.0 <= float(fraction) <= 1.0:
                raise ValueError(
                    f"accrual fraction for category '{category}' must be between 0 and 1"
                )
            normalized[category.strip().lower()] = float(fraction)
        return normalized

    @field_validator("revenue_estimates")
    @classmethod
    def _validate_estimates(
        cls, value: dict[str, dict[str, float]]
    ) -> dict[str, dict[str, float]]:
        normalized: dict[str, dict[str, float]] = {}
        for symbol, estimate in value.items():
            if "weekly_revenue" not in estimate:
                raise ValueError(f"estimate for '{symbol}' is missing weekly_revenue")
            fraction = float(estimate.get("accrual_fraction", 1.0))
            if not 0.0 <= fraction <= 1.0:
                raise ValueError(
                    f"estimate accrual fraction for '{symbol}' must be between 0 and 1"
                )
            normalized[symbol.upper()] = {
                "weekly_revenue": float(estimate["weekly_revenue"]),
                "accrual_fraction": fraction,
            }
        return normalized

    def revenue_estimate(self, symbol: str) -> dict[str, float]:
        try:
            return self.revenue_estimates[symbol.upper()]
        except KeyError as exc:
            raise KeyError(f"No revenue estimate configured for '{symbol}'") from exc


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
