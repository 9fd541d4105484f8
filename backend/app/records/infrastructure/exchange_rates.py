"""
Exchange Rate Service
USD -> INR rate fetched from a public API, cached for the refresh interval,
with a static fallback when the API is unreachable.
"""
import httpx
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

logger = logging.getLogger(__name__)

EXCHANGE_RATE_API_URL = "https://open.er-api.com/v6/latest/USD"
REFRESH_INTERVAL = timedelta(hours=24)
FALLBACK_INR_RATE = Decimal("83.0")


@dataclass(frozen=True)
class RateQuote:
    rate: Decimal
    fetched_at: datetime
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.error is not None


class UsdInrRateProvider:
    """Fetches the USD->INR rate; a failed fetch yields the fallback rate plus the error."""

    def __init__(
        self,
        api_url: str = EXCHANGE_RATE_API_URL,
        refresh_interval: timedelta = REFRESH_INTERVAL,
        fallback_rate: Decimal = FALLBACK_INR_RATE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._api_url = api_url
        self._refresh_interval = refresh_interval
        self._fallback_rate = Decimal(str(fallback_rate))
        self._transport = transport
        self._clock = clock
        self._cached: Optional[RateQuote] = None

    def _is_fresh(self, quote: RateQuote) -> bool:
        return self._clock() < quote.fetched_at + self._refresh_interval

    async def get_quote(self) -> RateQuote:
        if self._cached is not None and self._is_fresh(self._cached):
            logger.debug("Using cached USD->INR rate")
            return self._cached

        try:
            rate = await self._fetch_rate()
            quote = RateQuote(rate=rate, fetched_at=self._clock())
            logger.info(f"Fetched USD->INR rate {rate}")
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning(f"Failed to fetch exchange rate, using fallback {self._fallback_rate}: {e}")
            quote = RateQuote(rate=self._fallback_rate, fetched_at=self._clock(), error=str(e))

        self._cached = quote
        return quote

    async def _fetch_rate(self) -> Decimal:
        async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
            response = await client.get(self._api_url)
            response.raise_for_status()
            data = response.json()

        rates = data.get("rates") or {}
        if "INR" not in rates:
            raise KeyError("INR exchange rate not found in API response")
        return Decimal(str(rates["INR"]))

    async def convert_usd_to_inr(self, usd_amount: Decimal) -> Decimal:
        quote = await self.get_quote()
        return Decimal(str(usd_amount)) * quote.rate
