"""Exchange-rate providers.

The BBP subsidy is defined in soles, so a simulation in dollars needs the
PEN-per-USD buy rate. ``ExchangeRateClient`` reads the SBS average published
by the Decolecta API; ``FixedRateProvider`` serves constant quotes for
offline runs and tests. Both expose the same methods, and the engine only
ever calls ``get_buy_rate``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from .config import Settings
from .exceptions import RateUnavailableError
from .logging import get_logger

logger = get_logger(__name__)


class ExchangeRateClient:
    """HTTP client for the SBS exchange-rate endpoint."""

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExchangeRateClient":
        return cls(
            settings.exchange_api_url,
            api_key=settings.exchange_api_key,
            timeout=settings.exchange_timeout,
        )

    def _fetch_quote(self) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            response = self._session.get(self.api_url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Exchange rate request to %s failed: %s", self.api_url, exc)
            raise RateUnavailableError("Could not obtain the SBS exchange rate") from exc

    def _price(self, quote: Dict[str, Any], key: str) -> float:
        try:
            value = float(quote[key])
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Exchange rate response is missing a valid %s: %r", key, quote)
            raise RateUnavailableError(f"Exchange rate response has no valid {key}") from exc
        if value <= 0:
            raise RateUnavailableError(f"Exchange rate response has non-positive {key}: {value}")
        return value

    def get_buy_rate(self) -> float:
        """Return the PEN-per-USD buy rate."""
        quote = self._fetch_quote()
        rate = self._price(quote, "buy_price")
        logger.info("Exchange buy rate %.4f (date %s)", rate, quote.get("date"))
        return rate

    def get_sell_rate(self) -> float:
        """Return the PEN-per-USD sell rate."""
        quote = self._fetch_quote()
        rate = self._price(quote, "sell_price")
        logger.info("Exchange sell rate %.4f (date %s)", rate, quote.get("date"))
        return rate

    def get_average_rate(self) -> float:
        """Return the mean of the buy and sell rates from a single quote."""
        quote = self._fetch_quote()
        buy = self._price(quote, "buy_price")
        sell = self._price(quote, "sell_price")
        average = (buy + sell) / 2
        logger.info("Exchange average rate %.4f (buy %.4f, sell %.4f)", average, buy, sell)
        return average

    def pen_to_usd(self, amount_pen: float) -> float:
        return amount_pen / self.get_buy_rate()

    def usd_to_pen(self, amount_usd: float) -> float:
        return amount_usd * self.get_sell_rate()


class FixedRateProvider:
    """Serve constant exchange rates.

    ``sell`` defaults to ``buy`` when omitted.
    """

    def __init__(self, buy: float, sell: Optional[float] = None) -> None:
        if buy <= 0 or (sell is not None and sell <= 0):
            raise ValueError("Exchange rates must be positive")
        self.buy = buy
        self.sell = sell if sell is not None else buy

    def get_buy_rate(self) -> float:
        return self.buy

    def get_sell_rate(self) -> float:
        return self.sell

    def get_average_rate(self) -> float:
        return (self.buy + self.sell) / 2

    def pen_to_usd(self, amount_pen: float) -> float:
        return amount_pen / self.buy

    def usd_to_pen(self, amount_usd: float) -> float:
        return amount_usd * self.sell
