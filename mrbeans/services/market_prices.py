"""
mrbeans/services/market_prices.py — Coffee futures quotes
Arabica (ICE KC=F) and Robusta from the public Yahoo Finance chart endpoint,
cached for a few minutes. When Arabica cannot be fetched the whole payload
is simulated around fixed base prices; a missing Robusta quote is simulated
on its own.
"""
from __future__ import annotations

import random
import threading
import time
from datetime import datetime, timezone
from typing import Any, Optional

import requests
from loguru import logger

CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{ticker}"
ARABICA_TICKER = "KC=F"
ROBUSTA_TICKERS = ("RC=F", "LRC=F", "RCF=F")

# Arabica in USD/lb, Robusta in USD/tonne
BASE_PRICES = {
    "arabica": {"base": 3.45, "volatility": 0.05},
    "robusta": {"base": 3895.0, "volatility": 5.0},
}
PRICE_DECIMALS = {"arabica": 4, "robusta": 2}

SOURCE_LIVE = "Yahoo Finance API"
SOURCE_PARTIAL = "Yahoo Finance API (Arabica) + Fallback (Robusta)"
SOURCE_SIMULATED = "Fallback (simulirano)"

_REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; MrBeans/1.0)",
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
}


def _timestamp(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_market_open(now: datetime) -> bool:
    """Weekdays, 09:00–18:00 local time."""
    return now.weekday() < 5 and 9 <= now.hour < 18


def quote_from_chart(payload: Any, now: datetime, divisor: float = 1.0, decimals: int = 2) -> Optional[dict[str, Any]]:
    """Build a quote from a Yahoo chart response, or None if the shape is off."""
    try:
        meta = payload["chart"]["result"][0]["meta"]
    except (KeyError, IndexError, TypeError):
        return None
    price = meta.get("regularMarketPrice") if isinstance(meta, dict) else None
    if not price:
        return None

    previous_close = meta.get("previousClose") or price
    high = meta.get("regularMarketDayHigh") or price
    low = meta.get("regularMarketDayLow") or price
    change = (price - previous_close) / previous_close * 100 if previous_close else 0.0
    return {
        "price": round(price / divisor, decimals),
        "high": round(high / divisor, decimals),
        "low": round(low / divisor, decimals),
        "changePercent": round(change, 2),
        "timestamp": _timestamp(now),
        "marketOpen": is_market_open(now),
    }


def simulate_quote(commodity: str, now: datetime) -> dict[str, Any]:
    base = BASE_PRICES[commodity]["base"]
    volatility = BASE_PRICES[commodity]["volatility"]
    decimals = PRICE_DECIMALS[commodity]

    price = base + random.uniform(-1, 1) * volatility
    spread = volatility * 0.5
    return {
        "price": round(price, decimals),
        "high": round(price + random.random() * spread, decimals),
        "low": round(price - random.random() * spread, decimals),
        "changePercent": round(random.uniform(-2, 2), 2),
        "timestamp": _timestamp(now),
        "marketOpen": is_market_open(now),
    }


def simulated_prices(now: Optional[datetime] = None) -> dict[str, Any]:
    now = now or datetime.now().astimezone()
    prices: dict[str, Any] = {name: simulate_quote(name, now) for name in BASE_PRICES}
    prices.update(isLive=False, source=SOURCE_SIMULATED)
    return prices


class MarketPriceService:
    def __init__(self, cache_seconds: float = 300, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache: Optional[dict[str, Any]] = None
        self._fetched_at: Optional[float] = None
        self._lock = threading.Lock()
        self._refreshing = False

    def _fetch_chart(self, ticker: str) -> Optional[dict[str, Any]]:
        url = CHART_URL.format(ticker=ticker)
        try:
            response = self.session.get(
                url,
                params={"interval": "1d", "range": "1d"},
                headers=_REQUEST_HEADERS,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            logger.debug(f"Timeout fetching {ticker}")
        except requests.exceptions.RequestException as exc:
            logger.debug(f"Request failed for {ticker}: {exc}")
        except ValueError as exc:
            logger.debug(f"Invalid JSON for {ticker}: {exc}")
        return None

    def fetch_live(self) -> Optional[dict[str, Any]]:
        """Live quotes, or None when Arabica is unavailable."""
        now = datetime.now().astimezone()
        arabica = quote_from_chart(self._fetch_chart(ARABICA_TICKER), now, divisor=100, decimals=4)
        if arabica is None:
            logger.warning("Arabica quote unavailable, using simulated prices")
            return None

        robusta = None
        for ticker in ROBUSTA_TICKERS:
            robusta = quote_from_chart(self._fetch_chart(ticker), now, decimals=2)
            if robusta is not None:
                break

        is_live = robusta is not None
        if not is_live:
            logger.info("Robusta quote unavailable, simulating Robusta only")
            robusta = simulate_quote("robusta", now)

        return {
            "arabica": arabica,
            "robusta": robusta,
            "isLive": is_live,
            "source": SOURCE_LIVE if is_live else SOURCE_PARTIAL,
        }

    def get_prices(self) -> dict[str, Any]:
        """
        Cached quotes. Upstream calls run outside the lock; callers arriving
        while a refresh is in flight get the previous quotes instead of waiting.
        """
        with self._lock:
            if self._cache is not None and self._fetched_at is not None:
                if time.monotonic() - self._fetched_at < self.cache_seconds:
                    return self._cache
                if self._refreshing:
                    return self._cache
            self._refreshing = True

        try:
            prices = self.fetch_live()
            if prices is None:
                prices = simulated_prices()
            else:
                logger.info(f"Market prices refreshed: {prices['source']}")
        finally:
            with self._lock:
                self._refreshing = False

        with self._lock:
            self._cache = prices
            self._fetched_at = time.monotonic()
        return prices
