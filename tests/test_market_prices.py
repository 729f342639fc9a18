"""
tests/test_market_prices.py — Futures quotes, caching and simulated fallback
"""
from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

import requests

from mrbeans.services.market_prices import (
    BASE_PRICES,
    SOURCE_LIVE,
    SOURCE_PARTIAL,
    SOURCE_SIMULATED,
    MarketPriceService,
    is_market_open,
    quote_from_chart,
    simulated_prices,
)


def _chart(price, previous=None, high=None, low=None) -> dict:
    meta = {"regularMarketPrice": price}
    if previous is not None:
        meta["previousClose"] = previous
    if high is not None:
        meta["regularMarketDayHigh"] = high
    if low is not None:
        meta["regularMarketDayLow"] = low
    return {"chart": {"result": [{"meta": meta}]}}


def _response(payload=None, status_error=None):
    response = MagicMock()
    response.json.return_value = payload
    if status_error:
        response.raise_for_status.side_effect = status_error
    return response


def _session(responses_by_ticker: dict) -> MagicMock:
    session = MagicMock()

    def get(url, **kwargs):
        ticker = url.rsplit("/", 1)[-1]
        result = responses_by_ticker.get(ticker)
        if isinstance(result, Exception):
            raise result
        if result is None:
            return _response(status_error=requests.HTTPError("404"))
        return _response(result)

    session.get.side_effect = get
    return session


def test_quote_from_chart_converts_arabica_cents():
    now = datetime(2024, 5, 6, 10, 0)
    quote = quote_from_chart(_chart(345.5, previous=340.0, high=350.0, low=339.0), now, divisor=100, decimals=4)
    assert quote["price"] == 3.455
    assert quote["high"] == 3.5
    assert quote["low"] == 3.39
    assert quote["changePercent"] == round((345.5 - 340.0) / 340.0 * 100, 2)
    assert quote["marketOpen"] is True


def test_quote_from_chart_bad_shapes():
    now = datetime(2024, 5, 6, 10, 0)
    for payload in (None, {}, {"chart": {"result": []}}, {"chart": {"result": [{"meta": {}}]}}):
        assert quote_from_chart(payload, now) is None


def test_market_hours():
    assert is_market_open(datetime(2024, 5, 6, 9, 0))       # Monday
    assert not is_market_open(datetime(2024, 5, 6, 18, 0))
    assert not is_market_open(datetime(2024, 5, 4, 12, 0))   # Saturday


def test_simulated_prices_stay_near_base():
    prices = simulated_prices()
    assert prices["isLive"] is False
    assert prices["source"] == SOURCE_SIMULATED
    for commodity, base_price in BASE_PRICES.items():
        assert abs(prices[commodity]["price"] - base_price["base"]) <= base_price["volatility"] + 0.01


def test_live_prices_from_yahoo():
    session = _session({"KC=F": _chart(345.0), "RC=F": _chart(3900.0)})
    prices = MarketPriceService(session=session).get_prices()
    assert prices["isLive"] is True
    assert prices["source"] == SOURCE_LIVE
    assert prices["arabica"]["price"] == 3.45
    assert prices["robusta"]["price"] == 3900.0


def test_robusta_tries_alternate_tickers():
    session = _session({"KC=F": _chart(345.0), "RC=F": None, "LRC=F": _chart(3850.0)})
    prices = MarketPriceService(session=session).get_prices()
    assert prices["robusta"]["price"] == 3850.0
    assert prices["isLive"] is True


def test_missing_robusta_is_simulated_alone():
    session = _session({"KC=F": _chart(345.0)})
    prices = MarketPriceService(session=session).get_prices()
    assert prices["isLive"] is False
    assert prices["source"] == SOURCE_PARTIAL
    assert prices["arabica"]["price"] == 3.45
    assert abs(prices["robusta"]["price"] - 3895) <= 5


def test_upstream_down_falls_back_to_simulation():
    session = _session({"KC=F": requests.ConnectionError("offline")})
    prices = MarketPriceService(session=session).get_prices()
    assert prices["isLive"] is False
    assert prices["source"] == SOURCE_SIMULATED


def test_results_cached():
    session = _session({"KC=F": _chart(345.0), "RC=F": _chart(3900.0)})
    service = MarketPriceService(cache_seconds=300, session=session)
    first = service.get_prices()
    calls = session.get.call_count
    assert service.get_prices() is first
    assert session.get.call_count == calls


def test_expired_cache_refetches():
    session = _session({"KC=F": _chart(345.0), "RC=F": _chart(3900.0)})
    service = MarketPriceService(cache_seconds=0, session=session)
    service.get_prices()
    calls = session.get.call_count
    service.get_prices()
    assert session.get.call_count > calls


def test_callers_during_refresh_get_previous_quotes():
    session = _session({"KC=F": _chart(345.0), "RC=F": _chart(3900.0)})
    service = MarketPriceService(cache_seconds=0, session=session)
    previous = service.get_prices()

    seen_during_refresh = []
    upstream_get = session.get.side_effect

    def slow_get(url, **kwargs):
        # Another caller arrives while this refresh is waiting on upstream
        if not seen_during_refresh:
            seen_during_refresh.append(service.get_prices())
        return upstream_get(url, **kwargs)

    session.get.side_effect = slow_get
    refreshed = service.get_prices()

    assert seen_during_refresh[0] is previous
    assert refreshed is not previous


def test_market_route(app, client):
    app.state.market_prices = MarketPriceService(session=_session({"KC=F": _chart(345.0), "RC=F": _chart(3900.0)}))
    response = client.get("/api/market-prices")
    assert response.status_code == 200
    assert response.json()["data"]["source"] == SOURCE_LIVE
