import logging
import random
import time
from collections.abc import Iterable
from typing import Any

import yfinance as yf

from equity_tracker.models import MarketData

logger: logging.Logger = logging.getLogger(__name__)

INFO_FIELDS: dict[str, str] = {
    "pe": "trailingPE",
    "pb": "priceToBook",
    "eps": "trailingEps",
}


def _is_rate_limited(error: Exception) -> bool:
    message: str = str(error).lower()
    return "rate limit" in message or "too many requests" in message


def _as_float(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number == number else None  # drop NaN


def fetch_ticker_data(symbol: str, max_retries: int = 3) -> MarketData | None:
    """
    Fetch the last price and trailing valuation ratios for one symbol.

    Args:
        symbol: Yahoo Finance symbol (e.g. "AAPL", "INFY.NS")
        max_retries: Retry attempts when rate limited

    Returns:
        MarketData, or None when no positive price could be retrieved
    """
    retry_count = 0

    while retry_count <= max_retries:
        try:
            ticker: yf.Ticker = yf.Ticker(symbol)
            price: float | None = _as_float(ticker.fast_info.last_price)
            if price is None or price <= 0:
                logger.warning(f"No valid price for {symbol}: {price}")
                return None

            # Ratios are optional; a failing info lookup still yields a price
            ratios: dict[str, float | None] = {name: None for name in INFO_FIELDS}
            try:
                info: dict[str, Any] = ticker.info or {}
                ratios = {name: _as_float(info.get(key)) for name, key in INFO_FIELDS.items()}
            except Exception as e:
                logger.debug(f"Failed to get info for {symbol}: {e}")

            logger.info(f"Retrieved market data for {symbol}: price={price}")
            return MarketData(price=price, **ratios)

        except Exception as e:
            if not _is_rate_limited(e):
                logger.error(f"Error fetching market data for {symbol}: {e}")
                return None

            retry_count += 1
            if retry_count > max_retries:
                logger.error(f"Rate limit exceeded for {symbol}")
                return None

            # Exponential backoff with jitter
            wait_time: float = min(60, (2**retry_count) + (random.randint(0, 1000) / 1000))
            logger.warning(f"Rate limited on {symbol}. Waiting {wait_time:.2f}s before retry")
            time.sleep(wait_time)

    return None


def fetch_market_data(tickers: Iterable[str], max_retries: int = 3) -> dict[str, MarketData]:
    """
    Fetch market data for several tickers.

    Tickers that fail are left out, so the result may be partial or empty.
    Keys are upper-cased tickers.
    """
    data: dict[str, MarketData] = {}
    for ticker in dict.fromkeys(t.strip().upper() for t in tickers if t.strip()):
        market_data: MarketData | None = fetch_ticker_data(ticker, max_retries=max_retries)
        if market_data is not None:
            data[ticker] = market_data
    logger.info(f"Market data fetched for {len(data)} tickers")
    return data
