"""
External spot-price feeds.

Sources are tried in order and the first one that covers every purity wins.
There is no built-in fallback rate table: when all sources fail the caller
gets RateUnavailable.
"""
import logging
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

import httpx

from app.core.config import settings
from app.core.errors import RateUnavailable
from app.core.purities import GOLD_FINENESS, Purity

logger = logging.getLogger(__name__)

TROY_OUNCE_GRAMS = Decimal("31.1035")


def gold_rates_from_spot(gold_24k_per_gram: Decimal) -> Dict[str, Decimal]:
    return {purity.value: gold_24k_per_gram * fineness for purity, fineness in GOLD_FINENESS.items()}


class RateFeed:
    """Fetch per-gram INR rates for every purity from the configured sources."""

    def __init__(self, client: Optional[httpx.Client] = None):
        self.client = client or httpx.Client(
            timeout=settings.rate_feed_timeout_seconds,
            transport=httpx.HTTPTransport(retries=settings.rate_feed_retries),
        )

    def sources(self) -> List[Tuple[str, Callable[[], Dict[str, Decimal]]]]:
        sources = []
        if settings.goldapi_key:
            sources.append(("GoldAPI", self.fetch_goldapi))
        if settings.metalpriceapi_key:
            sources.append(("MetalPriceAPI", self.fetch_metalpriceapi))
        return sources

    def fetch(self) -> Tuple[Dict[str, Decimal], str]:
        """Returns ({purity: rate_per_gram}, source_name)."""
        sources = self.sources()
        if not sources:
            raise RateUnavailable("No rate feed configured (set GOLDAPI_KEY or METALPRICEAPI_KEY)")

        errors = []
        for name, fetch in sources:
            try:
                rates = fetch()
            except (httpx.HTTPError, ValueError, KeyError, TypeError, ArithmeticError) as exc:
                logger.warning("Rate feed %s failed: %s", name, exc)
                errors.append(f"{name}: {exc}")
                continue
            missing = [p.value for p in Purity if rates.get(p.value) is None]
            if missing:
                logger.warning("Rate feed %s returned no rate for %s", name, ", ".join(missing))
                errors.append(f"{name}: missing {', '.join(missing)}")
                continue
            logger.info("Fetched rates from %s", name)
            return rates, name

        raise RateUnavailable("Failed to fetch rates from all sources: " + "; ".join(errors))

    def fetch_goldapi(self) -> Dict[str, Decimal]:
        headers = {"x-access-token": settings.goldapi_key}
        base = settings.goldapi_base_url.rstrip("/")
        result: Dict[str, Decimal] = {}

        gold = self._goldapi_price(f"{base}/XAU/INR", headers)
        result.update(gold_rates_from_spot(gold / TROY_OUNCE_GRAMS))

        for symbol, purity in (("XAG", Purity.silver), ("XPT", Purity.platinum)):
            price = self._goldapi_price(f"{base}/{symbol}/INR", headers)
            result[purity.value] = price / TROY_OUNCE_GRAMS
        return result

    def _goldapi_price(self, url: str, headers: Dict[str, str]) -> Decimal:
        response = self.client.get(url, headers=headers)
        response.raise_for_status()
        payload = response.json()
        if "price" not in payload:
            raise ValueError(f"Missing price field in GoldAPI response for {url}")
        price = Decimal(str(payload["price"]))
        if price <= 0:
            raise ValueError(f"Invalid price from GoldAPI: {price}")
        return price

    def fetch_metalpriceapi(self) -> Dict[str, Decimal]:
        response = self.client.get(
            settings.metalpriceapi_url,
            params={
                "api_key": settings.metalpriceapi_key,
                "base": "INR",
                "currencies": "XAU,XAG,XPT",
            },
        )
        response.raise_for_status()
        payload = response.json()
        if payload.get("success") is False:
            raise ValueError(payload.get("error", "MetalPriceAPI returned unsuccessful response"))

        rates = payload.get("rates") or {}

        def per_gram(symbol: str) -> Optional[Decimal]:
            # Quotes are ounces per INR; invert to INR per ounce.
            raw = rates.get(symbol)
            if raw is None:
                return None
            ounces = Decimal(str(raw))
            if ounces <= 0:
                raise ValueError(f"Invalid {symbol} rate from MetalPriceAPI")
            return (1 / ounces) / TROY_OUNCE_GRAMS

        gold = per_gram("XAU")
        if gold is None:
            raise ValueError("MetalPriceAPI response has no XAU rate")
        result = gold_rates_from_spot(gold)
        result[Purity.silver.value] = per_gram("XAG")
        result[Purity.platinum.value] = per_gram("XPT")
        return result

    def close(self) -> None:
        self.client.close()
