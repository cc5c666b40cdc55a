"""Representative market price from a loosely shaped pricing payload."""

import math
import re
import statistics
from typing import Any, Iterable, List, Optional

from card_catalog.core.constants import PRICE_KEYS
from card_catalog.core.types import CandidateMatch

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def coerce_price(value: Any) -> Optional[float]:
    """Strictly positive finite price from a number or numeric string."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def collect_prices(payload: Any, price_key: bool = False) -> List[float]:
    """Walk a pricing payload and gather every value held under a price key.

    List items inherit the key of the list holding them; dict entries are
    judged by their own key.
    """
    values: List[float] = []
    if isinstance(payload, dict):
        for key, value in payload.items():
            values.extend(collect_prices(value, isinstance(key, str) and key.lower() in PRICE_KEYS))
    elif isinstance(payload, list):
        for item in payload:
            values.extend(collect_prices(item, price_key))
    elif price_key:
        price = coerce_price(payload)
        if price is not None:
            values.append(price)
    return values


def median(values: Iterable[float]) -> Optional[float]:
    values = list(values)
    if not values:
        return None
    return float(statistics.median(values))


def extract_price(candidate: Optional[CandidateMatch]) -> Optional[float]:
    """Representative market price: median of every collected price."""
    if candidate is None or not candidate.pricing:
        return None
    return median(collect_prices(candidate.pricing))
