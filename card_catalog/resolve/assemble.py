"""Mapping of a chosen candidate onto the Card record."""

from typing import Any, List, Optional

from card_catalog.core.constants import UNKNOWN_CARD_NAME
from card_catalog.core.types import CandidateMatch, Card, ClassificationTags, MarketListing
from card_catalog.pricing.normalize import coerce_price, extract_price


def _field(item: dict, *keys: str) -> Optional[str]:
    for key in keys:
        value = item.get(key)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def to_listing(item: Any) -> Optional[MarketListing]:
    if not isinstance(item, dict):
        return None
    return MarketListing(
        id=_field(item, "item_id", "id"),
        link=_field(item, "item_link", "link", "url"),
        name=_field(item, "name", "title"),
        price=coerce_price(item.get("price")),
        currency=_field(item, "currency"),
        country_code=_field(item, "country_code"),
        source=_field(item, "source"),
        created_at=_field(item, "date_of_creation"),
        sold_at=_field(item, "date_of_sale"),
        grade_company=_field(item, "grade_company"),
        grade=_field(item, "grade"),
    )


def to_listings(pricing: Any) -> Optional[List[MarketListing]]:
    """Listings from ``pricing["list"]``; None rather than an empty list."""
    if not isinstance(pricing, dict):
        return None
    raw = pricing.get("list")
    if not isinstance(raw, list):
        return None
    listings = [listing for listing in (to_listing(item) for item in raw) if listing is not None]
    return listings or None


def assemble(candidate: Optional[CandidateMatch], tags: Optional[ClassificationTags] = None) -> Optional[Card]:
    """Build a Card from one candidate.

    Identity, image reference, timestamp and folder stay at their defaults;
    the caller assigns them when saving.
    """
    if candidate is None:
        return None

    tags = tags or ClassificationTags()
    return Card(
        name=candidate.name or candidate.full_name or UNKNOWN_CARD_NAME,
        year=str(candidate.year) if candidate.year not in (None, "") else None,
        set_name=candidate.set or candidate.set_name,
        set_code=candidate.set_code,
        series=candidate.series,
        card_number=candidate.card_number or candidate.number,
        subcategory=candidate.subcategory,
        company=candidate.company,
        team=candidate.team,
        rarity=candidate.rarity,
        price=extract_price(candidate),
        listings=to_listings(candidate.pricing),
        grade=tags.grade or candidate.grade,
        grade_company=tags.company,
        certificate_number=candidate.certificate_number,
        links=dict(candidate.links) if candidate.links else None,
        color=candidate.color,
        card_type=candidate.card_type,
        title=candidate.title,
        publisher=candidate.publisher,
        date=candidate.date,
    )
