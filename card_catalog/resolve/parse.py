"""Coercion of loosely-typed recognition responses into internal shapes.

The recognition service owns its schema, so nothing outside this module
indexes into raw response dicts directly.
"""

from typing import Any, Dict, List, Optional

from card_catalog.core.types import CandidateMatch, ClassificationTags


def first_record(response: Any) -> Optional[Dict[str, Any]]:
    """First record of a response, or None."""
    if not isinstance(response, dict):
        return None
    records = response.get("records")
    if not isinstance(records, list):
        return None
    for record in records:
        if isinstance(record, dict):
            return record
    return None


def record_succeeded(record: Optional[Dict[str, Any]]) -> bool:
    """A record without ``_status.code`` is treated as a 200."""
    if record is None:
        return False
    status = record.get("_status")
    if not isinstance(status, dict):
        return True
    code = status.get("code", 200)
    try:
        return int(code) == 200
    except (TypeError, ValueError):
        return False


def objects_of(record: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not record:
        return []
    objects = record.get("_objects")
    if not isinstance(objects, list):
        return []
    return [o for o in objects if isinstance(o, dict)]


def object_name(obj: Dict[str, Any]) -> str:
    name = obj.get("name")
    return name.strip().lower() if isinstance(name, str) else ""


def _text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _year(value: Any) -> Optional[Any]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return _text(value)


def _links(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str) and v}


def coerce_candidate(obj: Any) -> Optional[CandidateMatch]:
    """Turn one raw best-match/alternative entry into a CandidateMatch."""
    if not isinstance(obj, dict):
        return None
    return CandidateMatch(
        name=_text(obj.get("name")),
        full_name=_text(obj.get("full_name")),
        year=_year(obj.get("year")),
        set=_text(obj.get("set")),
        set_name=_text(obj.get("set_name")),
        set_code=_text(obj.get("set_code")),
        series=_text(obj.get("series")),
        card_number=_text(obj.get("card_number")),
        number=_text(obj.get("number")),
        subcategory=_text(obj.get("subcategory")),
        company=_text(obj.get("company")),
        team=_text(obj.get("team")),
        rarity=_text(obj.get("rarity")),
        grade=_text(obj.get("grade")),
        certificate_number=_text(obj.get("certificate_number")),
        pricing=obj.get("pricing"),
        links=_links(obj.get("links")),
        color=_text(obj.get("color")),
        card_type=_text(obj.get("type")),
        title=_text(obj.get("title")),
        publisher=_text(obj.get("publisher")),
        date=_text(obj.get("date")),
    )


def _first_tag_name(tags: Dict[str, Any], key: str) -> Optional[str]:
    for tag_key, entries in tags.items():
        if not isinstance(tag_key, str) or tag_key.lower() != key:
            continue
        if isinstance(entries, dict):
            entries = [entries]
        if not isinstance(entries, list):
            continue
        for entry in entries:
            name = _text(entry.get("name")) if isinstance(entry, dict) else _text(entry)
            if name:
                return name
    return None


def coerce_tags(obj: Any) -> Optional[ClassificationTags]:
    """Read Grade/Company/Subcategory labels from an object's ``_tags``."""
    if not isinstance(obj, dict):
        return None
    tags = obj.get("_tags")
    if not isinstance(tags, dict):
        return None
    result = ClassificationTags(
        grade=_first_tag_name(tags, "grade"),
        company=_first_tag_name(tags, "company"),
        subcategory=_first_tag_name(tags, "subcategory"),
    )
    if result.grade is None and result.company is None and result.subcategory is None:
        return None
    return result


def identification_of(obj: Dict[str, Any]) -> Dict[str, Any]:
    ident = obj.get("_identification")
    return ident if isinstance(ident, dict) else {}


def has_identification(obj: Dict[str, Any]) -> bool:
    ident = identification_of(obj)
    alternatives = ident.get("alternatives")
    return bool(ident.get("best_match")) or (isinstance(alternatives, list) and len(alternatives) > 0)
