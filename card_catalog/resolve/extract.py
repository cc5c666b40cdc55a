"""Candidate extraction from a single recognition response."""

from typing import Any, Dict, List, Optional

from card_catalog.core.constants import COLLECTIBLE_LABELS, MIN_OCR_KEYWORD_LENGTH
from card_catalog.core.types import Extraction
from card_catalog.resolve.parse import (
    coerce_candidate,
    coerce_tags,
    first_record,
    has_identification,
    identification_of,
    object_name,
    objects_of,
    record_succeeded,
)


def _usable_record(raw_response: Any) -> Optional[Dict[str, Any]]:
    record = first_record(raw_response)
    return record if record_succeeded(record) else None


def primary_object(raw_response: Any) -> Optional[Dict[str, Any]]:
    """The object most likely to be the collectible itself.

    Prefers an object named after a collectible label, then the first object
    carrying any identification.
    """
    objects = objects_of(_usable_record(raw_response))
    for obj in objects:
        if object_name(obj) in COLLECTIBLE_LABELS:
            return obj
    for obj in objects:
        if has_identification(obj):
            return obj
    return None


def extract(raw_response: Any) -> Extraction:
    """Best match followed by alternatives, plus the object's tags.

    An absent or failed response extracts to an empty Extraction.
    """
    obj = primary_object(raw_response)
    if obj is None:
        return Extraction()

    ident = identification_of(obj)
    candidates = []
    best = coerce_candidate(ident.get("best_match"))
    if best is not None:
        candidates.append(best)

    alternatives = ident.get("alternatives")
    if isinstance(alternatives, list):
        for alt in alternatives:
            candidate = coerce_candidate(alt)
            if candidate is not None:
                candidates.append(candidate)

    return Extraction(candidates=candidates, tags=coerce_tags(obj), has_best_match=best is not None)


def object_category(raw_response: Any) -> Optional[str]:
    """Lower-cased name of the primary detected object."""
    record = _usable_record(raw_response)
    objects = objects_of(record)
    for obj in objects:
        if object_name(obj) in COLLECTIBLE_LABELS:
            return object_name(obj)
    for obj in objects:
        if object_name(obj):
            return object_name(obj)
    return None


def count_collectibles(raw_response: Any) -> int:
    return sum(1 for obj in objects_of(_usable_record(raw_response))
               if object_name(obj) in COLLECTIBLE_LABELS)


def _ocr_lines(ocr: Any) -> List[str]:
    if isinstance(ocr, str):
        return [ocr]
    if isinstance(ocr, list):
        lines = []
        for item in ocr:
            lines.extend(_ocr_lines(item))
        return lines
    if isinstance(ocr, dict):
        lines = []
        if isinstance(ocr.get("text"), str):
            lines.append(ocr["text"])
        if "texts" in ocr:
            lines.extend(_ocr_lines(ocr["texts"]))
        return lines
    return []


def ocr_keywords(raw_response: Any) -> List[str]:
    """Keyword hints harvested from an OCR-only identification response.

    Candidate display names from every object, then raw OCR text lines.
    """
    found: List[str] = []

    def add(value: Optional[str]) -> None:
        if not value:
            return
        keyword = " ".join(value.split()).lower()
        if len(keyword) >= MIN_OCR_KEYWORD_LENGTH and keyword not in found:
            found.append(keyword)

    objects = objects_of(_usable_record(raw_response))
    for obj in objects:
        ident = identification_of(obj)
        entries = [ident.get("best_match")]
        if isinstance(ident.get("alternatives"), list):
            entries.extend(ident["alternatives"])
        for entry in entries:
            candidate = coerce_candidate(entry)
            if candidate is not None:
                add(candidate.display_name)
    for obj in objects:
        for line in _ocr_lines(obj.get("_ocr")):
            add(line)
    return found
