"""
Candidate scoring and selection.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from card_catalog.core.types import CandidateMatch, ClassificationTags
from card_catalog.utils.config import Settings


@dataclass(frozen=True)
class ScoringWeights:
    """Per-signal weights. Heuristic values, tunable through settings."""
    year: int = 2
    set: int = 2
    number: int = 2
    links: int = 1
    pricing: int = 2
    subcategory: int = 3
    ocr_keyword: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringWeights":
        return cls(
            year=settings.SCORE_YEAR,
            set=settings.SCORE_SET,
            number=settings.SCORE_NUMBER,
            links=settings.SCORE_LINKS,
            pricing=settings.SCORE_PRICING,
            subcategory=settings.SCORE_SUBCATEGORY,
            ocr_keyword=settings.SCORE_OCR_KEYWORD,
        )


DEFAULT_WEIGHTS = ScoringWeights()


def _normalize_keywords(keywords: Optional[Iterable[str]]) -> List[str]:
    if not keywords:
        return []
    return [k.strip().lower() for k in keywords if isinstance(k, str) and k.strip()]


def subcategory_consistent(candidate: CandidateMatch, subcategory: Optional[str]) -> bool:
    """True when either label contains the other, ignoring case."""
    if not subcategory or not candidate.subcategory:
        return False
    tag = subcategory.lower()
    own = candidate.subcategory.lower()
    return tag in own or own in tag


def keyword_hit(candidate: CandidateMatch, keywords: Sequence[str]) -> bool:
    name = candidate.display_name.lower()
    if not name:
        return False
    return any(k in name for k in keywords)


def has_pricing(candidate: CandidateMatch) -> bool:
    return isinstance(candidate.pricing, (dict, list)) and len(candidate.pricing) > 0


def score_candidate(
    candidate: CandidateMatch,
    tags: Optional[ClassificationTags] = None,
    ocr_keywords: Optional[Iterable[str]] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    """Sum of independently weighted evidence signals.

    Args:
        candidate: Candidate to score
        tags: Classification tags of the recognized object
        ocr_keywords: Keyword hints harvested by OCR
        weights: Signal weights

    Returns:
        Integer score, higher is better
    """
    keywords = _normalize_keywords(ocr_keywords)
    score = 0
    if candidate.year not in (None, ""):
        score += weights.year
    if candidate.set or candidate.set_name:
        score += weights.set
    if candidate.card_number or candidate.number:
        score += weights.number
    if candidate.links:
        score += weights.links
    if has_pricing(candidate):
        score += weights.pricing
    if tags is not None and subcategory_consistent(candidate, tags.subcategory):
        score += weights.subcategory
    if keywords and keyword_hit(candidate, keywords):
        score += weights.ocr_keyword
    return score


def top_candidate_confirmed(
    candidate: CandidateMatch,
    tags: Optional[ClassificationTags],
    keywords: Sequence[str],
) -> bool:
    """Whether independent evidence backs the service's own top candidate.

    At least one signal must be checkable and every checkable signal must
    agree. A subcategory missing on either side does not contradict.
    """
    checks = []
    if keywords:
        checks.append(keyword_hit(candidate, keywords))
    subcategory = tags.subcategory if tags is not None else None
    if subcategory and candidate.subcategory:
        checks.append(subcategory_consistent(candidate, subcategory))
    return bool(checks) and all(checks)


def pick(
    candidates: Sequence[CandidateMatch],
    tags: Optional[ClassificationTags] = None,
    ocr_keywords: Optional[Iterable[str]] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    top_is_best_match: bool = True,
) -> Optional[CandidateMatch]:
    """Pick the best candidate.

    Args:
        top_is_best_match: Whether ``candidates[0]`` is the service's own best
            match; only then may it skip scoring

    Returns:
        The confirmed best match, else the highest-scored candidate (ties
        keep source order), or None for an empty list
    """
    if not candidates:
        return None

    keywords = _normalize_keywords(ocr_keywords)
    if top_is_best_match and top_candidate_confirmed(candidates[0], tags, keywords):
        return candidates[0]

    ranked = sorted(
        candidates,
        key=lambda c: score_candidate(c, tags, keywords, weights),
        reverse=True,
    )
    return ranked[0]
