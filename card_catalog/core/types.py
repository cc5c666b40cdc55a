import base64
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any, Union

@dataclass(frozen=True)
class CandidateMatch:
    """One proposed identification of a scanned item."""
    name: Optional[str] = None
    full_name: Optional[str] = None
    year: Optional[Union[str, int]] = None
    set: Optional[str] = None
    set_name: Optional[str] = None
    set_code: Optional[str] = None
    series: Optional[str] = None
    card_number: Optional[str] = None
    number: Optional[str] = None
    subcategory: Optional[str] = None
    company: Optional[str] = None
    team: Optional[str] = None
    rarity: Optional[str] = None
    grade: Optional[str] = None
    certificate_number: Optional[str] = None
    pricing: Any = None
    links: Dict[str, str] = field(default_factory=dict)
    # TCG only
    color: Optional[str] = None
    card_type: Optional[str] = None
    # comics only
    title: Optional[str] = None
    publisher: Optional[str] = None
    date: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.full_name or ""

@dataclass(frozen=True)
class ClassificationTags:
    grade: Optional[str] = None
    company: Optional[str] = None
    subcategory: Optional[str] = None

    def merged_with(self, other: Optional["ClassificationTags"]) -> "ClassificationTags":
        """Fill labels missing here from ``other``."""
        if other is None:
            return self
        return ClassificationTags(
            grade=self.grade or other.grade,
            company=self.company or other.company,
            subcategory=self.subcategory or other.subcategory,
        )

@dataclass
class Extraction:
    candidates: List[CandidateMatch] = field(default_factory=list)
    tags: Optional[ClassificationTags] = None
    has_best_match: bool = False

@dataclass
class MarketListing:
    id: Optional[str] = None
    link: Optional[str] = None
    name: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    country_code: Optional[str] = None
    source: Optional[str] = None
    created_at: Optional[str] = None
    sold_at: Optional[str] = None
    grade_company: Optional[str] = None
    grade: Optional[str] = None

@dataclass
class Card:
    name: str
    id: str = ""
    year: Optional[str] = None
    set_name: Optional[str] = None
    set_code: Optional[str] = None
    series: Optional[str] = None
    card_number: Optional[str] = None
    subcategory: Optional[str] = None
    company: Optional[str] = None
    team: Optional[str] = None
    rarity: Optional[str] = None
    price: Optional[float] = None
    listings: Optional[List[MarketListing]] = None
    grade: Optional[str] = None
    grade_company: Optional[str] = None
    certificate_number: Optional[str] = None
    links: Optional[Dict[str, str]] = None
    color: Optional[str] = None
    card_type: Optional[str] = None
    title: Optional[str] = None
    publisher: Optional[str] = None
    date: Optional[str] = None
    image_uri: str = ""
    back_image_uri: Optional[str] = None
    date_added: str = ""
    folder_id: Optional[str] = None

@dataclass
class Folder:
    id: str
    name: str
    created_at: str

@dataclass
class ImageInput:
    """An opaque image handed over by the capture side.

    Exactly one of ``base64`` or ``url`` is expected to be set.
    """
    base64: Optional[str] = None
    url: Optional[str] = None
    image_uri: str = ""

    @classmethod
    def from_base64(cls, data: str, image_uri: str = "") -> "ImageInput":
        return cls(base64=data, image_uri=image_uri)

    @classmethod
    def from_url(cls, url: str) -> "ImageInput":
        return cls(url=url, image_uri=url)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ImageInput":
        path = Path(path)
        data = base64.b64encode(path.read_bytes()).decode("ascii")
        return cls(base64=data, image_uri=str(path))

    def to_record(self) -> Dict[str, str]:
        if self.base64:
            return {"_base64": self.base64}
        return {"_url": self.url or ""}

@dataclass(frozen=True)
class TransportFailure:
    """A request that did not produce a usable response."""
    endpoint: str
    reason: str
    status: Optional[int] = None

class ResolverStep(str, Enum):
    OCR_HINTS = "ocr_hints"
    DETECT = "detect"
    CLASSIFY = "classify"
    IDENTIFY_COMIC = "identify_comic"
    IDENTIFY_TCG = "identify_tcg"
    IDENTIFY_SPORT = "identify_sport"
    ANALYZE = "analyze"
    SLAB = "slab"
    OCR_FALLBACK = "ocr_fallback"
    DONE = "done"

@dataclass
class IdentificationResult:
    card: Optional[Card] = None
    step: Optional[ResolverStep] = None
    attempted: List[ResolverStep] = field(default_factory=list)

    @property
    def identified(self) -> bool:
        return self.card is not None

@dataclass
class GradeResult:
    corners: Optional[float] = None
    edges: Optional[float] = None
    surface: Optional[float] = None
    centering: Optional[float] = None
    final: Optional[float] = None
    condition: Optional[str] = None

@dataclass
class ConditionResult:
    label: Optional[str] = None
    scale_value: Optional[float] = None
    max_scale_value: Optional[float] = None
    mode: Optional[str] = None

@dataclass
class CenteringResult:
    centering: Optional[float] = None
    left_right: Optional[str] = None
    top_bottom: Optional[str] = None

@dataclass
class GradingReport:
    grade: Optional[GradeResult] = None
    condition: Optional[ConditionResult] = None
    centering: Optional[CenteringResult] = None

    @property
    def complete(self) -> bool:
        return None not in (self.grade, self.condition, self.centering)
